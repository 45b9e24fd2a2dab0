"""Tests for test scaffold generation."""

from design_sync.coverage.scaffolds import ScaffoldGenerationRequest, generate_scaffolds, sanitize_name


def test_sanitize_name():
    assert sanitize_name("Primary Button/Large") == "Primary_Button_Large"


def test_generates_one_scaffold_per_known_type():
    result = generate_scaffolds(
        ScaffoldGenerationRequest(
            component_id="btn",
            component_name="Button",
            variant_name="primary large",
            missing_test_types=["visual", "interaction", "a11y"],
        )
    )
    assert [s.type for s in result.generated] == ["visual", "interaction", "a11y"]
    assert result.skipped == []

    visual, interaction, a11y = result.generated
    assert visual.file_path == "apps/web/tests/designSync/visual/Button_primary_large.spec.ts"
    assert "toHaveScreenshot('Button_primary_large.png')" in visual.content
    assert interaction.file_path.endswith("interaction/Button_primary_large.cy.ts")
    assert 'cy.mount(\'<Button variant="primary_large" />\')' in interaction.content
    assert a11y.file_path.endswith("a11y/Button_primary_large.a11y.spec.ts")
    assert "AxeBuilder" in a11y.content


def test_unknown_types_are_skipped_with_warning():
    result = generate_scaffolds(
        ScaffoldGenerationRequest(
            component_id="btn",
            component_name="Button",
            variant_name="primary",
            missing_test_types=["performance", "visual"],
        )
    )
    assert [s.type for s in result.generated] == ["visual"]
    assert result.skipped == ["Unknown test type: performance"]
    assert result.warnings == ["Test type 'performance' not recognized; skipped"]
