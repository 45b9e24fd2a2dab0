"""Tests for variant/test coverage calculation."""

import pytest

from design_sync.coverage.calc import (
    ComponentCoverageInput,
    StoryRecord,
    VariantDescriptor,
    calculate_variant_coverage,
    compute_coverage,
    find_missing_tests,
    find_missing_variants,
    generate_warnings,
)


def _variants(*names: str) -> list[VariantDescriptor]:
    return [VariantDescriptor(name=n, props={}) for n in names]


def _story(name: str, visual: bool = True, interaction: bool = True, a11y: bool = True) -> StoryRecord:
    return StoryRecord(variant_name=name, has_visual_test=visual, has_interaction_test=interaction, has_a11y_test=a11y)


def test_no_defined_variants_is_full_coverage():
    assert calculate_variant_coverage([], []) == 100


def test_single_variant_without_story_is_zero():
    assert calculate_variant_coverage(_variants("primary"), []) == 0


@pytest.mark.parametrize(
    ("covered", "total", "expected"),
    [(1, 2, 50), (2, 3, 67), (1, 3, 33), (1, 8, 13), (3, 8, 38), (5, 8, 63), (7, 8, 88)],
)
def test_rounding_is_half_up(covered, total, expected):
    names = [f"v{i}" for i in range(total)]
    stories = [_story(n) for n in names[:covered]]
    assert calculate_variant_coverage(_variants(*names), stories) == expected


def test_missing_variants_keep_definition_order():
    variants = _variants("large", "small", "medium")
    assert find_missing_variants(variants, [_story("small")]) == ["large", "medium"]


def test_missing_tests_in_fixed_order_and_complete_stories_omitted():
    gaps = find_missing_tests([_story("a"), _story("b", visual=False, a11y=False)])
    assert len(gaps) == 1
    assert gaps[0].variant_name == "b"
    assert gaps[0].missing_test_types == ["visual", "a11y"]


def test_coverage_scenario():
    data = ComponentCoverageInput(
        component_id="btn",
        component_name="Button",
        defined_variants=_variants("primary", "secondary", "tertiary"),
        existing_stories=[_story("primary"), _story("secondary", interaction=False, a11y=False)],
    )
    result = compute_coverage(data)
    assert result.component_id == "btn"
    assert result.variant_coverage_pct == 67
    assert result.missing_variants == ["tertiary"]
    assert len(result.missing_tests) == 1
    assert result.missing_tests[0].variant_name == "secondary"
    assert result.missing_tests[0].missing_test_types == ["interaction", "a11y"]
    assert result.warnings == []


def test_orphaned_stories_warning():
    data = ComponentCoverageInput(
        component_id="btn",
        component_name="Button",
        defined_variants=_variants("primary"),
        existing_stories=[_story("primary"), _story("ghost"), _story("legacy")],
    )
    assert generate_warnings(data) == ["2 story(ies) exist for undefined variants: ghost, legacy"]


def test_stories_without_variant_definitions_warn():
    data = ComponentCoverageInput(component_id="x", component_name="X", existing_stories=[_story("only")])
    warnings = generate_warnings(data)
    assert len(warnings) == 2
    assert warnings[1] == "No variants defined but stories exist; consider adding variant definitions"


@pytest.mark.parametrize(("count", "warns"), [(20, False), (21, True)])
def test_high_variant_count_warning(count, warns):
    names = [f"v{i}" for i in range(count)]
    data = ComponentCoverageInput(
        component_id="x",
        component_name="X",
        defined_variants=_variants(*names),
        existing_stories=[_story(n) for n in names],
    )
    warnings = generate_warnings(data)
    assert (warnings == [f"High variant count ({count}); consider consolidating or reviewing definitions"]) is warns
    assert bool(warnings) is warns
