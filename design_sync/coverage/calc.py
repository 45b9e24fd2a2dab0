"""Variant and test coverage calculation.

Computes variant coverage percentage, missing variants and missing test
types for component story completeness reporting. Pure functions only.
"""

from typing import Any, Literal

from pydantic import BaseModel, Field

TestType = Literal["visual", "interaction", "a11y"]

HIGH_VARIANT_COUNT = 20


class VariantDescriptor(BaseModel):
    name: str
    props: dict[str, Any] = Field(default_factory=dict)


class StoryRecord(BaseModel):
    variant_name: str
    has_visual_test: bool = False
    has_interaction_test: bool = False
    has_a11y_test: bool = False


class ComponentCoverageInput(BaseModel):
    component_id: str
    component_name: str
    defined_variants: list[VariantDescriptor] = Field(default_factory=list)
    existing_stories: list[StoryRecord] = Field(default_factory=list)


class MissingTests(BaseModel):
    variant_name: str
    missing_test_types: list[TestType]


class CoverageResult(BaseModel):
    component_id: str
    variant_coverage_pct: int = Field(ge=0, le=100)
    missing_variants: list[str] = Field(default_factory=list)
    missing_tests: list[MissingTests] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)


def calculate_variant_coverage(
    defined_variants: list[VariantDescriptor],
    existing_stories: list[StoryRecord],
) -> int:
    """Percentage of defined variants with at least one story.

    Rounded to the nearest integer with halves rounded up (2 of 3 -> 67,
    1 of 8 -> 13). No defined variants counts as full coverage.
    """
    if not defined_variants:
        return 100

    story_variants = {s.variant_name for s in existing_stories}
    covered = sum(1 for v in defined_variants if v.name in story_variants)
    total = len(defined_variants)
    # Integer half-up rounding; round() would round halves to even
    return (covered * 200 + total) // (2 * total)


def find_missing_variants(
    defined_variants: list[VariantDescriptor],
    existing_stories: list[StoryRecord],
) -> list[str]:
    """Defined variant names with no story, in definition order."""
    story_variants = {s.variant_name for s in existing_stories}
    return [v.name for v in defined_variants if v.name not in story_variants]


def find_missing_tests(existing_stories: list[StoryRecord]) -> list[MissingTests]:
    """Test gaps per story; stories with every test type present are omitted."""
    gaps: list[MissingTests] = []
    for story in existing_stories:
        missing: list[TestType] = []
        if not story.has_visual_test:
            missing.append("visual")
        if not story.has_interaction_test:
            missing.append("interaction")
        if not story.has_a11y_test:
            missing.append("a11y")
        if missing:
            gaps.append(MissingTests(variant_name=story.variant_name, missing_test_types=missing))
    return gaps


def generate_warnings(data: ComponentCoverageInput) -> list[str]:
    """Human-readable warnings for coverage anomalies.

    - stories for variants that are not defined (orphaned stories)
    - stories present while no variant is defined
    - more than ``HIGH_VARIANT_COUNT`` defined variants
    """
    warnings: list[str] = []

    defined_names = {v.name for v in data.defined_variants}
    orphaned = [s.variant_name for s in data.existing_stories if s.variant_name not in defined_names]
    if orphaned:
        warnings.append(f"{len(orphaned)} story(ies) exist for undefined variants: {', '.join(orphaned)}")

    if not data.defined_variants and data.existing_stories:
        warnings.append("No variants defined but stories exist; consider adding variant definitions")

    if len(data.defined_variants) > HIGH_VARIANT_COUNT:
        warnings.append(
            f"High variant count ({len(data.defined_variants)}); consider consolidating or reviewing definitions"
        )

    return warnings


def compute_coverage(data: ComponentCoverageInput) -> CoverageResult:
    """Full coverage analysis for one component."""
    return CoverageResult(
        component_id=data.component_id,
        variant_coverage_pct=calculate_variant_coverage(data.defined_variants, data.existing_stories),
        missing_variants=find_missing_variants(data.defined_variants, data.existing_stories),
        missing_tests=find_missing_tests(data.existing_stories),
        warnings=generate_warnings(data),
    )
