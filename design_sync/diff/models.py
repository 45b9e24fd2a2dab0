"""Diff models for design-sync.

Raw diffs arrive in two shapes: the legacy named-component form and the
component-id form. Both are modelled as one tagged union and resolved once
by ``parse_raw_diff``; everything downstream works on the canonical form.
"""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

Severity = Literal["low", "medium", "high"]


class _WireModel(BaseModel):
    """Accepts camelCase wire keys as well as snake_case field names."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class LegacyDiff(_WireModel):
    """Named-component diff (componentName, variant, changedFields)."""

    kind: Literal["legacy"] = "legacy"
    component_name: str
    variant: str | None = None
    changed_fields: list[str] = Field(default_factory=list)
    diff_hash: str | None = None  # producer-supplied hash, never trusted


class ComponentDiff(_WireModel):
    """Component-id diff (componentId, changeTypes, severity)."""

    kind: Literal["spec"] = "spec"
    component_id: str
    change_types: list[str]
    severity: Severity | None = None


class CanonicalDiffItem(_WireModel):
    """Normalized, hashed diff item.

    ``diff_hash`` is a pure function of the normalized payload, so two
    semantically identical diffs always share it.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    kind: Literal["legacy", "spec"]
    component_id: str
    component_ref: str
    variant: str | None = None
    changes: list[str]
    severity: Severity | None = None
    diff_hash: str


class DiffItem(_WireModel):
    """One reported drift item."""

    component_id: str
    change_types: list[str]
    severity: Severity = "low"


class DiffSummary(_WireModel):
    """Drift summary stored on a sync operation."""

    total: int
    items: list[DiffItem] = Field(default_factory=list)
    false_positive_heuristics_applied: int = 0


def parse_raw_diff(raw: Any) -> LegacyDiff | ComponentDiff:
    """Resolve a raw diff into the tagged union.

    Already-parsed models pass through. Dicts are sniffed once: a
    ``componentName``/``component_name`` key marks the legacy form, anything
    else must be the component-id form.

    Raises:
        pydantic.ValidationError: If required fields are missing
    """
    if isinstance(raw, LegacyDiff | ComponentDiff):
        return raw
    if "componentName" in raw or "component_name" in raw:
        return LegacyDiff.model_validate(raw)
    return ComponentDiff.model_validate(raw)
