"""Drift detection between code-side and design-side field snapshots.

Compares two flat field maps per component and classifies the changes,
filtering volatile keys and formatting-only differences so that reported
drift stays close to real divergence. A component whose only differences
are filtered out is counted as a suppressed false positive and is not
reported at all (not even as low severity).

This module is pure (no DB, no logging).
"""

from typing import Any

from pydantic import BaseModel, Field

from design_sync.diff.canonicalize import canonicalize_diff, stable_stringify
from design_sync.diff.models import CanonicalDiffItem, ComponentDiff, DiffItem, DiffSummary, Severity

DEFAULT_IGNORE_KEYS = frozenset(
    {
        "updatedAt",
        "lastStoryUpdate",
        "lastDesignChangeAt",
        "updated_at",
        "last_story_update",
        "last_design_change_at",
    }
)
DEFAULT_WHITESPACE_KEYS = frozenset({"description", "docs"})
DEFAULT_SEVERITY_THRESHOLD = 5

# Reported shape of a detection run
DriftDetectionResult = DiffSummary


class DriftSource(BaseModel):
    """Snapshot pair for one component."""

    component_id: str
    code: dict[str, Any]
    design: dict[str, Any]
    variants: list[str] | None = None


class DriftDetectionOptions(BaseModel):
    """Caller overrides, merged with the defaults above."""

    ignore_keys: list[str] = Field(default_factory=list)
    formatting_whitespace_keys: list[str] = Field(default_factory=list)
    max_modified_threshold: int = Field(default=DEFAULT_SEVERITY_THRESHOLD, ge=1)


class FieldChanges(BaseModel):
    """Field names grouped by change kind."""

    added: list[str] = Field(default_factory=list)
    removed: list[str] = Field(default_factory=list)
    modified: list[str] = Field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.added) + len(self.removed) + len(self.modified)

    def labels(self) -> list[str]:
        """``added:<f>``, ``removed:<f>``, ``modified:<f>`` labels, sorted."""
        labels = [f"added:{f}" for f in self.added]
        labels += [f"removed:{f}" for f in self.removed]
        labels += [f"modified:{f}" for f in self.modified]
        return sorted(set(labels))


def _normalize_value(value: Any) -> Any:
    if isinstance(value, str):
        return value.strip()
    return value


def _collapse_whitespace(value: str) -> str:
    return " ".join(value.split())


def _stringify(value: Any) -> str:
    """Canonical serialization that tolerates non-JSON values (dates, sets)."""
    try:
        return stable_stringify(value)
    except TypeError:
        return repr(value)


def _values_differ(code_value: Any, design_value: Any) -> bool:
    return _stringify(_normalize_value(code_value)) != _stringify(_normalize_value(design_value))


def diff_fields(
    code: dict[str, Any],
    design: dict[str, Any],
    options: DriftDetectionOptions | None = None,
) -> FieldChanges:
    """Compute field-level changes with the noise filters applied.

    Args:
        code: Code-side field map
        design: Design-side field map
        options: Optional caller overrides

    Returns:
        Field changes remaining after ignore-list and whitespace filtering
    """
    opts = options or DriftDetectionOptions()
    ignore = DEFAULT_IGNORE_KEYS | set(opts.ignore_keys)
    whitespace_keys = DEFAULT_WHITESPACE_KEYS | set(opts.formatting_whitespace_keys)

    code_keys = [k for k in code if k not in ignore]
    design_keys = [k for k in design if k not in ignore]
    code_set = set(code_keys)
    design_set = set(design_keys)

    changes = FieldChanges(
        added=sorted(k for k in design_keys if k not in code_set),
        removed=sorted(k for k in code_keys if k not in design_set),
    )
    for key in sorted(code_set & design_set):
        code_value = code[key]
        design_value = design[key]
        if key in whitespace_keys and isinstance(code_value, str) and isinstance(design_value, str):
            if _collapse_whitespace(code_value) == _collapse_whitespace(design_value):
                continue
        if _values_differ(code_value, design_value):
            changes.modified.append(key)

    return changes


def assign_severity(total: int, threshold: int = DEFAULT_SEVERITY_THRESHOLD) -> Severity:
    """Map a changed-field count to a severity.

    ``high`` at ``2 * threshold`` or more, ``medium`` at ``threshold`` or
    more, ``low`` otherwise.
    """
    if total >= threshold * 2:
        return "high"
    if total >= threshold:
        return "medium"
    return "low"


def detect_drift(
    sources: list[DriftSource],
    options: DriftDetectionOptions | None = None,
) -> DriftDetectionResult:
    """Classify drift for every source.

    A source with no remaining change after ignore-list and whitespace
    filtering increments ``false_positive_heuristics_applied`` and is
    excluded from ``items``.

    Args:
        sources: Snapshot pairs to compare
        options: Optional ignore keys, whitespace keys and severity threshold

    Returns:
        DiffSummary with ``total == len(items)``
    """
    opts = options or DriftDetectionOptions()
    items: list[DiffItem] = []
    suppressed = 0

    for source in sources:
        changes = diff_fields(source.code, source.design, opts)
        if changes.total == 0:
            suppressed += 1
            continue
        items.append(
            DiffItem(
                component_id=source.component_id,
                change_types=changes.labels(),
                severity=assign_severity(changes.total, opts.max_modified_threshold),
            )
        )

    return DiffSummary(total=len(items), items=items, false_positive_heuristics_applied=suppressed)


def detect_drift_canonicalized(
    sources: list[DriftSource],
    options: DriftDetectionOptions | None = None,
) -> tuple[DriftDetectionResult, list[CanonicalDiffItem]]:
    """Run drift detection and canonicalize every reported item.

    Returns:
        Tuple of (drift summary, canonical items in report order)
    """
    drift = detect_drift(sources, options)
    canonical = [
        canonicalize_diff(ComponentDiff(component_id=i.component_id, change_types=i.change_types, severity=i.severity))
        for i in drift.items
    ]
    return drift, canonical
