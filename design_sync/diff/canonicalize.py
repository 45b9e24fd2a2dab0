"""Diff canonicalization.

Produces stable, deterministic representations of diff items and the
hashes used for idempotency, drift tracking and undo state.

All functions here are pure (no DB, no logging).
"""

import hashlib
import json
import re
from collections.abc import Iterable, Mapping
from typing import Any

from design_sync.diff.models import CanonicalDiffItem, ComponentDiff, LegacyDiff, parse_raw_diff

_NON_SLUG_CHARS = re.compile(r"[^a-z0-9]+")


def stable_stringify(value: Any) -> str:
    """Serialize a JSON-like value with mapping keys sorted at every depth.

    Arrays keep their element order; callers must pre-sort lists that are
    semantically sets.
    """
    return json.dumps(value, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def sha256_hex(payload: str) -> str:
    """Hex-encoded SHA-256 digest (64 lowercase characters) of a string."""
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()


def compute_state_hash(value: Any) -> str:
    """Content hash of any JSON-like snapshot."""
    return sha256_hex(stable_stringify(value))


def derive_component_id(name: str) -> str:
    """Synthetic component id for legacy named-component diffs.

    Example: ``"Primary Button"`` -> ``"legacy-primary-button"``.
    """
    return f"legacy-{_NON_SLUG_CHARS.sub('-', name.lower())}"


def _as_sorted_set(values: Iterable[str]) -> list[str]:
    return sorted(set(values))


def _canonicalize_legacy(raw: LegacyDiff) -> CanonicalDiffItem:
    changes = _as_sorted_set(raw.changed_fields)
    component_id = derive_component_id(raw.component_name)
    payload = {
        "componentRef": raw.component_name,
        "componentId": component_id,
        "variant": raw.variant or None,
        "changes": changes,
        "kind": "legacy",
    }
    return CanonicalDiffItem(
        kind="legacy",
        component_id=component_id,
        component_ref=raw.component_name,
        variant=raw.variant or None,
        changes=changes,
        diff_hash=compute_state_hash(payload),
    )


def _canonicalize_component(raw: ComponentDiff) -> CanonicalDiffItem:
    changes = _as_sorted_set(raw.change_types)
    payload = {
        "componentRef": raw.component_id,
        "componentId": raw.component_id,
        "changes": changes,
        "severity": raw.severity,
        "kind": "spec",
    }
    return CanonicalDiffItem(
        kind="spec",
        component_id=raw.component_id,
        component_ref=raw.component_id,
        changes=changes,
        severity=raw.severity,
        diff_hash=compute_state_hash(payload),
    )


def canonicalize_diff(raw: LegacyDiff | ComponentDiff | Mapping[str, Any]) -> CanonicalDiffItem:
    """Normalize a single raw diff into a CanonicalDiffItem.

    Args:
        raw: Legacy or component-id diff, as a model or a raw mapping

    Returns:
        CanonicalDiffItem with a deterministic ``diff_hash``
    """
    parsed = parse_raw_diff(raw)
    if isinstance(parsed, LegacyDiff):
        return _canonicalize_legacy(parsed)
    return _canonicalize_component(parsed)


def canonicalize_batch(raws: Iterable[LegacyDiff | ComponentDiff | Mapping[str, Any]]) -> list[CanonicalDiffItem]:
    """Canonicalize a batch, deduplicate by hash and sort for stable output.

    Duplicates share a hash and are therefore identical; the last one wins.
    Output order is ``(component_ref, variant, diff_hash)``.
    """
    by_hash: dict[str, CanonicalDiffItem] = {}
    for raw in raws:
        item = canonicalize_diff(raw)
        by_hash[item.diff_hash] = item
    return sorted(by_hash.values(), key=lambda i: (i.component_ref, i.variant or "", i.diff_hash))


def compute_operation_hash(
    components: Iterable[str],
    direction_modes: Mapping[str, str],
    diff_hashes: Iterable[str],
) -> str:
    """Deterministic identity for a sync batch.

    The three inputs are sorted independently, so any ordering of the same
    components, modes and diffs yields the same hash.
    """
    payload = {
        "components": sorted(set(components)),
        "directionModes": {k: direction_modes[k] for k in sorted(direction_modes) if isinstance(direction_modes[k], str)},
        "diffs": sorted(set(diff_hashes)),
    }
    return compute_state_hash(payload)


def build_canonicalized_operation(
    raws: Iterable[LegacyDiff | ComponentDiff | Mapping[str, Any]],
    components: Iterable[str],
    direction_modes: Mapping[str, str],
) -> tuple[list[CanonicalDiffItem], str]:
    """Canonicalize raw diffs and compute the batch operation hash.

    Returns:
        Tuple of (canonical items, operation hash)
    """
    items = canonicalize_batch(raws)
    operation_hash = compute_operation_hash(components, direction_modes, [i.diff_hash for i in items])
    return items, operation_hash
