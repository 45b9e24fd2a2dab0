"""DIFF → canonical form.

Stable, hashed representations of raw diffs and sync batches. Every
function here is pure and deterministic.
"""

from design_sync.diff.canonicalize import (
    build_canonicalized_operation,
    canonicalize_batch,
    canonicalize_diff,
    compute_operation_hash,
    compute_state_hash,
)
from design_sync.diff.models import CanonicalDiffItem, ComponentDiff, DiffItem, DiffSummary, LegacyDiff

__all__ = [
    "CanonicalDiffItem",
    "ComponentDiff",
    "DiffItem",
    "DiffSummary",
    "LegacyDiff",
    "build_canonicalized_operation",
    "canonicalize_batch",
    "canonicalize_diff",
    "compute_operation_hash",
    "compute_state_hash",
]
