"""Component snapshot providers.

A provider returns the code-side and design-side field maps for one
component. Fetching real artifacts from repositories or design tools is the
caller's concern; the synthetic provider stands in until one is wired up.
"""

from typing import Any, Protocol

from design_sync.sync.types import SyncDirection


class SnapshotProvider(Protocol):
    def get_snapshots(self, component_id: str) -> tuple[dict[str, Any], dict[str, Any]]:
        """Return ``(code, design)`` field maps for a component."""
        ...


class SyntheticSnapshotProvider:
    """Every component reports a version bump from 1 (code) to 2 (design)."""

    def get_snapshots(self, component_id: str) -> tuple[dict[str, Any], dict[str, Any]]:
        return {"version": 1}, {"version": 2}


class StaticSnapshotProvider:
    """Snapshots from a fixed mapping ``component_id -> {"code": ..., "design": ...}``.

    Components missing from the mapping have empty snapshots.
    """

    def __init__(self, snapshots: dict[str, dict[str, dict[str, Any]]]) -> None:
        self._snapshots = snapshots

    def get_snapshots(self, component_id: str) -> tuple[dict[str, Any], dict[str, Any]]:
        entry = self._snapshots.get(component_id, {})
        return dict(entry.get("code", {})), dict(entry.get("design", {}))


def exclude_variants(snapshot: dict[str, Any], excluded: list[str]) -> dict[str, Any]:
    """Copy of ``snapshot`` with excluded names removed from its ``variants`` list."""
    if not excluded or not isinstance(snapshot.get("variants"), list):
        return dict(snapshot)
    skip = set(excluded)
    return {**snapshot, "variants": [v for v in snapshot["variants"] if v not in skip]}


def apply_direction(code: dict[str, Any], design: dict[str, Any], direction: SyncDirection) -> dict[str, Any]:
    """Field map both sides hold after a sync in the given direction."""
    if direction == SyncDirection.CODE_TO_DESIGN:
        return dict(code)
    if direction == SyncDirection.DESIGN_TO_CODE:
        return dict(design)
    return {**code, **design}
