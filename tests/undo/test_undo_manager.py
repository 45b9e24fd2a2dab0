"""Tests for the undo protocol: exactly-once, expiration and not-found handling."""

from datetime import timedelta

import pytest
from pydantic import ValidationError

from design_sync.db.models import SyncOperation, UndoStackEntry
from design_sync.sync import repository
from design_sync.sync.orchestrator import SyncOrchestrator
from design_sync.sync.types import ExecuteSyncInput, SyncComponentInput, UndoRequest
from design_sync.undo.undo_manager import UndoManager


async def _sync(fixed_now, metrics, *component_ids: str) -> str:
    orchestrator = SyncOrchestrator(now=lambda: fixed_now, metrics=metrics, undo_window_hours=24)
    result = await orchestrator.execute(
        ExecuteSyncInput(
            components=[SyncComponentInput(component_id=c, direction="code_to_design") for c in component_ids]
        )
    )
    return result.operation_id


def test_request_requires_operation_id():
    with pytest.raises(ValidationError):
        UndoRequest(operation_id="")


@pytest.mark.asyncio
async def test_undo_succeeds_once_then_fails(db_session, metrics, fixed_now):
    operation_id = await _sync(fixed_now, metrics, "btn", "card")
    manager = UndoManager(now=lambda: fixed_now + timedelta(hours=1), metrics=metrics)

    first = await manager.undo(UndoRequest(operation_id=operation_id))
    second = await manager.undo(UndoRequest(operation_id=operation_id))

    assert first.status == "success"
    assert first.undone_operation_id == operation_id
    assert first.restored_components == ["btn", "card"]
    assert second.status == "failed"
    assert second.restored_components == []

    entry = repository.get_undo_entry_for_operation(db_session, operation_id=operation_id)
    assert entry.undone_at is not None

    stats = metrics.get_undo_stats()
    assert stats["success"] == 1
    assert stats["failure"] == 1


@pytest.mark.asyncio
async def test_undo_after_expiration_is_expired(db_session, metrics, fixed_now):
    operation_id = await _sync(fixed_now, metrics, "btn")
    manager = UndoManager(now=lambda: fixed_now + timedelta(hours=25), metrics=metrics)

    result = await manager.undo(UndoRequest(operation_id=operation_id))

    assert result.status == "expired"
    entry = repository.get_undo_entry_for_operation(db_session, operation_id=operation_id)
    assert entry.undone_at is None


@pytest.mark.asyncio
async def test_undo_at_exact_expiration_is_expired(db_session, metrics, fixed_now):
    operation_id = await _sync(fixed_now, metrics, "btn")
    manager = UndoManager(now=lambda: fixed_now + timedelta(hours=24), metrics=metrics)

    result = await manager.undo(UndoRequest(operation_id=operation_id))

    assert result.status == "expired"


@pytest.mark.asyncio
async def test_unknown_operation_fails(db_session, metrics):
    result = await UndoManager(metrics=metrics).undo(UndoRequest(operation_id="does-not-exist"))
    assert result.status == "failed"
    assert result.undone_operation_id == "does-not-exist"


@pytest.mark.asyncio
async def test_operation_without_undo_entry_fails(db_session, metrics, fixed_now):
    operation = SyncOperation(
        components_affected=["btn"],
        direction_modes={"btn": "code_to_design"},
        diff_summary={"total": 0, "items": []},
        reversible_until=fixed_now + timedelta(hours=24),
        operation_hash="f" * 64,
        status="partial",
    )
    db_session.add(operation)
    db_session.flush()

    result = await UndoManager(now=lambda: fixed_now, metrics=metrics).undo(UndoRequest(operation_id=operation.id))

    assert result.status == "failed"


@pytest.mark.asyncio
async def test_mark_undone_is_conditional(db_session, metrics, fixed_now):
    operation_id = await _sync(fixed_now, metrics, "btn")
    entry = repository.get_undo_entry_for_operation(db_session, operation_id=operation_id)

    assert repository.mark_undone(db_session, entry_id=entry.id, now=fixed_now) is True
    assert repository.mark_undone(db_session, entry_id=entry.id, now=fixed_now + timedelta(seconds=1)) is False


@pytest.mark.asyncio
async def test_history_lists_operations_with_entries(db_session, metrics, fixed_now):
    operation_id = await _sync(fixed_now, metrics, "btn")

    rows = repository.list_operations(db_session, limit=5)

    assert len(rows) == 1
    operation, entry = rows[0]
    assert operation.id == operation_id
    assert isinstance(entry, UndoStackEntry)
