"""Undo manager for sync operations.

Enforces single-use, time-boxed reversal:
1. Load the operation and its paired undo entry (missing -> failed)
2. Reject entries that were already undone (failed)
3. Reject entries at or past their expiration (expired)
4. Mark the entry undone with a conditional update; losing a race to a
   concurrent undo yields failed

Restoring the actual component artifacts is triggered by the caller on a
successful result.
"""

import time
from collections.abc import Callable
from datetime import datetime, timezone

from design_sync.core.metrics import OperationMetric, SyncMetrics, sync_metrics
from design_sync.core.sync_logger import log_sync_event
from design_sync.db.models import as_utc
from design_sync.db.session import get_session
from design_sync.sync import repository
from design_sync.sync.types import UndoRequest, UndoResult


class UndoManager:
    """Reverses persisted sync operations exactly once."""

    def __init__(self, now: Callable[[], datetime] | None = None, metrics: SyncMetrics | None = None) -> None:
        self._now = now or (lambda: datetime.now(timezone.utc))
        self._metrics = metrics or sync_metrics

    def _rejected(self, request: UndoRequest, status: str, reason: str, start: float) -> UndoResult:
        duration_ms = int((time.monotonic() - start) * 1000)
        log_sync_event("undo", level="warning" if status == "failed" else "info", operation_id=request.operation_id, status=reason)
        self._metrics.record_operation(
            OperationMetric(
                operation="undo",
                duration_ms=duration_ms,
                status="failure",
                operation_id=request.operation_id,
            )
        )
        return UndoResult(undone_operation_id=request.operation_id, duration_ms=duration_ms, status=status)

    async def undo(self, request: UndoRequest) -> UndoResult:
        """Undo one sync operation.

        Never raises for not-found, already-undone or expired operations;
        those are reported through ``UndoResult.status``.
        """
        start = time.monotonic()
        now = self._now()

        with get_session() as session:
            operation = repository.get_operation(session, operation_id=request.operation_id)
            if operation is None:
                return self._rejected(request, "failed", "not_found", start)

            entry = repository.get_undo_entry_for_operation(session, operation_id=operation.id)
            if entry is None:
                return self._rejected(request, "failed", "no_undo_entry", start)

            if entry.undone_at is not None:
                return self._rejected(request, "failed", "already_undone", start)

            if now >= as_utc(entry.expiration):
                return self._rejected(request, "expired", "expired", start)

            if not repository.mark_undone(session, entry_id=entry.id, now=now):
                return self._rejected(request, "failed", "concurrent_undo", start)

            restored = list(operation.components_affected or [])

        duration_ms = int((time.monotonic() - start) * 1000)
        self._metrics.record_operation(
            OperationMetric(
                operation="undo",
                duration_ms=duration_ms,
                status="success",
                component_count=len(restored),
                operation_id=request.operation_id,
            )
        )
        log_sync_event(
            "undo",
            operation_id=request.operation_id,
            status="success",
            restored_count=len(restored),
            duration_ms=duration_ms,
        )
        return UndoResult(
            undone_operation_id=request.operation_id,
            restored_components=restored,
            duration_ms=duration_ms,
            status="success",
        )
