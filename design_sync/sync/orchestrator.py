"""Sync orchestrator.

Turns a drift summary into a persisted, reversible sync operation.

Flow:
1. Load code/design snapshots per component (excluded variants removed)
2. Detect drift and canonicalize the reported items
3. Dry run: return a preview, persist nothing
4. Otherwise compute the operation hash and pre/post state hashes
5. Persist the operation, then (in a savepoint) evict over-cap undo
   entries and insert the paired undo entry
6. Record duration and a metrics observation
"""

import time
import uuid
from collections.abc import Callable
from datetime import datetime, timedelta, timezone

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from design_sync.config.settings import settings
from design_sync.core.metrics import MetricStatus, OperationMetric, SyncMetrics, sync_metrics
from design_sync.core.sync_logger import log_sync_event
from design_sync.db.session import get_session
from design_sync.diff.canonicalize import build_canonicalized_operation, compute_state_hash
from design_sync.diff.models import ComponentDiff
from design_sync.drift.detect import DriftDetectionOptions, DriftSource, detect_drift
from design_sync.sync import repository
from design_sync.sync.errors import DuplicateOperationError, UndoEntryPersistenceError
from design_sync.sync.snapshots import SnapshotProvider, SyntheticSnapshotProvider, apply_direction, exclude_variants
from design_sync.sync.types import ExecuteSyncInput, SyncOperationResult


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SyncOrchestrator:
    """Executes sync batches and creates their undo entries."""

    def __init__(
        self,
        snapshot_provider: SnapshotProvider | None = None,
        now: Callable[[], datetime] | None = None,
        max_undo_ops: int | None = None,
        undo_window_hours: int | None = None,
        metrics: SyncMetrics | None = None,
        drift_options: DriftDetectionOptions | None = None,
    ) -> None:
        self._snapshots = snapshot_provider or SyntheticSnapshotProvider()
        self._now = now or _utcnow
        self._max_undo_ops = settings.max_undo_ops if max_undo_ops is None else max_undo_ops
        window_hours = settings.undo_window_hours if undo_window_hours is None else undo_window_hours
        if self._max_undo_ops < 1:
            raise ValueError(f"max_undo_ops must be at least 1, got {self._max_undo_ops}")
        if window_hours < 1:
            raise ValueError(f"undo_window_hours must be at least 1, got {window_hours}")
        self._undo_window = timedelta(hours=window_hours)
        self._metrics = metrics or sync_metrics
        self._drift_options = drift_options or DriftDetectionOptions(
            max_modified_threshold=settings.drift_severity_threshold
        )

    def _load_sources(self, request: ExecuteSyncInput) -> list[DriftSource]:
        sources: list[DriftSource] = []
        for component in request.components:
            code, design = self._snapshots.get_snapshots(component.component_id)
            sources.append(
                DriftSource(
                    component_id=component.component_id,
                    code=exclude_variants(code, component.exclude_variants),
                    design=exclude_variants(design, component.exclude_variants),
                )
            )
        return sources

    async def execute(self, request: ExecuteSyncInput) -> SyncOperationResult:
        """Run one sync batch.

        Raises:
            DuplicateOperationError: An identical batch is already persisted
            UndoEntryPersistenceError: The operation was stored as ``partial``
                because its undo entry could not be written
        """
        start = time.monotonic()
        now = self._now()
        component_ids = [c.component_id for c in request.components]
        direction_modes = {c.component_id: c.direction.value for c in request.components}
        reversible_until = now + self._undo_window

        sources = self._load_sources(request)
        drift = detect_drift(sources, self._drift_options)

        if request.dry_run:
            duration_ms = int((time.monotonic() - start) * 1000)
            log_sync_event("sync.dry_run", component_count=len(component_ids), diff_items=drift.total, duration_ms=duration_ms)
            return SyncOperationResult(
                operation_id=str(uuid.uuid4()),
                status="pending",
                components=component_ids,
                diff_summary=drift,
                reversible_until=reversible_until,
                duration_ms=duration_ms,
            )

        _, operation_hash = build_canonicalized_operation(
            [ComponentDiff(component_id=i.component_id, change_types=i.change_types, severity=i.severity) for i in drift.items],
            component_ids,
            direction_modes,
        )

        by_component = {s.component_id: s for s in sources}
        pre_state_hash = compute_state_hash(
            [{"componentId": cid, "code": s.code, "design": s.design} for cid, s in sorted(by_component.items())]
        )
        post_states = []
        for component in sorted(request.components, key=lambda c: c.component_id):
            source = by_component[component.component_id]
            post_states.append(
                {"componentId": component.component_id, "state": apply_direction(source.code, source.design, component.direction)}
            )
        post_state_hash = compute_state_hash(post_states)

        undo_error: UndoEntryPersistenceError | None = None
        status: MetricStatus = "success"
        try:
            # Duplicates are a normal outcome; reject them outside the write session
            with get_session() as session:
                existing = repository.find_operation_by_hash(session, operation_hash=operation_hash)
                existing_id = existing.id if existing is not None else None
            if existing_id is not None:
                raise DuplicateOperationError(operation_hash, existing_id)

            with get_session() as session:
                try:
                    operation = repository.create_sync_operation(
                        session,
                        operation_hash=operation_hash,
                        components_affected=component_ids,
                        direction_modes=direction_modes,
                        diff_summary=drift.model_dump(),
                        reversible_until=reversible_until,
                        timestamp=now,
                        initiated_by=request.initiated_by,
                    )
                except IntegrityError as e:
                    raise DuplicateOperationError(operation_hash) from e

                try:
                    with session.begin_nested():
                        evicted = repository.evict_oldest_live_entries(session, now=now, keep=self._max_undo_ops - 1)
                        repository.create_undo_entry(
                            session,
                            sync_operation_id=operation.id,
                            pre_state_hash=pre_state_hash,
                            post_state_hash=post_state_hash,
                            expiration=reversible_until,
                            created_at=now,
                        )
                    if evicted:
                        log_sync_event(
                            "undo.cap.evicted",
                            level="warning",
                            max_undo_ops=self._max_undo_ops,
                            evicted_operation_ids=evicted,
                        )
                    final_status = "completed"
                except SQLAlchemyError as e:
                    undo_error = UndoEntryPersistenceError(operation.id, e)
                    final_status = "partial"
                    status = "partial"

                duration_ms = int((time.monotonic() - start) * 1000)
                repository.finalize_operation(session, operation=operation, status=final_status, duration_ms=duration_ms)
                operation_id = operation.id
        except Exception as e:
            self._metrics.record_operation(
                OperationMetric(
                    operation="sync",
                    duration_ms=int((time.monotonic() - start) * 1000),
                    status="failure",
                    component_count=len(component_ids),
                )
            )
            log_sync_event(
                "sync.duplicate" if isinstance(e, DuplicateOperationError) else "sync.execute.failed",
                level="warning" if isinstance(e, DuplicateOperationError) else "error",
                component_count=len(component_ids),
                operation_hash=operation_hash,
                error_type=type(e).__name__,
            )
            raise

        self._metrics.record_operation(
            OperationMetric(
                operation="sync",
                duration_ms=duration_ms,
                status=status,
                component_count=len(component_ids),
                operation_id=operation_id,
            )
        )

        if undo_error is not None:
            log_sync_event(
                "sync.undo_entry.failed",
                level="error",
                operation_id=operation_id,
                error=str(undo_error.cause),
            )
            raise undo_error

        log_sync_event(
            "sync.execute",
            operation_id=operation_id,
            component_count=len(component_ids),
            diff_items=drift.total,
            duration_ms=duration_ms,
        )
        return SyncOperationResult(
            operation_id=operation_id,
            status="completed",
            components=component_ids,
            diff_summary=drift,
            reversible_until=reversible_until,
            duration_ms=duration_ms,
        )
