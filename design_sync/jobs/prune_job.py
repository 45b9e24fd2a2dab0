"""Retention job for undo history and the coverage cache.

Deletes undo entries older than the undo retention window and cached
coverage reports older than the coverage retention window. Sync operation
rows are kept as the audit trail.
"""

import time
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from loguru import logger
from sqlalchemy import delete

from design_sync.config.settings import settings
from design_sync.core.sync_logger import log_sync_event
from design_sync.db.models import CoverageReport, UndoStackEntry
from design_sync.db.session import get_session


@dataclass
class PruneResult:
    undo_deleted: int
    coverage_deleted: int
    duration_ms: int


def run_prune_job(
    undo_retention_days: int | None = None,
    coverage_retention_days: int | None = None,
    now: datetime | None = None,
) -> PruneResult:
    """Run one pruning pass.

    Args:
        undo_retention_days: Days of undo history to keep (default from settings)
        coverage_retention_days: Days of cached coverage to keep (default from settings)
        now: Reference time (defaults to current UTC time)

    Returns:
        Number of deleted rows per table

    Raises:
        Exception: Any database error, after logging it
    """
    start = time.monotonic()
    now = now or datetime.now(timezone.utc)
    undo_days = settings.undo_retention_days if undo_retention_days is None else undo_retention_days
    coverage_days = settings.coverage_retention_days if coverage_retention_days is None else coverage_retention_days

    log_sync_event(
        "prune_job.started",
        undo_retention_days=undo_days,
        coverage_retention_days=coverage_days,
    )

    try:
        with get_session() as session:
            undo_deleted = session.execute(
                delete(UndoStackEntry)
                .where(UndoStackEntry.created_at < now - timedelta(days=undo_days))
                .execution_options(synchronize_session=False)
            ).rowcount
            coverage_deleted = session.execute(
                delete(CoverageReport)
                .where(CoverageReport.generated_at < now - timedelta(days=coverage_days))
                .execution_options(synchronize_session=False)
            ).rowcount
    except Exception as e:
        logger.exception("Design-sync prune job failed")
        log_sync_event(
            "prune_job.failed",
            level="error",
            error=str(e),
            error_type=type(e).__name__,
            duration_ms=int((time.monotonic() - start) * 1000),
        )
        raise

    result = PruneResult(
        undo_deleted=undo_deleted or 0,
        coverage_deleted=coverage_deleted or 0,
        duration_ms=int((time.monotonic() - start) * 1000),
    )
    log_sync_event(
        "prune_job.completed",
        undo_deleted=result.undo_deleted,
        coverage_deleted=result.coverage_deleted,
        duration_ms=result.duration_ms,
    )
    return result
