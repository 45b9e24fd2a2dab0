"""Repository functions for sync operation and undo entry persistence.

Single responsibility: database operations only. Callers own the session
and its transaction boundaries.
"""

from datetime import datetime

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from design_sync.db.models import SyncOperation, UndoStackEntry


def create_sync_operation(
    session: Session,
    *,
    operation_hash: str,
    components_affected: list[str],
    direction_modes: dict[str, str],
    diff_summary: dict,
    reversible_until: datetime,
    timestamp: datetime,
    initiated_by: str | None = None,
    status: str = "running",
) -> SyncOperation:
    """Insert a sync operation row and flush it.

    Raises:
        sqlalchemy.exc.IntegrityError: If ``operation_hash`` already exists
    """
    operation = SyncOperation(
        initiated_by=initiated_by,
        timestamp=timestamp,
        components_affected=components_affected,
        direction_modes=direction_modes,
        diff_summary=diff_summary,
        reversible_until=reversible_until,
        operation_hash=operation_hash,
        status=status,
        created_at=timestamp,
    )
    session.add(operation)
    session.flush()
    return operation


def create_undo_entry(
    session: Session,
    *,
    sync_operation_id: str,
    pre_state_hash: str,
    post_state_hash: str,
    expiration: datetime,
    created_at: datetime,
) -> UndoStackEntry:
    """Insert the undo entry paired with an already-flushed operation."""
    entry = UndoStackEntry(
        sync_operation_id=sync_operation_id,
        pre_state_hash=pre_state_hash,
        post_state_hash=post_state_hash,
        expiration=expiration,
        created_at=created_at,
    )
    session.add(entry)
    session.flush()
    return entry


def get_operation(session: Session, *, operation_id: str) -> SyncOperation | None:
    return session.execute(select(SyncOperation).where(SyncOperation.id == operation_id)).scalar_one_or_none()


def find_operation_by_hash(session: Session, *, operation_hash: str) -> SyncOperation | None:
    return session.execute(
        select(SyncOperation).where(SyncOperation.operation_hash == operation_hash)
    ).scalar_one_or_none()


def get_undo_entry_for_operation(session: Session, *, operation_id: str) -> UndoStackEntry | None:
    return session.execute(
        select(UndoStackEntry).where(UndoStackEntry.sync_operation_id == operation_id)
    ).scalar_one_or_none()


def list_operations(session: Session, *, limit: int = 20) -> list[tuple[SyncOperation, UndoStackEntry | None]]:
    """Most recent operations first, each with its undo entry (if any)."""
    rows = session.execute(
        select(SyncOperation, UndoStackEntry)
        .outerjoin(UndoStackEntry, UndoStackEntry.sync_operation_id == SyncOperation.id)
        .order_by(SyncOperation.created_at.desc(), SyncOperation.id)
        .limit(limit)
    ).all()
    return [(operation, entry) for operation, entry in rows]


def _live_entries_clause(now: datetime):
    return (UndoStackEntry.undone_at.is_(None), UndoStackEntry.expiration > now)


def count_live_undo_entries(session: Session, *, now: datetime) -> int:
    """Entries that are neither undone nor expired at ``now``."""
    return session.execute(
        select(func.count()).select_from(UndoStackEntry).where(*_live_entries_clause(now))
    ).scalar_one()


def evict_oldest_live_entries(session: Session, *, now: datetime, keep: int) -> list[str]:
    """Expire the oldest live entries so that at most ``keep`` remain live.

    Eviction sets ``expiration = now``; rows are kept for the prune job.
    Oldest is ordered by ``created_at``, then ``expiration``, then ``id``.

    Returns:
        Operation ids whose undo entries were evicted
    """
    live = session.execute(
        select(UndoStackEntry.id, UndoStackEntry.sync_operation_id)
        .where(*_live_entries_clause(now))
        .order_by(UndoStackEntry.created_at, UndoStackEntry.expiration, UndoStackEntry.id)
    ).all()

    overflow = len(live) - max(keep, 0)
    if overflow <= 0:
        return []

    victims = live[:overflow]
    session.execute(
        update(UndoStackEntry)
        .where(UndoStackEntry.id.in_([entry_id for entry_id, _ in victims]))
        .values(expiration=now)
    )
    return [operation_id for _, operation_id in victims]


def mark_undone(session: Session, *, entry_id: str, now: datetime) -> bool:
    """Set ``undone_at`` only if it is still NULL.

    Returns:
        True if this call performed the transition, False if another undo
        already did
    """
    result = session.execute(
        update(UndoStackEntry)
        .where(UndoStackEntry.id == entry_id, UndoStackEntry.undone_at.is_(None))
        .values(undone_at=now)
        .execution_options(synchronize_session="fetch")
    )
    return result.rowcount == 1


def finalize_operation(session: Session, *, operation: SyncOperation, status: str, duration_ms: int) -> None:
    operation.status = status
    operation.duration_ms = duration_ms
    session.flush()
