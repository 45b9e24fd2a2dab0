from __future__ import annotations

import uuid
from datetime import datetime, timezone

from sqlalchemy import JSON, DateTime, ForeignKey, Index, Integer, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    """Base class for all database models."""


class SyncOperation(Base):
    """One persisted, non-dry-run sync batch.

    Schema:
    - id: UUID primary key
    - initiated_by: Optional user id of the caller
    - timestamp: When the operation was executed (UTC)
    - components_affected: JSON array of component ids
    - direction_modes: JSON object component_id -> direction
    - diff_summary: JSON object {total, items, false_positive_heuristics_applied}
    - reversible_until: End of the undo window
    - operation_hash: Content-derived batch identity (unique, idempotency key)
    - status: pending | running | completed | partial | failed
    - duration_ms: Wall time of the execute call

    Constraints:
    - operation_hash is unique; identical batches cannot be persisted twice
    - Rows are immutable after completion except status and duration_ms
    """

    __tablename__ = "sync_operations"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=lambda: str(uuid.uuid4()), index=True)
    initiated_by: Mapped[str | None] = mapped_column(String, nullable=True)
    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_utcnow)
    components_affected: Mapped[list] = mapped_column(JSON, nullable=False)
    direction_modes: Mapped[dict] = mapped_column(JSON, nullable=False)
    diff_summary: Mapped[dict] = mapped_column(JSON, nullable=False)
    reversible_until: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    operation_hash: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    status: Mapped[str] = mapped_column(String, nullable=False, default="pending")
    duration_ms: Mapped[int | None] = mapped_column(Integer, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_utcnow)

    __table_args__ = (Index("idx_sync_operations_created_at", "created_at"),)


class UndoStackEntry(Base):
    """Time-boxed, single-use reversal ticket for a SyncOperation.

    One-to-one with sync_operations. ``undone_at`` moves from NULL to a
    timestamp at most once, and only through a conditional update. Entries
    are never deleted on expiry; the prune job removes them after the
    retention window.
    """

    __tablename__ = "undo_stack_entries"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=lambda: str(uuid.uuid4()), index=True)
    sync_operation_id: Mapped[str] = mapped_column(
        String,
        ForeignKey("sync_operations.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    pre_state_hash: Mapped[str] = mapped_column(String(64), nullable=False)
    post_state_hash: Mapped[str] = mapped_column(String(64), nullable=False)
    expiration: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_utcnow)
    undone_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        Index("idx_undo_live", "undone_at", "expiration"),  # Common query: live entries for cap enforcement
        Index("idx_undo_created_at", "created_at"),
    )


class CoverageReport(Base):
    """Cached coverage result for a component.

    Derived data; safe to prune and recompute.
    """

    __tablename__ = "coverage_reports"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=lambda: str(uuid.uuid4()), index=True)
    component_id: Mapped[str] = mapped_column(String, nullable=False, index=True)
    generated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_utcnow)
    variant_coverage_pct: Mapped[int] = mapped_column(Integer, nullable=False)
    missing_variants: Mapped[list] = mapped_column(JSON, nullable=False)
    missing_tests: Mapped[list] = mapped_column(JSON, nullable=False)
    warnings: Mapped[list | None] = mapped_column(JSON, nullable=True)


def as_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes read back from SQLite."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value
