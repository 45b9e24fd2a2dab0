"""Design-sync metrics sink.

Lightweight in-process metrics keyed by operation type. Each observation is
also logged so that log-based dashboards see the same data. History is
bounded per type; the oldest observations are dropped first.
"""

from dataclasses import asdict, dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Literal

from loguru import logger

MAX_METRICS_PER_TYPE = 1000

MetricStatus = Literal["success", "failure", "partial"]


@dataclass
class OperationMetric:
    """Duration/outcome observation for a sync or undo call."""

    operation: Literal["sync", "undo"]
    duration_ms: int
    status: MetricStatus
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    component_count: int = 0
    operation_id: str | None = None


@dataclass
class DriftMetric:
    """Observation for one drift detection run."""

    duration_ms: int
    components_scanned: int
    drifts_detected: int
    false_positives: int
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass
class CoverageMetric:
    """Observation for one coverage computation."""

    component_id: str
    duration_ms: int
    coverage_pct: int
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


def _average(values: list[int]) -> float:
    return sum(values) / len(values) if values else 0.0


def _p95(values: list[int]) -> int:
    if not values:
        return 0
    ordered = sorted(values)
    return ordered[min(int(len(ordered) * 0.95), len(ordered) - 1)]


class SyncMetrics:
    """In-memory metrics storage for sync, undo, drift and coverage observations."""

    def __init__(self, max_per_type: int = MAX_METRICS_PER_TYPE) -> None:
        self._max_per_type = max_per_type
        self._sync: list[OperationMetric] = []
        self._undo: list[OperationMetric] = []
        self._drift: list[DriftMetric] = []
        self._coverage: list[CoverageMetric] = []

    # ------------------------------------------------------------------
    # Recording
    # ------------------------------------------------------------------

    def record_operation(self, metric: OperationMetric) -> None:
        """Record a sync or undo observation."""
        bucket = self._sync if metric.operation == "sync" else self._undo
        self._append(bucket, metric)
        logger.debug(
            "design_sync_metric",
            metric_type=metric.operation,
            duration_ms=metric.duration_ms,
            status=metric.status,
            component_count=metric.component_count,
        )

    def record_drift(self, metric: DriftMetric) -> None:
        """Record a drift detection observation."""
        self._append(self._drift, metric)
        logger.debug(
            "design_sync_metric",
            metric_type="drift",
            duration_ms=metric.duration_ms,
            drifts_detected=metric.drifts_detected,
            false_positives=metric.false_positives,
        )

    def record_coverage(self, metric: CoverageMetric) -> None:
        """Record a coverage observation."""
        self._append(self._coverage, metric)
        logger.debug(
            "design_sync_metric",
            metric_type="coverage",
            component_id=metric.component_id,
            coverage_pct=metric.coverage_pct,
        )

    def _append(self, bucket: list, metric: object) -> None:
        bucket.append(metric)
        if len(bucket) > self._max_per_type:
            del bucket[: len(bucket) - self._max_per_type]

    # ------------------------------------------------------------------
    # Aggregates
    # ------------------------------------------------------------------

    @staticmethod
    def _recent(bucket: list, window_minutes: int) -> list:
        cutoff = datetime.now(timezone.utc) - timedelta(minutes=window_minutes)
        return [m for m in bucket if m.timestamp > cutoff]

    def _operation_stats(self, bucket: list[OperationMetric], window_minutes: int) -> dict[str, float | int]:
        recent = self._recent(bucket, window_minutes)
        durations = [m.duration_ms for m in recent]
        return {
            "total": len(recent),
            "success": sum(1 for m in recent if m.status == "success"),
            "failure": sum(1 for m in recent if m.status == "failure"),
            "partial": sum(1 for m in recent if m.status == "partial"),
            "avg_duration_ms": _average(durations),
            "p95_duration_ms": _p95(durations),
        }

    def get_sync_stats(self, window_minutes: int = 60) -> dict[str, float | int]:
        """Aggregate sync observations over the last ``window_minutes``."""
        return self._operation_stats(self._sync, window_minutes)

    def get_undo_stats(self, window_minutes: int = 60) -> dict[str, float | int]:
        """Aggregate undo observations over the last ``window_minutes``."""
        return self._operation_stats(self._undo, window_minutes)

    def get_drift_stats(self, window_minutes: int = 60) -> dict[str, float | int]:
        """Aggregate drift observations, including the false-positive rate."""
        recent = self._recent(self._drift, window_minutes)
        total_drifts = sum(m.drifts_detected for m in recent)
        total_false_positives = sum(m.false_positives for m in recent)
        return {
            "total": len(recent),
            "total_drifts": total_drifts,
            "total_false_positives": total_false_positives,
            "false_positive_rate": total_false_positives / total_drifts if total_drifts else 0.0,
            "avg_duration_ms": _average([m.duration_ms for m in recent]),
        }

    def get_coverage_stats(self, window_minutes: int = 60) -> dict[str, float | int]:
        """Aggregate coverage observations."""
        recent = self._recent(self._coverage, window_minutes)
        coverages = [m.coverage_pct for m in recent]
        return {
            "total": len(recent),
            "avg_coverage_pct": _average(coverages),
            "latest_coverage_pct": coverages[-1] if coverages else 0,
        }

    def export_all(self) -> dict[str, list[dict]]:
        """Export every stored observation (for dashboards)."""
        return {
            "sync": [asdict(m) for m in self._sync],
            "undo": [asdict(m) for m in self._undo],
            "drift": [asdict(m) for m in self._drift],
            "coverage": [asdict(m) for m in self._coverage],
        }

    def clear(self) -> None:
        """Drop all observations (used by tests)."""
        self._sync.clear()
        self._undo.clear()
        self._drift.clear()
        self._coverage.clear()


sync_metrics = SyncMetrics()
