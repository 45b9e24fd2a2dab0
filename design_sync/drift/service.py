"""Drift service.

Wraps the pure detector with structured logging and metrics.
"""

import time

from design_sync.config.settings import settings
from design_sync.core.metrics import DriftMetric, SyncMetrics, sync_metrics
from design_sync.core.sync_logger import log_sync_event
from design_sync.drift.detect import DriftDetectionOptions, DriftDetectionResult, DriftSource, detect_drift


class DriftService:
    """Runs drift detection for a set of component snapshot pairs."""

    def __init__(self, metrics: SyncMetrics | None = None, severity_threshold: int | None = None) -> None:
        self._metrics = metrics or sync_metrics
        threshold = settings.drift_severity_threshold if severity_threshold is None else severity_threshold
        # Validates the threshold up front (must be >= 1)
        self._default_options = DriftDetectionOptions(max_modified_threshold=threshold)

    async def get_drift(
        self,
        sources: list[DriftSource],
        options: DriftDetectionOptions | None = None,
    ) -> DriftDetectionResult:
        """Detect drift and record one drift metric.

        When no options are given, the configured severity threshold is used.
        """
        start = time.monotonic()
        opts = options or self._default_options
        log_sync_event("drift.detect.start", component_count=len(sources))

        result = detect_drift(sources, opts)

        duration_ms = int((time.monotonic() - start) * 1000)
        self._metrics.record_drift(
            DriftMetric(
                duration_ms=duration_ms,
                components_scanned=len(sources),
                drifts_detected=result.total,
                false_positives=result.false_positive_heuristics_applied,
            )
        )
        log_sync_event(
            "drift.detect.complete",
            component_count=len(sources),
            drifts_detected=result.total,
            false_positives=result.false_positive_heuristics_applied,
            duration_ms=duration_ms,
        )
        return result
