"""Coverage service.

Computes coverage for a component, caches it in ``coverage_reports`` and
serves the latest cached report. Cached rows are derived data; the prune
job removes them after the retention window.
"""

import time
from datetime import datetime, timezone

from sqlalchemy import select

from design_sync.core.metrics import CoverageMetric, SyncMetrics, sync_metrics
from design_sync.core.sync_logger import log_sync_event
from design_sync.coverage.calc import ComponentCoverageInput, CoverageResult, MissingTests, compute_coverage
from design_sync.db.models import CoverageReport
from design_sync.db.session import get_session


class CoverageService:
    """Coverage computation backed by the report cache."""

    def __init__(self, metrics: SyncMetrics | None = None) -> None:
        self._metrics = metrics or sync_metrics

    async def compute_and_store(self, data: ComponentCoverageInput, now: datetime | None = None) -> CoverageResult:
        """Compute coverage, store a cache row and record a coverage metric."""
        start = time.monotonic()
        result = compute_coverage(data)

        with get_session() as session:
            session.add(
                CoverageReport(
                    component_id=result.component_id,
                    generated_at=now or datetime.now(timezone.utc),
                    variant_coverage_pct=result.variant_coverage_pct,
                    missing_variants=result.missing_variants,
                    missing_tests=[m.model_dump() for m in result.missing_tests],
                    warnings=result.warnings or None,
                )
            )
            session.flush()

        duration_ms = int((time.monotonic() - start) * 1000)
        self._metrics.record_coverage(
            CoverageMetric(
                component_id=result.component_id,
                duration_ms=duration_ms,
                coverage_pct=result.variant_coverage_pct,
            )
        )
        log_sync_event(
            "coverage.compute",
            component_id=result.component_id,
            coverage_pct=result.variant_coverage_pct,
            missing_variants=len(result.missing_variants),
            warnings=len(result.warnings),
            duration_ms=duration_ms,
        )
        return result

    async def get_latest(self, component_id: str) -> CoverageResult | None:
        """Newest cached report for a component, or None when never computed."""
        with get_session() as session:
            report = session.execute(
                select(CoverageReport)
                .where(CoverageReport.component_id == component_id)
                .order_by(CoverageReport.generated_at.desc())
                .limit(1)
            ).scalar_one_or_none()

            if report is None:
                return None

            return CoverageResult(
                component_id=report.component_id,
                variant_coverage_pct=report.variant_coverage_pct,
                missing_variants=list(report.missing_variants),
                missing_tests=[MissingTests.model_validate(m) for m in report.missing_tests],
                warnings=list(report.warnings or []),
            )
