"""Tests for the drift service wrapper."""

import pytest
from pydantic import ValidationError

from design_sync.drift.detect import DriftSource
from design_sync.drift.service import DriftService


@pytest.mark.asyncio
async def test_get_drift_records_metric(metrics):
    service = DriftService(metrics=metrics)
    sources = [
        DriftSource(component_id="a", code={"v": 1}, design={"v": 2}),
        DriftSource(component_id="b", code={"docs": "x  y"}, design={"docs": "x y"}),
    ]

    result = await service.get_drift(sources)

    assert result.total == 1
    stats = metrics.get_drift_stats()
    assert stats["total"] == 1
    assert stats["total_drifts"] == 1
    assert stats["total_false_positives"] == 1
    assert stats["false_positive_rate"] == 1.0


@pytest.mark.asyncio
async def test_configured_threshold_is_used(metrics):
    service = DriftService(metrics=metrics, severity_threshold=1)
    result = await service.get_drift([DriftSource(component_id="a", code={"v": 1}, design={"v": 2})])
    assert result.items[0].severity == "medium"


def test_explicit_zero_threshold_is_rejected(metrics):
    with pytest.raises(ValidationError):
        DriftService(metrics=metrics, severity_threshold=0)
