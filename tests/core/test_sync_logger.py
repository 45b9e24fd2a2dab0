"""Tests for structured design-sync logging."""

import pytest
from loguru import logger

from design_sync.core.sync_logger import FEATURE_NAME, REDACTED, log_sync_event, redact_fields


@pytest.fixture
def records():
    captured: list[dict] = []
    handler_id = logger.add(lambda message: captured.append(message.record), level="DEBUG")
    yield captured
    logger.remove(handler_id)


def test_redact_fields_is_recursive_and_case_insensitive():
    fields = {"operation_id": "op-1", "API_KEY": "k", "nested": {"access_token": "t", "count": 2}}
    assert redact_fields(fields) == {
        "operation_id": "op-1",
        "API_KEY": REDACTED,
        "nested": {"access_token": REDACTED, "count": 2},
    }


def test_log_sync_event_binds_feature_and_action(records):
    log_sync_event("sync.execute", operation_id="op-1", component_count=2)

    record = records[-1]
    assert record["message"] == "sync.execute"
    assert record["level"].name == "INFO"
    assert record["extra"]["feature"] == FEATURE_NAME
    assert record["extra"]["action"] == "sync.execute"
    assert record["extra"]["component_count"] == 2


def test_log_sync_event_respects_level_and_redacts(records):
    log_sync_event("undo.cap.evicted", level="warning", password="hunter2")

    record = records[-1]
    assert record["level"].name == "WARNING"
    assert record["extra"]["password"] == REDACTED
