"""Tests for structured logging helpers."""

import io
import json

import pytest
from loguru import logger

from deal_doctor.utils.observability import (
    configure_logging,
    log_business_event,
    log_diagnosis_run,
    log_llm_call,
)


@pytest.fixture
def records():
    captured = []
    handler_id = logger.add(lambda message: captured.append(message.record), level="DEBUG")
    yield captured
    logger.remove(handler_id)


def test_diagnosis_run_is_bound(records):
    log_diagnosis_run("deal-1", "Acme Corp", ["SINGLE_THREADED"], "SINGLE_THREADED", stage="proposal")

    extra = records[-1]["extra"]
    assert records[-1]["level"].name == "DEBUG"
    assert extra["event_type"] == "diagnosis_run"
    assert extra["matched_codes"] == ["SINGLE_THREADED"]
    assert extra["stage"] == "proposal"


def test_failed_llm_call_logs_error(records):
    log_llm_call("multi_thread", "openai:gpt-4o-mini", 123.456, success=False, error="timeout")

    record = records[-1]
    assert record["level"].name == "ERROR"
    assert record["extra"]["duration_ms"] == 123.46
    assert record["extra"]["error"] == "timeout"


def test_business_event(records):
    log_business_event("reminder_set", "deal-1", reminder_date="2026-03-01")

    record = records[-1]
    assert record["level"].name == "SUCCESS"
    assert record["extra"] == {"event_type": "reminder_set", "deal_id": "deal-1", "reminder_date": "2026-03-01"}


class TestConfigureLogging:

    @pytest.fixture
    def stream(self):
        buffer = io.StringIO()
        yield buffer
        logger.remove()

    def test_structured_output_is_json(self, monkeypatch, stream):
        monkeypatch.setenv("ENABLE_STRUCTURED_LOGGING", "true")

        configure_logging(stream)
        log_business_event("deal_created", "deal-9")

        record = json.loads(stream.getvalue().splitlines()[-1])["record"]
        assert record["extra"]["event_type"] == "deal_created"
        assert record["extra"]["deal_id"] == "deal-9"

    def test_console_respects_level(self, monkeypatch, stream):
        monkeypatch.setenv("LOG_LEVEL", "WARNING")

        configure_logging(stream)
        logger.info("quiet")
        logger.warning("loud")

        output = stream.getvalue()
        assert "quiet" not in output
        assert "loud" in output
