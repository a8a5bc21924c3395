"""Tests for structured logging module."""

import logging
from typing import Any

import pytest
import structlog

from eventpulse.core.logging import (
    add_correlation_id,
    add_service_context,
    configure_logging,
    correlation_id_ctx,
    get_correlation_id,
    get_logger,
    set_correlation_id,
)


@pytest.fixture(autouse=True)
def reset_correlation_id() -> None:
    """Start every test without a correlation ID."""
    correlation_id_ctx.set(None)


class TestCorrelationId:
    """Tests for correlation ID management."""

    def test_set_and_get_correlation_id(self) -> None:
        """Test setting and getting correlation ID."""
        assert get_correlation_id() is None

        correlation_id = set_correlation_id("batch-cycle-7")
        assert correlation_id == "batch-cycle-7"
        assert get_correlation_id() == "batch-cycle-7"

    def test_auto_generate_correlation_id(self) -> None:
        """Test auto-generation of correlation ID."""
        correlation_id = set_correlation_id()
        assert len(correlation_id) == 36  # UUID format


class TestProcessors:
    """Tests for custom structlog processors."""

    def test_add_correlation_id(self) -> None:
        """Test the processor copies the context ID into the event."""
        event: dict[str, Any] = {"event": "batch_cycle_started"}
        assert "correlation_id" not in add_correlation_id(logging.getLogger(), "info", dict(event))

        set_correlation_id("batch-cycle-3")
        assert add_correlation_id(logging.getLogger(), "info", event)["correlation_id"] == "batch-cycle-3"

    def test_add_service_context(self) -> None:
        """Test every event is tagged with the service name."""
        event = add_service_context(logging.getLogger(), "info", {"event": "x"})
        assert event["service"] == "eventpulse"


class TestStructuredLogging:
    """Tests for structured logging configuration."""

    @pytest.mark.parametrize("json_logs", [True, False])
    def test_configure_logging(self, json_logs: bool) -> None:
        """Test both renderers configure the root logger."""
        configure_logging(json_logs=json_logs, log_level="debug")

        root = logging.getLogger()
        assert root.level == logging.DEBUG
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, structlog.stdlib.ProcessorFormatter)
        assert logging.getLogger("httpx").level == logging.WARNING

    def test_defaults_come_from_settings(
        self, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
    ) -> None:
        """Test LOG_LEVEL and JSON_LOGS drive the configuration when no arguments are given."""
        monkeypatch.setenv("LOG_LEVEL", "WARNING")
        monkeypatch.setenv("JSON_LOGS", "true")

        configure_logging()
        logger = get_logger("settings_test")
        logger.info("poll_tick")
        logger.warning("poll_failed", attempt=2)

        output = capsys.readouterr().out
        assert logging.getLogger().level == logging.WARNING
        assert "poll_tick" not in output
        assert '"event": "poll_failed"' in output

    def test_json_output_contains_required_fields(self, capsys: pytest.CaptureFixture[str]) -> None:
        """Test JSON lines carry the event, level, service and correlation ID."""
        configure_logging(json_logs=True, log_level="INFO")
        set_correlation_id("batch-cycle-1")

        get_logger("json_test").info("batch_cycle_completed", fetched=3)

        output = capsys.readouterr().out
        assert '"event": "batch_cycle_completed"' in output
        assert '"fetched": 3' in output
        assert '"service": "eventpulse"' in output
        assert '"correlation_id": "batch-cycle-1"' in output

    def test_log_level_filtering(self, capsys: pytest.CaptureFixture[str]) -> None:
        """Test that records below the configured level are dropped."""
        configure_logging(json_logs=True, log_level="WARNING")

        logger = get_logger("level_test")
        logger.info("info_message")
        logger.warning("warning_message")

        output = capsys.readouterr().out
        assert "info_message" not in output
        assert "warning_message" in output
