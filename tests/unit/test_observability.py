"""
Unit tests for observability module.

Tests the structured logging used to record analysis events: the JSON
and human formatters, package logger configuration and the event
helpers on SbomLensLogger.
"""

from __future__ import annotations

import io
import json
import logging
import sys

import pytest

from sbomlens.observability import (
    HumanReadableFormatter,
    SbomLensLogger,
    StructuredFormatter,
    configure_logging,
    get_logger,
)


def make_record(message: str = "Test message", **extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="sbomlens.test",
        level=logging.INFO,
        pathname="/path/to/file.py",
        lineno=42,
        msg=message,
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


# ============================================================================
# StructuredFormatter Tests
# ============================================================================


class TestStructuredFormatter:
    """Tests for StructuredFormatter."""

    def test_format_basic_record(self) -> None:
        """Test formatting a basic log record."""
        data = json.loads(StructuredFormatter().format(make_record()))
        assert data["message"] == "Test message"
        assert data["level"] == "info"
        assert data["logger"] == "sbomlens.test"
        assert data["timestamp"].endswith("Z")
        assert "location" not in data

    def test_format_with_location(self) -> None:
        """Test file/line location output."""
        formatter = StructuredFormatter(include_location=True)
        data = json.loads(formatter.format(make_record()))
        assert data["location"]["line"] == 42

    def test_format_without_optional_fields(self) -> None:
        """Test optional fields can be switched off."""
        formatter = StructuredFormatter(
            include_timestamp=False, include_level=False, include_logger=False
        )
        assert json.loads(formatter.format(make_record())) == {"message": "Test message"}

    def test_extra_record_fields(self) -> None:
        """Test fields passed as extra are emitted."""
        record = make_record(event_type="diff.completed", components_added=3)
        data = json.loads(StructuredFormatter().format(record))
        assert data["event_type"] == "diff.completed"
        assert data["components_added"] == 3

    def test_formatter_extra_fields(self) -> None:
        """Test fields configured on the formatter are emitted."""
        formatter = StructuredFormatter(extra_fields={"pipeline": "nightly"})
        data = json.loads(formatter.format(make_record()))
        assert data["pipeline"] == "nightly"

    def test_exception_included(self) -> None:
        """Test exception text is included."""
        try:
            raise ValueError("boom")
        except ValueError:
            record = make_record()
            record.exc_info = sys.exc_info()
        data = json.loads(StructuredFormatter().format(record))
        assert "ValueError: boom" in data["exception"]


class TestHumanReadableFormatter:
    """Tests for HumanReadableFormatter."""

    def test_format(self) -> None:
        """Test plain text output."""
        formatter = HumanReadableFormatter(use_colors=False, include_timestamp=False)
        output = formatter.format(make_record())
        assert output == "    INFO sbomlens.test: Test message"


# ============================================================================
# configure_logging Tests
# ============================================================================


class TestConfigureLogging:
    """Tests for configure_logging function."""

    def test_json_output(self, restore_logging) -> None:
        """Test JSON logs written to a stream."""
        stream = io.StringIO()
        configure_logging(level="INFO", format="json", output=stream)
        get_logger("diffing").info("hello", threshold=0.85)

        data = json.loads(stream.getvalue().strip())
        assert data["message"] == "hello"
        assert data["logger"] == "sbomlens.diffing"
        assert data["threshold"] == 0.85

    def test_level_filters(self, restore_logging) -> None:
        """Test records below the level are dropped."""
        stream = io.StringIO()
        configure_logging(level="WARNING", format="json", output=stream)
        get_logger("diffing").info("quiet")
        assert stream.getvalue() == ""

    def test_only_package_logger_configured(self, restore_logging) -> None:
        """Test the root logger is left alone."""
        root_handlers = list(logging.getLogger().handlers)
        configure_logging(level="DEBUG")
        assert logging.getLogger().handlers == root_handlers
        assert restore_logging.level == logging.DEBUG
        assert len(restore_logging.handlers) == 1

    def test_unknown_level(self, restore_logging) -> None:
        """Test an unknown level raises."""
        with pytest.raises(ValueError, match="Unknown log level"):
            configure_logging(level="LOUD")

    def test_unknown_format(self, restore_logging) -> None:
        """Test an unknown format raises."""
        with pytest.raises(ValueError, match="Unknown log format"):
            configure_logging(format="xml")


# ============================================================================
# SbomLensLogger Tests
# ============================================================================


class TestGetLogger:
    """Tests for get_logger function."""

    def test_prefix_added(self) -> None:
        """Test module names are placed under the package logger."""
        assert get_logger("custom").logger.name == "sbomlens.custom"

    def test_prefix_not_doubled(self) -> None:
        """Test package names are kept as-is."""
        assert get_logger("sbomlens.api").logger.name == "sbomlens.api"


class TestSbomLensLogger:
    """Tests for SbomLensLogger."""

    def test_context_fields(self, caplog) -> None:
        """Test persistent context is attached to every record."""
        caplog.set_level(logging.INFO, logger="sbomlens")
        logger = SbomLensLogger("sbomlens.test")
        logger.set_context(run_id="r-1")
        logger.info("first")
        logger.clear_context()
        logger.info("second")

        first, second = caplog.records
        assert first.run_id == "r-1"
        assert not hasattr(second, "run_id")

    def test_diff_completed(self, caplog) -> None:
        """Test the diff completion event."""
        caplog.set_level(logging.INFO, logger="sbomlens")
        SbomLensLogger("sbomlens.test").diff_completed(1, 2, 3, 42.5, 0.85)

        record = caplog.records[0]
        assert record.getMessage() == "Diff completed"
        assert record.event_type == "diff.completed"
        assert record.components_removed == 2
        assert record.semantic_score == 42.5

    def test_quality_scored(self, caplog) -> None:
        """Test the quality scoring event."""
        caplog.set_level(logging.INFO, logger="sbomlens")
        SbomLensLogger("sbomlens.test").quality_scored("standard", 87.5, "B", 12)

        record = caplog.records[0]
        assert record.event_type == "quality.scored"
        assert record.grade == "B"

    def test_compliance_checked(self, caplog) -> None:
        """Test the compliance check event."""
        caplog.set_level(logging.INFO, logger="sbomlens")
        SbomLensLogger("sbomlens.test").compliance_checked("ntia_minimum", False, 2, 1, 75)

        record = caplog.records[0]
        assert record.event_type == "compliance.checked"
        assert record.is_compliant is False
        assert record.levelno == logging.INFO
