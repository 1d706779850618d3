"""
Structured logging configuration for sbomlens.

Provides consistent, structured logging across all modules
with support for different output formats and log levels.
"""

from __future__ import annotations

import json
import logging
import os
import sys
from datetime import datetime, timezone
from typing import Any, TextIO

LOG_FORMATS = ("human", "json")

# LogRecord attributes that are not user-supplied extra fields
_RECORD_ATTRIBUTES = frozenset(
    {
        "name",
        "msg",
        "args",
        "created",
        "filename",
        "funcName",
        "levelname",
        "levelno",
        "lineno",
        "module",
        "msecs",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "stack_info",
        "exc_info",
        "exc_text",
        "thread",
        "threadName",
        "taskName",
        "message",
    }
)


class StructuredFormatter(logging.Formatter):
    """
    Formatter that outputs structured JSON logs, one object per line.

    Useful when analysis runs inside CI pipelines whose logs are shipped
    to an aggregation system.
    """

    def __init__(
        self,
        include_timestamp: bool = True,
        include_level: bool = True,
        include_logger: bool = True,
        include_location: bool = False,
        extra_fields: dict[str, Any] | None = None,
    ):
        """
        Initialize structured formatter.

        Args:
            include_timestamp: Include timestamp in output
            include_level: Include log level in output
            include_logger: Include logger name in output
            include_location: Include file/line location
            extra_fields: Additional fields to include in every log
        """
        super().__init__()
        self.include_timestamp = include_timestamp
        self.include_level = include_level
        self.include_logger = include_logger
        self.include_location = include_location
        self.extra_fields = extra_fields or {}

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_data: dict[str, Any] = {}

        if self.include_timestamp:
            log_data["timestamp"] = (
                datetime.fromtimestamp(record.created, tz=timezone.utc)
                .isoformat()
                .replace("+00:00", "Z")
            )

        if self.include_level:
            log_data["level"] = record.levelname.lower()

        if self.include_logger:
            log_data["logger"] = record.name

        log_data["message"] = record.getMessage()

        if self.include_location:
            log_data["location"] = {
                "file": record.pathname,
                "line": record.lineno,
                "function": record.funcName,
            }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        # Extra fields passed with the record (event_type, counts, ...)
        for key, value in record.__dict__.items():
            if key not in _RECORD_ATTRIBUTES:
                log_data[key] = value

        log_data.update(self.extra_fields)

        return json.dumps(log_data, default=str)


class HumanReadableFormatter(logging.Formatter):
    """
    Formatter that outputs human-readable logs.

    Useful for local development and interactive use.
    """

    COLORS = {
        "DEBUG": "\033[36m",  # Cyan
        "INFO": "\033[32m",  # Green
        "WARNING": "\033[33m",  # Yellow
        "ERROR": "\033[31m",  # Red
        "CRITICAL": "\033[35m",  # Magenta
    }
    RESET = "\033[0m"

    def __init__(
        self,
        use_colors: bool = True,
        include_timestamp: bool = True,
        include_level: bool = True,
    ):
        """
        Initialize human-readable formatter.

        Args:
            use_colors: Use ANSI colors in output (only on a terminal)
            include_timestamp: Include timestamp in output
            include_level: Include log level in output
        """
        super().__init__()
        self.use_colors = use_colors and sys.stderr.isatty()
        self.include_timestamp = include_timestamp
        self.include_level = include_level

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as human-readable text."""
        parts = []

        if self.include_timestamp:
            timestamp = datetime.fromtimestamp(record.created, tz=timezone.utc)
            parts.append(f"[{timestamp.strftime('%Y-%m-%d %H:%M:%S')}]")

        if self.include_level:
            level = record.levelname
            if self.use_colors and level in self.COLORS:
                level = f"{self.COLORS[level]}{level}{self.RESET}"
            parts.append(f"{level:>8}")

        parts.append(f"{record.name}:")
        parts.append(record.getMessage())

        output = " ".join(parts)

        if record.exc_info:
            output += "\n" + self.formatException(record.exc_info)

        return output


class SbomLensLogger:
    """
    Wrapper around Python logging with persistent context fields and
    helpers for the analysis events callers usually want to record.
    """

    def __init__(self, name: str, level: int | None = None):
        """
        Initialize the logger.

        Args:
            name: Logger name
            level: Log level; inherited from the parent logger if not given
        """
        self.logger = logging.getLogger(name)
        if level is not None:
            self.logger.setLevel(level)
        self._context: dict[str, Any] = {}

    def set_context(self, **kwargs: Any) -> None:
        """Set persistent context fields for all logs."""
        self._context.update(kwargs)

    def clear_context(self) -> None:
        """Clear context fields."""
        self._context.clear()

    def _log(
        self,
        level: int,
        message: str,
        exc_info: bool = False,
        **kwargs: Any,
    ) -> None:
        extra = {**self._context, **kwargs}
        self.logger.log(level, message, exc_info=exc_info, extra=extra)

    def debug(self, message: str, **kwargs: Any) -> None:
        """Log debug message."""
        self._log(logging.DEBUG, message, **kwargs)

    def info(self, message: str, **kwargs: Any) -> None:
        """Log info message."""
        self._log(logging.INFO, message, **kwargs)

    def warning(self, message: str, **kwargs: Any) -> None:
        """Log warning message."""
        self._log(logging.WARNING, message, **kwargs)

    def error(self, message: str, exc_info: bool = False, **kwargs: Any) -> None:
        """Log error message."""
        self._log(logging.ERROR, message, exc_info=exc_info, **kwargs)

    def diff_completed(
        self,
        components_added: int,
        components_removed: int,
        components_modified: int,
        semantic_score: float,
        threshold: float,
    ) -> None:
        """Log diff completion event."""
        self.info(
            "Diff completed",
            event_type="diff.completed",
            components_added=components_added,
            components_removed=components_removed,
            components_modified=components_modified,
            semantic_score=semantic_score,
            threshold=threshold,
        )

    def quality_scored(
        self,
        profile: str,
        overall_score: float,
        grade: str,
        component_count: int,
    ) -> None:
        """Log quality scoring event."""
        self.info(
            "Quality scored",
            event_type="quality.scored",
            profile=profile,
            overall_score=overall_score,
            grade=grade,
            component_count=component_count,
        )

    def compliance_checked(
        self,
        standard: str,
        is_compliant: bool,
        error_count: int,
        warning_count: int,
        score: int,
    ) -> None:
        """Log compliance check event."""
        self.info(
            "Compliance checked",
            event_type="compliance.checked",
            standard=standard,
            is_compliant=is_compliant,
            error_count=error_count,
            warning_count=warning_count,
            score=score,
        )


def configure_logging(
    level: str = "INFO",
    format: str = "human",
    output: str | TextIO = "stderr",
    extra_fields: dict[str, Any] | None = None,
) -> None:
    """
    Configure logging for sbomlens.

    Only the "sbomlens" logger is configured; the root logger is left
    to the application.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format: Output format (human, json)
        output: Output destination (stderr, stdout) or a stream
        extra_fields: Extra fields to include in structured logs

    Raises:
        ValueError: If the level or format is unknown
    """
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        raise ValueError(f"Unknown log level: {level}")
    if format not in LOG_FORMATS:
        raise ValueError(f"Unknown log format: {format}")

    package_logger = logging.getLogger("sbomlens")
    package_logger.setLevel(numeric_level)
    package_logger.handlers.clear()

    if output == "stdout":
        handler = logging.StreamHandler(sys.stdout)
    elif output == "stderr":
        handler = logging.StreamHandler(sys.stderr)
    else:
        handler = logging.StreamHandler(output)

    if format == "json":
        formatter: logging.Formatter = StructuredFormatter(extra_fields=extra_fields)
    else:
        formatter = HumanReadableFormatter()

    handler.setFormatter(formatter)
    package_logger.addHandler(handler)


def get_logger(name: str) -> SbomLensLogger:
    """
    Get an sbomlens logger instance.

    Args:
        name: Logger name (typically module name)

    Returns:
        SbomLensLogger instance
    """
    if not name.startswith("sbomlens"):
        name = f"sbomlens.{name}"
    return SbomLensLogger(name)


# Configure logging from environment on import
_log_level = os.getenv("SBOMLENS_LOG_LEVEL", "WARNING")
_log_format = os.getenv("SBOMLENS_LOG_FORMAT", "human")
configure_logging(level=_log_level, format=_log_format)
