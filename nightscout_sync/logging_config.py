"""Structured logging configuration.

Provides JSON-formatted logging with correlation IDs so that every line
emitted while serving one sync operation (attempt, retry, recovery) can be
grouped together.
"""

import json
import logging
import sys
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any

# Context variable for correlation ID - set for the duration of one operation
correlation_id_ctx: ContextVar[str | None] = ContextVar("correlation_id", default=None)


class JsonFormatter(logging.Formatter):
    """Custom formatter that outputs logs as JSON.

    Format includes:
    - timestamp: ISO 8601 format with timezone
    - level: Log level (INFO, ERROR, etc.)
    - service: Service name (nightscout-sync)
    - message: Log message
    - correlation_id: Operation correlation ID for tracing
    - logger: Logger name
    - Additional fields from extra parameter
    """

    def __init__(self, service_name: str = "nightscout-sync"):
        super().__init__()
        self.service_name = service_name

    def format(self, record: logging.LogRecord) -> str:
        """Format the log record as JSON."""
        log_data: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "service": self.service_name,
            "message": record.getMessage(),
            "logger": record.name,
        }

        correlation_id = correlation_id_ctx.get()
        if correlation_id:
            log_data["correlation_id"] = correlation_id

        if hasattr(record, "extra_fields"):
            log_data.update(record.extra_fields)

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        # Add location info for errors
        if record.levelno >= logging.ERROR:
            log_data["location"] = {
                "file": record.pathname,
                "line": record.lineno,
                "function": record.funcName,
            }

        return json.dumps(log_data, default=str)


class TextFormatter(logging.Formatter):
    """Human-readable text formatter for development.

    Format: timestamp - service - level - [correlation_id] - message key=value...
    """

    def __init__(self, service_name: str = "nightscout-sync"):
        super().__init__()
        self.service_name = service_name

    def format(self, record: logging.LogRecord) -> str:
        """Format the log record as readable text."""
        timestamp = datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S")
        correlation_id = correlation_id_ctx.get() or "-"

        base_msg = (
            f"{timestamp} - {self.service_name} - {record.levelname} - "
            f"[{correlation_id}] - {record.getMessage()}"
        )

        extra_fields = getattr(record, "extra_fields", None)
        if extra_fields:
            pairs = " ".join(f"{key}={value}" for key, value in extra_fields.items())
            base_msg += f" {pairs}"

        if record.exc_info:
            base_msg += f"\n{self.formatException(record.exc_info)}"

        return base_msg


def setup_logging(
    log_format: str = "json",
    log_level: str = "INFO",
    service_name: str = "nightscout-sync",
) -> None:
    """Configure structured logging for the application.

    Args:
        log_format: 'json' for structured logging, 'text' for human-readable
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        service_name: Service name to include in logs
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))

    root_logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(getattr(logging, log_level.upper(), logging.INFO))

    if log_format.lower() == "json":
        formatter = JsonFormatter(service_name=service_name)
    else:
        formatter = TextFormatter(service_name=service_name)

    handler.setFormatter(formatter)
    root_logger.addHandler(handler)

    # httpx logs every request line at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


@contextmanager
def operation_context(correlation_id: str | None = None) -> Iterator[str]:
    """Bind a correlation ID for the duration of one sync operation.

    An ID already bound by the caller is kept, so nested operations (for
    example a facade call inside an application-level sync run) log under
    the outer ID.
    """
    current = correlation_id_ctx.get()
    if current and correlation_id is None:
        yield current
        return

    token = correlation_id_ctx.set(correlation_id or uuid.uuid4().hex[:12])
    try:
        yield correlation_id_ctx.get() or ""
    finally:
        correlation_id_ctx.reset(token)


class StructuredLogger:
    """Logger wrapper that supports structured extra fields."""

    def __init__(self, name: str):
        self._logger = logging.getLogger(name)

    def _log(self, level: int, msg: str, extra_fields: dict[str, Any] | None = None):
        """Log with optional extra fields."""
        record_extra = {"extra_fields": extra_fields} if extra_fields else {}
        self._logger.log(level, msg, extra=record_extra)

    def debug(self, msg: str, **extra_fields: Any) -> None:
        """Log debug message with optional extra fields."""
        self._log(logging.DEBUG, msg, extra_fields if extra_fields else None)

    def info(self, msg: str, **extra_fields: Any) -> None:
        """Log info message with optional extra fields."""
        self._log(logging.INFO, msg, extra_fields if extra_fields else None)

    def warning(self, msg: str, **extra_fields: Any) -> None:
        """Log warning message with optional extra fields."""
        self._log(logging.WARNING, msg, extra_fields if extra_fields else None)

    def error(self, msg: str, **extra_fields: Any) -> None:
        """Log error message with optional extra fields."""
        self._log(logging.ERROR, msg, extra_fields if extra_fields else None)

    def exception(self, msg: str, **extra_fields: Any) -> None:
        """Log exception with traceback and optional extra fields."""
        record_extra = {"extra_fields": extra_fields} if extra_fields else {}
        self._logger.exception(msg, extra=record_extra)


def get_logger(name: str) -> StructuredLogger:
    """Get a structured logger instance.

    Args:
        name: Logger name (typically __name__)

    Returns:
        StructuredLogger instance
    """
    return StructuredLogger(name)
