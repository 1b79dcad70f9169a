"""VTL Telemetry Logging - Structured logging with OTEL trace context.

Usage:
    from vtl_core.telemetry.logging import get_logger

    logger = get_logger("engine")
    logger.debug("Template parsed", macros=2)
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

from opentelemetry import trace

from vtl_core.types import LogFormat, LogLevel

_STANDARD_FIELDS = frozenset(
    {
        "name", "msg", "args", "created", "filename", "funcName",
        "levelname", "levelno", "lineno", "module", "msecs",
        "pathname", "process", "processName", "relativeCreated",
        "stack_info", "exc_info", "exc_text", "thread", "threadName",
        "message", "taskName",
    }
)

_LEVELS = {
    LogLevel.DEBUG: logging.DEBUG,
    LogLevel.INFO: logging.INFO,
    LogLevel.WARN: logging.WARNING,
    LogLevel.ERROR: logging.ERROR,
}


class StructuredLogFormatter(logging.Formatter):
    """JSON formatter with trace context injection.

    Formats log records as JSON with:
    - timestamp (ISO 8601)
    - level
    - component (logger name)
    - message
    - trace_id / span_id (if a span is recording)
    - Additional fields from extra
    """

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON.

        Args:
            record: Log record to format

        Returns:
            JSON-formatted log string
        """
        log_data: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "component": record.name,
            "message": record.getMessage(),
        }

        span = trace.get_current_span()
        if span and span.is_recording():
            ctx = span.get_span_context()
            if ctx.is_valid:
                log_data["trace_id"] = format(ctx.trace_id, "032x")
                log_data["span_id"] = format(ctx.span_id, "016x")

        for key, value in record.__dict__.items():
            if key not in _STANDARD_FIELDS:
                log_data[key] = value

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


def _make_formatter(log_format: LogFormat) -> logging.Formatter:
    if log_format == LogFormat.JSON:
        return StructuredLogFormatter()
    return logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")


class VTLLogger:
    """Structured logger with trace context support.

    Wraps Python logging with JSON output and keyword extra fields.
    """

    def __init__(
        self,
        name: str,
        level: int = logging.INFO,
        log_format: LogFormat = LogFormat.JSON,
    ):
        """Initialize logger.

        Args:
            name: Logger name (component name)
            level: Logging level
            log_format: Handler output format when a handler is installed
        """
        self._logger = logging.getLogger(f"vtl.{name}")
        self._logger.setLevel(level)

        if not self._logger.handlers:
            handler = logging.StreamHandler(sys.stderr)
            handler.setFormatter(_make_formatter(log_format))
            self._logger.addHandler(handler)

    @property
    def name(self) -> str:
        return self._logger.name

    def is_enabled_for(self, level: int) -> bool:
        return self._logger.isEnabledFor(level)

    def _log(self, level: int, message: str, **kwargs: Any) -> None:
        """Log message with extra fields.

        Args:
            level: Log level
            message: Log message
            **kwargs: Additional fields to include
        """
        self._logger.log(level, message, extra=kwargs)

    def debug(self, message: str, **kwargs: Any) -> None:
        """Log debug message."""
        self._log(logging.DEBUG, message, **kwargs)

    def info(self, message: str, **kwargs: Any) -> None:
        """Log info message."""
        self._log(logging.INFO, message, **kwargs)

    def warning(self, message: str, **kwargs: Any) -> None:
        """Log warning message."""
        self._log(logging.WARNING, message, **kwargs)



# Logger cache
_loggers: dict[str, VTLLogger] = {}
_default_level = logging.INFO
_default_format = LogFormat.JSON


def get_logger(name: str, level: int | None = None) -> VTLLogger:
    """Get or create a structured logger.

    Args:
        name: Logger name (component name)
        level: Logging level (defaults to the configured level)

    Returns:
        VTLLogger instance
    """
    if name not in _loggers:
        _loggers[name] = VTLLogger(
            name, _default_level if level is None else level, _default_format
        )
    return _loggers[name]


def configure_logging(level: LogLevel, log_format: LogFormat = LogFormat.JSON) -> None:
    """Apply a configured level and format to every ``vtl.*`` logger.

    Args:
        level: Minimum level to emit
        log_format: Output format for the handlers installed by VTLLogger
    """
    global _default_level, _default_format  # noqa: PLW0603
    _default_level = _LEVELS[level]
    _default_format = log_format
    for vtl_logger in _loggers.values():
        vtl_logger._logger.setLevel(_LEVELS[level])
        for handler in vtl_logger._logger.handlers:
            handler.setFormatter(_make_formatter(log_format))


def reset_loggers() -> None:
    """Reset logger cache (for testing)."""
    global _loggers, _default_level, _default_format  # noqa: PLW0603
    for vtl_logger in _loggers.values():
        vtl_logger._logger.handlers.clear()
    _loggers = {}
    _default_level = logging.INFO
    _default_format = LogFormat.JSON
