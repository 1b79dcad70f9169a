"""VTL Telemetry - structured logging and tracing."""

from .instrumentation import instrument_parse, instrument_render
from .logging import (
    StructuredLogFormatter,
    VTLLogger,
    configure_logging,
    get_logger,
    reset_loggers,
)

__all__ = [
    "StructuredLogFormatter",
    "VTLLogger",
    "configure_logging",
    "get_logger",
    "reset_loggers",
    "instrument_parse",
    "instrument_render",
]
