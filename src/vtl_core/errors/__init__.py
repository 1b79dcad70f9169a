"""VTL Error handling - Structured errors with context."""

from .errors import ErrorCategory, ErrorTemplate, EvaluationError, ParseError, VTLError
from .factory import ErrorFactory, create_error, get_error_factory
from .registry import ErrorRegistry

__all__ = [
    # Core error types
    "VTLError",
    "ParseError",
    "EvaluationError",
    "ErrorCategory",
    "ErrorTemplate",
    # Registry and factory
    "ErrorRegistry",
    "ErrorFactory",
    # Convenience functions
    "get_error_factory",
    "create_error",
]
