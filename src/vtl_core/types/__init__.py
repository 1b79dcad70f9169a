"""Shared types for VTL.

Import from here rather than submodules:
    from vtl_core.types import LogLevel, ValidationResult
"""

from .enums import LogFormat, LogLevel
from .validation import ValidationIssue, ValidationResult

__all__ = [
    # Enums
    "LogLevel",
    "LogFormat",
    # Validation
    "ValidationIssue",
    "ValidationResult",
]
