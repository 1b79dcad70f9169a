"""VTL error types."""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Error source categories."""

    PARSE = "PARSE"
    EVALUATION = "EVALUATION"
    CONFIG = "CONFIG"


@dataclass(eq=False)
class VTLError(Exception):
    """Structured error with context. Base exception for all VTL errors."""

    # Identity
    code: str  # e.g., "UNDEFINED_REFERENCE"
    category: ErrorCategory

    # Messages
    message: str  # Human-readable summary
    detail: str | None = None  # Extended explanation
    suggestion: str | None = None  # Actionable fix

    # Context
    line: int | None = None  # 1-based template line
    context: str | None = None  # Remaining template text at a parse failure
    macro_name: str | None = None  # Enclosing macro, if any

    # Error chain
    cause: BaseException | None = None

    # Metadata
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))

    def __post_init__(self) -> None:
        """Set Exception message."""
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Serialize for reporting.

        Returns:
            Dictionary representation of the error
        """
        if isinstance(self.cause, VTLError):
            cause: Any = self.cause.to_dict()
        elif self.cause is not None:
            cause = f"{type(self.cause).__name__}: {self.cause}"
        else:
            cause = None
        return {
            "code": self.code,
            "category": self.category.value,
            "message": self.message,
            "detail": self.detail,
            "suggestion": self.suggestion,
            "line": self.line,
            "context": self.context,
            "macro_name": self.macro_name,
            "timestamp": self.timestamp.isoformat(),
            "cause": cause,
        }


@dataclass(eq=False)
class ParseError(VTLError):
    """Malformed template syntax, detected while parsing."""


@dataclass(eq=False)
class EvaluationError(VTLError):
    """Failure detected while rendering a template against real data."""

    def in_macro(self, name: str, definition_line: int) -> "EvaluationError":
        """Return a copy of this error annotated with the enclosing macro.

        Args:
            name: Macro name
            definition_line: Line of the ``#macro`` directive

        Returns:
            New MACRO_FAILED error whose cause is this error
        """
        from .factory import get_error_factory

        error = get_error_factory().create(
            "MACRO_FAILED",
            cause=self,
            name=name,
            line=definition_line,
            reason=self.message,
        )
        error.macro_name = name
        return error  # type: ignore[return-value]


@dataclass
class ErrorTemplate:
    """Template for creating errors."""

    code: str
    category: ErrorCategory
    message_template: str  # "Undefined reference ${name} on line {line}"
    detail_template: str | None = None
    suggestion_template: str | None = None
