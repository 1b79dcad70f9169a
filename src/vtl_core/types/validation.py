"""Shared validation types for VTL."""

from dataclasses import dataclass, field


@dataclass
class ValidationIssue:
    """Single validation issue (error or warning).

    Used by:
    - ConfigLoader (config validation)
    - TemplateEngine (template syntax check)
    """

    path: str  # e.g., "evaluation.max_depth" or the template name
    message: str
    severity: str = "error"  # "error" | "warning"
    line: int | None = None  # Template or config line, when known


@dataclass
class ValidationResult:
    """Outcome of a validation pass."""

    valid: bool
    errors: list[ValidationIssue] = field(default_factory=list)
    warnings: list[ValidationIssue] = field(default_factory=list)

    def __post_init__(self) -> None:
        """Ensure valid is False if there are errors."""
        if self.errors:
            self.valid = False
