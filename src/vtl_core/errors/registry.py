"""Error registry for creating errors from templates."""

from typing import Any

from .errors import ErrorCategory, ErrorTemplate, EvaluationError, ParseError, VTLError

_ERROR_CLASSES: dict[ErrorCategory, type[VTLError]] = {
    ErrorCategory.PARSE: ParseError,
    ErrorCategory.EVALUATION: EvaluationError,
}


class ErrorRegistry:
    """Registry of error templates. Creates errors from templates + context."""

    def __init__(self) -> None:
        """Initialize error registry with built-in templates."""
        self._templates: dict[str, ErrorTemplate] = {}
        self._load_builtin_templates()

    def get_template(self, code: str) -> ErrorTemplate | None:
        """Get template by error code.

        Args:
            code: Error code to look up

        Returns:
            ErrorTemplate if found, None otherwise
        """
        return self._templates.get(code)

    def list_codes(self) -> list[str]:
        """List all registered error codes.

        Returns:
            List of error codes
        """
        return list(self._templates.keys())

    def register(self, template: ErrorTemplate) -> None:
        """Add or replace a template.

        Args:
            template: Template to register under its code
        """
        self._templates[template.code] = template

    def create(
        self,
        code: str,
        context: dict[str, Any] | None = None,
        cause: BaseException | None = None,
    ) -> VTLError:
        """Create error instance from template + context.

        The concrete class follows the template category: PARSE codes produce
        ParseError, EVALUATION codes produce EvaluationError.

        Args:
            code: Error code
            context: Context variables for template interpolation
            cause: Optional cause error

        Returns:
            VTLError instance

        Raises:
            ValueError: If error code not found
        """
        template = self.get_template(code)
        if not template:
            msg = f"Unknown error code: {code}"
            raise ValueError(msg)

        context = context or {}

        # Interpolate templates
        message = self._interpolate(template.message_template, context)
        detail = self._interpolate(template.detail_template, context)
        suggestion = self._interpolate(template.suggestion_template, context)

        # Ensure message is not None
        if message is None:
            message = f"Error {code}"

        error_class = _ERROR_CLASSES.get(template.category, VTLError)
        return error_class(
            code=template.code,
            category=template.category,
            message=message,
            detail=detail,
            suggestion=suggestion,
            line=context.get("line"),
            context=context.get("context"),
            macro_name=context.get("macro_name"),
            cause=cause,
        )

    def _interpolate(
        self,
        template: str | None,
        context: dict[str, Any],
    ) -> str | None:
        """Safe string interpolation.

        Args:
            template: Template string with {var} placeholders
            context: Context variables

        Returns:
            Interpolated string or None if template is None
        """
        if template is None:
            return None

        try:
            return template.format(**context)
        except KeyError:
            # Missing context variable - return template as-is
            return template

    def _load_builtin_templates(self) -> None:
        """Load hardcoded built-in templates."""
        # PARSE Errors
        self._templates["PARSE_SYNTAX"] = ErrorTemplate(
            code="PARSE_SYNTAX",
            category=ErrorCategory.PARSE,
            message_template="{reason}, on line {line}, at text starting: {context}",
            detail_template="The template text is not well-formed",
            suggestion_template="Check the directive or expression near the reported text",
        )

        self._templates["PARSE_UNTERMINATED"] = ErrorTemplate(
            code="PARSE_UNTERMINATED",
            category=ErrorCategory.PARSE,
            message_template=(
                "Reached end of file while parsing {construct} starting on line {line}"
            ),
            detail_template="A block directive was opened but never closed",
            suggestion_template="Add the missing #end",
        )

        self._templates["PARSE_UNEXPECTED_TOKEN"] = ErrorTemplate(
            code="PARSE_UNEXPECTED_TOKEN",
            category=ErrorCategory.PARSE,
            message_template="Unexpected {construct} on line {line}",
            detail_template="The directive does not close or continue any open block",
            suggestion_template="Remove the directive or open the matching block",
        )

        self._templates["PARSE_TOO_DEEP"] = ErrorTemplate(
            code="PARSE_TOO_DEEP",
            category=ErrorCategory.PARSE,
            message_template="Template nesting too deep to parse",
            detail_template="Blocks or expressions nest deeper than the interpreter stack allows",
            suggestion_template="Flatten nested #if blocks or long operator chains",
        )

        # EVALUATION Errors
        self._templates["UNDEFINED_REFERENCE"] = ErrorTemplate(
            code="UNDEFINED_REFERENCE",
            category=ErrorCategory.EVALUATION,
            message_template="Undefined reference ${name} on line {line}",
            suggestion_template="Pass '{name}' in the render variables or #set it first",
        )

        self._templates["NULL_RECEIVER"] = ErrorTemplate(
            code="NULL_RECEIVER",
            category=ErrorCategory.EVALUATION,
            message_template="{reason}, on line {line}",
            detail_template="A member, method or index was applied to a null value",
        )

        self._templates["MEMBER_NOT_FOUND"] = ErrorTemplate(
            code="MEMBER_NOT_FOUND",
            category=ErrorCategory.EVALUATION,
            message_template="{reason}, on line {line}",
            suggestion_template="Check the property name and the type of the value",
        )

        self._templates["METHOD_NOT_FOUND"] = ErrorTemplate(
            code="METHOD_NOT_FOUND",
            category=ErrorCategory.EVALUATION,
            message_template="{reason}, on line {line}",
            suggestion_template="Check the method name and the argument types",
        )

        self._templates["METHOD_AMBIGUOUS"] = ErrorTemplate(
            code="METHOD_AMBIGUOUS",
            category=ErrorCategory.EVALUATION,
            message_template="{reason}, on line {line}",
            detail_template="More than one method overload accepts the given arguments",
        )

        self._templates["INVOCATION_FAILED"] = ErrorTemplate(
            code="INVOCATION_FAILED",
            category=ErrorCategory.EVALUATION,
            message_template="{reason}, on line {line}",
            detail_template="Host code raised an exception while being invoked",
        )

        self._templates["INDEX_INVALID"] = ErrorTemplate(
            code="INDEX_INVALID",
            category=ErrorCategory.EVALUATION,
            message_template="{reason}, on line {line}",
        )

        self._templates["NOT_ITERABLE"] = ErrorTemplate(
            code="NOT_ITERABLE",
            category=ErrorCategory.EVALUATION,
            message_template="Not iterable: {value}, in #foreach on line {line}",
            suggestion_template="#foreach accepts sequences and mappings",
        )

        self._templates["ARITHMETIC_ERROR"] = ErrorTemplate(
            code="ARITHMETIC_ERROR",
            category=ErrorCategory.EVALUATION,
            message_template="In expression on line {line}: {reason}",
        )

        self._templates["COMPARISON_ERROR"] = ErrorTemplate(
            code="COMPARISON_ERROR",
            category=ErrorCategory.EVALUATION,
            message_template="In expression on line {line}: {reason}",
        )

        self._templates["MACRO_UNDEFINED"] = ErrorTemplate(
            code="MACRO_UNDEFINED",
            category=ErrorCategory.EVALUATION,
            message_template=(
                "#{name} on line {line} is neither a standard directive"
                " nor a macro that has been defined"
            ),
            suggestion_template="Define it with #macro ({name} ...) ... #end",
        )

        self._templates["MACRO_ARITY"] = ErrorTemplate(
            code="MACRO_ARITY",
            category=ErrorCategory.EVALUATION,
            message_template="Wrong number of arguments: expected {expected}, got {actual}",
        )

        self._templates["MACRO_FAILED"] = ErrorTemplate(
            code="MACRO_FAILED",
            category=ErrorCategory.EVALUATION,
            message_template="In macro #{name} defined on line {line}: {reason}",
        )

        self._templates["RECURSION_LIMIT"] = ErrorTemplate(
            code="RECURSION_LIMIT",
            category=ErrorCategory.EVALUATION,
            message_template="{reason}",
            detail_template="Evaluation nested deeper than the macro budget or the stack allows",
            suggestion_template="Check for unbounded macro recursion or raise max_depth",
        )

        # CONFIG Errors
        self._templates["CONFIG_INVALID"] = ErrorTemplate(
            code="CONFIG_INVALID",
            category=ErrorCategory.CONFIG,
            message_template="Invalid configuration",
            detail_template="The engine configuration is invalid",
            suggestion_template="Check the configuration file and fix errors",
        )
