"""Error factory for creating VTLErrors by code."""

from typing import Any

from .errors import VTLError
from .registry import ErrorRegistry


class ErrorFactory:
    """Creates VTLErrors from registered templates."""

    def __init__(self, registry: ErrorRegistry | None = None):
        """Initialize error factory.

        Args:
            registry: Error registry (defaults to new ErrorRegistry())
        """
        self.registry = registry or ErrorRegistry()

    def create(
        self,
        code: str,
        context: dict[str, Any] | None = None,
        cause: BaseException | None = None,
        **kwargs: Any,
    ) -> VTLError:
        """Create VTLError directly from code.

        Args:
            code: Error code
            context: Context variables for template interpolation
            cause: Optional underlying exception
            **kwargs: Additional context variables

        Returns:
            VTLError instance
        """
        # Merge context and kwargs
        merged_context = dict(context or {})
        merged_context.update(kwargs)

        return self.registry.create(code=code, context=merged_context, cause=cause)


# Convenience singleton
_default_factory: ErrorFactory | None = None


def get_error_factory() -> ErrorFactory:
    """Get default error factory singleton.

    Returns:
        Default ErrorFactory instance
    """
    global _default_factory  # noqa: PLW0603
    if _default_factory is None:
        _default_factory = ErrorFactory()
    return _default_factory


def create_error(code: str, cause: BaseException | None = None, **context: Any) -> VTLError:
    """Convenience function to create error.

    Args:
        code: Error code
        cause: Optional underlying exception
        **context: Context variables for template interpolation

    Returns:
        VTLError instance
    """
    return get_error_factory().create(code, context, cause=cause)
