"""Macro record and call semantics."""

from collections.abc import Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from vtl_core.errors import EvaluationError, create_error

from .nodes import Node

if TYPE_CHECKING:
    from .context import EvaluationContext


@dataclass(frozen=True)
class Macro:
    """A named template fragment defined with ``#macro``."""

    definition_line: int
    name: str
    parameter_names: tuple[str, ...]
    body: Node

    def evaluate(
        self, context: "EvaluationContext", arguments: Sequence[Any], call_line: int
    ) -> Any:
        """Evaluate the body with already-evaluated arguments bound to parameters.

        Parameter bindings, and any ``#set`` the body makes to names it does not
        share with an enclosing loop, are undone when the call returns or fails.

        Args:
            context: Current evaluation context
            arguments: Argument values, in parameter order
            call_line: Line of the call site

        Returns:
            The evaluated body

        Raises:
            EvaluationError: MACRO_FAILED wrapping any error raised by the call,
                or RECURSION_LIMIT unchanged
        """
        with context.nested_call(self.name, call_line):
            try:
                if len(arguments) != len(self.parameter_names):
                    raise create_error(
                        "MACRO_ARITY",
                        expected=len(self.parameter_names),
                        actual=len(arguments),
                        line=call_line,
                    )
                with context.scope(is_macro=True) as scope:
                    for name, value in zip(self.parameter_names, arguments, strict=True):
                        scope.bind(name, value)
                    return self.body.evaluate(context)
            except EvaluationError as e:
                if e.code == "RECURSION_LIMIT":
                    raise
                raise e.in_macro(self.name, self.definition_line) from e
