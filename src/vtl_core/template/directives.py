"""Directive nodes: ``#if``, ``#foreach``, ``#set`` and macro calls."""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from vtl_core.errors import create_error

from .nodes import ExpressionNode, Node, render_value, show

if TYPE_CHECKING:
    from .context import EvaluationContext


@dataclass(frozen=True)
class IfNode(Node):
    """``#if``/``#elseif``/``#else``. An ``#elseif`` is a nested IfNode in ``false_part``."""

    condition: ExpressionNode
    true_part: Node
    false_part: Node

    def evaluate(self, context: "EvaluationContext") -> Any:
        branch = self.true_part if self.condition.is_true(context) else self.false_part
        return branch.evaluate(context)


class ForEachVar:
    """The ``$foreach`` helper visible inside a loop body."""

    def __init__(self, size: int):
        self._size = size
        self._index = -1

    def advance(self) -> None:
        self._index += 1

    @property
    def index(self) -> int:
        """0-based position of the current element."""
        return self._index

    @property
    def count(self) -> int:
        """1-based position of the current element."""
        return self._index + 1

    @property
    def has_next(self) -> bool:
        return self._index + 1 < self._size

    @property
    def first(self) -> bool:
        return self._index == 0

    @property
    def last(self) -> bool:
        return self._index == self._size - 1

    def __repr__(self) -> str:
        return f"ForEachVar(index={self._index}, size={self._size})"


@dataclass(frozen=True)
class ForEachNode(Node):
    """``#foreach ($variable in collection) body #end``"""

    variable: str
    collection: ExpressionNode
    body: Node

    def evaluate(self, context: "EvaluationContext") -> Any:
        collection_value = self.collection.evaluate(context)
        if isinstance(collection_value, Mapping):
            items = list(collection_value.values())
        elif isinstance(collection_value, Iterable) and not isinstance(
            collection_value, str | bytes
        ):
            items = list(collection_value)
        else:
            raise create_error(
                "NOT_ITERABLE", value=show(collection_value), line=self.line_number
            )

        parts: list[str] = []
        loop = ForEachVar(len(items))
        with context.scope() as scope:
            scope.bind(self.variable, None)
            scope.bind("foreach", loop)
            for item in items:
                loop.advance()
                scope.bind(self.variable, item)
                parts.append(render_value(self.body.evaluate(context)))
        return "".join(parts)


@dataclass(frozen=True)
class SetNode(Node):
    """``#set ($variable = expression)``. Renders as nothing."""

    variable: str
    expression: ExpressionNode

    def evaluate(self, context: "EvaluationContext") -> Any:
        context.assign(self.variable, self.expression.evaluate(context))
        return ""


@dataclass(frozen=True)
class MacroCallNode(Node):
    """``#name(arg ...)``, resolved against the template's macro table."""

    name: str
    arguments: tuple[ExpressionNode, ...]

    def evaluate(self, context: "EvaluationContext") -> Any:
        macro = context.get_macro(self.name)
        if macro is None:
            raise create_error("MACRO_UNDEFINED", name=self.name, line=self.line_number)
        values = [argument.evaluate(context) for argument in self.arguments]
        return macro.evaluate(context, values, self.line_number)
