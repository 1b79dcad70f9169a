"""Template tree nodes: constants, concatenation and expression operators."""

from abc import ABC, abstractmethod
from collections.abc import Collection, Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from vtl_core.errors import EvaluationError, create_error

if TYPE_CHECKING:
    from .context import EvaluationContext


def is_true(value: Any) -> bool:
    """Apply template truthiness to a value.

    False for null, ``false``, the empty string and empty collections or
    mappings. Everything else, including the integer 0, is true.
    """
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value != ""
    if isinstance(value, Mapping | Collection):
        return len(value) > 0
    return True


def render_value(value: Any) -> str:
    """Render a value as template output text."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return value
    if isinstance(value, list | tuple):
        return "[" + ", ".join(render_value(item) for item in value) + "]"
    if isinstance(value, Mapping):
        items = (f"{render_value(k)}={render_value(v)}" for k, v in value.items())
        return "{" + ", ".join(items) + "}"
    return str(value)


def show(value: Any) -> str:
    """Describe a value and its type for error messages."""
    if value is None:
        return "null"
    return f"{render_value(value)} (a {type(value).__name__})"


@dataclass(frozen=True)
class Node(ABC):
    """Immutable, line-numbered unit of a parsed template."""

    line_number: int

    @abstractmethod
    def evaluate(self, context: "EvaluationContext") -> Any:
        """Evaluate this node.

        Args:
            context: Per-render variable environment

        Returns:
            The node's value; template bodies evaluate to strings
        """


@dataclass(frozen=True)
class EmptyNode(Node):
    """Node that renders as nothing. Identity element of concatenation."""

    def evaluate(self, context: "EvaluationContext") -> Any:
        return ""


@dataclass(frozen=True)
class ConcatNode(Node):
    """Ordered sibling nodes whose rendered texts are joined."""

    children: tuple[Node, ...]

    def evaluate(self, context: "EvaluationContext") -> Any:
        return "".join(render_value(child.evaluate(context)) for child in self.children)


def concat(line_number: int, nodes: list[Node]) -> Node:
    """Join sibling nodes into one node.

    Empty nodes are dropped and nested concatenations are flattened. A single
    survivor is returned as is; none at all gives an EmptyNode.

    Args:
        line_number: Line to use for the EmptyNode when nothing survives
        nodes: Siblings in output order

    Returns:
        A node rendering the concatenation of ``nodes``
    """
    children: list[Node] = []
    for node in nodes:
        if isinstance(node, ConcatNode):
            children.extend(node.children)
        elif not isinstance(node, EmptyNode):
            children.append(node)
    if not children:
        return EmptyNode(line_number)
    if len(children) == 1:
        return children[0]
    return ConcatNode(children[0].line_number, tuple(children))


@dataclass(frozen=True)
class ExpressionNode(Node):
    """Node that appears inside directive parentheses or reference suffixes."""

    def is_true(self, context: "EvaluationContext") -> bool:
        return is_true(self.evaluate(context))

    def int_value(self, context: "EvaluationContext") -> int:
        value = self.evaluate(context)
        if isinstance(value, bool) or not isinstance(value, int):
            raise self.error(
                "ARITHMETIC_ERROR",
                f"Arithmetic only available on integers, not {show(value)}",
            )
        return value

    def error(self, code: str, reason: str) -> EvaluationError:
        return create_error(code, line=self.line_number, reason=reason)  # type: ignore[return-value]


@dataclass(frozen=True)
class ConstantNode(ExpressionNode):
    """Literal text, string, integer or boolean."""

    value: Any

    def evaluate(self, context: "EvaluationContext") -> Any:
        return self.value


@dataclass(frozen=True)
class OrNode(ExpressionNode):
    lhs: ExpressionNode
    rhs: ExpressionNode

    def evaluate(self, context: "EvaluationContext") -> Any:
        return self.lhs.is_true(context) or self.rhs.is_true(context)


@dataclass(frozen=True)
class AndNode(ExpressionNode):
    lhs: ExpressionNode
    rhs: ExpressionNode

    def evaluate(self, context: "EvaluationContext") -> Any:
        return self.lhs.is_true(context) and self.rhs.is_true(context)


@dataclass(frozen=True)
class NotNode(ExpressionNode):
    operand: ExpressionNode

    def evaluate(self, context: "EvaluationContext") -> Any:
        return not self.operand.is_true(context)


@dataclass(frozen=True)
class EqualsNode(ExpressionNode):
    """Equality with a textual fallback for values of different types.

    Identical values are equal; null equals nothing else; values of the same
    type use ``==``; otherwise their rendered texts are compared. The textual
    fallback makes this relation non-transitive.
    """

    lhs: ExpressionNode
    rhs: ExpressionNode

    def evaluate(self, context: "EvaluationContext") -> Any:
        lhs_value = self.lhs.evaluate(context)
        rhs_value = self.rhs.evaluate(context)
        if lhs_value is rhs_value:
            return True
        if lhs_value is None or rhs_value is None:
            return False
        if type(lhs_value) is type(rhs_value):
            return bool(lhs_value == rhs_value)
        return render_value(lhs_value) == render_value(rhs_value)


@dataclass(frozen=True)
class LessNode(ExpressionNode):
    """The only primitive ordering; ``<=``, ``>`` and ``>=`` are built from it."""

    lhs: ExpressionNode
    rhs: ExpressionNode

    def evaluate(self, context: "EvaluationContext") -> Any:
        lhs_value = self.lhs.evaluate(context)
        rhs_value = self.rhs.evaluate(context)
        if lhs_value is None:
            raise self.error("COMPARISON_ERROR", "Not comparable: null")
        if type(lhs_value) is not type(rhs_value):
            raise self.error(
                "COMPARISON_ERROR",
                "Cannot compare objects not of same class: "
                f"{show(lhs_value)} versus {show(rhs_value)}",
            )
        try:
            return bool(lhs_value < rhs_value)
        except TypeError as e:
            raise self.error("COMPARISON_ERROR", f"Not comparable: {show(lhs_value)}") from e


def _divide(lhs: int, rhs: int) -> int:
    quotient = abs(lhs) // abs(rhs)
    return quotient if (lhs < 0) == (rhs < 0) else -quotient


@dataclass(frozen=True)
class ArithmeticNode(ExpressionNode):
    """Integer ``+ - * / %``. Division truncates toward zero."""

    op: str
    lhs: ExpressionNode
    rhs: ExpressionNode

    def evaluate(self, context: "EvaluationContext") -> Any:
        lhs_value = self.lhs.int_value(context)
        rhs_value = self.rhs.int_value(context)
        if self.op == "+":
            return lhs_value + rhs_value
        if self.op == "-":
            return lhs_value - rhs_value
        if self.op == "*":
            return lhs_value * rhs_value
        if rhs_value == 0:
            raise self.error("ARITHMETIC_ERROR", "Division by 0")
        if self.op == "/":
            return _divide(lhs_value, rhs_value)
        if self.op == "%":
            return lhs_value - rhs_value * _divide(lhs_value, rhs_value)
        msg = f"Unknown arithmetic operator: {self.op}"
        raise ValueError(msg)


@dataclass(frozen=True)
class NegateNode(ExpressionNode):
    operand: ExpressionNode

    def evaluate(self, context: "EvaluationContext") -> Any:
        return -self.operand.int_value(context)
