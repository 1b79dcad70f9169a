"""``$reference`` nodes and their ``.member``, ``.method()`` and ``[index]`` suffixes."""

from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from vtl_core.errors import create_error

from .nodes import ExpressionNode
from .resolver import (
    AmbiguousMemberError,
    InvalidIndexError,
    InvocationError,
    MemberNotFoundError,
)

if TYPE_CHECKING:
    from .context import EvaluationContext


@dataclass(frozen=True)
class ReferenceNode(ExpressionNode):
    """Base class for everything that starts with ``$``."""

    def _resolve(self, not_found_code: str, resolve: Callable[[], Any]) -> Any:
        try:
            return resolve()
        except AmbiguousMemberError as e:
            raise create_error("METHOD_AMBIGUOUS", line=self.line_number, reason=str(e)) from e
        except InvalidIndexError as e:
            raise create_error("INDEX_INVALID", line=self.line_number, reason=str(e)) from e
        except MemberNotFoundError as e:
            raise create_error(not_found_code, line=self.line_number, reason=str(e)) from e
        except InvocationError as e:
            raise create_error(
                "INVOCATION_FAILED",
                cause=e.__cause__,
                line=self.line_number,
                reason=str(e),
            ) from e


@dataclass(frozen=True)
class PlainReferenceNode(ReferenceNode):
    """``$name``"""

    name: str

    def evaluate(self, context: "EvaluationContext") -> Any:
        if not context.is_defined(self.name):
            raise create_error("UNDEFINED_REFERENCE", name=self.name, line=self.line_number)
        return context.get_var(self.name)


@dataclass(frozen=True)
class MemberReferenceNode(ReferenceNode):
    """``$lhs.name``"""

    lhs: ReferenceNode
    name: str

    def evaluate(self, context: "EvaluationContext") -> Any:
        receiver = self.lhs.evaluate(context)
        if receiver is None:
            raise self.error("NULL_RECEIVER", f"Cannot get member {self.name} of null value")
        return self._resolve(
            "MEMBER_NOT_FOUND",
            lambda: context.resolver.resolve_member(receiver, self.name),
        )


@dataclass(frozen=True)
class MethodReferenceNode(ReferenceNode):
    """``$lhs.name(arg, ...)``"""

    lhs: ReferenceNode
    name: str
    args: tuple[ExpressionNode, ...]

    def evaluate(self, context: "EvaluationContext") -> Any:
        receiver = self.lhs.evaluate(context)
        if receiver is None:
            raise self.error("NULL_RECEIVER", f"Cannot invoke method {self.name} on null value")
        arg_values = [arg.evaluate(context) for arg in self.args]
        return self._resolve(
            "METHOD_NOT_FOUND",
            lambda: context.resolver.resolve_method(receiver, self.name, arg_values),
        )


@dataclass(frozen=True)
class IndexReferenceNode(ReferenceNode):
    """``$lhs[index]``"""

    lhs: ReferenceNode
    index: ExpressionNode

    def evaluate(self, context: "EvaluationContext") -> Any:
        receiver = self.lhs.evaluate(context)
        if receiver is None:
            raise self.error("NULL_RECEIVER", "Cannot index null value")
        index_value = self.index.evaluate(context)
        return self._resolve(
            "INDEX_INVALID",
            lambda: context.resolver.resolve_index(receiver, index_value),
        )
