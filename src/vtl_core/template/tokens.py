"""Directive markers produced by the tokenizing parser.

Tokens only exist between the two parse phases. The reparser matches them
into IfNode, ForEachNode and Macro records; none survive into the tree.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, ClassVar

from .nodes import ExpressionNode, Node

if TYPE_CHECKING:
    from .context import EvaluationContext


@dataclass(frozen=True)
class TokenNode(Node):
    directive: ClassVar[str] = "token"

    def evaluate(self, context: "EvaluationContext") -> Any:
        msg = f"{self.directive} on line {self.line_number} is not evaluable"
        raise TypeError(msg)


@dataclass(frozen=True)
class EofToken(TokenNode):
    directive: ClassVar[str] = "end of file"


@dataclass(frozen=True)
class CommentToken(TokenNode):
    directive: ClassVar[str] = "##"


@dataclass(frozen=True)
class EndToken(TokenNode):
    directive: ClassVar[str] = "#end"


@dataclass(frozen=True)
class ElseToken(TokenNode):
    directive: ClassVar[str] = "#else"


@dataclass(frozen=True)
class ConditionToken(TokenNode):
    condition: ExpressionNode


@dataclass(frozen=True)
class IfToken(ConditionToken):
    directive: ClassVar[str] = "#if"


@dataclass(frozen=True)
class ElseIfToken(ConditionToken):
    directive: ClassVar[str] = "#elseif"


@dataclass(frozen=True)
class ForEachToken(TokenNode):
    directive: ClassVar[str] = "#foreach"

    variable: str
    collection: ExpressionNode


@dataclass(frozen=True)
class MacroDefinitionToken(TokenNode):
    directive: ClassVar[str] = "#macro"

    name: str
    parameter_names: tuple[str, ...]
