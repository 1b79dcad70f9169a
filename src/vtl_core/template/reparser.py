"""Reparser: match the flat token list from the parser into a tree."""

from vtl_core.errors import create_error
from vtl_core.telemetry.logging import get_logger

from .directives import ForEachNode, IfNode, SetNode
from .macro import Macro
from .nodes import ConstantNode, EmptyNode, Node, concat
from .references import ReferenceNode
from .tokens import (
    CommentToken,
    ConditionToken,
    ElseIfToken,
    ElseToken,
    EndToken,
    EofToken,
    ForEachToken,
    IfToken,
    MacroDefinitionToken,
    TokenNode,
)

logger = get_logger("template")

_END_SET: tuple[type[TokenNode], ...] = (EndToken,)
_EOF_SET: tuple[type[TokenNode], ...] = (EofToken,)
_ELSE_ELSE_IF_END_SET: tuple[type[TokenNode], ...] = (ElseToken, ElseIfToken, EndToken)

# Whitespace between one of these and a following #set is dropped.
_SET_ELISION_PREDECESSORS = (CommentToken, ReferenceNode, MacroDefinitionToken, SetNode)


def _is_whitespace_text(node: Node) -> bool:
    return (
        isinstance(node, ConstantNode)
        and isinstance(node.value, str)
        and node.value.isspace()
    )


class Reparser:
    """Phase two of template parsing.

    Builds ``#if``/``#elseif``/``#else`` chains, ``#foreach`` loops and
    ``#macro`` definitions out of their tokens. Macro definitions are lifted
    out of the tree into a table; the first definition of a name wins.
    """

    def __init__(self, tokens: list[Node]):
        """Initialize reparser.

        Args:
            tokens: Parser output, ending with an EofToken
        """
        self._tokens = tokens
        self._pos = 0
        self._macros: dict[str, Macro] = {}

    @property
    def _current(self) -> Node:
        return self._tokens[self._pos]

    def reparse(self) -> tuple[Node, dict[str, Macro]]:
        """Build the tree.

        Returns:
            Root node and the macro table

        Raises:
            ParseError: For an unterminated block or a stray #else, #elseif or #end
        """
        root = self._parse_to(_EOF_SET, None)
        return root, self._macros

    def _next(self) -> None:
        if not isinstance(self._current, EofToken):
            self._pos += 1

    def _parse_to(
        self, stop_set: tuple[type[TokenNode], ...], for_what: TokenNode | None
    ) -> Node:
        start_line = 1 if for_what is None else for_what.line_number
        siblings: list[Node] = []
        while not isinstance(self._current, stop_set):
            current = self._current
            if isinstance(current, EofToken):
                raise create_error(
                    "PARSE_UNTERMINATED",
                    construct=for_what.directive if for_what else "template",
                    line=start_line,
                )
            self._next()
            parsed = self._parse_token(current) if isinstance(current, TokenNode) else current
            self._append(siblings, parsed)
        return concat(start_line, [node for node in siblings if not isinstance(node, TokenNode)])

    def _append(self, siblings: list[Node], node: Node) -> None:
        if (
            isinstance(node, SetNode)
            and len(siblings) >= 2
            and _is_whitespace_text(siblings[-1])
            and isinstance(siblings[-2], _SET_ELISION_PREDECESSORS)
        ):
            siblings.pop()
        siblings.append(node)

    def _parse_token(self, token: TokenNode) -> Node:
        if isinstance(token, CommentToken):
            return token
        if isinstance(token, IfToken):
            return self._parse_if_or_else_if(token)
        if isinstance(token, ForEachToken):
            return self._parse_foreach(token)
        if isinstance(token, MacroDefinitionToken):
            return self._parse_macro_definition(token)
        raise create_error(
            "PARSE_UNEXPECTED_TOKEN", construct=token.directive, line=token.line_number
        )

    def _parse_foreach(self, token: ForEachToken) -> Node:
        body = self._parse_to(_END_SET, token)
        self._next()  # #end
        return ForEachNode(token.line_number, token.variable, token.collection, body)

    def _parse_macro_definition(self, token: MacroDefinitionToken) -> Node:
        body = self._parse_to(_END_SET, token)
        self._next()  # #end
        if token.name in self._macros:
            logger.debug(
                "Macro redefinition ignored",
                macro=token.name,
                line=token.line_number,
                first_line=self._macros[token.name].definition_line,
            )
        else:
            self._macros[token.name] = Macro(
                token.line_number, token.name, token.parameter_names, body
            )
        # Marker for #set whitespace elision, dropped before concatenation.
        return token

    def _parse_if_or_else_if(self, token: ConditionToken) -> Node:
        true_part = self._parse_to(_ELSE_ELSE_IF_END_SET, token)
        closer = self._current
        self._next()  # #else, #elseif or #end
        false_part: Node
        if isinstance(closer, EndToken):
            false_part = EmptyNode(closer.line_number)
        elif isinstance(closer, ElseToken):
            false_part = self._parse_to(_END_SET, token)
            self._next()  # #end
        elif isinstance(closer, ElseIfToken):
            false_part = self._parse_if_or_else_if(closer)
        else:
            raise RuntimeError(f"#if closed by {type(closer).__name__}")
        return IfNode(token.line_number, token.condition, true_part, false_part)
