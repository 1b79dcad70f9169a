"""Tokenizing parser: template text to a flat list of nodes and directive tokens.

Text, references, ``#set`` and macro calls come out as finished nodes. Block
directives come out as tokens that the reparser later matches into a tree.

Expression grammar, loosest binding first::

    expression     := and ("||" expression)?
    and            := equality ("&&" equality)*
    equality       := relational (("==" | "!=") relational)?
    relational     := additive (("<" | "<=" | ">" | ">=") additive)?
    additive       := multiplicative (("+" | "-") multiplicative)*
    multiplicative := unary (("*" | "/" | "%") unary)*
    unary          := "(" expression ")" | "!" unary | "-" unary | primary
    primary        := reference | string | integer | "true" | "false"
"""

from vtl_core.errors import ParseError, create_error

from .directives import MacroCallNode, SetNode
from .nodes import (
    AndNode,
    ArithmeticNode,
    ConstantNode,
    EqualsNode,
    ExpressionNode,
    LessNode,
    NegateNode,
    Node,
    NotNode,
    OrNode,
)
from .primitives import fits_int
from .references import (
    IndexReferenceNode,
    MemberReferenceNode,
    MethodReferenceNode,
    PlainReferenceNode,
    ReferenceNode,
)
from .scanner import EOF, Scanner
from .tokens import (
    CommentToken,
    ElseIfToken,
    ElseToken,
    EndToken,
    EofToken,
    ForEachToken,
    IfToken,
    MacroDefinitionToken,
)


def _is_id_char(c: str) -> bool:
    return c != EOF and (c.isalpha() or c.isdecimal() or c in "-_")


class Parser:
    """Phase one of template parsing."""

    def __init__(self, text: str):
        self._scanner = Scanner(text)

    def parse_tokens(self) -> list[Node]:
        """Scan the whole template.

        Returns:
            Nodes and tokens in source order, ending with an EofToken

        Raises:
            ParseError: On the first syntax error
        """
        tokens: list[Node] = []
        while True:
            token = self._parse_node()
            tokens.append(token)
            if isinstance(token, EofToken):
                return tokens

    # Errors

    def _error(self, reason: str) -> ParseError:
        return create_error(  # type: ignore[return-value]
            "PARSE_SYNTAX",
            reason=reason,
            line=self._scanner.line,
            context=self._scanner.error_context(),
        )

    def _expect(self, expected: str) -> None:
        s = self._scanner
        s.skip_space()
        if s.c != expected:
            raise self._error(f"Expected {expected}")
        s.next()

    def _parse_id(self, what: str) -> str:
        s = self._scanner
        if s.c == EOF or not s.c.isalpha():
            raise self._error(f"{what} should start with a letter")
        chars = []
        while _is_id_char(s.c):
            chars.append(s.c)
            s.next()
        return "".join(chars)

    # Template level

    def _parse_node(self) -> Node:
        s = self._scanner
        line = s.line
        if s.c == "#":
            s.next()
            if s.c == "#":
                self._skip_comment()
                return CommentToken(line)
            return self._parse_directive(line)
        if s.at_eof():
            return EofToken(line)
        return self._parse_non_directive()

    def _skip_comment(self) -> None:
        s = self._scanner
        while s.c not in ("\n", EOF):
            s.next()
        s.next()

    def _parse_non_directive(self) -> Node:
        s = self._scanner
        line = s.line
        if s.c == "$":
            s.next()
            if s.c == "{" or (s.c != EOF and s.c.isalpha()):
                return self._parse_reference(line)
            return self._parse_plain_text(line, "$")
        first = s.c
        s.next()
        return self._parse_plain_text(line, first)

    def _parse_plain_text(self, line: int, first: str) -> Node:
        s = self._scanner
        chars = [first]
        while s.c not in ("$", "#", EOF):
            chars.append(s.c)
            s.next()
        return ConstantNode(line, "".join(chars))

    # Directives

    def _parse_directive(self, line: int) -> Node:
        s = self._scanner
        if s.c == "{":
            s.next()
            directive = self._parse_id("Directive")
            if s.c != "}":
                raise self._error("Expected }")
            s.next()
        else:
            directive = self._parse_id("Directive")

        node: Node
        if directive == "end":
            node = EndToken(line)
        elif directive in ("if", "elseif"):
            self._expect("(")
            condition = self._parse_expression()
            self._expect(")")
            node = IfToken(line, condition) if directive == "if" else ElseIfToken(line, condition)
        elif directive == "else":
            node = ElseToken(line)
        elif directive == "foreach":
            node = self._parse_foreach(line)
        elif directive == "set":
            node = self._parse_set(line)
        elif directive == "macro":
            node = self._parse_macro_definition(line)
        else:
            node = self._parse_macro_call(line, directive)

        # A directive swallows one newline directly after it.
        if s.c == "\n":
            s.next()
        return node

    def _parse_foreach(self, line: int) -> Node:
        s = self._scanner
        self._expect("(")
        self._expect("$")
        variable = self._parse_id("For-each variable")
        s.skip_space()
        if s.c != "i" or s.next() != "n":
            raise self._error("Expected 'in' for #foreach")
        s.next()
        collection = self._parse_expression()
        self._expect(")")
        return ForEachToken(line, variable, collection)

    def _parse_set(self, line: int) -> Node:
        self._expect("(")
        self._expect("$")
        variable = self._parse_id("#set variable")
        self._expect("=")
        expression = self._parse_expression()
        self._expect(")")
        return SetNode(line, variable, expression)

    def _parse_macro_definition(self, line: int) -> Node:
        s = self._scanner
        self._expect("(")
        s.skip_space()
        name = self._parse_id("Macro name")
        parameter_names: list[str] = []
        while True:
            s.skip_space()
            if s.c == ",":
                s.next()
                continue
            if s.c == ")":
                break
            if s.c != "$":
                raise self._error("Macro parameters should look like $name")
            s.next()
            parameter_names.append(self._parse_id("Macro parameter name"))
        s.next()  # )
        return MacroDefinitionToken(line, name, tuple(parameter_names))

    def _parse_macro_call(self, line: int, name: str) -> Node:
        s = self._scanner
        s.skip_space()
        if s.c != "(":
            raise self._error(f"Unrecognized directive #{name}")
        s.next()
        arguments: list[ExpressionNode] = []
        while True:
            s.skip_space()
            if s.c == ",":
                s.next()
                continue
            if s.c == ")":
                break
            arguments.append(self._parse_expression())
        s.next()  # )
        return MacroCallNode(line, name, tuple(arguments))

    # References

    def _parse_reference(self, line: int) -> ReferenceNode:
        s = self._scanner
        if s.c == "{":
            s.next()
            node = self._parse_reference_no_brace(line)
            if s.c != "}":
                raise self._error("Expected } at end of reference")
            s.next()
            return node
        return self._parse_reference_no_brace(line)

    def _parse_reference_no_brace(self, line: int) -> ReferenceNode:
        name = self._parse_id("Reference")
        return self._parse_reference_suffix(PlainReferenceNode(line, name))

    def _parse_reference_suffix(self, lhs: ReferenceNode) -> ReferenceNode:
        s = self._scanner
        if s.c == ".":
            s.next()
            name = self._parse_id("Member")
            if s.c == "(":
                return self._parse_reference_method(lhs, name)
            return self._parse_reference_suffix(MemberReferenceNode(lhs.line_number, lhs, name))
        if s.c == "[":
            s.next()
            index = self._parse_expression()
            if s.c != "]":
                raise self._error("Expected ]")
            s.next()
            return self._parse_reference_suffix(IndexReferenceNode(lhs.line_number, lhs, index))
        return lhs

    def _parse_reference_method(self, lhs: ReferenceNode, name: str) -> ReferenceNode:
        s = self._scanner
        s.next_non_space()
        args: list[ExpressionNode] = []
        if s.c != ")":
            args.append(self._parse_expression())
            while s.c == ",":
                s.next_non_space()
                args.append(self._parse_expression())
            if s.c != ")":
                raise self._error("Expected )")
        s.next()
        method = MethodReferenceNode(lhs.line_number, lhs, name, tuple(args))
        return self._parse_reference_suffix(method)

    # Expressions

    def _parse_expression(self) -> ExpressionNode:
        s = self._scanner
        s.skip_space()
        lhs = self._parse_and()
        if s.c == "|":
            s.next()
            if s.c != "|":
                raise self._error("Expected ||, not just |")
            s.next_non_space()
            return OrNode(lhs.line_number, lhs, self._parse_expression())
        return lhs

    def _parse_and(self) -> ExpressionNode:
        s = self._scanner
        lhs = self._parse_equality()
        while s.c == "&":
            s.next()
            if s.c != "&":
                raise self._error("Expected &&, not just &")
            s.next_non_space()
            lhs = AndNode(lhs.line_number, lhs, self._parse_equality())
        return lhs

    def _parse_equality(self) -> ExpressionNode:
        s = self._scanner
        lhs = self._parse_relational()
        if s.c == "=":
            s.next()
            if s.c != "=":
                raise self._error("Expected ==, not just =")
            s.next_non_space()
            return EqualsNode(lhs.line_number, lhs, self._parse_relational())
        if s.c == "!":
            s.next()
            if s.c != "=":
                raise self._error("Expected !=, not just !")
            s.next_non_space()
            equals = EqualsNode(lhs.line_number, lhs, self._parse_relational())
            return NotNode(lhs.line_number, equals)
        return lhs

    def _parse_relational(self) -> ExpressionNode:
        s = self._scanner
        lhs = self._parse_additive()
        line = lhs.line_number
        if s.c == "<":
            s.next()
            if s.c == "=":
                s.next_non_space()
                return NotNode(line, LessNode(line, self._parse_additive(), lhs))
            s.skip_space()
            return LessNode(line, lhs, self._parse_additive())
        if s.c == ">":
            s.next()
            if s.c == "=":
                s.next_non_space()
                return NotNode(line, LessNode(line, lhs, self._parse_additive()))
            s.skip_space()
            return LessNode(line, self._parse_additive(), lhs)
        return lhs

    def _parse_additive(self) -> ExpressionNode:
        s = self._scanner
        lhs = self._parse_multiplicative()
        while s.c in ("+", "-"):
            op = s.c
            s.next_non_space()
            lhs = ArithmeticNode(lhs.line_number, op, lhs, self._parse_multiplicative())
        return lhs

    def _parse_multiplicative(self) -> ExpressionNode:
        s = self._scanner
        lhs = self._parse_unary()
        while s.c in ("*", "/", "%"):
            op = s.c
            s.next_non_space()
            lhs = ArithmeticNode(lhs.line_number, op, lhs, self._parse_unary())
        return lhs

    def _parse_unary(self) -> ExpressionNode:
        s = self._scanner
        line = s.line
        node: ExpressionNode
        if s.c == "(":
            s.next_non_space()
            node = self._parse_expression()
            self._expect(")")
        elif s.c == "!":
            s.next_non_space()
            node = NotNode(line, self._parse_unary())
        elif s.c == "$":
            s.next()
            node = self._parse_reference(line)
        elif s.c == '"':
            node = self._parse_string_literal(line)
        elif s.c == "-":
            s.next()
            if s.c != EOF and s.c.isdecimal():
                node = self._parse_int_literal(line, "-")
            else:
                s.skip_space()
                node = NegateNode(line, self._parse_unary())
        elif s.c != EOF and s.c.isdecimal():
            node = self._parse_int_literal(line, "")
        elif s.c != EOF and s.c.isalpha():
            node = self._parse_boolean_literal(line)
        else:
            raise self._error("Expected an expression")
        s.skip_space()
        return node

    def _parse_string_literal(self, line: int) -> ExpressionNode:
        s = self._scanner
        s.next()
        chars = []
        while s.c != '"':
            if s.c in ("\n", EOF):
                raise self._error("Unterminated string constant")
            if s.c in ("$", "\\"):
                raise self._error(f"Unsupported character {s.c} in string constant")
            chars.append(s.c)
            s.next()
        s.next()
        return ConstantNode(line, "".join(chars))

    def _parse_int_literal(self, line: int, prefix: str) -> ExpressionNode:
        s = self._scanner
        digits = [prefix]
        while s.c != EOF and s.c.isdecimal():
            digits.append(s.c)
            s.next()
        text = "".join(digits)
        value = int(text)
        if not fits_int(value):
            raise self._error(f"Invalid integer: {text}")
        return ConstantNode(line, value)

    def _parse_boolean_literal(self, line: int) -> ExpressionNode:
        word = self._parse_id("Identifier without $")
        if word == "true":
            return ConstantNode(line, True)
        if word == "false":
            return ConstantNode(line, False)
        raise self._error("Identifier in expression must be preceded by $ or be true or false")
