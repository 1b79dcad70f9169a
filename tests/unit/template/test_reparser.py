"""Tests for the reparser that builds the template tree."""

import logging

import pytest

from vtl_core.errors import ParseError
from vtl_core.template.directives import ForEachNode, IfNode, SetNode
from vtl_core.template.nodes import ConcatNode, ConstantNode, EmptyNode
from vtl_core.template.parser import Parser
from vtl_core.template.references import PlainReferenceNode
from vtl_core.template.reparser import Reparser


def reparse(text: str):
    return Reparser(Parser(text).parse_tokens()).reparse()


class TestTreeShape:
    """Tests for the nodes the reparser produces."""

    def test_empty_template(self):
        root, macros = reparse("")
        assert root == EmptyNode(1)
        assert macros == {}

    def test_single_node_is_not_wrapped(self):
        root, _ = reparse("text")
        assert root == ConstantNode(1, "text")

    def test_siblings_concatenated(self):
        root, _ = reparse("a$b")
        assert root == ConcatNode(1, (ConstantNode(1, "a"), PlainReferenceNode(1, "b")))

    def test_if_without_else(self):
        root, _ = reparse("#if ($a)x#end")
        assert root == IfNode(1, PlainReferenceNode(1, "a"), ConstantNode(1, "x"), EmptyNode(1))

    def test_elseif_chain_nests(self):
        root, _ = reparse("#if ($a)1#elseif ($b)2#{else}3#end")
        assert isinstance(root, IfNode)
        assert root.true_part == ConstantNode(1, "1")
        nested = root.false_part
        assert isinstance(nested, IfNode)
        assert nested.condition == PlainReferenceNode(1, "b")
        assert nested.true_part == ConstantNode(1, "2")
        assert nested.false_part == ConstantNode(1, "3")

    def test_foreach(self):
        root, _ = reparse("#foreach ($x in $c)$x#end")
        assert root == ForEachNode(
            1, "x", PlainReferenceNode(1, "c"), PlainReferenceNode(1, "x")
        )

    def test_comments_dropped(self):
        root, _ = reparse("a## note\nb")
        assert root == ConcatNode(1, (ConstantNode(1, "a"), ConstantNode(2, "b")))

    def test_nested_blocks(self):
        root, _ = reparse("#foreach ($x in $c)#if ($x)y#end#end")
        assert isinstance(root, ForEachNode)
        assert isinstance(root.body, IfNode)


class TestMacroExtraction:
    """Tests for lifting #macro definitions into the macro table."""

    def test_definition_removed_from_tree(self):
        root, macros = reparse("a#macro (m $p)<$p>#end b")
        assert root == ConcatNode(1, (ConstantNode(1, "a"), ConstantNode(1, " b")))
        macro = macros["m"]
        assert macro.name == "m"
        assert macro.parameter_names == ("p",)
        assert macro.definition_line == 1

    def test_first_definition_wins(self, caplog):
        with caplog.at_level(logging.DEBUG, logger="vtl.template"):
            _, macros = reparse("#macro (m)one#end\n#macro (m)two#end\n")

        assert macros["m"].body == ConstantNode(1, "one")
        assert macros["m"].definition_line == 1
        assert "Macro redefinition ignored" in caplog.messages

    def test_macro_nested_in_if_is_still_extracted(self):
        _, macros = reparse("#if (false)#macro (m)x#end#end")
        assert "m" in macros


class TestStructuralErrors:
    """Tests for unbalanced directives."""

    @pytest.mark.parametrize(
        "text, construct, line",
        [
            ("#if (true) x", "#if", 1),
            ("a\n#foreach ($x in $c) x", "#foreach", 2),
            ("#macro (m) x", "#macro", 1),
            ("#if (true) x #else y", "#if", 1),
        ],
    )
    def test_unterminated(self, text, construct, line):
        with pytest.raises(ParseError) as exc_info:
            reparse(text)
        error = exc_info.value
        assert error.code == "PARSE_UNTERMINATED"
        assert error.line == line
        assert error.message == (
            f"Reached end of file while parsing {construct} starting on line {line}"
        )

    @pytest.mark.parametrize("text, construct", [("#end", "#end"), ("x#else", "#else")])
    def test_unexpected(self, text, construct):
        with pytest.raises(ParseError) as exc_info:
            reparse(text)
        assert exc_info.value.code == "PARSE_UNEXPECTED_TOKEN"
        assert exc_info.value.message == f"Unexpected {construct} on line 1"

    def test_stray_elseif(self):
        with pytest.raises(ParseError, match="Unexpected #elseif"):
            reparse("#elseif (true)")

    @pytest.mark.parametrize("closer", ["#else", "#elseif (true)"])
    def test_if_closer_inside_foreach(self, closer):
        with pytest.raises(ParseError) as exc_info:
            reparse(f"#foreach ($x in $c){closer}#end")
        assert exc_info.value.code == "PARSE_UNEXPECTED_TOKEN"


class TestSetWhitespaceElision:
    """Whitespace between a reference, comment, macro definition or #set and a
    following #set is dropped."""

    def test_after_reference(self):
        root, _ = reparse("$x  #set ($y = 1)")
        assert root == ConcatNode(
            1, (PlainReferenceNode(1, "x"), SetNode(1, "y", ConstantNode(1, 1)))
        )

    def test_after_set(self):
        root, _ = reparse("#set ($a = 1) #set ($b = 2)")
        assert [type(child) for child in root.children] == [SetNode, SetNode]

    def test_after_plain_text_kept(self):
        root, _ = reparse("x #set ($y = 1)")
        assert root.children[0] == ConstantNode(1, "x ")

    def test_non_whitespace_kept(self):
        root, _ = reparse("$x y #set ($y = 1)")
        assert root.children[1] == ConstantNode(1, " y ")
