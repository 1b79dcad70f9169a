"""Tests for VTL error types, registry and factory."""

import pytest

from vtl_core.errors import (
    ErrorCategory,
    ErrorFactory,
    ErrorRegistry,
    ErrorTemplate,
    EvaluationError,
    ParseError,
    VTLError,
    create_error,
    get_error_factory,
)

ALL_CODES = [
    "PARSE_SYNTAX",
    "PARSE_UNTERMINATED",
    "PARSE_UNEXPECTED_TOKEN",
    "PARSE_TOO_DEEP",
    "UNDEFINED_REFERENCE",
    "NULL_RECEIVER",
    "MEMBER_NOT_FOUND",
    "METHOD_NOT_FOUND",
    "METHOD_AMBIGUOUS",
    "INVOCATION_FAILED",
    "INDEX_INVALID",
    "NOT_ITERABLE",
    "ARITHMETIC_ERROR",
    "COMPARISON_ERROR",
    "MACRO_UNDEFINED",
    "MACRO_ARITY",
    "MACRO_FAILED",
    "RECURSION_LIMIT",
    "CONFIG_INVALID",
]


class TestErrorRegistry:
    """Tests for ErrorRegistry."""

    def test_all_builtin_codes_registered(self):
        assert set(ErrorRegistry().list_codes()) == set(ALL_CODES)

    @pytest.mark.parametrize("code", ALL_CODES)
    def test_class_follows_category(self, code):
        registry = ErrorRegistry()
        error = registry.create(code, {"line": 1})
        category = registry.get_template(code).category
        if category == ErrorCategory.PARSE:
            assert type(error) is ParseError
        elif category == ErrorCategory.EVALUATION:
            assert type(error) is EvaluationError
        else:
            assert type(error) is VTLError

    def test_parse_syntax_message(self):
        error = ErrorRegistry().create(
            "PARSE_SYNTAX", {"reason": "Expected )", "line": 3, "context": "EOF"}
        )
        assert error.message == "Expected ), on line 3, at text starting: EOF"
        assert error.line == 3
        assert error.context == "EOF"

    def test_missing_context_leaves_template(self):
        error = ErrorRegistry().create("UNDEFINED_REFERENCE", {})
        assert error.message == "Undefined reference ${name} on line {line}"

    def test_unknown_code_raises(self):
        with pytest.raises(ValueError, match="Unknown error code"):
            ErrorRegistry().create("NOPE")

    def test_register_custom_template(self):
        registry = ErrorRegistry()
        registry.register(
            ErrorTemplate(
                code="CUSTOM",
                category=ErrorCategory.EVALUATION,
                message_template="Custom {what}",
            )
        )
        error = registry.create("CUSTOM", {"what": "thing"})
        assert isinstance(error, EvaluationError)
        assert error.message == "Custom thing"


class TestErrorFactory:
    """Tests for ErrorFactory and create_error."""

    def test_kwargs_merge_with_context(self):
        error = ErrorFactory().create(
            "MACRO_ARITY", {"expected": 2}, actual=1, line=4
        )
        assert error.message == "Wrong number of arguments: expected 2, got 1"
        assert error.line == 4

    def test_create_error_uses_default_factory(self):
        assert get_error_factory() is get_error_factory()
        error = create_error("ARITHMETIC_ERROR", line=2, reason="Division by 0")
        assert str(error) == "In expression on line 2: Division by 0"

    def test_cause_is_kept(self):
        cause = ZeroDivisionError("x")
        error = create_error("INVOCATION_FAILED", cause=cause, line=1, reason="boom")
        assert error.cause is cause


class TestVTLError:
    """Tests for VTLError behavior."""

    def test_is_exception(self):
        error = create_error("CONFIG_INVALID", detail="bad")
        with pytest.raises(VTLError):
            raise error

    def test_to_dict(self):
        error = create_error("RECURSION_LIMIT", reason="Too deep", line=1)
        data = error.to_dict()
        assert data["code"] == "RECURSION_LIMIT"
        assert data["category"] == "EVALUATION"
        assert data["message"] == "Too deep"
        assert data["line"] == 1
        assert data["cause"] is None
        assert "T" in data["timestamp"]

    def test_to_dict_nests_vtl_cause(self):
        inner = create_error("UNDEFINED_REFERENCE", name="x", line=2)
        outer = inner.in_macro("m", 1)
        data = outer.to_dict()
        assert data["cause"]["code"] == "UNDEFINED_REFERENCE"
        assert data["macro_name"] == "m"

    def test_to_dict_plain_cause(self):
        error = create_error("INVOCATION_FAILED", cause=KeyError("k"), line=1, reason="r")
        assert error.to_dict()["cause"] == "KeyError: 'k'"


class TestInMacro:
    """Tests for EvaluationError.in_macro."""

    def test_wraps_message_and_keeps_cause(self):
        inner = create_error("UNDEFINED_REFERENCE", name="x", line=7)
        outer = inner.in_macro("greet", 3)

        assert isinstance(outer, EvaluationError)
        assert outer.code == "MACRO_FAILED"
        assert outer.message == (
            "In macro #greet defined on line 3: Undefined reference $x on line 7"
        )
        assert outer.macro_name == "greet"
        assert outer.line == 3
        assert outer.cause is inner
