"""Tests for EvaluationContext scoping and depth tracking."""

import pytest

from vtl_core.errors import EvaluationError
from vtl_core.template import EvaluationContext, ReflectiveResolver


@pytest.fixture
def context() -> EvaluationContext:
    return EvaluationContext({"a": 1}, {}, ReflectiveResolver())


class TestVariables:
    """Tests for bindings and undo actions."""

    def test_initial_variables_copied(self):
        variables = {"a": 1}
        ctx = EvaluationContext(variables, {}, ReflectiveResolver())
        ctx.set_var("a", 2)
        assert variables == {"a": 1}

    def test_null_is_defined(self, context):
        context.set_var("n", None)
        assert context.is_defined("n")
        assert context.get_var("n") is None

    def test_undo_restores_previous_value(self, context):
        undo = context.set_var("a", 2)
        assert context.get_var("a") == 2
        undo()
        assert context.get_var("a") == 1

    def test_undo_removes_new_name(self, context):
        undo = context.set_var("b", 2)
        undo()
        assert not context.is_defined("b")

    def test_get_macro_missing(self, context):
        assert context.get_macro("m") is None


class TestScope:
    """Tests for scope frames."""

    def test_restores_on_exit(self, context):
        with context.scope() as scope:
            scope.bind("a", 10)
            scope.bind("a", 11)
            scope.bind("b", 20)
            assert context.get_var("a") == 11
        assert context.get_var("a") == 1
        assert not context.is_defined("b")

    def test_restores_on_error(self, context):
        with pytest.raises(RuntimeError):
            with context.scope() as scope:
                scope.bind("a", 10)
                raise RuntimeError("boom")
        assert context.get_var("a") == 1

    def test_nested_scopes(self, context):
        with context.scope() as outer:
            outer.bind("a", 2)
            with context.scope() as inner:
                inner.bind("a", 3)
            assert context.get_var("a") == 2
        assert context.get_var("a") == 1


class TestAssign:
    """Tests for #set assignment semantics."""

    def test_top_level_persists(self, context):
        with context.scope():
            context.assign("x", 1)
        assert context.get_var("x") == 1

    def test_macro_frame_owns_assignment(self, context):
        with context.scope(is_macro=True):
            context.assign("a", 5)
            context.assign("x", 1)
            assert context.get_var("a") == 5
        assert context.get_var("a") == 1
        assert not context.is_defined("x")

    def test_owning_frame_takes_assignment(self, context):
        with context.scope(is_macro=True):
            with context.scope() as loop:
                loop.bind("i", 0)
                context.assign("i", 9)
                context.assign("j", 9)
                assert context.get_var("i") == 9
            assert not context.is_defined("i")
            assert context.get_var("j") == 9
        assert not context.is_defined("j")


class TestNestedCall:
    """Tests for the macro depth budget."""

    def test_within_budget(self):
        ctx = EvaluationContext({}, {}, ReflectiveResolver(), max_depth=2)
        with ctx.nested_call("m", 1):
            with ctx.nested_call("m", 1):
                pass

    def test_exceeds_budget(self):
        ctx = EvaluationContext({}, {}, ReflectiveResolver(), max_depth=1)
        with ctx.nested_call("m", 1):
            with pytest.raises(EvaluationError) as exc_info:
                with ctx.nested_call("m", 7):
                    pass
        assert exc_info.value.code == "RECURSION_LIMIT"
        assert exc_info.value.line == 7

    def test_depth_released(self):
        ctx = EvaluationContext({}, {}, ReflectiveResolver(), max_depth=1)
        with pytest.raises(ValueError):
            with ctx.nested_call("m", 1):
                raise ValueError("x")
        with ctx.nested_call("m", 1):
            pass
