"""Per-render variable environment with scoped, undoable bindings."""

from collections.abc import Callable, Iterator, Mapping
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any

from vtl_core.config.models import DEFAULT_MAX_DEPTH
from vtl_core.errors import create_error

from .resolver import MemberResolver

if TYPE_CHECKING:
    from .macro import Macro

Undo = Callable[[], None]


class Scope:
    """One frame of bindings that are undone together, newest first.

    Only the first binding of a name in a frame records an undo, so leaving the
    frame restores the value the name had before the frame was entered.
    """

    def __init__(self, context: "EvaluationContext", is_macro: bool):
        self._context = context
        self.is_macro = is_macro
        self._undos: dict[str, Undo] = {}

    def owns(self, name: str) -> bool:
        return name in self._undos

    def bind(self, name: str, value: Any) -> None:
        undo = self._context.set_var(name, value)
        self._undos.setdefault(name, undo)

    def close(self) -> None:
        for undo in reversed(list(self._undos.values())):
            undo()
        self._undos.clear()


class EvaluationContext:
    """Mutable state of a single render call.

    Holds a private copy of the caller's variables, the template's macro table,
    the member resolver and the macro call depth budget.
    """

    def __init__(
        self,
        variables: Mapping[str, Any],
        macros: Mapping[str, "Macro"],
        resolver: MemberResolver,
        max_depth: int = DEFAULT_MAX_DEPTH,
    ):
        """Initialize evaluation context.

        Args:
            variables: Initial variable bindings; copied, never mutated
            macros: Macro table of the template being rendered
            resolver: Member resolution capability
            max_depth: Maximum nesting of macro calls
        """
        self._vars: dict[str, Any] = dict(variables)
        self._macros = macros
        self.resolver = resolver
        self.max_depth = max_depth
        self._scopes: list[Scope] = []
        self._depth = 0

    def is_defined(self, name: str) -> bool:
        return name in self._vars

    def get_var(self, name: str) -> Any:
        return self._vars.get(name)

    def get_macro(self, name: str) -> "Macro | None":
        return self._macros.get(name)

    def set_var(self, name: str, value: Any) -> Undo:
        """Bind a variable and return the action that reverses the binding.

        Args:
            name: Variable name
            value: New value

        Returns:
            Callable restoring the previous value, or removing the name again
            if it was undefined before
        """
        if name in self._vars:
            old_value = self._vars[name]

            def undo() -> None:
                self._vars[name] = old_value

        else:

            def undo() -> None:
                self._vars.pop(name, None)

        self._vars[name] = value
        return undo

    @contextmanager
    def scope(self, is_macro: bool = False) -> Iterator[Scope]:
        """Open a binding frame that is unwound on exit, even on error.

        Args:
            is_macro: Whether the frame belongs to a macro call; ``#set``
                inside a macro body is undone when such a frame closes

        Yields:
            The new Scope
        """
        frame = Scope(self, is_macro)
        self._scopes.append(frame)
        try:
            yield frame
        finally:
            self._scopes.pop()
            frame.close()

    def assign(self, name: str, value: Any) -> None:
        """Bind a variable for ``#set``.

        A name already bound by an enclosing frame, up to the nearest macro
        frame, is simply overwritten and restored when that frame closes.
        Otherwise the nearest macro frame takes ownership. Outside any macro
        the assignment persists for the rest of the render.
        """
        for frame in reversed(self._scopes):
            if frame.owns(name) or frame.is_macro:
                frame.bind(name, value)
                return
        self._vars[name] = value

    @contextmanager
    def nested_call(self, name: str, line: int) -> Iterator[None]:
        """Count one level of macro nesting against ``max_depth``.

        Raises:
            EvaluationError: RECURSION_LIMIT when the budget is exhausted
        """
        if self._depth >= self.max_depth:
            raise create_error(
                "RECURSION_LIMIT",
                reason=(
                    f"Evaluation depth limit of {self.max_depth} exceeded"
                    f" calling #{name} on line {line}"
                ),
                line=line,
            )
        self._depth += 1
        try:
            yield
        finally:
            self._depth -= 1
