"""Member resolution for ``.member``, ``.method(args)`` and ``[index]`` suffixes.

The engine only talks to the ``MemberResolver`` protocol. ``ReflectiveResolver``
is the default implementation: it inspects Python objects and consults a table
of overloads registered per type.
"""

import inspect
import re
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from functools import partial
from typing import Any, Protocol

from .primitives import PrimitiveType, is_assignment_compatible, primitive_type_of


class ResolutionError(Exception):
    """Base class for member resolution outcomes other than a value."""


class MemberNotFoundError(ResolutionError):
    """No member, method or index matches."""


class AmbiguousMemberError(ResolutionError):
    """More than one method overload accepts the arguments."""


class InvalidIndexError(ResolutionError):
    """Index has the wrong type or is out of range."""


class InvocationError(ResolutionError):
    """Host code raised while being invoked. The original is ``__cause__``."""


class MemberResolver(Protocol):
    """Capability the engine uses to look inside runtime values."""

    def resolve_member(self, receiver: Any, name: str) -> Any:
        """Resolve ``$receiver.name``.

        Raises:
            MemberNotFoundError: If nothing matches
            InvocationError: If an accessor raised
        """
        ...

    def resolve_method(self, receiver: Any, name: str, args: Sequence[Any]) -> Any:
        """Resolve and invoke ``$receiver.name(args)``.

        Raises:
            MemberNotFoundError: If no overload accepts the arguments
            AmbiguousMemberError: If several overloads accept them
            InvocationError: If the method raised
        """
        ...

    def resolve_index(self, receiver: Any, index: Any) -> Any:
        """Resolve ``$receiver[index]``.

        Raises:
            InvalidIndexError: If the index is unusable for the receiver
            MemberNotFoundError: If the receiver cannot be indexed
        """
        ...


@dataclass(frozen=True)
class Overload:
    """A method signature registered for a receiver type.

    ``func`` is called as ``func(receiver, *args)``.
    """

    name: str
    param_types: tuple[Any, ...]
    func: Callable[..., Any]

    def accepts(self, args: Sequence[Any]) -> bool:
        if len(args) != len(self.param_types):
            return False
        return all(
            _is_compatible(declared, arg)
            for declared, arg in zip(self.param_types, args, strict=True)
        )


def _is_compatible(declared: Any, arg: Any) -> bool:
    if declared is inspect.Parameter.empty or declared is Any:
        return True
    if isinstance(declared, PrimitiveType):
        kind = primitive_type_of(arg)
        return kind is not None and is_assignment_compatible(declared, kind)
    if isinstance(declared, type):
        # bool is an int subclass in Python but a distinct type here
        if isinstance(arg, bool) and declared is not bool and issubclass(declared, int):
            return False
        return isinstance(arg, declared)
    # String annotations and generic aliases are not checked.
    return True


def _method_accepts(method: Callable[..., Any], args: Sequence[Any]) -> bool:
    try:
        signature = inspect.signature(method)
    except (TypeError, ValueError):
        # Builtins without introspectable signatures
        return True
    try:
        bound = signature.bind(*args)
    except TypeError:
        return False
    for param_name, value in bound.arguments.items():
        param = signature.parameters[param_name]
        if param.kind in (param.VAR_POSITIONAL, param.VAR_KEYWORD):
            continue
        if not _is_compatible(param.annotation, value):
            return False
    return True


def _takes_no_args(func: Callable[..., Any]) -> bool:
    try:
        inspect.signature(func).bind()
    except TypeError:
        return False
    except ValueError:
        return True
    return True


def _returns_bool(func: Callable[..., Any]) -> bool:
    try:
        annotation = inspect.signature(func).return_annotation
    except (TypeError, ValueError):
        return False
    return annotation is bool or annotation == "bool"


def _flip_initial(name: str) -> str:
    initial = name[:1]
    if initial.isupper():
        return initial.lower() + name[1:]
    if initial.islower():
        return initial.upper() + name[1:]
    return name


_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])([A-Z])")


def _snake_case(name: str) -> str:
    return _CAMEL_BOUNDARY.sub(r"_\1", name).lower()


def _invoke(func: Callable[..., Any], *args: Any) -> Any:
    try:
        return func(*args)
    except RecursionError:
        raise
    except Exception as e:
        raise InvocationError(f"{type(e).__name__}: {e}") from e


class ReflectiveResolver:
    """Resolve members of plain Python objects.

    Property lookup order:
    1. Zero-argument ``get<Name>`` and ``get<name>`` (initial case flipped)
    2. Zero-argument ``is<Name>`` and its flipped form, annotated ``-> bool``
    3. Mapping keys
    4. Public non-callable attributes, also under the snake_case spelling

    Method calls consider the overloads registered for the receiver's type and
    its bases, plus the receiver's own public method of that name.
    """

    def __init__(self) -> None:
        self._overloads: dict[tuple[type, str], list[Overload]] = {}

    def register(
        self,
        cls: type,
        name: str,
        param_types: Sequence[Any],
        func: Callable[..., Any],
    ) -> None:
        """Register a method overload for a receiver type.

        Args:
            cls: Receiver type; subclasses inherit the overload
            name: Method name as written in templates
            param_types: One ``PrimitiveType``, class or ``Any`` per parameter
            func: Implementation, called as ``func(receiver, *args)``
        """
        self._overloads.setdefault((cls, name), []).append(
            Overload(name=name, param_types=tuple(param_types), func=func)
        )

    def resolve_member(self, receiver: Any, name: str) -> Any:
        for prefix in ("get", "is"):
            for base in dict.fromkeys((name, _flip_initial(name))):
                accessor = getattr(receiver, prefix + base, None)
                if not callable(accessor) or not _takes_no_args(accessor):
                    continue
                if prefix == "get" or _returns_bool(accessor):
                    return _invoke(accessor)

        if isinstance(receiver, Mapping) and name in receiver:
            return receiver[name]

        for attr_name in dict.fromkeys((name, _snake_case(name))):
            if attr_name.startswith("_") or not hasattr(receiver, attr_name):
                continue
            value = getattr(receiver, attr_name)
            if not callable(value):
                return value

        msg = (
            f"Member {name} does not correspond to a public getter of {receiver!r}, "
            f"a {type(receiver).__name__}"
        )
        raise MemberNotFoundError(msg)

    def resolve_method(self, receiver: Any, name: str, args: Sequence[Any]) -> Any:
        registered = [
            overload
            for cls in type(receiver).__mro__
            for overload in self._overloads.get((cls, name), [])
        ]
        method = None if name.startswith("_") else getattr(receiver, name, None)
        if not callable(method):
            method = None

        if not registered and method is None:
            msg = f"No method {name} in {type(receiver).__name__}"
            raise MemberNotFoundError(msg)

        compatible: list[Callable[..., Any]] = [
            partial(overload.func, receiver)
            for overload in registered
            if overload.accepts(args)
        ]
        if method is not None and _method_accepts(method, args):
            compatible.append(method)

        if not compatible:
            msg = f"Wrong type parameters for method {name}: {list(args)!r}"
            raise MemberNotFoundError(msg)
        if len(compatible) > 1:
            msg = (
                f"Ambiguous method invocation of {name} with {len(compatible)} "
                "compatible overloads"
            )
            raise AmbiguousMemberError(msg)
        return _invoke(compatible[0], *args)

    def resolve_index(self, receiver: Any, index: Any) -> Any:
        if isinstance(receiver, Mapping):
            return receiver.get(index)
        if isinstance(receiver, Sequence) and not isinstance(receiver, str | bytes):
            if isinstance(index, bool) or not isinstance(index, int):
                msg = f"List index is not an integer: {index!r}"
                raise InvalidIndexError(msg)
            if index < 0 or index >= len(receiver):
                msg = f"List index {index} is not valid for list of size {len(receiver)}"
                raise InvalidIndexError(msg)
            return receiver[index]
        msg = f"Cannot index an object of type {type(receiver).__name__}"
        raise MemberNotFoundError(msg)
