"""Template engine: parse Velocity-style templates and render them."""

from .context import EvaluationContext
from .engine import Template, TemplateEngine, parse
from .macro import Macro
from .nodes import is_true, render_value
from .primitives import PrimitiveType, is_assignment_compatible, primitive_type_of
from .resolver import (
    AmbiguousMemberError,
    InvalidIndexError,
    InvocationError,
    MemberNotFoundError,
    MemberResolver,
    ReflectiveResolver,
    ResolutionError,
)

__all__ = [
    # Entry points
    "parse",
    "Template",
    "TemplateEngine",
    # Evaluation
    "EvaluationContext",
    "Macro",
    "is_true",
    "render_value",
    # Member resolution
    "MemberResolver",
    "ReflectiveResolver",
    "ResolutionError",
    "MemberNotFoundError",
    "AmbiguousMemberError",
    "InvalidIndexError",
    "InvocationError",
    # Primitive widening
    "PrimitiveType",
    "is_assignment_compatible",
    "primitive_type_of",
]
