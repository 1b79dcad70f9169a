"""Primitive type kinds and the widening rules used for overload matching."""

from enum import Enum
from typing import Any

_INT_MIN = -(2**31)
_INT_MAX = 2**31 - 1


class PrimitiveType(str, Enum):
    """Primitive parameter kinds a registered overload may declare."""

    BYTE = "byte"
    SHORT = "short"
    CHAR = "char"
    INT = "int"
    LONG = "long"
    FLOAT = "float"
    DOUBLE = "double"
    BOOLEAN = "boolean"
    VOID = "void"


# Numeric kinds in widening order. CHAR is absent: it only widens to INT and up.
_NUMERIC_ORDER = [
    PrimitiveType.BYTE,
    PrimitiveType.SHORT,
    PrimitiveType.INT,
    PrimitiveType.LONG,
    PrimitiveType.FLOAT,
    PrimitiveType.DOUBLE,
]


def is_assignment_compatible(to: PrimitiveType, from_: PrimitiveType) -> bool:
    """Check whether a value of kind ``from_`` can be passed where ``to`` is declared.

    Identity is always compatible. Otherwise only widening conversions are:
    byte, short, int, long, float, double each widen to every later kind, and
    char widens to int, long, float and double.

    Args:
        to: Declared parameter kind
        from_: Kind of the argument value

    Returns:
        True if the conversion is an identity or a widening conversion
    """
    if to == from_:
        return True
    if to not in _NUMERIC_ORDER:
        return False
    if from_ == PrimitiveType.CHAR:
        return _NUMERIC_ORDER.index(to) >= _NUMERIC_ORDER.index(PrimitiveType.INT)
    if from_ not in _NUMERIC_ORDER:
        return False
    return _NUMERIC_ORDER.index(from_) < _NUMERIC_ORDER.index(to)


def primitive_type_of(value: Any) -> PrimitiveType | None:
    """Classify a runtime value as a primitive kind.

    Returns:
        BOOLEAN for bools, INT for ints in the signed 32-bit range, LONG for
        other ints, DOUBLE for floats, and None for anything else
    """
    if isinstance(value, bool):
        return PrimitiveType.BOOLEAN
    if isinstance(value, int):
        if _INT_MIN <= value <= _INT_MAX:
            return PrimitiveType.INT
        return PrimitiveType.LONG
    if isinstance(value, float):
        return PrimitiveType.DOUBLE
    return None


def fits_int(value: int) -> bool:
    """Check that an integer fits the signed 32-bit range."""
    return _INT_MIN <= value <= _INT_MAX
