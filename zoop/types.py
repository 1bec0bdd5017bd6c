"""Type definitions and helpers for Zoop.

This module defines the runtime type system used by the Zoop interpreter:
the closed set of data types, the runtime ``Literal`` value record, the
``Signal`` record used to propagate ``->`` and ``end`` through block
execution, and the numeric coercion and casting rules shared by the
evaluator.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Any, Optional, Tuple
import math

Position = Tuple[int, int]


class DataType(str, Enum):
    """A Zoop data type.

    Numeric types carry two flags in their names: a ``u`` prefix marks a
    non-negative type and an ``int`` suffix marks a whole-number type.
    ``label`` names routines and ``void`` marks the absence of a value.
    """
    INT = 'int'
    UINT = 'uint'
    DEC = 'dec'
    UDEC = 'udec'
    STRING = 'string'
    BOOL = 'bool'
    LABEL = 'label'
    VOID = 'void'

    def __str__(self) -> str:
        return self.value

    @property
    def is_numeric(self) -> bool:
        return self in NUMERIC_TYPES

    @property
    def is_whole(self) -> bool:
        return self.value.endswith('int')

    @property
    def is_unsigned(self) -> bool:
        return self.value.startswith('u')


NUMERIC_TYPES = frozenset({DataType.INT, DataType.UINT, DataType.DEC, DataType.UDEC})

# Type names that may be written after ':' or '~' in source code.
DATA_TYPE_NAMES = ('int', 'uint', 'dec', 'udec', 'string', 'bool', 'label')


@dataclass(frozen=True)
class Literal:
    """A typed runtime value.

    Host representation: ``int`` for int/uint, ``float`` for dec/udec,
    ``str`` for string/label, ``bool`` for bool and ``None`` for void.
    """
    type: DataType
    value: Any

    @staticmethod
    def void() -> 'Literal':
        return Literal(DataType.VOID, None)

    @property
    def is_void(self) -> bool:
        return self.type is DataType.VOID

    def __repr__(self) -> str:
        return f"<{self.type}> {to_string(self.value)}"


class SignalKind(Enum):
    RETURN = 'return'
    END = 'end'


@dataclass(frozen=True)
class Signal:
    """Control result of executing a statement.

    ``RETURN`` may carry the returned value; ``END`` never does.
    """
    kind: SignalKind
    value: Optional[Literal] = None

    @staticmethod
    def ret(value: Optional[Literal] = None) -> 'Signal':
        return Signal(SignalKind.RETURN, value)

    @staticmethod
    def end() -> 'Signal':
        return Signal(SignalKind.END)


def format_decimal(value: float) -> str:
    """Render a float with the shortest digits, whole values without ``.0``.

    Values whose magnitude is below 1e-6 or at least 1e21 use exponent form
    (``1e+21``, ``1.5e-7``).
    """
    if math.isnan(value):
        return 'NaN'
    if math.isinf(value):
        return 'Infinity' if value > 0 else '-Infinity'
    if value == 0:
        return '0'
    sign = '-' if value < 0 else ''
    _, digit_tuple, exponent = Decimal(repr(abs(value))).as_tuple()
    digits = ''.join(str(d) for d in digit_tuple).rstrip('0')
    exponent += len(digit_tuple) - len(digits)
    k = len(digits)
    n = exponent + k
    if k <= n <= 21:
        text = digits + '0' * (n - k)
    elif 0 < n <= 21:
        text = digits[:n] + '.' + digits[n:]
    elif -6 < n <= 0:
        text = '0.' + '0' * -n + digits
    else:
        mantissa = digits if k == 1 else digits[0] + '.' + digits[1:]
        text = f"{mantissa}e{'+' if n - 1 >= 0 else '-'}{abs(n - 1)}"
    return sign + text


def to_string(value: Any) -> str:
    """Convert a host value to the text Zoop prints and concatenates."""
    if isinstance(value, bool):
        return 'true' if value else 'false'
    if isinstance(value, float):
        return format_decimal(value)
    if value is None:
        return 'void'
    return str(value)


def is_truthy(value: Any) -> bool:
    # Same rules as a cast to bool: false, 0, 0.0 and "" are false
    if value is None:
        return False
    return bool(value)


def to_float(value: Any) -> float:
    # Integers beyond the float range become infinite instead of raising
    try:
        return float(value)
    except OverflowError:
        return math.copysign(math.inf, value)


def normalize_number(value: Any, target: DataType) -> Any:
    """Coerce a numeric host value to the representation of ``target``.

    Whole-number types truncate toward zero and unsigned types are clamped
    at zero. There is no upper clamp. Raises ValueError when an infinite or
    NaN decimal is coerced to a whole-number type.
    """
    if target.is_whole:
        if isinstance(value, float) and not math.isfinite(value):
            raise ValueError(f"Cannot represent {format_decimal(value)} as <{target}>")
        value = int(value)
    else:
        value = to_float(value)
    if target.is_unsigned and value < 0:
        value = 0 if target.is_whole else 0.0
    return value


def cast_value(literal: Literal, target: DataType) -> Literal:
    """Cast a literal to ``target`` following the Zoop casting rules.

    Casting to the literal's own type is a no-op. Numeric targets accept
    numbers and bools, ``string`` accepts anything and ``bool`` uses
    truthiness. Raises TypeError for any other combination, and ValueError
    when a non-finite decimal is cast to a whole type; callers wrap both
    into a positioned Zoop error.
    """
    if literal.type is target:
        return literal
    value = literal.value
    if target.is_numeric:
        if literal.type is DataType.BOOL:
            value = 1 if value else 0
        elif not literal.type.is_numeric:
            raise TypeError(f"Cannot cast value of type <{literal.type}> to <{target}>")
        return Literal(target, normalize_number(value, target))
    if target is DataType.STRING:
        if literal.is_void:
            raise TypeError(f"Cannot cast value of type <{literal.type}> to <{target}>")
        return Literal(target, to_string(value))
    if target is DataType.BOOL:
        return Literal(target, is_truthy(value))
    raise TypeError(f"Cannot cast value of type <{literal.type}> to <{target}>")


def match_number_with_type(value: float, target: DataType) -> bool:
    """Check that a parsed number fits the wholeness and sign of ``target``."""
    if math.isnan(value) or math.isinf(value):
        return False
    if target.is_whole and not float(value).is_integer():
        return False
    if target.is_unsigned and value < 0:
        return False
    return True
