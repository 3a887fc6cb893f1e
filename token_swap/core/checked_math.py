"""
Checked fixed-point integer arithmetic.

Python ints never overflow, so widths are enforced explicitly: every helper
takes a ``bits`` bound (default 128) and raises ``CalculationFailure`` when a
result leaves ``[0, 2**bits - 1]``. Narrowing to on-ledger widths goes through
``to_u64`` / ``to_u128`` which raise ``ConversionFailure``.

Rounding rule: the pool never loses to rounding. Amounts paid into the pool
round up, amounts paid out round down.
"""

from __future__ import annotations

import math
from enum import Enum, unique
from typing import Tuple

from .errors import CalculationFailure, ConversionFailure

U64_MAX = (1 << 64) - 1
U128_MAX = (1 << 128) - 1


@unique
class RoundDirection(Enum):
    FLOOR = "floor"
    CEILING = "ceiling"


def _require_int(name: str, value: int) -> int:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an int")
    return value


def _bound(value: int, bits: int) -> int:
    if value < 0 or value >= (1 << bits):
        raise CalculationFailure(f"value out of u{bits} range: {value}")
    return value


def checked_add(a: int, b: int, *, bits: int = 128) -> int:
    _require_int("a", a)
    _require_int("b", b)
    return _bound(a + b, bits)


def checked_sub(a: int, b: int, *, bits: int = 128) -> int:
    _require_int("a", a)
    _require_int("b", b)
    return _bound(a - b, bits)


def checked_mul(a: int, b: int, *, bits: int = 128) -> int:
    _require_int("a", a)
    _require_int("b", b)
    return _bound(a * b, bits)


def checked_div(a: int, b: int, *, bits: int = 128) -> int:
    """Floor division; a zero divisor is a calculation failure."""
    _require_int("a", a)
    _require_int("b", b)
    if b == 0:
        raise CalculationFailure("division by zero")
    return _bound(a // b, bits)


def ceil_div(a: int, b: int, *, bits: int = 128) -> int:
    _require_int("a", a)
    _require_int("b", b)
    if b == 0:
        raise CalculationFailure("division by zero")
    _bound(a, bits)
    return _bound(-(-a // b), bits)


def div_round(a: int, b: int, round_direction: RoundDirection, *, bits: int = 128) -> int:
    if round_direction is RoundDirection.CEILING:
        return ceil_div(a, b, bits=bits)
    return checked_div(a, b, bits=bits)


def checked_ceil_div(dividend: int, divisor: int) -> Tuple[int, int]:
    """
    Ceiling division that also tightens the divisor.

    Returns ``(quotient, new_divisor)`` where ``quotient = ceil(dividend / divisor)``
    and ``new_divisor`` is the smallest divisor yielding that quotient. The
    constant-product curve uses the tightened divisor as the amount actually
    taken in, so ``quotient * new_divisor >= dividend`` always holds.

    A zero floor quotient rounds to 1 only when the dividend is at least half
    the divisor; otherwise both values are 0.
    """
    _require_int("dividend", dividend)
    _require_int("divisor", divisor)
    if divisor == 0:
        raise CalculationFailure("division by zero")
    _bound(dividend, 128)
    quotient = dividend // divisor
    if quotient == 0:
        if checked_mul(dividend, 2) >= divisor:
            return 1, 0
        return 0, 0

    if dividend % divisor > 0:
        quotient = checked_add(quotient, 1)
        divisor = dividend // quotient
        if dividend % quotient > 0:
            divisor = checked_add(divisor, 1)
    return quotient, divisor


def isqrt_floor(n: int) -> int:
    _require_int("n", n)
    if n < 0:
        raise CalculationFailure(f"square root of negative value: {n}")
    return math.isqrt(n)


def isqrt_ceil(n: int) -> int:
    root = isqrt_floor(n)
    return root + 1 if root * root < n else root


def to_u64(value: int) -> int:
    _require_int("value", value)
    if value < 0 or value > U64_MAX:
        raise ConversionFailure(f"value does not fit in u64: {value}")
    return value


def to_u128(value: int) -> int:
    _require_int("value", value)
    if value < 0 or value > U128_MAX:
        raise ConversionFailure(f"value does not fit in u128: {value}")
    return value
