"""
numeric.py — Decimal helpers shared by every calculation module

All money, multiple and score arithmetic in the engine runs on
``decimal.Decimal`` so repeated adjustment chains stay reproducible to the cent.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Optional, Union

Number = Union[int, float, str, Decimal]

ZERO = Decimal("0")
ONE = Decimal("1")
CENT = Decimal("0.01")


def to_decimal(value: Optional[Number], default: Optional[Decimal] = None) -> Optional[Decimal]:
    """
    Convert a numeric input to Decimal.

    Floats go through ``str()`` so 0.7 becomes Decimal("0.7") rather than its
    binary expansion. ``None`` returns ``default``.
    """
    if value is None:
        return default
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise TypeError("Boolean is not a numeric amount")
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


def dec(value: Number) -> Decimal:
    """Non-optional variant of :func:`to_decimal`."""
    result = to_decimal(value)
    if result is None:
        raise TypeError("Numeric value is required")
    return result


def safe_divide(numerator: Decimal, denominator: Decimal, default: Decimal = ZERO) -> Decimal:
    """Safely divide two numbers, returning default if denominator is zero."""
    if denominator is None or denominator == 0:
        return default
    return numerator / denominator


def clamp(value: Decimal, low: Decimal, high: Decimal) -> Decimal:
    return max(low, min(high, value))


def round_money(value: Decimal) -> Decimal:
    """Round a currency amount to cents (half-up)."""
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def round_to(value: Decimal, places: int) -> Decimal:
    return value.quantize(Decimal(1).scaleb(-places), rounding=ROUND_HALF_UP)


def to_points(score: Decimal) -> int:
    """Convert a 0-1 score to whole points on the 0-100 scale."""
    return int((score * 100).quantize(ONE, rounding=ROUND_HALF_UP))
