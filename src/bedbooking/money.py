"""Decimal helpers for monetary amounts.

Amounts are normalised to Decimal through str() so floats never leak binary
noise, and quantised to two places with banker's rounding.
"""

from decimal import ROUND_HALF_EVEN, Decimal
from typing import Union

Number = Union[Decimal, int, float, str]

CENTS = Decimal("0.01")
ZERO = Decimal("0.00")
HUNDRED = Decimal("100")


def to_decimal(value: Number | None) -> Decimal:
    """Normalise a number to Decimal. None becomes zero."""
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def quantize(value: Number) -> Decimal:
    """Round to cents using ROUND_HALF_EVEN."""
    return to_decimal(value).quantize(CENTS, rounding=ROUND_HALF_EVEN)


def percentage_of(amount: Number, percentage: Number) -> Decimal:
    """Return percentage% of amount, quantised."""
    return quantize(to_decimal(amount) * to_decimal(percentage) / HUNDRED)
