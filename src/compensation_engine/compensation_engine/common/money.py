from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Iterable, Union

CENT = Decimal("0.01")
ZERO = Decimal("0")
HUNDRED = Decimal("100")

Number = Union[Decimal, int, float, str]


def to_decimal(value: Number) -> Decimal:
    """Convert config/DB values to Decimal (floats go through str to avoid binary noise)."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        value = repr(value)
    try:
        return Decimal(str(value).strip())
    except (InvalidOperation, ValueError) as e:
        raise ValueError(f"Invalid amount: {value!r}") from e


def round_money(value: Decimal) -> Decimal:
    """Round half-up to the currency minor unit."""
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def money_sum(values: Iterable[Decimal]) -> Decimal:
    return sum(values, ZERO)


def percent_of(base: Decimal, percent: Decimal) -> Decimal:
    return round_money(base * percent / HUNDRED)
