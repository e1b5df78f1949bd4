"""Conversion between human-readable amounts and integer base units.

Display amounts are truncated to at most 4 fractional digits, so a
round trip through ``to_base_units`` and ``to_decimal`` is lossy.
"""

from decimal import ROUND_DOWN, ROUND_FLOOR, Decimal, InvalidOperation, localcontext
from typing import Union

DISPLAY_DECIMALS = 4

_PRECISION = 80

Number = Union[Decimal, int, float, str]


def _as_decimal(amount: Number) -> Decimal:
    if isinstance(amount, Decimal):
        return amount
    try:
        # str() keeps floats like 0.1 from dragging in binary noise
        return Decimal(str(amount))
    except InvalidOperation:
        raise ValueError(f"Not a number: {amount!r}") from None


def _check_decimals(decimals: int) -> None:
    if not 0 <= decimals <= 255:
        raise ValueError(f"Token decimals out of range: {decimals}")


def to_base_units(amount: Number, decimals: int) -> str:
    """Convert a human amount to base units, rounding toward zero.

    Args:
        amount: Non-negative human-readable amount (e.g. 1.5 SOL)
        decimals: Token decimal precision

    Returns:
        Integer base-unit amount as a string (e.g. "1500000000")
    """
    _check_decimals(decimals)
    value = _as_decimal(amount)
    if not value.is_finite():
        raise ValueError(f"Amount must be finite: {amount!r}")
    if value < 0:
        raise ValueError(f"Amount must be non-negative: {amount!r}")

    with localcontext() as ctx:
        ctx.prec = _PRECISION
        scaled = value.scaleb(decimals).to_integral_value(rounding=ROUND_FLOOR)
    return str(int(scaled))


def to_amount(base_units: Union[str, int], decimals: int) -> Decimal:
    """Exact human amount for a base-unit integer."""
    _check_decimals(decimals)
    try:
        raw = int(base_units)
    except (TypeError, ValueError):
        raise ValueError(f"Base units must be an integer: {base_units!r}") from None

    with localcontext() as ctx:
        ctx.prec = _PRECISION
        return Decimal(raw).scaleb(-decimals)


def to_decimal(base_units: Union[str, int], decimals: int) -> str:
    """Format base units for display, truncated to min(decimals, 4) places."""
    places = min(decimals, DISPLAY_DECIMALS)
    value = to_amount(base_units, decimals)

    with localcontext() as ctx:
        ctx.prec = _PRECISION
        try:
            truncated = value.quantize(Decimal(1).scaleb(-places), rounding=ROUND_DOWN)
        except InvalidOperation:
            raise ValueError(f"Base units too large to display: {base_units!r}") from None
    return f"{truncated:f}"
