"""Display strings for the summary card."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

from yield_projection.core.rates import Number, to_decimal

DUST_THRESHOLD = Decimal("0.01")


def _fixed(value: Decimal, places: int) -> str:
    quantum = Decimal(1).scaleb(-places)
    return f"{value.quantize(quantum, rounding=ROUND_HALF_UP):,.{places}f}"


def format_usd_amount(value: Number) -> str:
    """$1,234.57 style; amounts below one cent show 6 decimals so dust is not "$0.00"."""
    value = to_decimal(value)
    if not value.is_finite():
        return "$0.00"
    sign = "-" if value < 0 else ""
    magnitude = abs(value)
    places = 6 if Decimal(0) < magnitude < DUST_THRESHOLD else 2
    return f"{sign}${_fixed(magnitude, places)}"


def format_percent_with_sign(value: Number) -> str:
    value = to_decimal(value)
    if not value.is_finite():
        return "0.00%"
    sign = "+" if value > 0 else ""
    return f"{sign}{_fixed(value, 2)}%"
