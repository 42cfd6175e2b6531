"""Cent-precision money arithmetic."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def to_decimal(value: object) -> Decimal:
    """Coerce catalog or payload numbers without going through binary floats."""

    if isinstance(value, Decimal):
        return value
    if value is None:
        return Decimal("0")
    return Decimal(str(value))


def round_cents(value: object) -> Decimal:
    """Round half-up to the nearest cent."""

    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def format_money(value: Decimal | None) -> str:
    if value is None:
        return "unavailable"
    sign = "-" if value < 0 else ""
    return f"{sign}${abs(round_cents(value)):,.2f}"


__all__ = ["CENT", "ZERO", "format_money", "round_cents", "to_decimal"]
