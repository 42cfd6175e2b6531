"""Utility helpers shared across homebuild modules."""

from .money import format_money, round_cents, to_decimal
from .time import ensure_utc, utc_now

__all__ = ["ensure_utc", "format_money", "round_cents", "to_decimal", "utc_now"]
