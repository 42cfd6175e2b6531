"""Custom exceptions for delivery quoting."""

from __future__ import annotations


class DeliveryQuoteError(RuntimeError):
    """Raised when a delivery quote provider cannot produce a fee."""


__all__ = ["DeliveryQuoteError"]
