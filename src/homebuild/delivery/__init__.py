"""Delivery quoting exports."""

from .exceptions import DeliveryQuoteError
from .fees import DeliveryRates
from .interfaces import DeliveryQuoteProvider
from .resolver import DeliveryQuoteResolver

__all__ = [
    "DeliveryQuoteError",
    "DeliveryQuoteProvider",
    "DeliveryQuoteResolver",
    "DeliveryRates",
]
