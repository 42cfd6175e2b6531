"""Delivery quote provider adapters."""

from .distance import DistanceMatrixQuoteProvider
from .zip_prefix import ZipPrefixQuoteProvider

__all__ = ["DistanceMatrixQuoteProvider", "ZipPrefixQuoteProvider"]
