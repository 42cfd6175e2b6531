"""Protocols for delivery quote providers."""

from __future__ import annotations

from typing import Protocol

from homebuild.domain import Address, DeliveryQuote


class DeliveryQuoteProvider(Protocol):
    """Contract implemented by delivery quote adapters."""

    name: str

    async def quote(self, address: Address) -> DeliveryQuote:
        """Return an available quote for a complete address or raise DeliveryQuoteError."""


__all__ = ["DeliveryQuoteProvider"]
