"""Delivery quote resolution with caching and bounded latency."""

from __future__ import annotations

import asyncio
import logging

import httpx

from homebuild.domain import Address, DeliveryQuote

from .exceptions import DeliveryQuoteError
from .interfaces import DeliveryQuoteProvider

logger = logging.getLogger(__name__)


class DeliveryQuoteResolver:
    """Turns an address into a delivery fee, or an explicit unavailable quote.

    A resolution issues at most one provider call. Failures are not retried
    here; the next relevant state change (address edit, reload) asks again.
    """

    def __init__(self, provider: DeliveryQuoteProvider, *, timeout: float = 10.0) -> None:
        self._provider = provider
        self._timeout = timeout

    @property
    def provider_name(self) -> str:
        return self._provider.name

    async def quote_delivery(
        self,
        address: Address | None,
        *,
        authenticated: bool = True,
        cached: DeliveryQuote | None = None,
    ) -> DeliveryQuote:
        if not authenticated:
            return DeliveryQuote.not_applicable()
        if address is None or not address.is_complete:
            return DeliveryQuote.unavailable("incomplete address", address=address)
        if cached is not None and cached.is_available and cached.matches(address):
            return cached

        try:
            quote = await asyncio.wait_for(self._provider.quote(address), timeout=self._timeout)
        except TimeoutError:
            logger.warning(
                "Delivery quote via %s timed out after %.1fs",
                self._provider.name,
                self._timeout,
            )
            return DeliveryQuote.unavailable("delivery quote timed out", address=address)
        except (DeliveryQuoteError, httpx.HTTPError) as exc:
            logger.warning("Delivery quote via %s failed: %s", self._provider.name, exc)
            return DeliveryQuote.unavailable(str(exc) or "delivery quote failed", address=address)

        if quote.address_fingerprint != address.fingerprint():
            quote = quote.model_copy(update={"address_fingerprint": address.fingerprint()})
        logger.info(
            "Delivery quoted via %s: fee=%s eta_days=%s",
            self._provider.name,
            quote.fee,
            quote.eta_days,
        )
        return quote


__all__ = ["DeliveryQuoteResolver"]
