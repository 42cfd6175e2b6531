from __future__ import annotations

import asyncio
from decimal import Decimal
from typing import Any

import httpx
import pytest

from homebuild.delivery import DeliveryQuoteError, DeliveryQuoteResolver, DeliveryRates
from homebuild.delivery.providers import DistanceMatrixQuoteProvider, ZipPrefixQuoteProvider
from homebuild.domain import Address, DeliveryQuote, DeliveryStatus

ADDRESS = Address(street="12 Elm St", city="Springfield", state="IL", postal_code="62704")


class CountingProvider:
    name = "counting"

    def __init__(self, quote: DeliveryQuote | None = None, *, delay: float = 0.0) -> None:
        self.calls = 0
        self._quote = quote
        self._delay = delay

    async def quote(self, address: Address) -> DeliveryQuote:
        self.calls += 1
        if self._delay:
            await asyncio.sleep(self._delay)
        if self._quote is None:
            raise DeliveryQuoteError("upstream unavailable")
        return self._quote


def _distance_client(handler: Any) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def _route(meters: float, status: str = "OK") -> dict[str, Any]:
    return {"rows": [{"elements": [{"status": status, "distance": {"value": meters}}]}]}


def test_fee_schedule() -> None:
    rates = DeliveryRates()
    assert rates.fee_for_miles(40) == Decimal("1500.00")
    assert rates.fee_for_miles(120) == Decimal("1500.00")
    assert rates.fee_for_miles(200) == Decimal("1500.00")
    assert rates.fee_for_miles(300) == Decimal("2250.00")
    assert rates.eta_days_for_miles(300) == 43
    assert rates.eta_days_for_miles(800) == 45


def test_distance_provider_quotes_from_route() -> None:
    seen: dict[str, str] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen.update(dict(request.url.params))
        return httpx.Response(200, json=_route(300 * 1609.344))

    async def _run() -> DeliveryQuote:
        async with _distance_client(handler) as client:
            provider = DistanceMatrixQuoteProvider(
                origin="1 Factory Rd, Ocala, FL",
                api_key="maps-key",
                client=client,
            )
            return await provider.quote(ADDRESS)

    quote = asyncio.run(_run())

    assert seen["origins"] == "1 Factory Rd, Ocala, FL"
    assert seen["destinations"] == ADDRESS.one_line()
    assert seen["key"] == "maps-key"
    assert quote.status is DeliveryStatus.AVAILABLE
    assert quote.fee == Decimal("2250.00")
    assert quote.eta_days == 43
    assert quote.matches(ADDRESS)


def test_distance_provider_maps_failures() -> None:
    def not_found(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=_route(0, status="NOT_FOUND"))

    def server_error(request: httpx.Request) -> httpx.Response:
        return httpx.Response(502, text="bad gateway")

    async def _run(handler: Any) -> None:
        async with _distance_client(handler) as client:
            provider = DistanceMatrixQuoteProvider(origin="Ocala, FL", api_key="k", client=client)
            await provider.quote(ADDRESS)

    with pytest.raises(DeliveryQuoteError):
        asyncio.run(_run(not_found))
    with pytest.raises(DeliveryQuoteError):
        asyncio.run(_run(server_error))


def test_distance_provider_requires_key(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("GOOGLE_MAPS_KEY", raising=False)
    with pytest.raises(DeliveryQuoteError):
        DistanceMatrixQuoteProvider(origin="Ocala, FL")


def test_zip_prefix_provider() -> None:
    provider = ZipPrefixQuoteProvider()
    quote = asyncio.run(provider.quote(ADDRESS))
    # prefix 627 -> 3135 miles
    assert quote.miles == 3135.0
    assert quote.fee == Decimal("37687.50")

    with pytest.raises(DeliveryQuoteError):
        asyncio.run(provider.quote(ADDRESS.model_copy(update={"postal_code": "AB1"})))


def test_resolver_incomplete_address_skips_provider() -> None:
    provider = CountingProvider()
    resolver = DeliveryQuoteResolver(provider)

    quote = asyncio.run(resolver.quote_delivery(None))
    partial = asyncio.run(resolver.quote_delivery(Address(street="12 Elm St")))

    assert quote.status is DeliveryStatus.UNAVAILABLE
    assert partial.status is DeliveryStatus.UNAVAILABLE
    assert provider.calls == 0


def test_resolver_anonymous_is_not_applicable() -> None:
    provider = CountingProvider()
    resolver = DeliveryQuoteResolver(provider)
    quote = asyncio.run(resolver.quote_delivery(ADDRESS, authenticated=False))
    assert quote.status is DeliveryStatus.NOT_APPLICABLE
    assert provider.calls == 0


def test_resolver_reuses_matching_cached_quote() -> None:
    provider = CountingProvider()
    resolver = DeliveryQuoteResolver(provider)
    cached = DeliveryQuote(
        status=DeliveryStatus.AVAILABLE,
        fee=Decimal("1500.00"),
        address_fingerprint=ADDRESS.fingerprint(),
    )

    quote = asyncio.run(resolver.quote_delivery(ADDRESS, cached=cached))

    assert quote is cached
    assert provider.calls == 0


def test_resolver_failure_is_unavailable_without_retry() -> None:
    provider = CountingProvider()
    resolver = DeliveryQuoteResolver(provider)

    quote = asyncio.run(resolver.quote_delivery(ADDRESS))

    assert quote.status is DeliveryStatus.UNAVAILABLE
    assert quote.reason == "upstream unavailable"
    assert provider.calls == 1


def test_resolver_timeout_is_unavailable() -> None:
    slow = DeliveryQuote(status=DeliveryStatus.AVAILABLE, fee=Decimal("1500"))
    provider = CountingProvider(slow, delay=1.0)
    resolver = DeliveryQuoteResolver(provider, timeout=0.01)

    quote = asyncio.run(resolver.quote_delivery(ADDRESS))

    assert quote.status is DeliveryStatus.UNAVAILABLE
    assert quote.matches(ADDRESS)


def test_resolver_stamps_fingerprint() -> None:
    provider = CountingProvider(DeliveryQuote(status=DeliveryStatus.AVAILABLE, fee=Decimal("1800")))
    resolver = DeliveryQuoteResolver(provider)
    quote = asyncio.run(resolver.quote_delivery(ADDRESS))
    assert quote.is_available
    assert quote.address_fingerprint == ADDRESS.fingerprint()


def test_address_fingerprint_normalizes_whitespace_and_case() -> None:
    messy = Address(street=" 12  elm st ", city="SPRINGFIELD", state="il", postal_code="62704")
    assert messy.fingerprint() == ADDRESS.fingerprint()
