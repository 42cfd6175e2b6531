"""Google Distance Matrix backed delivery quotes."""

from __future__ import annotations

import os
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

import httpx

from homebuild.domain import Address, DeliveryQuote, DeliveryStatus

from ..exceptions import DeliveryQuoteError
from ..fees import DeliveryRates
from ..interfaces import DeliveryQuoteProvider

METERS_PER_MILE = 1609.344


class DistanceMatrixQuoteProvider(DeliveryQuoteProvider):
    """Prices delivery from the driving distance between the factory and the site."""

    API_URL = "https://maps.googleapis.com/maps/api/distancematrix/json"

    name = "google_distance_matrix"

    def __init__(
        self,
        *,
        origin: str,
        api_key: str | None = None,
        rates: DeliveryRates | None = None,
        client: httpx.AsyncClient | None = None,
        timeout: float = 10.0,
    ) -> None:
        resolved = api_key or os.getenv("GOOGLE_MAPS_KEY")
        if not resolved:
            msg = "GOOGLE_MAPS_KEY is not configured"
            raise DeliveryQuoteError(msg)
        if not origin.strip():
            msg = "Factory origin address is not configured"
            raise DeliveryQuoteError(msg)
        self._api_key = resolved
        self._origin = origin
        self._rates = rates or DeliveryRates()
        self._client = client
        self._timeout = timeout

    async def quote(self, address: Address) -> DeliveryQuote:
        params = {
            "origins": self._origin,
            "destinations": address.one_line(),
            "units": "imperial",
            "key": self._api_key,
        }
        async with self._client_scope() as client:
            payload = await self._request(client, params)

        miles = self._extract_miles(payload)
        return DeliveryQuote(
            status=DeliveryStatus.AVAILABLE,
            fee=self._rates.fee_for_miles(miles),
            eta_days=self._rates.eta_days_for_miles(miles),
            miles=round(miles, 1),
            address_fingerprint=address.fingerprint(),
        )

    def _extract_miles(self, payload: Any) -> float:
        try:
            element = payload["rows"][0]["elements"][0]
        except (KeyError, IndexError, TypeError) as exc:
            msg = "Distance response did not contain a route"
            raise DeliveryQuoteError(msg) from exc
        if element.get("status") != "OK":
            msg = f"Distance lookup returned status {element.get('status')}"
            raise DeliveryQuoteError(msg)
        meters = element.get("distance", {}).get("value")
        if not isinstance(meters, int | float) or meters < 0:
            msg = "Distance response did not contain a usable distance"
            raise DeliveryQuoteError(msg)
        return float(meters) / METERS_PER_MILE

    async def _request(self, client: httpx.AsyncClient, params: dict[str, str]) -> Any:
        try:
            response = await client.get(self.API_URL, params=params)
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as exc:
            msg = f"Distance request failed with status {exc.response.status_code}"
            raise DeliveryQuoteError(msg) from exc
        except httpx.HTTPError as exc:
            msg = "Distance request failed"
            raise DeliveryQuoteError(msg) from exc
        except ValueError as exc:
            msg = "Distance response was not valid JSON"
            raise DeliveryQuoteError(msg) from exc

    @asynccontextmanager
    async def _client_scope(self) -> AsyncIterator[httpx.AsyncClient]:
        if self._client is not None:
            yield self._client
            return
        async with httpx.AsyncClient(timeout=self._timeout) as client:
            yield client


__all__ = ["DistanceMatrixQuoteProvider"]
