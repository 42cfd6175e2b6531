"""Offline delivery estimate derived from the postal code prefix."""

from __future__ import annotations

from homebuild.domain import Address, DeliveryQuote, DeliveryStatus

from ..exceptions import DeliveryQuoteError
from ..fees import DeliveryRates
from ..interfaces import DeliveryQuoteProvider


class ZipPrefixQuoteProvider(DeliveryQuoteProvider):
    """Approximates distance from the 3-digit ZIP prefix when no maps key is set."""

    name = "zip_prefix"

    def __init__(
        self,
        *,
        rates: DeliveryRates | None = None,
        miles_per_prefix_step: float = 5.0,
        floor_miles: float = 50.0,
    ) -> None:
        self._rates = rates or DeliveryRates()
        self._miles_per_prefix_step = miles_per_prefix_step
        self._floor_miles = floor_miles

    async def quote(self, address: Address) -> DeliveryQuote:
        prefix = address.postal_code.strip()[:3]
        if len(prefix) != 3 or not prefix.isdigit():
            msg = f"Cannot estimate delivery for postal code {address.postal_code!r}"
            raise DeliveryQuoteError(msg)
        miles = max(self._floor_miles, self._miles_per_prefix_step * int(prefix))
        return DeliveryQuote(
            status=DeliveryStatus.AVAILABLE,
            fee=self._rates.fee_for_miles(miles),
            eta_days=self._rates.eta_days_for_miles(miles),
            miles=miles,
            address_fingerprint=address.fingerprint(),
        )


__all__ = ["ZipPrefixQuoteProvider"]
