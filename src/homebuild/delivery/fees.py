"""Delivery fee schedule."""

from __future__ import annotations

import math
from dataclasses import dataclass
from decimal import Decimal

from homebuild.utils.money import round_cents, to_decimal


@dataclass(frozen=True, slots=True)
class DeliveryRates:
    """Minimum fee covers the first ``included_miles``; beyond that the per-mile rate applies."""

    rate_per_mile: Decimal = Decimal("12.50")
    minimum: Decimal = Decimal("1500.00")
    included_miles: float = 120.0
    lead_days: int = 42
    miles_per_day: float = 350.0

    def fee_for_miles(self, miles: float) -> Decimal:
        if miles <= self.included_miles:
            return round_cents(self.minimum)
        additional = round_cents(to_decimal(miles - self.included_miles) * self.rate_per_mile)
        return max(round_cents(self.minimum), additional)

    def eta_days_for_miles(self, miles: float) -> int:
        transit = math.ceil(miles / self.miles_per_day) if miles > 0 else 0
        return self.lead_days + transit


__all__ = ["DeliveryRates"]
