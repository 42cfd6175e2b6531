"""Delivery address and quote value objects."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from hashlib import sha256
from typing import Annotated

from pydantic import Field

from homebuild.utils.time import utc_now

from .base import DomainModel
from .enums import DeliveryStatus


class Address(DomainModel):
    """Delivery destination entered by the buyer."""

    street: str = ""
    city: str = ""
    state: str = ""
    postal_code: str = ""

    @property
    def is_complete(self) -> bool:
        return all(
            part.strip() for part in (self.street, self.city, self.state, self.postal_code)
        )

    def one_line(self) -> str:
        parts = (self.street, self.city, self.state, self.postal_code)
        return ", ".join(part.strip() for part in parts if part.strip())

    def fingerprint(self) -> str:
        normalized = "|".join(
            " ".join(part.split()).lower()
            for part in (self.street, self.city, self.state, self.postal_code)
        )
        return sha256(normalized.encode("utf-8")).hexdigest()


class DeliveryQuote(DomainModel):
    """Result of a delivery fee lookup, cached on the build."""

    status: DeliveryStatus
    fee: Annotated[Decimal | None, Field(ge=0)] = None
    eta_days: Annotated[int | None, Field(ge=0)] = None
    miles: Annotated[float | None, Field(ge=0.0)] = None
    address_fingerprint: str | None = None
    reason: str | None = None
    quoted_at: datetime = Field(default_factory=utc_now)

    @property
    def is_available(self) -> bool:
        return self.status is DeliveryStatus.AVAILABLE and self.fee is not None

    def matches(self, address: Address | None) -> bool:
        if address is None or self.address_fingerprint is None:
            return False
        return self.address_fingerprint == address.fingerprint()

    @classmethod
    def unavailable(cls, reason: str, *, address: Address | None = None) -> DeliveryQuote:
        return cls(
            status=DeliveryStatus.UNAVAILABLE,
            reason=reason,
            address_fingerprint=address.fingerprint() if address is not None else None,
        )

    @classmethod
    def not_applicable(cls) -> DeliveryQuote:
        return cls(status=DeliveryStatus.NOT_APPLICABLE, reason="sign in to quote delivery")


__all__ = ["Address", "DeliveryQuote"]
