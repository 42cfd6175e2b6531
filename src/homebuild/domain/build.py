"""Build aggregate and its pricing snapshot."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime
from decimal import Decimal
from typing import Annotated

from pydantic import Field, field_validator

from homebuild.utils.time import utc_now

from .base import DomainModel
from .delivery import Address, DeliveryQuote
from .enums import BuildStatus, DeliveryStatus, FunnelStep
from .types import BuildId, IdempotencyKey, ModelId, OptionId, PackageKey, UserId


class Selections(DomainModel):
    """Chosen options (a set) plus at most one package."""

    option_ids: tuple[OptionId, ...] = ()
    package_key: PackageKey | None = None

    @field_validator("option_ids")
    @classmethod
    def normalize_option_ids(cls, value: tuple[OptionId, ...]) -> tuple[OptionId, ...]:
        cleaned = {OptionId(option_id.strip()) for option_id in value if option_id.strip()}
        return tuple(sorted(cleaned))

    @field_validator("package_key")
    @classmethod
    def normalize_package(cls, value: PackageKey | None) -> PackageKey | None:
        if value is None or not value.strip():
            return None
        return PackageKey(value.strip())

    @classmethod
    def of(cls, option_ids: Iterable[str] = (), package_key: str | None = None) -> Selections:
        return cls(
            option_ids=tuple(OptionId(option_id) for option_id in option_ids),
            package_key=PackageKey(package_key) if package_key else None,
        )

    def with_option(self, option_id: str) -> Selections:
        return Selections(
            option_ids=(*self.option_ids, OptionId(option_id)),
            package_key=self.package_key,
        )

    def without_option(self, option_id: str) -> Selections:
        remaining = tuple(existing for existing in self.option_ids if existing != option_id)
        return Selections(option_ids=remaining, package_key=self.package_key)

    def with_package(self, package_key: str | None) -> Selections:
        return Selections(
            option_ids=self.option_ids,
            package_key=PackageKey(package_key) if package_key else None,
        )


class TaxPolicy(DomainModel):
    """Flat regional sales tax; whether delivery is taxable is a policy input."""

    rate: Annotated[Decimal, Field(ge=0)] = Decimal("0.0625")
    taxes_delivery: bool = True


class PricingBreakdown(DomainModel):
    """Derived price snapshot; always recomputable from the selections."""

    base: Decimal = Decimal("0.00")
    options: Decimal = Decimal("0.00")
    package: Decimal = Decimal("0.00")
    subtotal: Decimal = Decimal("0.00")
    delivery: Decimal | None = None
    taxes: Decimal = Decimal("0.00")
    total: Decimal = Decimal("0.00")
    tax_rate: Decimal = Decimal("0")
    delivery_status: DeliveryStatus = DeliveryStatus.NOT_APPLICABLE

    @property
    def is_final(self) -> bool:
        """A total only counts as final once the delivery fee is known."""

        return self.delivery_status is DeliveryStatus.AVAILABLE and self.delivery is not None


class BuildPayload(DomainModel):
    """Fields accepted when a build is first persisted."""

    model_id: ModelId
    name: str | None = None
    selections: Selections = Field(default_factory=Selections)
    address: Address | None = None
    delivery: DeliveryQuote | None = None


class BuildPatch(DomainModel):
    """Partial update; only explicitly provided fields are applied."""

    model_id: ModelId | None = None
    name: str | None = None
    selections: Selections | None = None
    address: Address | None = None
    delivery: DeliveryQuote | None = None

    def provided(self) -> set[str]:
        return set(self.model_fields_set)


class Build(DomainModel):
    """A user's in-progress, price-computed configuration of one model."""

    id: BuildId
    owner_id: UserId
    model_id: ModelId
    name: str = ""
    selections: Selections = Field(default_factory=Selections)
    address: Address | None = None
    delivery: DeliveryQuote | None = None
    pricing: PricingBreakdown = Field(default_factory=PricingBreakdown)
    step: FunnelStep = FunnelStep.CUSTOMIZE
    status: BuildStatus = BuildStatus.DRAFT
    version: Annotated[int, Field(ge=1)] = 1
    primary: bool = False
    idempotency_key: IdempotencyKey | None = None
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    @property
    def is_closed(self) -> bool:
        return self.status is BuildStatus.CLOSED or self.step >= FunnelStep.CONTRACT

    @property
    def in_progress(self) -> bool:
        return self.step > FunnelStep.CUSTOMIZE


__all__ = [
    "Build",
    "BuildPatch",
    "BuildPayload",
    "PricingBreakdown",
    "Selections",
    "TaxPolicy",
]
