"""Catalog reference data: models, options and packages."""

from __future__ import annotations

from decimal import Decimal
from typing import Annotated

from pydantic import Field, field_validator

from .base import DomainModel
from .types import ModelId, OptionId, PackageKey


class ModelSpecs(DomainModel):
    """Physical characteristics displayed with a model."""

    length: str | None = None
    width: str | None = None
    height: str | None = None
    weight: str | None = None
    bedrooms: int | None = None
    bathrooms: int | None = None


class Package(DomainModel):
    """Named bundle with a flat price delta."""

    key: PackageKey
    name: Annotated[str, Field(min_length=1)]
    price_delta: Decimal
    description: str = ""
    items: tuple[str, ...] = ()


class Option(DomainModel):
    """Single selectable catalog line item."""

    id: OptionId
    name: Annotated[str, Field(min_length=1)]
    price: Decimal
    description: str = ""
    group: str = "General"
    is_package: bool = False


class OptionGroup(DomainModel):
    """Options grouped under a display subject."""

    subject: Annotated[str, Field(min_length=1)]
    options: tuple[Option, ...] = ()


class CatalogModel(DomainModel):
    """Base home model that a build is configured from."""

    id: ModelId
    name: Annotated[str, Field(min_length=1)]
    subtitle: str | None = None
    description: str = ""
    base_price: Decimal
    specs: ModelSpecs = Field(default_factory=ModelSpecs)
    features: tuple[str, ...] = ()
    packages: tuple[Package, ...] = ()
    option_ids: tuple[OptionId, ...] = ()

    @field_validator("packages")
    @classmethod
    def ensure_unique_packages(cls, value: tuple[Package, ...]) -> tuple[Package, ...]:
        keys = [package.key for package in value]
        if len(keys) != len(set(keys)):
            msg = "Package keys must be unique within a model"
            raise ValueError(msg)
        return value

    def offers_option(self, option_id: str) -> bool:
        """An empty ``option_ids`` means every catalog option is selectable."""

        return not self.option_ids or option_id in self.option_ids

    def find_package(self, key: str | None) -> Package | None:
        if not key:
            return None
        for package in self.packages:
            if package.key == key:
                return package
        return None


__all__ = ["CatalogModel", "ModelSpecs", "Option", "OptionGroup", "Package"]
