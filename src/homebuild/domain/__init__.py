"""Domain models for the homebuild configurator engine."""

from .base import DomainModel
from .build import Build, BuildPatch, BuildPayload, PricingBreakdown, Selections, TaxPolicy
from .catalog import CatalogModel, ModelSpecs, Option, OptionGroup, Package
from .delivery import Address, DeliveryQuote
from .enums import (
    BuildEventType,
    BuildStatus,
    DeliveryStatus,
    FunnelStep,
    MigrationStatus,
    SaveState,
)
from .events import BuildEvent
from .identity import Identity
from .types import (
    BuildId,
    IdempotencyKey,
    JsonMapping,
    ModelId,
    Money,
    OptionId,
    PackageKey,
    UserId,
)

__all__ = [
    "Address",
    "Build",
    "BuildEvent",
    "BuildEventType",
    "BuildId",
    "BuildPatch",
    "BuildPayload",
    "BuildStatus",
    "CatalogModel",
    "DeliveryQuote",
    "DeliveryStatus",
    "DomainModel",
    "FunnelStep",
    "IdempotencyKey",
    "Identity",
    "JsonMapping",
    "MigrationStatus",
    "ModelId",
    "ModelSpecs",
    "Money",
    "Option",
    "OptionGroup",
    "OptionId",
    "Package",
    "PackageKey",
    "PricingBreakdown",
    "SaveState",
    "Selections",
    "TaxPolicy",
    "UserId",
]
