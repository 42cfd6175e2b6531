"""Shared type aliases for the domain layer."""

from __future__ import annotations

from collections.abc import Mapping
from decimal import Decimal
from typing import Any, NewType
from uuid import UUID

BuildId = NewType("BuildId", UUID)
UserId = NewType("UserId", str)
ModelId = NewType("ModelId", str)
OptionId = NewType("OptionId", str)
PackageKey = NewType("PackageKey", str)
IdempotencyKey = NewType("IdempotencyKey", str)
JsonMapping = Mapping[str, Any]
Money = Decimal

__all__ = [
    "BuildId",
    "IdempotencyKey",
    "JsonMapping",
    "ModelId",
    "Money",
    "OptionId",
    "PackageKey",
    "UserId",
]
