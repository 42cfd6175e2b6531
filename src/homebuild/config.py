"""Lightweight application configuration loader."""

from __future__ import annotations

import os
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from pathlib import Path


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() not in {"0", "false", "no"}


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError as exc:
        msg = f"{name} must be a number, got {raw!r}"
        raise ValueError(msg) from exc


def _env_decimal(name: str, default: Decimal) -> Decimal:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return Decimal(raw.strip())
    except InvalidOperation as exc:
        msg = f"{name} must be a decimal amount, got {raw!r}"
        raise ValueError(msg) from exc


def _env_path(name: str, default: Path | None) -> Path | None:
    raw = os.getenv(name)
    if raw is None:
        return default
    return Path(raw).expanduser() if raw.strip() else None


@dataclass(frozen=True)
class AppSettings:
    """Immutable configuration sourced from environment variables."""

    environment: str = "development"
    database_url: str = "sqlite+aiosqlite:///homebuild.db"
    catalog_path: Path | None = None
    tax_rate: Decimal = Decimal("0.0625")
    tax_delivery: bool = True
    autosave_debounce_seconds: float = 1.0
    anonymous_retention_days: float = 7.0
    anonymous_cache_path: Path = Path(".homebuild/anonymous.json")
    delivery_timeout_seconds: float = 10.0
    repository_timeout_seconds: float = 10.0
    google_maps_api_key: str | None = None
    factory_address: str = ""
    delivery_rate_per_mile: Decimal = Decimal("12.50")
    delivery_minimum: Decimal = Decimal("1500.00")
    delivery_included_miles: float = 120.0
    delivery_lead_days: int = 42
    api_base_url: str | None = None
    api_token: str | None = None

    @classmethod
    def from_env(cls) -> AppSettings:
        return cls(
            environment=os.getenv("HOMEBUILD_ENV", cls.environment),
            database_url=os.getenv("HOMEBUILD_DATABASE_URL", cls.database_url),
            catalog_path=_env_path("HOMEBUILD_CATALOG_PATH", cls.catalog_path),
            tax_rate=_env_decimal("HOMEBUILD_TAX_RATE", cls.tax_rate),
            tax_delivery=_env_bool("HOMEBUILD_TAX_DELIVERY", cls.tax_delivery),
            autosave_debounce_seconds=_env_float(
                "HOMEBUILD_AUTOSAVE_DEBOUNCE_SECONDS", cls.autosave_debounce_seconds
            ),
            anonymous_retention_days=_env_float(
                "HOMEBUILD_ANONYMOUS_RETENTION_DAYS", cls.anonymous_retention_days
            ),
            anonymous_cache_path=_env_path(
                "HOMEBUILD_ANONYMOUS_CACHE_PATH", cls.anonymous_cache_path
            )
            or cls.anonymous_cache_path,
            delivery_timeout_seconds=_env_float(
                "HOMEBUILD_DELIVERY_TIMEOUT_SECONDS", cls.delivery_timeout_seconds
            ),
            repository_timeout_seconds=_env_float(
                "HOMEBUILD_REPOSITORY_TIMEOUT_SECONDS", cls.repository_timeout_seconds
            ),
            google_maps_api_key=os.getenv("GOOGLE_MAPS_KEY") or None,
            factory_address=os.getenv("HOMEBUILD_FACTORY_ADDRESS", cls.factory_address),
            delivery_rate_per_mile=_env_decimal(
                "HOMEBUILD_DELIVERY_RATE_PER_MILE", cls.delivery_rate_per_mile
            ),
            delivery_minimum=_env_decimal("HOMEBUILD_DELIVERY_MINIMUM", cls.delivery_minimum),
            delivery_included_miles=_env_float(
                "HOMEBUILD_DELIVERY_INCLUDED_MILES", cls.delivery_included_miles
            ),
            delivery_lead_days=int(
                _env_float("HOMEBUILD_DELIVERY_LEAD_DAYS", cls.delivery_lead_days)
            ),
            api_base_url=os.getenv("HOMEBUILD_API_BASE_URL") or None,
            api_token=os.getenv("HOMEBUILD_API_TOKEN") or None,
        )


__all__ = ["AppSettings"]
