"""Service container wiring application components."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path

from homebuild.anonymous import (
    AnonymousCustomizationCache,
    AnonymousMigrator,
    JsonFileKeyValueStore,
)
from homebuild.builds import BuildGateway, BuildService, HttpBuildGateway, LocalBuildGateway
from homebuild.builds.service import UnitOfWorkFactory
from homebuild.catalog import CatalogService
from homebuild.config import AppSettings
from homebuild.delivery import (
    DeliveryQuoteError,
    DeliveryQuoteProvider,
    DeliveryQuoteResolver,
    DeliveryRates,
)
from homebuild.delivery.providers import DistanceMatrixQuoteProvider, ZipPrefixQuoteProvider
from homebuild.domain import Identity, TaxPolicy
from homebuild.funnel import ConfiguratorSession
from homebuild.persistence.sqlite import create_sqlite_unit_of_work_factory

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ServiceContainer:
    """Aggregates constructed services with shared configuration."""

    settings: AppSettings
    catalog: CatalogService
    tax_policy: TaxPolicy
    unit_of_work_factory: UnitOfWorkFactory
    build_service: BuildService
    delivery_resolver: DeliveryQuoteResolver
    anonymous_cache: AnonymousCustomizationCache
    migrator: AnonymousMigrator

    def gateway_for(self, user_id: str | None) -> BuildGateway:
        """Remote gateway when an API base URL is configured, otherwise in-process."""

        if self.settings.api_base_url:
            return HttpBuildGateway(
                self.settings.api_base_url,
                token=self.settings.api_token,
                timeout=self.settings.repository_timeout_seconds,
            )
        return LocalBuildGateway(
            self.build_service,
            user_id,
            timeout=self.settings.repository_timeout_seconds,
        )

    def open_session(self, model_id: str, *, user_id: str | None = None) -> ConfiguratorSession:
        identity = Identity.signed_in(user_id) if user_id else Identity.anonymous()
        return ConfiguratorSession(
            model_id=model_id,
            catalog=self.catalog,
            cache=self.anonymous_cache,
            resolver=self.delivery_resolver,
            identity=identity,
            gateway=self.gateway_for(user_id) if user_id else None,
            tax_policy=self.tax_policy,
            debounce_seconds=self.settings.autosave_debounce_seconds,
            timeout_seconds=self.settings.repository_timeout_seconds,
        )


def _ensure_sqlite_directory(database_url: str) -> None:
    if not database_url.startswith("sqlite"):
        return
    try:
        _, path = database_url.split(":///", maxsplit=1)
    except ValueError:
        return
    db_path = Path(path).expanduser()
    db_path.parent.mkdir(parents=True, exist_ok=True)


def _delivery_rates(settings: AppSettings) -> DeliveryRates:
    return DeliveryRates(
        rate_per_mile=settings.delivery_rate_per_mile,
        minimum=settings.delivery_minimum,
        included_miles=settings.delivery_included_miles,
        lead_days=settings.delivery_lead_days,
    )


def _delivery_provider(settings: AppSettings, rates: DeliveryRates) -> DeliveryQuoteProvider:
    if settings.google_maps_api_key and settings.factory_address:
        try:
            return DistanceMatrixQuoteProvider(
                origin=settings.factory_address,
                api_key=settings.google_maps_api_key,
                rates=rates,
                timeout=settings.delivery_timeout_seconds,
            )
        except DeliveryQuoteError as exc:
            logger.warning("Unable to configure distance matrix quotes: %s", exc)
    return ZipPrefixQuoteProvider(rates=rates)


def build_container(settings: AppSettings | None = None) -> ServiceContainer:
    """Construct the primary service container."""

    resolved_settings = settings or AppSettings.from_env()

    if resolved_settings.catalog_path is not None:
        catalog = CatalogService.from_json(resolved_settings.catalog_path)
    else:
        catalog = CatalogService.default()
    tax_policy = TaxPolicy(
        rate=resolved_settings.tax_rate,
        taxes_delivery=resolved_settings.tax_delivery,
    )

    _ensure_sqlite_directory(resolved_settings.database_url)
    unit_of_work_factory = create_sqlite_unit_of_work_factory(resolved_settings.database_url)
    build_service = BuildService(
        unit_of_work_factory,
        catalog,
        tax_policy=tax_policy,
        logger=logger,
    )

    rates = _delivery_rates(resolved_settings)
    delivery_resolver = DeliveryQuoteResolver(
        _delivery_provider(resolved_settings, rates),
        timeout=resolved_settings.delivery_timeout_seconds,
    )

    anonymous_cache = AnonymousCustomizationCache(
        JsonFileKeyValueStore(resolved_settings.anonymous_cache_path),
        retention=timedelta(days=resolved_settings.anonymous_retention_days),
    )

    return ServiceContainer(
        settings=resolved_settings,
        catalog=catalog,
        tax_policy=tax_policy,
        unit_of_work_factory=unit_of_work_factory,
        build_service=build_service,
        delivery_resolver=delivery_resolver,
        anonymous_cache=anonymous_cache,
        migrator=AnonymousMigrator(anonymous_cache),
    )


__all__ = ["ServiceContainer", "build_container"]
