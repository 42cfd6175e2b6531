"""Configurator session: one model, one visitor, one build at a time."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence

from homebuild.anonymous import (
    AnonymousCustomizationCache,
    AnonymousMigrator,
    CacheStorageError,
    MigrationOutcome,
    pick_target_build,
)
from homebuild.autosave import AutosaveScheduler
from homebuild.builds import BuildError, BuildGateway
from homebuild.catalog import CatalogError, CatalogService
from homebuild.delivery import DeliveryQuoteResolver
from homebuild.domain import (
    Address,
    Build,
    BuildId,
    BuildPayload,
    CatalogModel,
    DeliveryQuote,
    DeliveryStatus,
    DomainModel,
    FunnelStep,
    Identity,
    MigrationStatus,
    ModelId,
    PricingBreakdown,
    SaveState,
    Selections,
    TaxPolicy,
)
from homebuild.persistence import OwnershipError, RepositoryError
from homebuild.pricing import DEFAULT_TAX_POLICY, price_selections

logger = logging.getLogger(__name__)

_GATEWAY_ERRORS = (BuildError, RepositoryError, CatalogError, TimeoutError)


class SessionIssue(DomainModel):
    """A problem shown to the visitor; never raised to the caller."""

    code: str
    message: str


class ConfiguratorSession:
    """Holds the local build state for one model and keeps it persisted.

    Edits apply locally first and are priced synchronously; the autosave
    scheduler persists them later. Failures are collected in ``issues``.
    Ownership failures additionally set ``redirect_required``.
    """

    def __init__(
        self,
        *,
        model_id: str,
        catalog: CatalogService,
        cache: AnonymousCustomizationCache,
        resolver: DeliveryQuoteResolver,
        identity: Identity | None = None,
        gateway: BuildGateway | None = None,
        tax_policy: TaxPolicy = DEFAULT_TAX_POLICY,
        debounce_seconds: float = 1.0,
        timeout_seconds: float = 10.0,
    ) -> None:
        self._model_id = ModelId(model_id)
        self._catalog = catalog
        self._cache = cache
        self._resolver = resolver
        self._identity = identity or Identity.anonymous()
        self._gateway = gateway
        self._tax_policy = tax_policy
        self._migrator = AnonymousMigrator(cache)
        self._migrated_for: str | None = None

        self.model: CatalogModel | None = catalog.find_model(model_id)
        self.selections = Selections()
        self.address: Address | None = None
        self.delivery: DeliveryQuote | None = None
        self.build: Build | None = None
        self.step = FunnelStep.CUSTOMIZE
        self.issues: list[SessionIssue] = []
        self._redirect_required = False
        self._delivery_task: asyncio.Task[None] | None = None

        self.scheduler = AutosaveScheduler(
            model_id=self._model_id,
            snapshot=self.snapshot,
            cache=cache,
            gateway=gateway,
            identity=self._identity,
            debounce_seconds=debounce_seconds,
            timeout_seconds=timeout_seconds,
        )
        if self.model is None:
            self._issue("model_not_found", f"Model {model_id} was not found")

    @property
    def model_id(self) -> ModelId:
        return self._model_id

    @property
    def identity(self) -> Identity:
        return self._identity

    @property
    def build_id(self) -> BuildId | None:
        return self.scheduler.build_id

    @property
    def redirect_required(self) -> bool:
        return self._redirect_required or self.scheduler.redirect_required

    @property
    def save_state(self) -> SaveState:
        return self.scheduler.state

    @property
    def is_closed(self) -> bool:
        return self.build is not None and self.build.is_closed

    @property
    def delivery_status(self) -> DeliveryStatus:
        if not self._identity.authenticated:
            return DeliveryStatus.NOT_APPLICABLE
        if self._delivery_task is not None and not self._delivery_task.done():
            return DeliveryStatus.CALCULATING
        if self.delivery is not None and self.delivery.matches(self.address):
            return self.delivery.status
        return DeliveryStatus.UNAVAILABLE

    def _issue(self, code: str, message: str) -> None:
        self.issues.append(SessionIssue(code=code, message=message))

    def _capture(self, action: str, exc: BaseException) -> None:
        if isinstance(exc, OwnershipError):
            self._redirect_required = True
        logger.warning("%s failed for model %s: %s", action, self._model_id, exc)
        self._issue(f"{action}_failed", str(exc) or exc.__class__.__name__)

    def snapshot(self) -> BuildPayload:
        """Freshest local state, read by the scheduler when a save fires."""

        delivery = self.delivery if self.delivery_status is not DeliveryStatus.CALCULATING else None
        return BuildPayload(
            model_id=self._model_id,
            selections=self.selections,
            address=self.address,
            delivery=delivery,
        )

    def pricing(self) -> PricingBreakdown:
        delivery = self.delivery if self.delivery_status is DeliveryStatus.AVAILABLE else None
        if self.delivery_status is DeliveryStatus.CALCULATING:
            delivery = DeliveryQuote(status=DeliveryStatus.CALCULATING)
        breakdown, _missing = price_selections(
            self._catalog,
            self._model_id,
            self.selections,
            delivery,
            policy=self._tax_policy,
            authenticated=self._identity.authenticated,
        )
        return breakdown

    def _report_missing_options(self, option_ids: Sequence[str]) -> None:
        _, missing = self._catalog.resolve_options(option_ids, model=self.model)
        for option_id in missing:
            self._issue("option_not_found", f"Option {option_id} is no longer offered")

    def _apply_build(self, build: Build) -> None:
        self.build = build
        self.selections = build.selections
        self.address = build.address
        self.delivery = build.delivery
        self.step = build.step
        self.scheduler.adopt(build.id)

    async def restore(self) -> None:
        """Load the visitor's saved state for this model."""

        try:
            self._cache.expire_old()
        except CacheStorageError as exc:
            self._capture("cache_cleanup", exc)

        if not self._identity.authenticated or self._gateway is None:
            try:
                cached = self._cache.load(self._model_id)
            except CacheStorageError as exc:
                self._capture("restore", exc)
                return
            if cached is not None:
                self.selections = cached
                self._report_missing_options(cached.option_ids)
            return

        await self._restore_authenticated(self._gateway)

    async def _restore_authenticated(self, gateway: BuildGateway) -> None:
        try:
            builds = await gateway.list_builds(model_id=self._model_id)
        except _GATEWAY_ERRORS as exc:
            self._capture("restore", exc)
            return
        target = pick_target_build(builds)
        if target is None:
            return
        self._apply_build(target)
        self._report_missing_options(target.selections.option_ids)
        if self.address is not None and not (
            self.delivery is not None
            and self.delivery.is_available
            and self.delivery.matches(self.address)
        ):
            self._start_delivery_quote()

    def _editable(self) -> bool:
        if self.model is None:
            self._issue("model_not_found", f"Model {self._model_id} was not found")
            return False
        if self.is_closed:
            self._issue("build_closed", "This build is past configuration")
            return False
        return True

    def _changed(self, selections: Selections) -> bool:
        if selections == self.selections:
            return False
        self.selections = selections
        self.scheduler.notify_change()
        return True

    def select_option(self, option_id: str) -> bool:
        if not self._editable():
            return False
        _, missing = self._catalog.resolve_options([option_id], model=self.model)
        if missing:
            self._issue("option_not_found", f"Option {option_id} is not offered for this model")
            return False
        return self._changed(self.selections.with_option(option_id))

    def deselect_option(self, option_id: str) -> bool:
        if not self._editable():
            return False
        return self._changed(self.selections.without_option(option_id))

    def toggle_option(self, option_id: str) -> bool:
        if option_id in self.selections.option_ids:
            return self.deselect_option(option_id)
        return self.select_option(option_id)

    def select_package(self, package_key: str | None) -> bool:
        """Select a package, replacing any previous one. ``None`` clears it."""

        if not self._editable() or self.model is None:
            return False
        if package_key is not None and self.model.find_package(package_key) is None:
            self._issue("package_not_found", f"Package {package_key} is not offered for this model")
            return False
        return self._changed(self.selections.with_package(package_key))

    def set_address(self, address: Address | None) -> None:
        if not self._editable():
            return
        if address == self.address:
            return
        self.address = address
        if self.delivery is not None and not self.delivery.matches(address):
            self.delivery = None
        if self._identity.authenticated:
            self._start_delivery_quote()
        self.scheduler.notify_change()

    def _start_delivery_quote(self) -> None:
        if self._delivery_task is not None and not self._delivery_task.done():
            self._delivery_task.cancel()
        self._delivery_task = asyncio.get_running_loop().create_task(
            self._resolve_delivery(self.address)
        )

    async def _resolve_delivery(self, address: Address | None) -> None:
        quote = await self._resolver.quote_delivery(
            address,
            authenticated=self._identity.authenticated,
            cached=self.delivery,
        )
        if address != self.address:
            return
        if quote != self.delivery:
            self.delivery = quote
            self.scheduler.notify_change()

    async def wait_for_delivery(self) -> DeliveryStatus:
        task = self._delivery_task
        if task is not None and not task.done():
            await asyncio.wait({task})
        return self.delivery_status

    async def sign_in(self, user_id: str, gateway: BuildGateway) -> MigrationOutcome | None:
        """Switch to the signed-in user and migrate the anonymous slot once.

        Returns ``None`` when this user already signed in on this session.
        """

        if self._migrated_for == user_id:
            return None
        await self.scheduler.flush()

        if self._identity.authenticated and self._identity.user_id != user_id:
            self.build = None
            self.step = FunnelStep.CUSTOMIZE
        self._identity = Identity.signed_in(user_id)
        self._gateway = gateway
        self._redirect_required = False
        self.scheduler.switch_identity(self._identity, gateway)

        outcome = await self._migrator.migrate(self._model_id, gateway, user_id=user_id)
        self._migrated_for = user_id
        if outcome.status is MigrationStatus.FAILED:
            self._issue("migration_failed", outcome.reason or "migration failed")
        elif outcome.status is MigrationStatus.MIGRATED and outcome.build_id is not None:
            try:
                self._apply_build(await gateway.get(outcome.build_id))
            except _GATEWAY_ERRORS as exc:
                self._capture("restore", exc)
                self.scheduler.adopt(outcome.build_id)
        else:
            await self._restore_authenticated(gateway)

        if self.address is not None and self.delivery_status is not DeliveryStatus.AVAILABLE:
            self._start_delivery_quote()
        return outcome

    async def proceed(self) -> Build | None:
        """Persist pending edits and advance past configuration."""

        if not self._identity.authenticated or self._gateway is None:
            self._redirect_required = True
            self._issue("sign_in_required", "Sign in to continue to checkout")
            return None
        await self.wait_for_delivery()
        if await self.scheduler.flush() is SaveState.FAILED:
            self._issue("save_failed", self.scheduler.last_error or "save failed")
            return None
        build_id = self.scheduler.build_id
        if build_id is None:
            self._issue("not_saved", "Make a selection before continuing")
            return None
        try:
            target = max(self.step, FunnelStep.BUYER_INFO)
            build = await self._gateway.advance_step(build_id, target)
        except _GATEWAY_ERRORS as exc:
            self._capture("proceed", exc)
            return None
        self.build = build
        self.step = build.step
        return build

    async def close(self) -> SaveState:
        if self._delivery_task is not None and not self._delivery_task.done():
            self._delivery_task.cancel()
            await asyncio.wait({self._delivery_task})
        return await self.scheduler.close()


__all__ = ["ConfiguratorSession", "SessionIssue"]
