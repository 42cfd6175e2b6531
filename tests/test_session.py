from __future__ import annotations

import asyncio
from decimal import Decimal

import pytest

from homebuild.anonymous import AnonymousCustomizationCache, InMemoryKeyValueStore
from homebuild.builds import BuildService, LocalBuildGateway
from homebuild.catalog import CatalogService
from homebuild.delivery import DeliveryQuoteResolver
from homebuild.domain import (
    Address,
    BuildEventType,
    BuildPayload,
    DeliveryQuote,
    DeliveryStatus,
    FunnelStep,
    Identity,
    MigrationStatus,
    SaveState,
    Selections,
    UserId,
)
from homebuild.funnel import ConfiguratorSession
from homebuild.persistence import InMemoryUnitOfWork

ADDRESS = Address(street="12 Elm St", city="Springfield", state="IL", postal_code="62704")
USER = "user-1"


class FlatFeeProvider:
    name = "flat"

    def __init__(self, fee: str = "1200.00", delay: float = 0.05) -> None:
        self.fee = Decimal(fee)
        self.delay = delay
        self.calls = 0

    async def quote(self, address: Address) -> DeliveryQuote:
        self.calls += 1
        await asyncio.sleep(self.delay)
        return DeliveryQuote(
            status=DeliveryStatus.AVAILABLE,
            fee=self.fee,
            eta_days=43,
            address_fingerprint=address.fingerprint(),
        )


class Harness:
    def __init__(self) -> None:
        self.catalog = CatalogService.default()
        self.cache = AnonymousCustomizationCache(InMemoryKeyValueStore())
        self.provider = FlatFeeProvider()
        self.resolver = DeliveryQuoteResolver(self.provider, timeout=1.0)
        uow = InMemoryUnitOfWork()
        self.service = BuildService(lambda: uow, self.catalog)

    def gateway(self, user_id: str = USER) -> LocalBuildGateway:
        return LocalBuildGateway(self.service, UserId(user_id), timeout=1.0)

    def session(self, model_id: str = "aps-444", user_id: str | None = None) -> ConfiguratorSession:
        return ConfiguratorSession(
            model_id=model_id,
            catalog=self.catalog,
            cache=self.cache,
            resolver=self.resolver,
            identity=Identity.signed_in(user_id) if user_id else None,
            gateway=self.gateway(user_id) if user_id else None,
            debounce_seconds=0.01,
            timeout_seconds=1.0,
        )


@pytest.mark.asyncio
async def test_anonymous_edits_price_locally_and_land_in_cache() -> None:
    harness = Harness()
    session = harness.session()

    assert session.select_option("r-13-wall-insulation")
    assert session.select_package("comfort-xtreme")
    assert not session.select_option("gold-faucets")
    assert not session.select_package("ultra")

    pricing = session.pricing()
    assert pricing.subtotal == Decimal("64050.00")
    assert pricing.delivery is None
    assert pricing.delivery_status is DeliveryStatus.NOT_APPLICABLE
    assert [issue.code for issue in session.issues] == ["option_not_found", "package_not_found"]

    await session.scheduler.wait_idle()
    assert harness.cache.load("aps-444") == Selections.of(
        ["r-13-wall-insulation"], "comfort-xtreme"
    )
    await session.close()


@pytest.mark.asyncio
async def test_anonymous_restore_reads_cache() -> None:
    harness = Harness()
    harness.cache.save("aps-444", Selections.of(["add-axle", "retired-option"]))
    session = harness.session()

    await session.restore()

    assert session.selections.option_ids == ("add-axle", "retired-option")
    assert [issue.code for issue in session.issues] == ["option_not_found"]
    await session.close()


@pytest.mark.asyncio
async def test_toggle_option_and_package_replacement() -> None:
    harness = Harness()
    session = harness.session(model_id="aps-630")

    session.toggle_option("add-axle")
    session.toggle_option("add-axle")
    session.select_package("chefs-pick")
    session.select_package("ultra")

    assert session.selections.option_ids == ()
    assert session.selections.package_key == "ultra"
    assert session.pricing().package == Decimal("7400.00")
    await session.close()


@pytest.mark.asyncio
async def test_sign_in_migrates_once() -> None:
    harness = Harness()
    session = harness.session()
    session.select_option("add-axle")

    outcome = await session.sign_in(USER, harness.gateway())

    assert outcome is not None
    assert outcome.status is MigrationStatus.MIGRATED
    assert session.build_id == outcome.build_id
    assert harness.cache.load("aps-444") is None
    assert session.selections == Selections.of(["add-axle"])
    assert await session.sign_in(USER, harness.gateway()) is None

    builds = await harness.gateway().list_builds()
    assert len(builds) == 1
    await session.close()


@pytest.mark.asyncio
async def test_signed_in_without_address_shows_unavailable_delivery() -> None:
    harness = Harness()
    session = harness.session(user_id=USER)
    session.select_option("add-axle")

    pricing = session.pricing()

    assert session.delivery_status is DeliveryStatus.UNAVAILABLE
    assert pricing.delivery is None
    assert not pricing.is_final
    assert pricing.total == pricing.subtotal + pricing.taxes
    await session.close()


@pytest.mark.asyncio
async def test_address_quote_persists_and_proceeds() -> None:
    harness = Harness()
    session = harness.session(user_id=USER)
    session.select_option("add-axle")
    session.set_address(ADDRESS)

    assert session.delivery_status is DeliveryStatus.CALCULATING
    assert session.pricing().delivery_status is DeliveryStatus.CALCULATING
    assert await session.wait_for_delivery() is DeliveryStatus.AVAILABLE
    pricing = session.pricing()
    assert pricing.delivery == Decimal("1200.00")
    assert pricing.is_final

    build = await session.proceed()

    assert build is not None
    assert build.step is FunnelStep.BUYER_INFO
    assert build.delivery is not None and build.delivery.fee == Decimal("1200.00")
    events = await harness.service.events(build.id, caller=UserId(USER))
    assert BuildEventType.STEP_ADVANCED in {event.event_type for event in events}
    assert harness.provider.calls == 1
    await session.close()


@pytest.mark.asyncio
async def test_restore_reuses_cached_quote() -> None:
    harness = Harness()
    first = harness.session(user_id=USER)
    first.select_option("add-axle")
    first.set_address(ADDRESS)
    await first.wait_for_delivery()
    assert await first.close() is SaveState.IDLE

    second = harness.session(user_id=USER)
    await second.restore()

    assert second.build_id == first.build_id
    assert second.address == ADDRESS
    assert second.delivery_status is DeliveryStatus.AVAILABLE
    assert second.pricing().is_final
    assert harness.provider.calls == 1
    await second.close()


@pytest.mark.asyncio
async def test_restore_prefers_in_progress_build() -> None:
    harness = Harness()
    gateway = harness.gateway()
    await gateway.create(BuildPayload(model_id="aps-444"), "session-a")
    in_progress = await gateway.create(
        BuildPayload(model_id="aps-444", selections=Selections.of(["add-axle"])),
        "session-b",
    )
    await gateway.advance_step(in_progress, FunnelStep.BUYER_INFO)
    await gateway.create(BuildPayload(model_id="aps-444"), "session-c")

    session = harness.session(user_id=USER)
    await session.restore()

    assert session.build_id == in_progress
    assert session.step is FunnelStep.BUYER_INFO
    await session.close()


@pytest.mark.asyncio
async def test_unknown_model_reports_not_found() -> None:
    harness = Harness()
    session = harness.session(model_id="aps-999")

    assert not session.select_option("add-axle")
    assert session.pricing().total == Decimal("0.00")
    assert session.issues[0].code == "model_not_found"
    await session.close()


@pytest.mark.asyncio
async def test_anonymous_proceed_requires_sign_in() -> None:
    harness = Harness()
    session = harness.session()
    session.select_option("add-axle")

    assert await session.proceed() is None
    assert session.redirect_required
    await session.close()


@pytest.mark.asyncio
async def test_foreign_build_triggers_redirect() -> None:
    harness = Harness()
    foreign = await harness.gateway("someone-else").create(
        BuildPayload(model_id="aps-444"), "session-z"
    )
    session = harness.session(user_id=USER)
    session.scheduler.adopt(foreign)

    session.select_option("add-axle")
    assert await session.scheduler.wait_idle() is SaveState.FAILED

    assert session.redirect_required
    assert session.selections == Selections.of(["add-axle"])
    await session.close()


@pytest.mark.asyncio
async def test_restore_requotes_after_unavailable_delivery() -> None:
    harness = Harness()
    await harness.gateway().create(
        BuildPayload(
            model_id="aps-444",
            address=ADDRESS,
            delivery=DeliveryQuote.unavailable("upstream 503", address=ADDRESS),
        ),
        "session-u",
    )

    session = harness.session(user_id=USER)
    await session.restore()

    assert await session.wait_for_delivery() is DeliveryStatus.AVAILABLE
    assert harness.provider.calls == 1
    assert session.pricing().is_final
    await session.close()


@pytest.mark.asyncio
async def test_options_outside_the_model_are_rejected() -> None:
    harness = Harness()
    session = harness.session(model_id="aps-520ms")

    assert not session.select_option("single-loft-12-wide")
    assert session.selections.option_ids == ()
    assert session.issues[-1].code == "option_not_found"
    await session.close()


@pytest.mark.asyncio
async def test_second_user_gets_a_fresh_build() -> None:
    harness = Harness()
    session = harness.session(user_id=USER)
    session.select_option("add-axle")
    assert await session.scheduler.flush() is SaveState.IDLE
    first_build = session.build_id
    first_key = session.scheduler.idempotency_key

    await session.sign_in("user-2", harness.gateway("user-2"))

    assert session.build_id is None
    assert session.scheduler.idempotency_key != first_key
    session.select_option("tray-ceiling-6")
    assert await session.scheduler.flush() is SaveState.IDLE
    assert not session.redirect_required
    second_build = session.build_id
    assert second_build is not None and second_build != first_build
    second = await harness.gateway("user-2").get(second_build)
    assert second.owner_id == "user-2"
    await session.close()
