"""Authoritative build storage with idempotent creation and ownership checks."""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from uuid import uuid4

from homebuild.catalog import CatalogService, ModelNotFoundError
from homebuild.domain import (
    Address,
    Build,
    BuildEvent,
    BuildEventType,
    BuildId,
    BuildPatch,
    BuildPayload,
    BuildStatus,
    DeliveryQuote,
    DeliveryStatus,
    FunnelStep,
    IdempotencyKey,
    PricingBreakdown,
    Selections,
    TaxPolicy,
    UserId,
)
from homebuild.persistence import DuplicateKeyError, NotFoundError, OwnershipError, UnitOfWork
from homebuild.pricing import DEFAULT_TAX_POLICY, price_selections
from homebuild.utils import utc_now
from homebuild.utils.idempotency import is_migration_key

from .exceptions import BuildClosedError, BuildError, InvalidStepError

UnitOfWorkFactory = Callable[[], UnitOfWork]

MAX_NAME_LENGTH = 200
_PERSISTABLE_DELIVERY = {DeliveryStatus.AVAILABLE, DeliveryStatus.UNAVAILABLE}


def _require_caller(caller: UserId | None) -> UserId:
    if not caller:
        msg = "Anonymous callers cannot access builds"
        raise OwnershipError(msg)
    return caller


def _accept_delivery(quote: DeliveryQuote | None, address: Address | None) -> DeliveryQuote | None:
    """Keep a cached quote only while it still describes the build's address."""

    if quote is None or quote.status not in _PERSISTABLE_DELIVERY:
        return None
    if not quote.matches(address):
        return None
    return quote


class BuildService:
    """Server-side CRUD for builds scoped to the authenticated caller."""

    def __init__(
        self,
        uow_factory: UnitOfWorkFactory,
        catalog: CatalogService,
        *,
        tax_policy: TaxPolicy = DEFAULT_TAX_POLICY,
        logger: logging.Logger | None = None,
    ) -> None:
        self._uow_factory = uow_factory
        self._catalog = catalog
        self._tax_policy = tax_policy
        self._logger = logger or logging.getLogger(__name__)

    def _price(
        self,
        model_id: str,
        selections: Selections,
        delivery: DeliveryQuote | None,
    ) -> PricingBreakdown:
        pricing, missing = price_selections(
            self._catalog,
            model_id,
            selections,
            delivery,
            policy=self._tax_policy,
        )
        if missing:
            self._logger.warning(
                "Build for model %s references unknown options: %s",
                model_id,
                ", ".join(missing),
            )
        return pricing

    async def _load_owned(self, uow: UnitOfWork, build_id: BuildId, owner: UserId) -> Build:
        build = await uow.build_repository.get(build_id)
        if build is None:
            msg = f"Build {build_id} not found"
            raise NotFoundError(msg)
        if build.owner_id != owner:
            msg = f"Build {build_id} belongs to another user"
            raise OwnershipError(msg)
        return build

    async def create(
        self,
        payload: BuildPayload,
        idempotency_key: str | None,
        *,
        caller: UserId | None,
    ) -> BuildId:
        """Persist a new build, or return the build already created for this key."""

        owner = _require_caller(caller)
        model = self._catalog.find_model(payload.model_id)
        if model is None:
            msg = f"Model {payload.model_id} not found"
            raise ModelNotFoundError(msg)
        key = IdempotencyKey(idempotency_key) if idempotency_key else None

        delivery = _accept_delivery(payload.delivery, payload.address)
        now = utc_now()
        build = Build(
            id=BuildId(uuid4()),
            owner_id=owner,
            model_id=payload.model_id,
            name=(payload.name or model.name).strip()[:MAX_NAME_LENGTH],
            selections=payload.selections,
            address=payload.address,
            delivery=delivery,
            pricing=self._price(payload.model_id, payload.selections, delivery),
            idempotency_key=key,
            created_at=now,
            updated_at=now,
        )

        try:
            async with self._uow_factory() as uow:
                if key is not None:
                    existing = await uow.build_repository.find_by_idempotency_key(owner, key)
                    if existing is not None:
                        self._logger.info(
                            "Idempotent replay for key %s returned build %s", key, existing.id
                        )
                        return existing.id
                await uow.build_repository.add(build)
                await uow.event_repository.add(
                    BuildEvent(
                        build_id=build.id,
                        owner_id=owner,
                        event_type=(
                            BuildEventType.MIGRATED
                            if is_migration_key(key)
                            else BuildEventType.CREATED
                        ),
                        next_step=build.step,
                        attributes={"model_id": build.model_id},
                    )
                )
                await uow.commit()
        except DuplicateKeyError:
            # A concurrent request with the same key won the insert.
            if key is None:
                raise
            async with self._uow_factory() as uow:
                existing = await uow.build_repository.find_by_idempotency_key(owner, key)
            if existing is None:
                raise
            return existing.id

        self._logger.info("Created build %s for model %s", build.id, build.model_id)
        return build.id

    async def get(self, build_id: BuildId, *, caller: UserId | None) -> Build:
        owner = _require_caller(caller)
        async with self._uow_factory() as uow:
            return await self._load_owned(uow, build_id, owner)

    async def list_for_owner(
        self,
        *,
        caller: UserId | None,
        model_id: str | None = None,
    ) -> Sequence[Build]:
        owner = _require_caller(caller)
        async with self._uow_factory() as uow:
            return await uow.build_repository.list_for_owner(owner, model_id=model_id)

    async def update(
        self,
        build_id: BuildId,
        patch: BuildPatch,
        *,
        caller: UserId | None,
    ) -> Build:
        """Apply a partial update.

        Selections are replaced wholesale and pricing is recomputed from the
        merged state; a client-side price is never merged in.
        """

        owner = _require_caller(caller)
        provided = patch.provided()
        async with self._uow_factory() as uow:
            build = await self._load_owned(uow, build_id, owner)
            if build.is_closed and provided & {"model_id", "selections", "address", "delivery"}:
                msg = f"Build {build_id} is past configuration and can no longer change"
                raise BuildClosedError(msg)

            model_id = build.model_id
            if "model_id" in provided and patch.model_id and patch.model_id != build.model_id:
                if self._catalog.find_model(patch.model_id) is None:
                    msg = f"Model {patch.model_id} not found"
                    raise ModelNotFoundError(msg)
                model_id = patch.model_id

            name = build.name
            if "name" in provided and patch.name and patch.name.strip():
                name = patch.name.strip()[:MAX_NAME_LENGTH]

            selections = build.selections
            if "selections" in provided and patch.selections is not None:
                selections = patch.selections

            address = patch.address if "address" in provided else build.address
            delivery = patch.delivery if "delivery" in provided else build.delivery
            delivery = _accept_delivery(delivery, address)

            updated = build.model_copy(
                update={
                    "model_id": model_id,
                    "name": name,
                    "selections": selections,
                    "address": address,
                    "delivery": delivery,
                    "pricing": self._price(model_id, selections, delivery),
                    "updated_at": utc_now(),
                }
            )
            await uow.build_repository.update(updated)
            await uow.event_repository.add(
                BuildEvent(
                    build_id=build_id,
                    owner_id=owner,
                    event_type=BuildEventType.UPDATED,
                    attributes={"fields": ",".join(sorted(provided))},
                )
            )
            await uow.commit()
            return updated

    async def advance_step(
        self,
        build_id: BuildId,
        step: int,
        *,
        caller: UserId | None,
    ) -> Build:
        """Move the build forward in the funnel and emit the advance signal."""

        owner = _require_caller(caller)
        try:
            target = FunnelStep(step)
        except ValueError as exc:
            msg = f"Unknown funnel step {step}"
            raise InvalidStepError(msg) from exc

        async with self._uow_factory() as uow:
            build = await self._load_owned(uow, build_id, owner)
            if target == build.step:
                return build
            if target < build.step:
                msg = f"Build {build_id} cannot move back from {build.step.name} to {target.name}"
                raise InvalidStepError(msg)
            if target >= FunnelStep.DELIVERY and (
                build.address is None or not build.address.is_complete
            ):
                msg = "A complete delivery address is required before the delivery step"
                raise InvalidStepError(msg)
            if target >= FunnelStep.CONTRACT and (
                build.delivery is None or not build.delivery.is_available
            ):
                msg = "A delivery quote is required before the contract step"
                raise InvalidStepError(msg)

            status = BuildStatus.CLOSED if target >= FunnelStep.CONTRACT else build.status
            updated = build.model_copy(
                update={"step": target, "status": status, "updated_at": utc_now()}
            )
            await uow.build_repository.update(updated)
            await uow.event_repository.add(
                BuildEvent(
                    build_id=build_id,
                    owner_id=owner,
                    event_type=BuildEventType.STEP_ADVANCED,
                    previous_step=build.step,
                    next_step=target,
                )
            )
            await uow.commit()

        self._logger.info(
            "Build %s advanced from %s to %s", build_id, build.step.name, target.name
        )
        return updated

    async def duplicate(self, build_id: BuildId, *, caller: UserId | None) -> Build:
        owner = _require_caller(caller)
        async with self._uow_factory() as uow:
            original = await self._load_owned(uow, build_id, owner)
            version = original.version + 1
            base_name = original.name or original.model_id
            now = utc_now()
            copy = original.model_copy(
                update={
                    "id": BuildId(uuid4()),
                    "name": f"{base_name} (v{version})"[:MAX_NAME_LENGTH],
                    "version": version,
                    "step": FunnelStep.CUSTOMIZE,
                    "status": BuildStatus.DRAFT,
                    "primary": False,
                    "idempotency_key": None,
                    "created_at": now,
                    "updated_at": now,
                }
            )
            await uow.build_repository.add(copy)
            await uow.event_repository.add(
                BuildEvent(
                    build_id=copy.id,
                    owner_id=owner,
                    event_type=BuildEventType.DUPLICATED,
                    next_step=copy.step,
                    attributes={"source_build_id": str(build_id)},
                )
            )
            await uow.commit()
            return copy

    async def rename(self, build_id: BuildId, name: str, *, caller: UserId | None) -> Build:
        if not name or not name.strip():
            msg = "Build name is required"
            raise BuildError(msg)
        return await self.update(build_id, BuildPatch(name=name), caller=caller)

    async def set_primary(self, build_id: BuildId, *, caller: UserId | None) -> Build:
        owner = _require_caller(caller)
        async with self._uow_factory() as uow:
            target = await self._load_owned(uow, build_id, owner)
            for other in await uow.build_repository.list_for_owner(owner):
                if other.id != build_id and other.primary:
                    await uow.build_repository.update(other.model_copy(update={"primary": False}))
            updated = target.model_copy(update={"primary": True, "updated_at": utc_now()})
            await uow.build_repository.update(updated)
            await uow.commit()
            return updated

    async def delete(self, build_id: BuildId, *, caller: UserId | None) -> None:
        owner = _require_caller(caller)
        async with self._uow_factory() as uow:
            build = await self._load_owned(uow, build_id, owner)
            await uow.build_repository.delete(build_id)
            await uow.event_repository.add(
                BuildEvent(
                    build_id=build_id,
                    owner_id=owner,
                    event_type=BuildEventType.DELETED,
                    previous_step=build.step,
                )
            )
            await uow.commit()

    async def events(self, build_id: BuildId, *, caller: UserId | None) -> Sequence[BuildEvent]:
        owner = _require_caller(caller)
        async with self._uow_factory() as uow:
            await self._load_owned(uow, build_id, owner)
            return await uow.event_repository.list_for_build(build_id)


__all__ = ["BuildService", "UnitOfWorkFactory"]
