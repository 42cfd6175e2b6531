"""One-shot migration of an anonymous customization into a signed-in build."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from homebuild.builds import BuildError, BuildGateway
from homebuild.catalog import CatalogError
from homebuild.domain import (
    Build,
    BuildId,
    BuildPatch,
    BuildPayload,
    DomainModel,
    MigrationStatus,
    ModelId,
)
from homebuild.persistence import RepositoryError
from homebuild.utils.idempotency import build_migration_key

from .cache import AnonymousCustomizationCache
from .exceptions import CacheStorageError, MigrationError

logger = logging.getLogger(__name__)


class MigrationOutcome(DomainModel):
    model_id: ModelId
    status: MigrationStatus
    build_id: BuildId | None = None
    reason: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.status is MigrationStatus.MIGRATED

    def raise_for_status(self) -> None:
        if self.status is MigrationStatus.FAILED:
            msg = f"Migration for {self.model_id} failed: {self.reason}"
            raise MigrationError(msg)


def pick_target_build(builds: Sequence[Build]) -> Build | None:
    """Prefer an open in-progress build, then the most recently updated open one."""

    candidates = [build for build in builds if not build.is_closed]
    if not candidates:
        return None
    in_progress = [build for build in candidates if build.in_progress]
    pool = in_progress or candidates
    return max(pool, key=lambda build: build.updated_at)


class AnonymousMigrator:
    """Moves the cached selections for a model into the caller's build.

    The cache slot is deleted only after the build write is confirmed. A
    failed write leaves the slot in place so the next sign-in can retry.
    """

    def __init__(self, cache: AnonymousCustomizationCache) -> None:
        self._cache = cache

    async def migrate(
        self,
        model_id: str,
        gateway: BuildGateway,
        *,
        user_id: str,
    ) -> MigrationOutcome:
        try:
            entry = self._cache.load_entry(model_id)
        except CacheStorageError as exc:
            logger.warning("Anonymous cache unreadable for %s: %s", model_id, exc)
            return MigrationOutcome(
                model_id=ModelId(model_id),
                status=MigrationStatus.FAILED,
                reason=str(exc),
            )
        if entry is None:
            return MigrationOutcome(
                model_id=ModelId(model_id),
                status=MigrationStatus.NOTHING_TO_MIGRATE,
            )

        try:
            existing = await gateway.list_builds(model_id=model_id)
            target = pick_target_build(existing)
            if target is not None:
                await gateway.update(target.id, BuildPatch(selections=entry.selections))
                build_id = target.id
            else:
                key = build_migration_key(user_id, model_id, entry.saved_at)
                build_id = await gateway.create(
                    BuildPayload(model_id=ModelId(model_id), selections=entry.selections),
                    key,
                )
        except (BuildError, RepositoryError, CatalogError) as exc:
            logger.warning("Migration of anonymous customization for %s failed: %s", model_id, exc)
            return MigrationOutcome(
                model_id=ModelId(model_id),
                status=MigrationStatus.FAILED,
                reason=str(exc) or exc.__class__.__name__,
            )

        try:
            self._cache.clear(model_id)
        except CacheStorageError as exc:
            # The build already holds these selections.
            logger.warning("Unable to clear migrated cache entry for %s: %s", model_id, exc)
        logger.info("Migrated anonymous customization for %s into build %s", model_id, build_id)
        return MigrationOutcome(
            model_id=ModelId(model_id),
            status=MigrationStatus.MIGRATED,
            build_id=build_id,
        )

    async def migrate_all(self, gateway: BuildGateway, *, user_id: str) -> list[MigrationOutcome]:
        """Migrate every unexpired slot; used when signing in outside a model view."""

        outcomes = []
        for entry in self._cache.list_entries():
            outcomes.append(await self.migrate(entry.model_id, gateway, user_id=user_id))
        return outcomes


__all__ = ["AnonymousMigrator", "MigrationOutcome", "pick_target_build"]
