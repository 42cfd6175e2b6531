"""In-memory repository implementations for unit testing."""

from __future__ import annotations

import asyncio
from collections import defaultdict
from collections.abc import Sequence
from copy import deepcopy
from dataclasses import dataclass, field
from types import TracebackType
from typing import TypeVar

from homebuild.domain import Build, BuildEvent, BuildId, IdempotencyKey, UserId
from homebuild.persistence.errors import DuplicateKeyError, NotFoundError
from homebuild.persistence.interfaces import (
    BuildEventRepository,
    BuildRepository,
    UnitOfWork,
)

T = TypeVar("T")


def _copy(value: T) -> T:
    return deepcopy(value)


@dataclass
class InMemoryBuildRepository(BuildRepository):
    _builds: dict[BuildId, Build] = field(default_factory=dict)

    async def get(self, build_id: BuildId) -> Build | None:
        return _copy(self._builds.get(build_id))

    async def find_by_idempotency_key(
        self,
        owner_id: UserId,
        key: IdempotencyKey,
    ) -> Build | None:
        for build in self._builds.values():
            if build.owner_id == owner_id and build.idempotency_key == key:
                return _copy(build)
        return None

    async def list_for_owner(
        self,
        owner_id: UserId,
        *,
        model_id: str | None = None,
    ) -> Sequence[Build]:
        owned = [
            build
            for build in self._builds.values()
            if build.owner_id == owner_id and (model_id is None or build.model_id == model_id)
        ]
        ordered = sorted(owned, key=lambda build: build.updated_at, reverse=True)
        return [_copy(build) for build in ordered]

    async def add(self, build: Build) -> None:
        if build.idempotency_key is not None:
            existing = await self.find_by_idempotency_key(build.owner_id, build.idempotency_key)
            if existing is not None:
                msg = f"Idempotency key {build.idempotency_key} already used"
                raise DuplicateKeyError(msg)
        self._builds[build.id] = build

    async def update(self, build: Build) -> None:
        if build.id not in self._builds:
            msg = f"Build {build.id} not found"
            raise NotFoundError(msg)
        self._builds[build.id] = build

    async def delete(self, build_id: BuildId) -> None:
        self._builds.pop(build_id, None)


@dataclass
class InMemoryBuildEventRepository(BuildEventRepository):
    _events: dict[BuildId, list[BuildEvent]] = field(
        default_factory=lambda: defaultdict(list)
    )

    async def add(self, event: BuildEvent) -> None:
        self._events[event.build_id].append(event)

    async def list_for_build(self, build_id: BuildId) -> Sequence[BuildEvent]:
        return [_copy(event) for event in self._events.get(build_id, [])]


@dataclass
class InMemoryUnitOfWork(UnitOfWork):
    build_repository: InMemoryBuildRepository = field(default_factory=InMemoryBuildRepository)
    event_repository: InMemoryBuildEventRepository = field(
        default_factory=InMemoryBuildEventRepository
    )
    _lock: asyncio.Lock = field(default_factory=asyncio.Lock)

    async def __aenter__(self) -> InMemoryUnitOfWork:
        await self._lock.acquire()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self._lock.release()

    async def commit(self) -> None:
        return None

    async def rollback(self) -> None:
        return None
