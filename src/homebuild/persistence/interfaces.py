"""Persistence layer abstractions for repositories and unit of work."""

from __future__ import annotations

from collections.abc import Sequence
from types import TracebackType
from typing import Protocol

from homebuild.domain import Build, BuildEvent, BuildId, IdempotencyKey, UserId


class BuildRepository(Protocol):
    """Storage for build aggregates."""

    async def get(self, build_id: BuildId) -> Build | None: ...

    async def find_by_idempotency_key(
        self,
        owner_id: UserId,
        key: IdempotencyKey,
    ) -> Build | None: ...

    async def list_for_owner(
        self,
        owner_id: UserId,
        *,
        model_id: str | None = None,
    ) -> Sequence[Build]: ...

    async def add(self, build: Build) -> None: ...

    async def update(self, build: Build) -> None: ...

    async def delete(self, build_id: BuildId) -> None: ...


class BuildEventRepository(Protocol):
    """Append-only build event log."""

    async def add(self, event: BuildEvent) -> None: ...

    async def list_for_build(self, build_id: BuildId) -> Sequence[BuildEvent]: ...


class UnitOfWork(Protocol):
    """Transactional boundary for repository operations."""

    build_repository: BuildRepository
    event_repository: BuildEventRepository

    async def __aenter__(self) -> UnitOfWork: ...

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None: ...

    async def commit(self) -> None: ...

    async def rollback(self) -> None: ...
