"""Client-side access to the build persistence endpoint."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Sequence
from typing import Protocol, TypeVar

from homebuild.domain import Build, BuildId, BuildPatch, BuildPayload, UserId

from .exceptions import BuildGatewayError
from .service import BuildService

T = TypeVar("T")


class BuildGateway(Protocol):
    """Operations the autosave scheduler and migrator need from storage."""

    async def create(self, payload: BuildPayload, idempotency_key: str) -> BuildId: ...

    async def update(self, build_id: BuildId, patch: BuildPatch) -> Build: ...

    async def get(self, build_id: BuildId) -> Build: ...

    async def list_builds(self, *, model_id: str | None = None) -> Sequence[Build]: ...

    async def advance_step(self, build_id: BuildId, step: int) -> Build: ...


class LocalBuildGateway(BuildGateway):
    """In-process gateway bound to one authenticated caller."""

    def __init__(
        self,
        service: BuildService,
        caller: UserId | None,
        *,
        timeout: float | None = None,
    ) -> None:
        self._service = service
        self._caller = caller
        self._timeout = timeout

    @property
    def caller(self) -> UserId | None:
        return self._caller

    async def _bounded(self, operation: str, awaitable: Awaitable[T]) -> T:
        if self._timeout is None:
            return await awaitable
        try:
            return await asyncio.wait_for(awaitable, timeout=self._timeout)
        except TimeoutError as exc:
            msg = f"{operation} timed out after {self._timeout:.1f}s"
            raise BuildGatewayError(msg) from exc

    async def create(self, payload: BuildPayload, idempotency_key: str) -> BuildId:
        return await self._bounded(
            "create",
            self._service.create(payload, idempotency_key, caller=self._caller),
        )

    async def update(self, build_id: BuildId, patch: BuildPatch) -> Build:
        return await self._bounded(
            "update",
            self._service.update(build_id, patch, caller=self._caller),
        )

    async def get(self, build_id: BuildId) -> Build:
        return await self._bounded("get", self._service.get(build_id, caller=self._caller))

    async def list_builds(self, *, model_id: str | None = None) -> Sequence[Build]:
        return await self._bounded(
            "list",
            self._service.list_for_owner(caller=self._caller, model_id=model_id),
        )

    async def advance_step(self, build_id: BuildId, step: int) -> Build:
        return await self._bounded(
            "advance_step",
            self._service.advance_step(build_id, step, caller=self._caller),
        )


__all__ = ["BuildGateway", "LocalBuildGateway"]
