"""REST client for a remote build persistence endpoint."""

from __future__ import annotations

from collections.abc import AsyncIterator, Sequence
from contextlib import asynccontextmanager
from typing import Any
from uuid import UUID

import httpx
from pydantic import ValidationError

from homebuild.domain import Build, BuildId, BuildPatch, BuildPayload
from homebuild.persistence import NotFoundError, OwnershipError

from .exceptions import BuildGatewayError
from .gateway import BuildGateway


class HttpBuildGateway(BuildGateway):
    """Talks to ``/api/builds`` with a bearer token.

    The create call carries an ``Idempotency-Key`` header so a retried POST
    resolves to the build the first attempt created.
    """

    def __init__(
        self,
        base_url: str,
        *,
        token: str | None = None,
        client: httpx.AsyncClient | None = None,
        timeout: float = 10.0,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._token = token
        self._client = client
        self._timeout = timeout

    def _headers(self, extra: dict[str, str] | None = None) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        if extra:
            headers.update(extra)
        return headers

    async def create(self, payload: BuildPayload, idempotency_key: str) -> BuildId:
        body = payload.model_dump(mode="json", exclude_none=True)
        data = await self._request(
            "POST",
            "/api/builds",
            json=body,
            headers={"Idempotency-Key": idempotency_key},
        )
        raw_id = data.get("buildId") if isinstance(data, dict) else None
        try:
            return BuildId(UUID(str(raw_id)))
        except ValueError as exc:
            msg = f"Create response did not include a valid buildId: {raw_id!r}"
            raise BuildGatewayError(msg) from exc

    async def update(self, build_id: BuildId, patch: BuildPatch) -> Build:
        body = patch.model_dump(mode="json", exclude_unset=True)
        data = await self._request("PATCH", f"/api/builds/{build_id}", json=body)
        return self._parse_build(data)

    async def get(self, build_id: BuildId) -> Build:
        data = await self._request("GET", f"/api/builds/{build_id}")
        return self._parse_build(data)

    async def list_builds(self, *, model_id: str | None = None) -> Sequence[Build]:
        params = {"model_id": model_id} if model_id else None
        data = await self._request("GET", "/api/builds", params=params)
        if not isinstance(data, list):
            msg = "Build list response was not a JSON array"
            raise BuildGatewayError(msg)
        return [self._parse_build(item) for item in data]

    async def advance_step(self, build_id: BuildId, step: int) -> Build:
        data = await self._request(
            "POST",
            f"/api/builds/{build_id}/checkout-step",
            json={"step": int(step)},
        )
        return self._parse_build(data)

    @staticmethod
    def _parse_build(data: Any) -> Build:
        try:
            return Build.model_validate(data)
        except ValidationError as exc:
            msg = "Build response failed validation"
            raise BuildGatewayError(msg) from exc

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json: Any | None = None,
        params: dict[str, str] | None = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        async with self._client_scope() as client:
            try:
                response = await client.request(
                    method,
                    f"{self._base_url}{path}",
                    json=json,
                    params=params,
                    headers=self._headers(headers),
                )
                response.raise_for_status()
                return response.json()
            except httpx.HTTPStatusError as exc:
                status = exc.response.status_code
                if status in (401, 403):
                    msg = f"{method} {path} rejected with status {status}"
                    raise OwnershipError(msg) from exc
                if status == 404:
                    msg = f"{method} {path} not found"
                    raise NotFoundError(msg) from exc
                msg = f"{method} {path} failed with status {status}"
                raise BuildGatewayError(msg) from exc
            except httpx.HTTPError as exc:
                msg = f"{method} {path} failed"
                raise BuildGatewayError(msg) from exc
            except ValueError as exc:
                msg = f"{method} {path} returned invalid JSON"
                raise BuildGatewayError(msg) from exc

    @asynccontextmanager
    async def _client_scope(self) -> AsyncIterator[httpx.AsyncClient]:
        if self._client is not None:
            yield self._client
            return
        async with httpx.AsyncClient(timeout=self._timeout) as client:
            yield client


__all__ = ["HttpBuildGateway"]
