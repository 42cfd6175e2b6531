from __future__ import annotations

import asyncio
import json
from typing import Any
from uuid import uuid4

import httpx
import pytest

from homebuild.builds import BuildGatewayError, HttpBuildGateway
from homebuild.domain import (
    Build,
    BuildId,
    BuildPatch,
    BuildPayload,
    FunnelStep,
    Selections,
    UserId,
)
from homebuild.persistence import NotFoundError, OwnershipError

BASE_URL = "https://homes.example.test"


def _build(build_id: BuildId, **fields: Any) -> Build:
    return Build(id=build_id, owner_id=UserId("user-1"), model_id="aps-630", **fields)


def _run(handler: Any, call: Any) -> Any:
    async def _inner() -> Any:
        transport = httpx.MockTransport(handler)
        async with httpx.AsyncClient(transport=transport) as client:
            gateway = HttpBuildGateway(BASE_URL, token="secret", client=client)
            return await call(gateway)

    return asyncio.run(_inner())


def test_create_sends_idempotency_key() -> None:
    build_id = BuildId(uuid4())
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(201, json={"buildId": str(build_id)})

    payload = BuildPayload(model_id="aps-630", selections=Selections.of(["add-axle"]))
    result = _run(handler, lambda gateway: gateway.create(payload, "session-abc"))

    assert result == build_id
    request = seen[0]
    assert request.method == "POST"
    assert request.url.path == "/api/builds"
    assert request.headers["Idempotency-Key"] == "session-abc"
    assert request.headers["Authorization"] == "Bearer secret"
    assert json.loads(request.content)["selections"]["option_ids"] == ["add-axle"]


def test_update_sends_only_provided_fields() -> None:
    build_id = BuildId(uuid4())
    bodies: list[dict[str, Any]] = []

    def handler(request: httpx.Request) -> httpx.Response:
        bodies.append(json.loads(request.content))
        build = _build(build_id, selections=Selections.of(["tray-ceiling-6"]))
        return httpx.Response(200, json=build.model_dump(mode="json"))

    patch = BuildPatch(selections=Selections.of(["tray-ceiling-6"]))
    build = _run(handler, lambda gateway: gateway.update(build_id, patch))

    assert set(bodies[0]) == {"selections"}
    assert build.selections.option_ids == ("tray-ceiling-6",)


def test_list_and_advance() -> None:
    build_id = BuildId(uuid4())

    def handler(request: httpx.Request) -> httpx.Response:
        if request.method == "GET":
            assert request.url.params["model_id"] == "aps-630"
            return httpx.Response(200, json=[_build(build_id).model_dump(mode="json")])
        assert request.url.path == f"/api/builds/{build_id}/checkout-step"
        assert json.loads(request.content) == {"step": 2}
        advanced = _build(build_id, step=FunnelStep.BUYER_INFO)
        return httpx.Response(200, json=advanced.model_dump(mode="json"))

    async def call(gateway: HttpBuildGateway) -> tuple[list[Build], Build]:
        builds = list(await gateway.list_builds(model_id="aps-630"))
        advanced = await gateway.advance_step(build_id, FunnelStep.BUYER_INFO)
        return builds, advanced

    builds, advanced = _run(handler, call)
    assert [build.id for build in builds] == [build_id]
    assert advanced.step is FunnelStep.BUYER_INFO


@pytest.mark.parametrize(
    ("status", "error"),
    [(401, OwnershipError), (403, OwnershipError), (404, NotFoundError), (500, BuildGatewayError)],
)
def test_error_status_mapping(status: int, error: type[Exception]) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status, json={"error": "nope"})

    with pytest.raises(error):
        _run(handler, lambda gateway: gateway.get(BuildId(uuid4())))


def test_transport_failure_is_gateway_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(BuildGatewayError):
        _run(handler, lambda gateway: gateway.get(BuildId(uuid4())))


def test_malformed_build_is_gateway_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"id": "not-a-build"})

    with pytest.raises(BuildGatewayError):
        _run(handler, lambda gateway: gateway.get(BuildId(uuid4())))
