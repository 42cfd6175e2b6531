from __future__ import annotations

import asyncio
from decimal import Decimal
from pathlib import Path

from homebuild.builds import HttpBuildGateway, LocalBuildGateway
from homebuild.config import AppSettings
from homebuild.container import build_container
from homebuild.domain import SaveState, Selections, UserId


def _settings(tmp_path: Path, **overrides: object) -> AppSettings:
    values: dict[str, object] = {
        "environment": "test",
        "database_url": f"sqlite+aiosqlite:///{tmp_path/'nested'/'container.db'}",
        "anonymous_cache_path": tmp_path / "anonymous.json",
        "autosave_debounce_seconds": 0.01,
    }
    values.update(overrides)
    return AppSettings(**values)  # type: ignore[arg-type]


def test_build_container_wires_local_services(tmp_path: Path) -> None:
    container = build_container(_settings(tmp_path, tax_rate=Decimal("0.05")))

    assert (tmp_path / "nested").exists()
    assert container.delivery_resolver.provider_name == "zip_prefix"
    assert container.tax_policy.rate == Decimal("0.05")
    assert isinstance(container.gateway_for("user-1"), LocalBuildGateway)

    async def _round_trip() -> int:
        async with container.unit_of_work_factory() as uow:
            builds = await uow.build_repository.list_for_owner(UserId("user-1"))
            await uow.commit()
        return len(builds)

    assert asyncio.run(_round_trip()) == 0


def test_gateway_for_uses_remote_api_when_configured(tmp_path: Path) -> None:
    container = build_container(
        _settings(tmp_path, api_base_url="https://homes.example.test", api_token="t")
    )

    assert isinstance(container.gateway_for("user-1"), HttpBuildGateway)


def test_open_session_saves_through_container(tmp_path: Path) -> None:
    container = build_container(_settings(tmp_path))

    async def _scenario() -> tuple[SaveState, int]:
        session = container.open_session("aps-630", user_id="user-1")
        await session.restore()
        session.select_option("add-axle")
        state = await session.close()
        builds = await container.gateway_for("user-1").list_builds(model_id="aps-630")
        return state, len(builds)

    state, count = asyncio.run(_scenario())
    assert state is SaveState.IDLE
    assert count == 1


def test_anonymous_session_uses_file_cache(tmp_path: Path) -> None:
    container = build_container(_settings(tmp_path))

    async def _scenario() -> None:
        session = container.open_session("aps-444")
        session.select_package("comfort-xtreme")
        await session.close()

    asyncio.run(_scenario())

    assert (tmp_path / "anonymous.json").exists()
    assert container.anonymous_cache.load("aps-444") == Selections.of((), "comfort-xtreme")
