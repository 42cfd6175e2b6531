from __future__ import annotations

import json
from pathlib import Path

import pytest
from click.testing import Result
from typer.testing import CliRunner

from homebuild.anonymous import AnonymousCustomizationCache, JsonFileKeyValueStore
from homebuild.cli.app import app
from homebuild.cli.deps import reset_container
from homebuild.domain import Selections

runner = CliRunner()


def _env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Path:
    db_url = f"sqlite+aiosqlite:///{tmp_path/'cli.db'}"
    cache_path = tmp_path / "anonymous.json"
    monkeypatch.setenv("HOMEBUILD_DATABASE_URL", db_url)
    monkeypatch.setenv("HOMEBUILD_ANONYMOUS_CACHE_PATH", str(cache_path))
    monkeypatch.setenv("HOMEBUILD_ENV", "test")
    monkeypatch.delenv("HOMEBUILD_API_BASE_URL", raising=False)
    monkeypatch.delenv("GOOGLE_MAPS_KEY", raising=False)
    monkeypatch.chdir(tmp_path)
    reset_container()
    return cache_path


def _invoke(args: list[str]) -> Result:
    reset_container()
    return runner.invoke(app, args)


def test_show_settings(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    _env(monkeypatch, tmp_path)

    result = _invoke(["show-settings"])

    assert result.exit_code == 0
    assert "Environment:\ttest" in result.stdout
    assert "Delivery provider:\tzip_prefix" in result.stdout
    assert "Build API:\tlocal" in result.stdout


def test_models_lists_catalog(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    _env(monkeypatch, tmp_path)

    result = _invoke(["models"])

    assert result.exit_code == 0
    assert "aps-630" in result.stdout
    assert "aps-444" in result.stdout


def test_price_with_known_delivery(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    _env(monkeypatch, tmp_path)

    result = _invoke(
        [
            "price",
            "aps-444",
            "-o",
            "add-axle",
            "--package",
            "comfort-xtreme",
            "--delivery-fee",
            "1200",
        ]
    )

    assert result.exit_code == 0
    assert "Subtotal:\t$63,950.00" in result.stdout
    assert "Delivery:\t$1,200.00" in result.stdout
    assert "Taxes:\t\t$4,071.88" in result.stdout
    assert "Total:\t\t$69,221.88\n" in result.stdout


def test_price_anonymous_is_estimate(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    _env(monkeypatch, tmp_path)

    result = _invoke(
        ["price", "aps-444", "-o", "add-axle", "-o", "no-such-option", "--anonymous"]
    )

    assert result.exit_code == 0
    assert "Option no-such-option not found" in result.stdout
    assert "Delivery:\tnot_applicable" in result.stdout
    assert "Total:\t\t$64,228.13 (estimate)" in result.stdout


def test_quote_delivery(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    _env(monkeypatch, tmp_path)
    address = ["--street", "12 Elm St", "--city", "Springfield", "--state", "IL"]

    ok = _invoke(["quote-delivery", *address, "--postal-code", "62704"])
    assert ok.exit_code == 0
    assert "Fee:\t\t$37,687.50" in ok.stdout

    bad = _invoke(["quote-delivery", *address, "--postal-code", "ABCDE"])
    assert bad.exit_code == 1
    assert "Status:\t\tunavailable" in bad.stdout


def test_builds_lifecycle(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    _env(monkeypatch, tmp_path)

    created = _invoke(
        ["builds", "create", "aps-630", "--user", "user-1", "-o", "add-axle", "--name", "Lake"]
    )
    assert created.exit_code == 0
    build_id = created.stdout.strip().split()[-1]

    retried = _invoke(
        ["builds", "create", "aps-630", "--user", "user-1", "--idempotency-key", "k-1"]
    )
    again = _invoke(
        ["builds", "create", "aps-630", "--user", "user-1", "--idempotency-key", "k-1"]
    )
    assert retried.stdout == again.stdout

    shown = _invoke(["builds", "show", build_id, "--user", "user-1"])
    assert shown.exit_code == 0
    payload = json.loads(shown.stdout)
    assert payload["name"] == "Lake"
    assert payload["selections"]["option_ids"] == ["add-axle"]

    listed = _invoke(["builds", "list", "--user", "user-1"])
    assert listed.exit_code == 0
    assert "Builds for user-1" in listed.stdout

    empty = _invoke(["builds", "list", "--user", "user-2"])
    assert "No builds found" in empty.stdout

    advanced = _invoke(["builds", "advance", build_id, "buyer_info", "--user", "user-1"])
    assert advanced.exit_code == 0
    assert f"Build {build_id} is at step buyer_info" in advanced.stdout

    backwards = _invoke(["builds", "advance", build_id, "1", "--user", "user-1"])
    assert backwards.exit_code == 1
    assert "Advance failed" in backwards.stdout

    foreign = _invoke(["builds", "show", build_id, "--user", "user-2"])
    assert foreign.exit_code == 1
    assert "Lookup failed" in foreign.stdout


def test_builds_create_unknown_model(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    _env(monkeypatch, tmp_path)

    result = _invoke(["builds", "create", "aps-999", "--user", "user-1"])

    assert result.exit_code == 1
    assert "Create failed" in result.stdout


def test_cache_show_expire_and_migrate(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    cache_path = _env(monkeypatch, tmp_path)
    cache = AnonymousCustomizationCache(JsonFileKeyValueStore(cache_path))
    cache.save("aps-630", Selections.of(["tray-ceiling-6"], "ultra"))

    shown = _invoke(["cache", "show"])
    assert shown.exit_code == 0
    assert "aps-630" in shown.stdout
    assert "package=ultra" in shown.stdout

    expired = _invoke(["cache", "expire"])
    assert "Removed 0 expired entries" in expired.stdout

    migrated = _invoke(["cache", "migrate", "--user", "user-1"])
    assert migrated.exit_code == 0
    assert "aps-630: migrated" in migrated.stdout

    assert "No anonymous customizations" in _invoke(["cache", "show"]).stdout
    assert "Nothing to migrate" in _invoke(["cache", "migrate", "--user", "user-1"]).stdout
