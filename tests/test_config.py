from __future__ import annotations

from decimal import Decimal
from pathlib import Path

import pytest

from homebuild.cli.deps import load_env_file
from homebuild.config import AppSettings


def test_from_env_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("HOMEBUILD_TAX_RATE", "HOMEBUILD_TAX_DELIVERY", "HOMEBUILD_API_BASE_URL"):
        monkeypatch.delenv(name, raising=False)

    settings = AppSettings.from_env()

    assert settings.tax_rate == Decimal("0.0625")
    assert settings.tax_delivery is True
    assert settings.api_base_url is None


def test_from_env_overrides(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("HOMEBUILD_TAX_RATE", "0.07")
    monkeypatch.setenv("HOMEBUILD_TAX_DELIVERY", "false")
    monkeypatch.setenv("HOMEBUILD_AUTOSAVE_DEBOUNCE_SECONDS", "2.5")
    monkeypatch.setenv("HOMEBUILD_ANONYMOUS_CACHE_PATH", str(tmp_path / "cache.json"))
    monkeypatch.setenv("HOMEBUILD_DELIVERY_LEAD_DAYS", "30")

    settings = AppSettings.from_env()

    assert settings.tax_rate == Decimal("0.07")
    assert settings.tax_delivery is False
    assert settings.autosave_debounce_seconds == 2.5
    assert settings.anonymous_cache_path == tmp_path / "cache.json"
    assert settings.delivery_lead_days == 30


def test_from_env_rejects_bad_numbers(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("HOMEBUILD_TAX_RATE", "seven percent")

    with pytest.raises(ValueError, match="HOMEBUILD_TAX_RATE"):
        AppSettings.from_env()


def test_load_env_file_does_not_override(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    env_file = tmp_path / ".env"
    env_file.write_text("HOMEBUILD_ENV=from-file\nHOMEBUILD_FACTORY_ADDRESS=Waco, TX\n")
    monkeypatch.setenv("HOMEBUILD_ENV", "from-shell")
    monkeypatch.setenv("HOMEBUILD_FACTORY_ADDRESS", "unset")
    monkeypatch.delenv("HOMEBUILD_FACTORY_ADDRESS")

    assert load_env_file(env_file) is True

    settings = AppSettings.from_env()
    assert settings.environment == "from-shell"
    assert settings.factory_address == "Waco, TX"
