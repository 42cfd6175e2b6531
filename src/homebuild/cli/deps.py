"""Shared CLI dependency helpers."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv

from homebuild.config import AppSettings
from homebuild.container import ServiceContainer, build_container


def load_env_file(path: Path | None = None) -> bool:
    """Load a ``.env`` file into the process environment without overriding it."""

    target = path or Path.cwd() / ".env"
    if not target.exists():
        return False
    return load_dotenv(target, override=False)


@lru_cache(maxsize=1)
def get_container() -> ServiceContainer:
    """Return a cached service container for CLI commands."""

    load_env_file()
    settings = AppSettings.from_env()
    return build_container(settings)


def reset_container() -> None:
    """Clear the cached container (useful for tests)."""

    get_container.cache_clear()
