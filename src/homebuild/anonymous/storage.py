"""Key-value backends for the anonymous customization cache."""

from __future__ import annotations

import json
import os
from collections.abc import Iterable
from pathlib import Path
from typing import Protocol

from .exceptions import CacheStorageError


class KeyValueStore(Protocol):
    """Minimal string store, the shape of browser local storage."""

    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...

    def delete(self, key: str) -> None: ...

    def keys(self) -> Iterable[str]: ...


class InMemoryKeyValueStore(KeyValueStore):
    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._values: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._values.get(key)

    def set(self, key: str, value: str) -> None:
        self._values[key] = value

    def delete(self, key: str) -> None:
        self._values.pop(key, None)

    def keys(self) -> Iterable[str]:
        return list(self._values)


class JsonFileKeyValueStore(KeyValueStore):
    """Persists the whole store as one JSON object so entries survive restarts."""

    def __init__(self, path: Path) -> None:
        self._path = path

    @property
    def path(self) -> Path:
        return self._path

    def _read(self) -> dict[str, str]:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8") or "{}")
        except (OSError, json.JSONDecodeError) as exc:
            msg = f"Unable to read anonymous cache file {self._path}"
            raise CacheStorageError(msg) from exc
        if not isinstance(data, dict):
            msg = f"Anonymous cache file {self._path} does not contain an object"
            raise CacheStorageError(msg)
        return {str(key): str(value) for key, value in data.items()}

    def _write(self, values: dict[str, str]) -> None:
        tmp_path = self._path.with_suffix(self._path.suffix + ".tmp")
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(json.dumps(values, indent=2, sort_keys=True), encoding="utf-8")
            os.replace(tmp_path, self._path)
        except OSError as exc:
            msg = f"Unable to write anonymous cache file {self._path}"
            raise CacheStorageError(msg) from exc

    def get(self, key: str) -> str | None:
        return self._read().get(key)

    def set(self, key: str, value: str) -> None:
        values = self._read()
        values[key] = value
        self._write(values)

    def delete(self, key: str) -> None:
        values = self._read()
        if values.pop(key, None) is not None:
            self._write(values)

    def keys(self) -> Iterable[str]:
        return list(self._read())


__all__ = ["InMemoryKeyValueStore", "JsonFileKeyValueStore", "KeyValueStore"]
