"""Per-model anonymous customization cache with a retention window."""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timedelta

from pydantic import ValidationError

from homebuild.domain import DomainModel, ModelId, Selections
from homebuild.utils.time import ensure_utc, utc_now

from .storage import KeyValueStore

logger = logging.getLogger(__name__)

KEY_PREFIX = "homebuild.customization."
DEFAULT_RETENTION = timedelta(days=7)


class CachedCustomization(DomainModel):
    """One cache slot: the selections last made for a model and when."""

    model_id: ModelId
    selections: Selections
    saved_at: datetime


class AnonymousCustomizationCache:
    """Stores selections for signed-out visitors, one slot per model.

    Expired slots read as absent. ``expire_old`` is housekeeping meant to be
    called opportunistically (on session restore, from the CLI).
    """

    def __init__(
        self,
        store: KeyValueStore,
        *,
        retention: timedelta = DEFAULT_RETENTION,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._store = store
        self._retention = retention
        self._clock = clock

    @property
    def retention(self) -> timedelta:
        return self._retention

    @staticmethod
    def _key(model_id: str) -> str:
        return f"{KEY_PREFIX}{model_id.strip().lower()}"

    def _is_expired(self, entry: CachedCustomization) -> bool:
        return self._clock() - ensure_utc(entry.saved_at) > self._retention

    def _decode(self, key: str) -> CachedCustomization | None:
        raw = self._store.get(key)
        if raw is None:
            return None
        try:
            return CachedCustomization.model_validate_json(raw)
        except ValidationError:
            logger.warning("Discarding unreadable anonymous cache entry %s", key)
            self._store.delete(key)
            return None

    def save(self, model_id: str, selections: Selections) -> CachedCustomization:
        entry = CachedCustomization(
            model_id=ModelId(model_id),
            selections=selections,
            saved_at=self._clock(),
        )
        self._store.set(self._key(model_id), entry.model_dump_json())
        return entry

    def load_entry(self, model_id: str) -> CachedCustomization | None:
        key = self._key(model_id)
        entry = self._decode(key)
        if entry is None:
            return None
        if self._is_expired(entry):
            self._store.delete(key)
            return None
        return entry

    def load(self, model_id: str) -> Selections | None:
        entry = self.load_entry(model_id)
        return entry.selections if entry is not None else None

    def clear(self, model_id: str) -> None:
        self._store.delete(self._key(model_id))

    def list_entries(self) -> list[CachedCustomization]:
        entries: list[CachedCustomization] = []
        for key in list(self._store.keys()):
            if not key.startswith(KEY_PREFIX):
                continue
            entry = self._decode(key)
            if entry is not None and not self._is_expired(entry):
                entries.append(entry)
        return sorted(entries, key=lambda item: item.saved_at, reverse=True)

    def expire_old(self) -> int:
        """Remove expired or unreadable slots and return how many were removed."""

        removed = 0
        for key in list(self._store.keys()):
            if not key.startswith(KEY_PREFIX):
                continue
            entry = self._decode(key)
            if entry is None:
                removed += 1
                continue
            if self._is_expired(entry):
                self._store.delete(key)
                removed += 1
        if removed:
            logger.info("Expired %d anonymous customization entries", removed)
        return removed


__all__ = [
    "DEFAULT_RETENTION",
    "KEY_PREFIX",
    "AnonymousCustomizationCache",
    "CachedCustomization",
]
