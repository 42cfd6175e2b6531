"""Anonymous customization cache and sign-in migration."""

from .cache import DEFAULT_RETENTION, KEY_PREFIX, AnonymousCustomizationCache, CachedCustomization
from .exceptions import CacheStorageError, MigrationError
from .migration import AnonymousMigrator, MigrationOutcome, pick_target_build
from .storage import InMemoryKeyValueStore, JsonFileKeyValueStore, KeyValueStore

__all__ = [
    "DEFAULT_RETENTION",
    "KEY_PREFIX",
    "AnonymousCustomizationCache",
    "AnonymousMigrator",
    "CacheStorageError",
    "CachedCustomization",
    "InMemoryKeyValueStore",
    "JsonFileKeyValueStore",
    "KeyValueStore",
    "MigrationError",
    "MigrationOutcome",
    "pick_target_build",
]
