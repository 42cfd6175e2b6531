"""Exceptions for the anonymous customization cache."""

from __future__ import annotations


class MigrationError(RuntimeError):
    """Raised when an anonymous customization cannot be moved into a build."""


class CacheStorageError(RuntimeError):
    """Raised when the backing key-value store cannot be read or written."""


__all__ = ["CacheStorageError", "MigrationError"]
