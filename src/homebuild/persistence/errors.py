"""Custom persistence exceptions."""

from __future__ import annotations


class RepositoryError(RuntimeError):
    """Base class for persistence layer errors."""


class NotFoundError(RepositoryError):
    """Raised when a requested entity is missing."""


class ConcurrencyError(RepositoryError):
    """Raised when a write conflicts with a concurrent write."""


class DuplicateKeyError(ConcurrencyError):
    """Raised when an idempotency key is already bound to another record."""


class OwnershipError(RepositoryError):
    """Raised when the caller does not own the build, or is anonymous."""
