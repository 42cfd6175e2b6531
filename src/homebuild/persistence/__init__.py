"""Persistence layer exports."""

from .errors import (
    ConcurrencyError,
    DuplicateKeyError,
    NotFoundError,
    OwnershipError,
    RepositoryError,
)
from .interfaces import BuildEventRepository, BuildRepository, UnitOfWork
from .memory import InMemoryUnitOfWork

__all__ = [
    "BuildEventRepository",
    "BuildRepository",
    "ConcurrencyError",
    "DuplicateKeyError",
    "InMemoryUnitOfWork",
    "NotFoundError",
    "OwnershipError",
    "RepositoryError",
    "UnitOfWork",
]
