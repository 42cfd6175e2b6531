"""Catalog lookup and integrity errors."""

from __future__ import annotations


class CatalogError(RuntimeError):
    """Raised when catalog reference data cannot be loaded or is corrupt."""


class ModelNotFoundError(CatalogError):
    """Raised when a requested model is absent from the catalog."""


class OptionNotFoundError(CatalogError):
    """Raised when a requested option is absent from the catalog."""


__all__ = ["CatalogError", "ModelNotFoundError", "OptionNotFoundError"]
