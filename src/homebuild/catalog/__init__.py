"""Option/package catalog exports."""

from .exceptions import CatalogError, ModelNotFoundError, OptionNotFoundError
from .service import CatalogService

__all__ = [
    "CatalogError",
    "CatalogService",
    "ModelNotFoundError",
    "OptionNotFoundError",
]
