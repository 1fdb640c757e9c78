"""Core domain helpers."""

from .errors import (
    CatalogError,
    NotFoundError,
    StorageError,
    TransportError,
    ValidationError,
)

__all__ = [
    "CatalogError",
    "NotFoundError",
    "StorageError",
    "TransportError",
    "ValidationError",
]
