"""Catalog reference data."""

from .reference import CatalogEntry, CatalogReference

__all__ = ["CatalogEntry", "CatalogReference"]
