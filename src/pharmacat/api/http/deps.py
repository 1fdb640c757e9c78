"""FastAPI dependency implementations."""

from fastapi import Request

from src.pharmacat.api.http.app_data import ApplicationDependencies
from src.pharmacat.catalog import CatalogReference
from src.pharmacat.runtime.config.config_data import ConfigData
from src.pharmacat.runtime.context import get_config
from src.pharmacat.stores import RecordStore


def get_record_store(request: Request) -> RecordStore:
    """Get the record store instance."""
    app_deps: ApplicationDependencies = request.app.state.app_dependencies
    return app_deps.record_store


def get_catalog(request: Request) -> CatalogReference:
    """Get the catalog reference."""
    app_deps: ApplicationDependencies = request.app.state.app_dependencies
    return app_deps.catalog


def get_app_config() -> ConfigData:
    """Get the active configuration."""
    return get_config()
