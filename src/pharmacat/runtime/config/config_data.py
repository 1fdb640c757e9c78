"""Typed sections of the ``config:`` document in config.yaml.

Every field has a default so the application also starts without the file.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field

StoreBackend = Literal["sqlite", "embedded", "csv", "remote"]

_PACKAGE_DIR = Path(__file__).resolve().parent.parent.parent


class CORSConfig(BaseModel):
    """Origins allowed to call the REST API from a browser."""

    origins: list[str] = Field(
        default=["http://localhost:3000", "http://localhost:5173"]
    )
    allow_credentials: bool = True
    allow_methods: list[str] = Field(
        default=["GET", "POST", "PUT", "DELETE", "OPTIONS"]
    )
    allow_headers: list[str] = Field(default=["*"])


class LoggingConfig(BaseModel):
    """Loguru sinks."""

    level: str = Field(default="INFO", description="Logging level")
    format: Literal["json", "plain"] = Field(default="plain", description="Log format")
    file: str | None = Field(default=None, description="Log file path")
    max_size_mb: int = Field(default=10, description="Maximum log file size in MB")
    backup_count: int = Field(
        default=5, description="Number of backup log files to keep"
    )


class StorageConfig(BaseModel):
    """Record store configuration model."""

    backend: StoreBackend = Field(
        default="sqlite", description="Which record store implementation to use"
    )
    db_path: str = Field(
        default="data/pharmacy.sqlite", description="SQLite database file"
    )
    csv_path: str = Field(
        default="data/product_list.csv",
        description="Base CSV file for the csv backend",
    )
    overlay_path: str = Field(
        default="data/product_changes.json",
        description="Delta file holding local changes for the csv backend",
    )
    remote_url: str = Field(
        default="http://localhost:3001/api",
        description="Base URL of the REST API for the remote backend",
    )
    remote_timeout: float = Field(
        default=10.0, description="HTTP timeout in seconds for the remote backend"
    )
    upload_dir: str = Field(
        default="uploads", description="Directory for temporary upload files"
    )
    seed_sample_data: bool = Field(
        default=False,
        description="Start the embedded backend with a few sample products",
    )


class CatalogConfig(BaseModel):
    """Catalog reference data configuration."""

    reference_file: str = Field(
        default=str(_PACKAGE_DIR / "resources" / "item_codes.csv"),
        description="CSV file with 'Generic Name' and 'Dosage Form' columns",
    )


class UIConfig(BaseModel):
    """Presentation configuration."""

    page_size: int = Field(default=25, ge=1, description="Rows per table page")
    title: str = Field(
        default="Pharmacy Product Manager", description="Page title"
    )


class AppConfig(BaseModel):
    """Where and how the web server runs."""

    environment: Literal["development", "production", "test"] = Field(
        default="development", description="Application environment"
    )
    host: str = Field(default="localhost", description="Application host")
    port: int = Field(default=3001, description="Application port")
    cors: CORSConfig = Field(
        default_factory=CORSConfig, description="CORS configuration"
    )


class ConfigData(BaseModel):
    """The whole ``config:`` document."""

    app: AppConfig = Field(
        default_factory=AppConfig, description="Application configuration"
    )
    logging: LoggingConfig = Field(
        default_factory=LoggingConfig, description="Logging configuration"
    )
    storage: StorageConfig = Field(
        default_factory=StorageConfig, description="Record store configuration"
    )
    catalog: CatalogConfig = Field(
        default_factory=CatalogConfig, description="Catalog reference configuration"
    )
    ui: UIConfig = Field(default_factory=UIConfig, description="UI configuration")
