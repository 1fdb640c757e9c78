"""Build the configured record store."""

from loguru import logger

from src.pharmacat.catalog import CatalogReference
from src.pharmacat.runtime.config.config_data import StorageConfig
from src.pharmacat.stores.base import RecordStore
from src.pharmacat.stores.csv_overlay import CsvOverlayRecordStore
from src.pharmacat.stores.remote import RemoteRecordStore
from src.pharmacat.stores.sql import EmbeddedRecordStore, SqliteFileRecordStore


def build_record_store(
    storage: StorageConfig, catalog: CatalogReference | None = None
) -> RecordStore:
    """Create the record store selected by ``storage.backend``."""
    logger.info("Building {} record store", storage.backend)
    if storage.backend == "sqlite":
        return SqliteFileRecordStore(
            storage.db_path, catalog, upload_dir=storage.upload_dir
        )
    if storage.backend == "embedded":
        return EmbeddedRecordStore(catalog, seed=storage.seed_sample_data)
    if storage.backend == "csv":
        return CsvOverlayRecordStore(storage.csv_path, storage.overlay_path, catalog)
    if storage.backend == "remote":
        return RemoteRecordStore(
            catalog=catalog,
            base_url=storage.remote_url,
            timeout=storage.remote_timeout,
        )
    raise ValueError(f"Unknown storage backend: {storage.backend}")
