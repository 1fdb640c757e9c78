from __future__ import annotations

from collections.abc import Generator
from pathlib import Path

import pytest

from src.pharmacat.catalog import CatalogReference
from src.pharmacat.stores import (
    CsvOverlayRecordStore,
    EmbeddedRecordStore,
    RecordStore,
    SqliteFileRecordStore,
)

__all__ = ["csv_store", "embedded_store", "local_store", "sqlite_store"]


@pytest.fixture
def sqlite_store(
    tmp_path: Path, catalog: CatalogReference
) -> Generator[SqliteFileRecordStore]:
    store = SqliteFileRecordStore(
        tmp_path / "data" / "pharmacy.sqlite", catalog, upload_dir=tmp_path / "uploads"
    )
    try:
        yield store
    finally:
        store.close()


@pytest.fixture
def embedded_store(catalog: CatalogReference) -> Generator[EmbeddedRecordStore]:
    store = EmbeddedRecordStore(catalog)
    try:
        yield store
    finally:
        store.close()


@pytest.fixture
def csv_store(tmp_path: Path, catalog: CatalogReference) -> CsvOverlayRecordStore:
    return CsvOverlayRecordStore(
        tmp_path / "product_list.csv", tmp_path / "product_changes.json", catalog
    )


@pytest.fixture(params=["sqlite", "embedded", "csv"])
def local_store(request: pytest.FixtureRequest) -> RecordStore:
    """Every in-process record store, one test run each."""
    return request.getfixturevalue(f"{request.param}_store")
