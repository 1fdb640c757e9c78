"""SQLite-backed record stores.

``SqliteFileRecordStore`` keeps the table in a database file on the server.
``EmbeddedRecordStore`` keeps it in an in-process, in-memory database that is
persisted only by exporting a snapshot.
"""

from __future__ import annotations

import os
import sqlite3
import tempfile
from collections.abc import Iterator
from contextlib import contextmanager, suppress
from decimal import Decimal
from pathlib import Path

from loguru import logger
from sqlalchemy import Engine, StaticPool
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, SQLModel, create_engine

from src.pharmacat.catalog import CatalogReference
from src.pharmacat.core.errors import (
    CatalogError,
    NotFoundError,
    StorageError,
    ValidationError,
)
from src.pharmacat.entities.product import (
    Product,
    ProductDraft,
    ProductRepository,
    ProductTable,
    RetiredCodeTable,
)
from src.pharmacat.stores.base import DraftInput, RecordStore
from src.pharmacat.stores.codes import make_unique_code

SQLITE_HEADER = b"SQLite format 3\x00"
REQUIRED_COLUMNS = frozenset(column.name for column in ProductTable.__table__.columns)

# Loaded into a fresh embedded store when seeding is enabled
SAMPLE_PRODUCTS: tuple[tuple[str, ProductDraft], ...] = (
    (
        "PRD001",
        ProductDraft(
            brand="Saline Solution",
            generic_name="0.9% SODIUM CHLORIDE",
            dosage_form="250 mL SOLUTION FOR INFUSION",
            price=Decimal("15.99"),
        ),
    ),
    (
        "PRD002",
        ProductDraft(
            brand="Dextrose IV",
            generic_name="5% DEXTROSE IN WATER",
            dosage_form="500 mL SOLUTION FOR INFUSION",
            price=Decimal("22.50"),
        ),
    ),
    (
        "PRD003",
        ProductDraft(
            brand="Aciclovir Tablets",
            generic_name="ACICLOVIR",
            dosage_form="200 mg TABLET",
            price=Decimal("45.75"),
        ),
    ),
)


def check_snapshot(blob: bytes) -> None:
    """Make sure ``blob`` is a SQLite database holding a usable products table."""
    if not blob.startswith(SQLITE_HEADER):
        raise ValidationError({"database": "Not a SQLite database file"})

    probe = sqlite3.connect(":memory:")
    try:
        probe.deserialize(blob)
        columns = {row[1] for row in probe.execute("PRAGMA table_info(products)")}
    except sqlite3.DatabaseError as e:
        raise ValidationError({"database": f"Unreadable SQLite database: {e}"}) from e
    finally:
        probe.close()

    if not columns:
        raise ValidationError({"database": "Database has no products table"})
    missing = REQUIRED_COLUMNS - columns
    if missing:
        raise ValidationError(
            {"database": f"products table is missing columns: {', '.join(sorted(missing))}"}
        )


class SqlRecordStore(RecordStore):
    """Record store over a SQLModel engine."""

    def __init__(self, engine: Engine, catalog: CatalogReference | None = None) -> None:
        super().__init__(catalog)
        self._engine = engine
        self._create_tables()

    def _create_tables(self) -> None:
        try:
            SQLModel.metadata.create_all(
                self._engine,
                tables=[ProductTable.__table__, RetiredCodeTable.__table__],
            )
        except SQLAlchemyError as e:
            raise StorageError(f"Cannot initialise products table: {e}") from e

    @contextmanager
    def session_scope(self, write: bool = False) -> Iterator[Session]:
        """Transaction around one store operation."""
        db = Session(self._engine, expire_on_commit=False)
        try:
            yield db
            db.commit()
            if write:
                self._after_write()
        except CatalogError:
            db.rollback()
            raise
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(
                "Database transaction failed",
                error_type=type(e).__name__,
                error_message=str(e),
            )
            raise StorageError(f"Database operation failed: {e}") from e
        finally:
            db.close()

    def _after_write(self) -> None:
        pass

    def list(self) -> list[Product]:
        with self.session_scope() as db:
            return ProductRepository(db).list_all()

    def get(self, code: str) -> Product:
        with self.session_scope() as db:
            product = ProductRepository(db).get(code)
        if product is None:
            raise NotFoundError(code)
        return product

    def create(self, draft: DraftInput) -> Product:
        parsed = self.validate_draft(draft)
        with self.session_scope(write=True) as db:
            repository = ProductRepository(db)
            code = make_unique_code(repository.is_code_taken)
            product = repository.create(code, parsed)
        logger.info("Created product {} ({})", product.code, product.generic_name)
        return product

    def update(self, code: str, draft: DraftInput) -> Product:
        parsed = self.validate_draft(draft)
        with self.session_scope(write=True) as db:
            product = ProductRepository(db).update(code, parsed)
            if product is None:
                raise NotFoundError(code)
        logger.info("Updated product {}", code)
        return product

    def delete(self, code: str) -> None:
        with self.session_scope(write=True) as db:
            if not ProductRepository(db).delete(code):
                raise NotFoundError(code)
        logger.info("Deleted product {}", code)

    def clear(self) -> int:
        with self.session_scope(write=True) as db:
            removed = ProductRepository(db).delete_all()
        logger.info("Cleared {} products", removed)
        return removed

    def close(self) -> None:
        self._engine.dispose()


class SqliteFileRecordStore(SqlRecordStore):
    """Products persisted in a SQLite file; the file itself is the snapshot."""

    backend = "sqlite"
    snapshot_filename = "pharmacy.sqlite"
    snapshot_media_type = "application/vnd.sqlite3"

    def __init__(
        self,
        db_path: Path | str,
        catalog: CatalogReference | None = None,
        upload_dir: Path | str | None = None,
    ) -> None:
        self._db_path = Path(db_path)
        self._upload_dir = Path(upload_dir) if upload_dir else self._db_path.parent
        try:
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(f"Cannot create database directory: {e}") from e
        super().__init__(self._make_engine(), catalog)
        logger.info("Using SQLite database file {}", self._db_path)

    def _make_engine(self) -> Engine:
        return create_engine(
            f"sqlite:///{self._db_path}",
            echo=False,
            connect_args={
                "check_same_thread": False,
                "timeout": 20,  # Lock timeout
            },
        )

    @property
    def db_path(self) -> Path:
        return self._db_path

    def export_snapshot(self) -> bytes:
        try:
            return self._db_path.read_bytes()
        except OSError as e:
            raise StorageError(f"Cannot read database file: {e}") from e

    def import_snapshot(self, blob: bytes) -> None:
        check_snapshot(blob)
        try:
            self._upload_dir.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self._upload_dir, suffix=".sqlite")
        except OSError as e:
            raise StorageError(f"Cannot stage uploaded database: {e}") from e

        tmp_path = Path(tmp_name)
        try:
            with os.fdopen(fd, "wb") as handle:
                handle.write(blob)
            self._engine.dispose()
            os.replace(tmp_path, self._db_path)
        except OSError as e:
            raise StorageError(f"Failed to update database: {e}") from e
        finally:
            with suppress(OSError):
                tmp_path.unlink(missing_ok=True)

        self._engine = self._make_engine()
        self._create_tables()
        logger.info("Replaced database file {} ({} bytes)", self._db_path, len(blob))


class EmbeddedRecordStore(SqlRecordStore):
    """Products held in an in-memory SQLite database.

    Mutations only live in memory; ``has_unsaved_changes`` stays true until the
    store is exported, which is the caller's cue to offer a download.
    """

    backend = "embedded"
    snapshot_filename = "pharmacy.sqlite"
    snapshot_media_type = "application/vnd.sqlite3"

    def __init__(
        self,
        catalog: CatalogReference | None = None,
        snapshot: bytes | None = None,
        seed: bool = False,
    ) -> None:
        engine = create_engine(
            "sqlite://",
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
        self._dirty = False
        super().__init__(engine, catalog)
        if snapshot is not None:
            self.import_snapshot(snapshot)
        elif seed:
            self._seed()

    def _seed(self) -> None:
        """Insert the sample products; the store still counts as unchanged."""
        with self.session_scope() as db:
            repository = ProductRepository(db)
            for code, draft in SAMPLE_PRODUCTS:
                repository.create(code, draft)
        logger.info("Seeded embedded database with {} sample products", len(SAMPLE_PRODUCTS))

    @property
    def has_unsaved_changes(self) -> bool:
        return self._dirty

    def _after_write(self) -> None:
        self._dirty = True

    def export_snapshot(self) -> bytes:
        raw = self._engine.raw_connection()
        try:
            blob = raw.driver_connection.serialize()
        except sqlite3.Error as e:
            raise StorageError(f"Cannot serialize database: {e}") from e
        finally:
            raw.close()
        self._dirty = False
        return bytes(blob)

    def import_snapshot(self, blob: bytes) -> None:
        check_snapshot(blob)
        raw = self._engine.raw_connection()
        try:
            raw.driver_connection.deserialize(blob)
        except sqlite3.Error as e:
            raise StorageError(f"Cannot load database snapshot: {e}") from e
        finally:
            raw.close()
        self._create_tables()
        self._dirty = False
        logger.info("Loaded embedded database snapshot ({} bytes)", len(blob))
