"""CSV base file plus a JSON change overlay.

The base file is only rewritten when a snapshot is imported; day-to-day
mutations are recorded in the overlay as added products, updated products and
deleted codes, and merged over the base on every read.
"""

from __future__ import annotations

import os
import tempfile
import threading
from contextlib import suppress
from datetime import UTC, datetime
from pathlib import Path

from loguru import logger
from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from src.pharmacat.catalog import CatalogReference
from src.pharmacat.core.errors import NotFoundError, StorageError, ValidationError
from src.pharmacat.entities._base import utc_now
from src.pharmacat.entities.product import Product, ProductDraft
from src.pharmacat.stores.base import DraftInput, RecordStore
from src.pharmacat.stores.codes import make_unique_code
from src.pharmacat.stores.csv_codec import products_to_csv, read_csv_rows


class OverlayState(BaseModel):
    """Changes recorded on top of the base CSV file."""

    added: list[Product] = Field(default_factory=list)
    updated: dict[str, Product] = Field(default_factory=dict)
    deleted: list[str] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (self.added or self.updated or self.deleted)


def _write_atomic(path: Path, data: bytes) -> None:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.")
    except OSError as e:
        raise StorageError(f"Cannot write {path}: {e}") from e

    tmp_path = Path(tmp_name)
    try:
        with os.fdopen(fd, "wb") as handle:
            handle.write(data)
        os.replace(tmp_path, path)
    except OSError as e:
        raise StorageError(f"Cannot write {path}: {e}") from e
    finally:
        with suppress(OSError):
            tmp_path.unlink(missing_ok=True)


class CsvOverlayRecordStore(RecordStore):
    """Products read from a CSV file with local changes kept in a JSON overlay."""

    backend = "csv"
    snapshot_filename = "product_list.csv"
    snapshot_media_type = "text/csv"

    def __init__(
        self,
        csv_path: Path | str,
        overlay_path: Path | str,
        catalog: CatalogReference | None = None,
    ) -> None:
        super().__init__(catalog)
        self._csv_path = Path(csv_path)
        self._overlay_path = Path(overlay_path)
        self._lock = threading.RLock()
        self._base = self._load_base()
        self._state = self._load_overlay()
        logger.info(
            "Using CSV store {} ({} base rows, overlay {})",
            self._csv_path,
            len(self._base),
            self._overlay_path,
        )

    @property
    def overlay(self) -> OverlayState:
        return self._state.model_copy(deep=True)

    def _load_base(self) -> list[Product]:
        if not self._csv_path.exists():
            return []
        try:
            blob = self._csv_path.read_bytes()
            loaded_at = datetime.fromtimestamp(self._csv_path.stat().st_mtime, UTC)
        except OSError as e:
            raise StorageError(f"Cannot read {self._csv_path}: {e}") from e

        try:
            rows = read_csv_rows(blob)
        except ValidationError as e:
            raise StorageError(f"Cannot parse {self._csv_path}: {e.message}") from e

        products: list[Product] = []
        seen: set[str] = set()
        needs_codes = False
        for line_number, row in enumerate(rows, start=2):
            code = row.pop("code", "")
            try:
                draft = ProductDraft.parse(row)
            except ValidationError as e:
                logger.warning("Ignoring row {} of {}: {}", line_number, self._csv_path, e.message)
                continue
            if not code or code in seen:
                code = make_unique_code(lambda candidate: candidate in seen)
                needs_codes = True
            seen.add(code)
            products.append(self._build(code, draft, loaded_at, loaded_at))

        if needs_codes:
            # Persist generated codes so overlay entries stay addressable
            _write_atomic(self._csv_path, products_to_csv(products))
            logger.info("Assigned missing product codes in {}", self._csv_path)
        return products

    def _load_overlay(self) -> OverlayState:
        if not self._overlay_path.exists():
            return OverlayState()
        try:
            return OverlayState.model_validate_json(self._overlay_path.read_bytes())
        except OSError as e:
            raise StorageError(f"Cannot read {self._overlay_path}: {e}") from e
        except PydanticValidationError as e:
            raise StorageError(f"Corrupt overlay file {self._overlay_path}: {e}") from e

    def _save(self, state: OverlayState) -> None:
        _write_atomic(self._overlay_path, state.model_dump_json(indent=2).encode("utf-8"))
        self._state = state

    @staticmethod
    def _build(
        code: str, draft: ProductDraft, created_at: datetime, updated_at: datetime
    ) -> Product:
        return Product(
            code=code,
            brand=draft.brand,
            generic_name=draft.generic_name,
            dosage_form=draft.dosage_form,
            price=draft.price,
            created_at=created_at,
            updated_at=updated_at,
        )

    def _merged(self) -> list[Product]:
        deleted = set(self._state.deleted)
        products = [
            self._state.updated.get(product.code, product)
            for product in self._base
            if product.code not in deleted
        ]
        products.extend(p for p in self._state.added if p.code not in deleted)
        return products

    def _is_taken(self, code: str) -> bool:
        return (
            code in self._state.deleted
            or any(p.code == code for p in self._base)
            or any(p.code == code for p in self._state.added)
        )

    def list(self) -> list[Product]:
        with self._lock:
            merged = self._merged()
        order = sorted(
            range(len(merged)),
            key=lambda i: (merged[i].created_at, i),
            reverse=True,
        )
        return [merged[i] for i in order]

    def get(self, code: str) -> Product:
        with self._lock:
            for product in self._merged():
                if product.code == code:
                    return product
        raise NotFoundError(code)

    def create(self, draft: DraftInput) -> Product:
        parsed = self.validate_draft(draft)
        with self._lock:
            now = utc_now()
            product = self._build(make_unique_code(self._is_taken), parsed, now, now)
            state = self._state.model_copy(deep=True)
            state.added.append(product)
            self._save(state)
        logger.info("Created product {} ({})", product.code, product.generic_name)
        return product

    def update(self, code: str, draft: DraftInput) -> Product:
        parsed = self.validate_draft(draft)
        with self._lock:
            current = self.get(code)
            product = self._build(code, parsed, current.created_at, utc_now())
            state = self._state.model_copy(deep=True)
            for index, added in enumerate(state.added):
                if added.code == code:
                    state.added[index] = product
                    break
            else:
                state.updated[code] = product
            self._save(state)
        logger.info("Updated product {}", code)
        return product

    def delete(self, code: str) -> None:
        with self._lock:
            self.get(code)
            state = self._state.model_copy(deep=True)
            state.added = [p for p in state.added if p.code != code]
            state.updated.pop(code, None)
            state.deleted.append(code)
            self._save(state)
        logger.info("Deleted product {}", code)

    def clear(self) -> int:
        with self._lock:
            codes = [p.code for p in self._merged()]
            state = self._state.model_copy(deep=True)
            state.added = []
            state.updated = {}
            state.deleted.extend(codes)
            self._save(state)
        logger.info("Cleared {} products", len(codes))
        return len(codes)

    def export_snapshot(self) -> bytes:
        # Oldest first, so that re-importing keeps the same listing order
        return products_to_csv(reversed(self.list()))

    def import_snapshot(self, blob: bytes) -> None:
        rows = read_csv_rows(blob)
        drafts: list[tuple[str, ProductDraft]] = []
        errors: dict[str, str] = {}
        for line_number, row in enumerate(rows, start=2):
            code = row.pop("code", "")
            try:
                drafts.append((code, ProductDraft.parse(row)))
            except ValidationError as e:
                errors[f"row {line_number}"] = e.message
        if errors:
            raise ValidationError(errors, message=f"Invalid CSV snapshot: {len(errors)} bad rows")

        with self._lock:
            now = utc_now()
            seen: set[str] = set()
            products = []
            for code, draft in drafts:
                if not code or code in seen:
                    code = make_unique_code(lambda candidate: candidate in seen)
                seen.add(code)
                products.append(self._build(code, draft, now, now))
            _write_atomic(self._csv_path, products_to_csv(products))
            self._base = products
            self._save(OverlayState())
        logger.info("Replaced {} with {} products", self._csv_path, len(products))

    def reset_to_original(self) -> None:
        """Discard every recorded change and show the base file again."""
        with self._lock:
            self._save(OverlayState())
        logger.info("Discarded overlay changes in {}", self._overlay_path)
