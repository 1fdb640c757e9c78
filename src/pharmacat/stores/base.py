"""Record store interface shared by every backend."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, ClassVar

from loguru import logger

from src.pharmacat.catalog import CatalogReference
from src.pharmacat.core.errors import ValidationError
from src.pharmacat.entities.product import Product, ProductDraft
from src.pharmacat.stores.csv_codec import products_to_csv, read_csv_rows

DraftInput = ProductDraft | Mapping[str, Any]


@dataclass
class ImportReport:
    """Outcome of a bulk CSV import."""

    created: list[Product] = field(default_factory=list)
    skipped: dict[int, dict[str, str]] = field(default_factory=dict)

    @property
    def created_count(self) -> int:
        return len(self.created)

    @property
    def skipped_count(self) -> int:
        return len(self.skipped)


class RecordStore(ABC):
    """A single table of products keyed by a generated code.

    Implementations differ only in where the rows live; they all expose the
    same verbs and raise the same errors:

    - ``ValidationError`` when a draft is incomplete or inconsistent with the
      catalog reference,
    - ``NotFoundError`` when a code does not exist,
    - ``StorageError`` when persistence fails.
    """

    backend: ClassVar[str]
    snapshot_filename: ClassVar[str] = "pharmacy.sqlite"
    snapshot_media_type: ClassVar[str] = "application/octet-stream"

    def __init__(self, catalog: CatalogReference | None = None) -> None:
        self._catalog = catalog

    @property
    def catalog(self) -> CatalogReference | None:
        return self._catalog

    @property
    def has_unsaved_changes(self) -> bool:
        """True when mutations are only held in memory until the next export."""
        return False

    def validate_draft(self, draft: DraftInput) -> ProductDraft:
        """Parse ``draft`` and check it against the catalog reference, if any."""
        parsed = ProductDraft.parse(draft)
        if self._catalog is not None:
            if parsed.generic_name not in self._catalog:
                raise ValidationError(
                    {"generic_name": f"Unknown generic name '{parsed.generic_name}'"}
                )
            if not self._catalog.is_valid_pair(parsed.generic_name, parsed.dosage_form):
                raise ValidationError(
                    {
                        "dosage_form": (
                            f"'{parsed.dosage_form}' is not a dosage form of "
                            f"{parsed.generic_name}"
                        )
                    }
                )
        return parsed

    @abstractmethod
    def list(self) -> list[Product]:
        """Return every product, newest first."""

    @abstractmethod
    def get(self, code: str) -> Product:
        """Return the product with ``code`` or raise ``NotFoundError``."""

    @abstractmethod
    def create(self, draft: DraftInput) -> Product:
        """Persist a new product under a freshly generated code."""

    @abstractmethod
    def update(self, code: str, draft: DraftInput) -> Product:
        """Overwrite every mutable field of ``code``."""

    @abstractmethod
    def delete(self, code: str) -> None:
        """Remove ``code`` permanently."""

    @abstractmethod
    def clear(self) -> int:
        """Remove every product and return how many were removed."""

    @abstractmethod
    def export_snapshot(self) -> bytes:
        """Serialize the whole store as a portable file."""

    @abstractmethod
    def import_snapshot(self, blob: bytes) -> None:
        """Replace the whole store with a snapshot produced by ``export_snapshot``."""

    def export_csv(self) -> bytes:
        return products_to_csv(self.list())

    def import_csv(self, blob: bytes) -> ImportReport:
        """Create one product per valid CSV row; invalid rows are reported, not stored."""
        report = ImportReport()
        for line_number, row in enumerate(read_csv_rows(blob), start=2):
            row.pop("code", None)
            try:
                report.created.append(self.create(row))
            except ValidationError as e:
                logger.warning("Skipping CSV row {}: {}", line_number, e.message)
                report.skipped[line_number] = e.fields
        logger.info(
            "CSV import finished: {} created, {} skipped",
            report.created_count,
            report.skipped_count,
        )
        return report

    def close(self) -> None:
        """Release resources held by the store."""
