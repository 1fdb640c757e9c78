"""Read-only catalog of valid generic name / dosage form pairs."""

from __future__ import annotations

import csv
import io
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType

from loguru import logger

from src.pharmacat.core.errors import StorageError

GENERIC_NAME_COLUMN = "Generic Name"
DOSAGE_FORM_COLUMN = "Dosage Form"


@dataclass(frozen=True)
class CatalogEntry:
    generic_name: str
    dosage_form: str


class CatalogReference:
    """Immutable lookup built once from the bundled reference file.

    Many entries share a generic name; lookups return distinct values in
    alphabetical order.
    """

    def __init__(self, entries: Iterable[CatalogEntry]) -> None:
        forms: dict[str, set[str]] = {}
        count = 0
        for entry in entries:
            forms.setdefault(entry.generic_name, set()).add(entry.dosage_form)
            count += 1
        self._forms = MappingProxyType(
            {name: tuple(sorted(values)) for name, values in forms.items()}
        )
        self._names = tuple(sorted(self._forms))
        self._entry_count = count

    @classmethod
    def from_csv_text(cls, text: str) -> CatalogReference:
        reader = csv.DictReader(io.StringIO(text))
        if reader.fieldnames is None:
            raise StorageError("Catalog reference file is empty")
        reader.fieldnames = [name.strip() for name in reader.fieldnames]
        missing = {GENERIC_NAME_COLUMN, DOSAGE_FORM_COLUMN} - set(reader.fieldnames)
        if missing:
            raise StorageError(
                f"Catalog reference file is missing columns: {', '.join(sorted(missing))}"
            )

        entries = []
        for row in reader:
            generic_name = (row.get(GENERIC_NAME_COLUMN) or "").strip()
            dosage_form = (row.get(DOSAGE_FORM_COLUMN) or "").strip()
            if generic_name and dosage_form:
                entries.append(CatalogEntry(generic_name, dosage_form))
        return cls(entries)

    @classmethod
    def from_csv(cls, path: Path | str) -> CatalogReference:
        """Load the reference table from a CSV file."""
        path = Path(path)
        try:
            text = path.read_text(encoding="utf-8-sig")
        except OSError as e:
            raise StorageError(f"Cannot read catalog reference file {path}: {e}") from e
        reference = cls.from_csv_text(text)
        logger.info(
            "Loaded catalog reference from {}: {} entries, {} generic names",
            path,
            reference.entry_count,
            len(reference.unique_generic_names()),
        )
        return reference

    @property
    def entry_count(self) -> int:
        return self._entry_count

    def unique_generic_names(self) -> list[str]:
        return list(self._names)

    def dosage_forms_for(self, generic_name: str) -> list[str]:
        return list(self._forms.get(generic_name, ()))

    def is_valid_pair(self, generic_name: str, dosage_form: str) -> bool:
        return dosage_form in self._forms.get(generic_name, ())

    def __contains__(self, generic_name: object) -> bool:
        return generic_name in self._forms

    def __len__(self) -> int:
        return len(self._names)
