"""CSV encoding of product lists."""

from __future__ import annotations

import csv
import io
from collections.abc import Iterable

from src.pharmacat.core.errors import ValidationError
from src.pharmacat.core.wire import WIRE_HEADERS, from_wire, to_wire
from src.pharmacat.entities.product import Product


def products_to_csv(products: Iterable[Product]) -> bytes:
    """One row per product under a ``code,Brand,Generic Name,Dosage Form,Price`` header."""
    buffer = io.StringIO()
    writer = csv.DictWriter(buffer, fieldnames=WIRE_HEADERS, lineterminator="\n")
    writer.writeheader()
    for product in products:
        writer.writerow(to_wire(product.model_dump(mode="json")))
    return buffer.getvalue().encode("utf-8")


def read_csv_rows(blob: bytes) -> list[dict[str, str]]:
    """Decode a CSV blob into canonical-keyed rows, skipping blank lines."""
    try:
        text = blob.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise ValidationError({"file": "CSV file must be UTF-8 encoded"}) from e

    reader = csv.DictReader(io.StringIO(text))
    if not reader.fieldnames:
        raise ValidationError({"file": "CSV file has no header row"})

    rows = []
    for row in reader:
        if not any((value or "").strip() for value in row.values() if isinstance(value, str)):
            continue
        rows.append({key: (value or "").strip() for key, value in from_wire(row).items()})
    return rows
