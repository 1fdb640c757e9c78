"""Field naming at the serialization boundary.

Internally every layer uses the canonical snake_case names. The REST API and
the CSV files use the historical display names below; conversion happens only
through these helpers.
"""

from collections.abc import Mapping
from typing import Any

CODE = "code"

WIRE_NAMES: dict[str, str] = {
    "code": "code",
    "brand": "Brand",
    "generic_name": "Generic Name",
    "dosage_form": "Dosage Form",
    "price": "Price",
}

WIRE_HEADERS: list[str] = list(WIRE_NAMES.values())

_CANONICAL_NAMES = {wire: canonical for canonical, wire in WIRE_NAMES.items()}


def to_wire(record: Mapping[str, Any]) -> dict[str, Any]:
    """Rename canonical keys to wire keys, dropping anything else."""
    return {wire: record[name] for name, wire in WIRE_NAMES.items() if name in record}


def from_wire(record: Mapping[str, Any]) -> dict[str, Any]:
    """Rename wire keys (or already canonical keys) to canonical keys.

    Keys are matched after trimming surrounding whitespace; unknown keys are
    dropped.
    """
    result: dict[str, Any] = {}
    for key, value in record.items():
        if key is None:
            continue
        name = key.strip()
        if name in _CANONICAL_NAMES:
            result[_CANONICAL_NAMES[name]] = value
        elif name in WIRE_NAMES:
            result[name] = value
    return result
