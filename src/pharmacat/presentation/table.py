"""Table view model: filter, sort and paginate a product list."""

from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass, replace
from typing import Any, Literal

from src.pharmacat.entities.product import Product

PAGE_SIZE = 25

SortDirection = Literal["asc", "desc"]

SORT_KEYS: tuple[str, ...] = ("code", "brand", "generic_name", "dosage_form", "price")

COLUMN_LABELS = {
    "code": "Code",
    "brand": "Brand",
    "generic_name": "Generic Name",
    "dosage_form": "Dosage Form",
    "price": "Price",
}

SEARCH_FIELDS = ("brand", "generic_name", "dosage_form")

EMPTY_STORE_MESSAGE = "No products yet. Add one to get started."
NO_MATCH_MESSAGE = "No products match your search."


@dataclass(frozen=True)
class TableQuery:
    """What the user asked the table to show."""

    search: str = ""
    sort_key: str | None = None
    direction: SortDirection = "asc"
    page: int = 1

    @classmethod
    def from_params(
        cls,
        search: str | None = None,
        sort: str | None = None,
        direction: str | None = None,
        page: Any = None,
    ) -> TableQuery:
        """Build a query from loosely typed request parameters."""
        try:
            page_number = int(page) if page not in (None, "") else 1
        except (TypeError, ValueError):
            page_number = 1
        return cls(
            search=(search or "").strip(),
            sort_key=sort if sort in SORT_KEYS else None,
            direction="desc" if direction == "desc" else "asc",
            page=page_number,
        )

    def with_search(self, search: str) -> TableQuery:
        return replace(self, search=search.strip(), page=1)

    def with_sort(self, key: str) -> TableQuery:
        """Sort by ``key``; the same key again flips the direction."""
        if key not in SORT_KEYS:
            raise ValueError(f"Cannot sort by {key!r}")
        if key == self.sort_key:
            direction: SortDirection = "desc" if self.direction == "asc" else "asc"
        else:
            direction = "asc"
        return replace(self, sort_key=key, direction=direction, page=1)

    def with_page(self, page: int) -> TableQuery:
        return replace(self, page=page)

    def params(self, **overrides: Any) -> dict[str, Any]:
        """Query-string parameters for links that keep the current state."""
        values = {
            "search": self.search,
            "sort": self.sort_key or "",
            "direction": self.direction,
            "page": self.page,
        }
        values.update(overrides)
        return {key: value for key, value in values.items() if value not in ("", None)}


@dataclass(frozen=True)
class TablePage:
    """One rendered page of the product table."""

    items: list[Product]
    query: TableQuery
    page: int
    total_pages: int
    total_items: int
    matching_items: int
    page_size: int

    @property
    def has_previous(self) -> bool:
        return self.page > 1

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages

    @property
    def first_index(self) -> int:
        """1-based position of the first row on this page (0 when empty)."""
        if not self.items:
            return 0
        return (self.page - 1) * self.page_size + 1

    @property
    def last_index(self) -> int:
        return self.first_index + len(self.items) - 1 if self.items else 0

    @property
    def empty_message(self) -> str | None:
        if self.items:
            return None
        return EMPTY_STORE_MESSAGE if self.total_items == 0 else NO_MATCH_MESSAGE

    def sort_indicator(self, key: str) -> str:
        if self.query.sort_key != key:
            return "⇅"
        return "↑" if self.query.direction == "asc" else "↓"


def filter_products(products: Sequence[Product], search: str) -> list[Product]:
    """Case-insensitive substring match on brand, generic name or dosage form."""
    needle = search.strip().lower()
    if not needle:
        return list(products)
    return [
        product
        for product in products
        if any(needle in getattr(product, name).lower() for name in SEARCH_FIELDS)
    ]


def sort_products(
    products: Sequence[Product], key: str | None, direction: SortDirection = "asc"
) -> list[Product]:
    """Stable sort by one column; ``price`` compares numerically."""
    if key is None:
        return list(products)
    if key not in SORT_KEYS:
        raise ValueError(f"Cannot sort by {key!r}")
    return sorted(
        products,
        key=lambda product: getattr(product, key),
        reverse=direction == "desc",
    )


def page_count(item_count: int, page_size: int = PAGE_SIZE) -> int:
    return max(1, math.ceil(item_count / page_size))


def clamp_page(page: int, total_pages: int) -> int:
    return min(max(page, 1), total_pages)


def build_table_page(
    products: Sequence[Product], query: TableQuery, page_size: int = PAGE_SIZE
) -> TablePage:
    """Filter, then sort, then cut out the requested page."""
    matching = sort_products(
        filter_products(products, query.search), query.sort_key, query.direction
    )
    total_pages = page_count(len(matching), page_size)
    page = clamp_page(query.page, total_pages)
    start = (page - 1) * page_size
    return TablePage(
        items=matching[start : start + page_size],
        query=query.with_page(page),
        page=page,
        total_pages=total_pages,
        total_items=len(products),
        matching_items=len(matching),
        page_size=page_size,
    )
