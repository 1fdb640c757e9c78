"""View models behind the HTML pages."""

from .form import BRAND_HINT, ProductFormState
from .table import (
    NO_MATCH_MESSAGE,
    PAGE_SIZE,
    SORT_KEYS,
    TablePage,
    TableQuery,
    build_table_page,
    filter_products,
    sort_products,
)

__all__ = [
    "BRAND_HINT",
    "NO_MATCH_MESSAGE",
    "PAGE_SIZE",
    "SORT_KEYS",
    "ProductFormState",
    "TablePage",
    "TableQuery",
    "build_table_page",
    "filter_products",
    "sort_products",
]
