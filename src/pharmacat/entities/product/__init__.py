"""Entity package: Product."""

from .entity import Product, ProductDraft, format_price, normalize_price
from .repository import ProductRepository
from .table import ProductTable, RetiredCodeTable

__all__ = [
    "Product",
    "ProductDraft",
    "ProductRepository",
    "ProductTable",
    "RetiredCodeTable",
    "format_price",
    "normalize_price",
]
