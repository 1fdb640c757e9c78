"""Entity: Product."""

from collections.abc import Mapping
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

from pydantic import BaseModel, Field, field_serializer, field_validator
from pydantic import ValidationError as PydanticValidationError
from pydantic_core import PydanticCustomError

from src.pharmacat.core.errors import ValidationError
from src.pharmacat.entities._base import Entity

PRICE_QUANTUM = Decimal("0.01")
# Largest price that survives the REAL column with its cents intact
MAX_PRICE = Decimal("999999999.99")

FIELD_LABELS = {
    "brand": "Brand",
    "generic_name": "Generic Name",
    "dosage_form": "Dosage Form",
    "price": "Price",
}


def normalize_price(value: Any) -> Decimal:
    """Parse ``value`` into a positive two-decimal ``Decimal``.

    Raises:
        ValueError: if the value is empty, not a finite number, not positive
            once rounded to cents, or above ``MAX_PRICE``.
    """
    if value is None or isinstance(value, bool):
        raise ValueError("Price is required")
    text = str(value).strip()
    if not text:
        raise ValueError("Price is required")
    try:
        price = Decimal(text)
    except InvalidOperation as e:
        raise ValueError("Price must be a positive number") from e
    if not price.is_finite():
        raise ValueError("Price must be a positive number")
    if price > MAX_PRICE:
        raise ValueError(f"Price must not exceed {MAX_PRICE}")
    try:
        price = price.quantize(PRICE_QUANTUM, rounding=ROUND_HALF_UP)
    except InvalidOperation as e:
        raise ValueError("Price must be a positive number") from e
    if price <= 0:
        raise ValueError("Price must be a positive number")
    return price


def format_price(value: Any) -> str:
    """Render a stored price as a fixed two-decimal string."""
    return f"{Decimal(str(value)).quantize(PRICE_QUANTUM, rounding=ROUND_HALF_UP):.2f}"


def _required_text(value: Any, field: str) -> str:
    text = "" if value is None else str(value).strip()
    if not text:
        raise PydanticCustomError("required", f"{FIELD_LABELS[field]} is required")
    return text


class ProductDraft(BaseModel):
    """The user-editable fields of a product, validated and normalised."""

    brand: str = Field(default="", description="Brand name, optional")
    generic_name: str = Field(description="Generic name from the catalog reference")
    dosage_form: str = Field(description="Dosage form registered for the generic name")
    price: Decimal = Field(description="Positive price with two fractional digits")

    @field_validator("brand", mode="before")
    @classmethod
    def _default_brand(cls, value: Any) -> str:
        return "" if value is None else str(value).strip()

    @field_validator("generic_name", mode="before")
    @classmethod
    def _check_generic_name(cls, value: Any) -> str:
        return _required_text(value, "generic_name")

    @field_validator("dosage_form", mode="before")
    @classmethod
    def _check_dosage_form(cls, value: Any) -> str:
        return _required_text(value, "dosage_form")

    @field_validator("price", mode="before")
    @classmethod
    def _check_price(cls, value: Any) -> Decimal:
        try:
            return normalize_price(value)
        except ValueError as e:
            raise PydanticCustomError("price", str(e)) from e

    @field_serializer("price")
    def _serialize_price(self, price: Decimal) -> str:
        return format_price(price)

    @classmethod
    def parse(cls, data: "ProductDraft | Mapping[str, Any]") -> "ProductDraft":
        """Build a draft from canonical field names, raising the catalog ``ValidationError``."""
        if isinstance(data, ProductDraft):
            return data
        try:
            return cls.model_validate(dict(data))
        except PydanticValidationError as e:
            fields: dict[str, str] = {}
            for error in e.errors():
                name = str(error["loc"][0]) if error["loc"] else "__root__"
                if error["type"] == "missing":
                    fields[name] = f"{FIELD_LABELS.get(name, name)} is required"
                else:
                    fields.setdefault(name, error["msg"])
            raise ValidationError(fields) from e


class Product(Entity):
    """Product entity representing one pharmaceutical catalog row.

    ``code`` is assigned by the record store at creation time and never
    changes afterwards.
    """

    code: str = Field(description="Unique immutable product code")
    brand: str = Field(default="", description="Brand name")
    generic_name: str = Field(description="Generic name")
    dosage_form: str = Field(description="Dosage form")
    price: Decimal = Field(description="Price with two fractional digits")

    @field_validator("price", mode="before")
    @classmethod
    def _quantize_price(cls, value: Any) -> Decimal:
        return Decimal(str(value)).quantize(PRICE_QUANTUM, rounding=ROUND_HALF_UP)

    @field_serializer("price")
    def _serialize_price(self, price: Decimal) -> str:
        return format_price(price)

    @property
    def price_display(self) -> str:
        return format_price(self.price)

    def to_draft(self) -> ProductDraft:
        return ProductDraft(
            brand=self.brand,
            generic_name=self.generic_name,
            dosage_form=self.dosage_form,
            price=self.price,
        )

    def __eq__(self, other: Any) -> bool:
        """Compare products by business attributes, ignoring timestamps."""
        if not isinstance(other, Product):
            return False

        return (
            self.code == other.code
            and self.brand == other.brand
            and self.generic_name == other.generic_name
            and self.dosage_form == other.dosage_form
            and self.price == other.price
        )

    def __hash__(self) -> int:
        """Hash based on business attributes, ignoring timestamps."""
        return hash((
            self.code,
            self.brand,
            self.generic_name,
            self.dosage_form,
            self.price,
        ))
