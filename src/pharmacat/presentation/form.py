"""Create/edit form state with dependent generic name / dosage form selection."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from src.pharmacat.catalog import CatalogReference
from src.pharmacat.entities.product import Product, ProductDraft, normalize_price

BRAND_HINT = "Your brand is empty - this field is optional"


@dataclass
class ProductFormState:
    """Values and errors of the product form as the user sees them.

    ``code`` is set when editing an existing product and empty when adding one.
    Price stays a string until the form validates.
    """

    brand: str = ""
    generic_name: str = ""
    dosage_form: str = ""
    price: str = ""
    code: str = ""
    errors: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_product(cls, product: Product) -> ProductFormState:
        return cls(
            brand=product.brand,
            generic_name=product.generic_name,
            dosage_form=product.dosage_form,
            price=product.price_display,
            code=product.code,
        )

    @classmethod
    def from_form(cls, data: Mapping[str, Any]) -> ProductFormState:
        """Read submitted form fields; missing ones are empty."""

        def text(name: str) -> str:
            value = data.get(name)
            return "" if value is None else str(value).strip()

        return cls(
            brand=text("brand"),
            generic_name=text("generic_name"),
            dosage_form=text("dosage_form"),
            price=text("price"),
            code=text("code"),
        )

    @property
    def is_edit(self) -> bool:
        return bool(self.code)

    @property
    def dosage_form_enabled(self) -> bool:
        return bool(self.generic_name)

    @property
    def brand_hint(self) -> str | None:
        """Non-blocking notice shown while the optional brand is empty."""
        if self.brand.strip() or "brand" in self.errors:
            return None
        return BRAND_HINT

    def select_generic_name(self, generic_name: str) -> None:
        """Choose a generic name; any chosen dosage form is cleared."""
        self.generic_name = generic_name.strip()
        self.dosage_form = ""
        self.errors.pop("generic_name", None)
        self.errors.pop("dosage_form", None)

    def select_dosage_form(self, dosage_form: str) -> None:
        self.dosage_form = dosage_form.strip()
        self.errors.pop("dosage_form", None)

    def dosage_form_options(self, catalog: CatalogReference) -> list[str]:
        if not self.generic_name:
            return []
        return catalog.dosage_forms_for(self.generic_name)

    def validate(self) -> bool:
        """Check required fields and price; fills ``errors`` and returns True when clean."""
        errors: dict[str, str] = {}
        if not self.generic_name:
            errors["generic_name"] = "Generic Name is required"
        if not self.dosage_form:
            errors["dosage_form"] = "Dosage Form is required"
        try:
            normalize_price(self.price)
        except ValueError as e:
            errors["price"] = str(e)
        self.errors = errors
        return not errors

    def to_draft(self) -> ProductDraft:
        """Draft to hand to the record store, price normalised to two decimals."""
        return ProductDraft(
            brand=self.brand,
            generic_name=self.generic_name,
            dosage_form=self.dosage_form,
            price=normalize_price(self.price),
        )

    def reset(self) -> None:
        self.brand = ""
        self.generic_name = ""
        self.dosage_form = ""
        self.price = ""
        self.errors = {}
