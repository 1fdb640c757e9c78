"""Request and response bodies of the products API.

Field aliases carry the historical wire names (``Brand``, ``Generic Name``...).
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from src.pharmacat.entities.product import Product


class ProductPayload(BaseModel):
    """Body of POST /api/products and PUT /api/products/{code}.

    Values are checked by the record store so that missing fields come back
    with the same messages as the form.
    """

    model_config = ConfigDict(populate_by_name=True)

    brand: str | None = Field(default="", alias="Brand")
    generic_name: str | None = Field(default=None, alias="Generic Name")
    dosage_form: str | None = Field(default=None, alias="Dosage Form")
    price: str | float | None = Field(default=None, alias="Price")

    def to_draft_data(self) -> dict[str, Any]:
        return self.model_dump(by_alias=False)


class ProductOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    code: str
    brand: str = Field(alias="Brand")
    generic_name: str = Field(alias="Generic Name")
    dosage_form: str = Field(alias="Dosage Form")
    price: str = Field(alias="Price")

    @classmethod
    def from_product(cls, product: Product) -> ProductOut:
        return cls(
            code=product.code,
            brand=product.brand,
            generic_name=product.generic_name,
            dosage_form=product.dosage_form,
            price=product.price_display,
        )


class MessageOut(BaseModel):
    message: str


class ImportReportOut(BaseModel):
    message: str
    created: int
    skipped: dict[int, dict[str, str]]


class ErrorOut(BaseModel):
    error: str
    fields: dict[str, str] | None = None
