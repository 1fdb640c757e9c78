"""Product database table model."""

from datetime import datetime

from sqlmodel import Field, SQLModel

from src.pharmacat.entities._base import EntityTable, utc_now


class ProductTable(EntityTable, table=True):
    """Row layout of the ``products`` table.

    Prices are stored as REAL and re-quantised to cents when read back into a
    ``Product``.
    """

    __tablename__ = "products"
    __table_args__ = {"sqlite_autoincrement": True}

    code: str = Field(unique=True, index=True, nullable=False)
    brand: str = Field(default="")
    generic_name: str = Field(nullable=False)
    dosage_form: str = Field(nullable=False)
    price: float = Field(nullable=False)


class RetiredCodeTable(SQLModel, table=True):
    """Codes of deleted products; they are never handed out again."""

    __tablename__ = "retired_codes"

    code: str = Field(primary_key=True)
    retired_at: datetime = Field(default_factory=utc_now, nullable=False)
