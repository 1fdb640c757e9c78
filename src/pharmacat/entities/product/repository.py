"""Product repository."""

from datetime import UTC, datetime

from sqlalchemy import func
from sqlmodel import Session, col, select

from src.pharmacat.entities._base import utc_now
from src.pharmacat.entities.product.entity import Product, ProductDraft
from src.pharmacat.entities.product.table import ProductTable, RetiredCodeTable


def _as_utc(value: datetime) -> datetime:
    # SQLite drops tzinfo on the way back
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


class ProductRepository:
    """Data-access layer for products."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def _to_entity(self, row: ProductTable) -> Product:
        return Product(
            code=row.code,
            brand=row.brand or "",
            generic_name=row.generic_name,
            dosage_form=row.dosage_form,
            price=row.price,
            created_at=_as_utc(row.created_at),
            updated_at=_as_utc(row.updated_at),
        )

    def _get_row(self, code: str) -> ProductTable | None:
        statement = select(ProductTable).where(ProductTable.code == code)
        return self._session.exec(statement).first()

    def get(self, code: str) -> Product | None:
        row = self._get_row(code)
        if row is None:
            return None
        return self._to_entity(row)

    def exists(self, code: str) -> bool:
        return self._get_row(code) is not None

    def is_code_taken(self, code: str) -> bool:
        """True for live codes and for codes of deleted products."""
        return self.exists(code) or self._session.get(RetiredCodeTable, code) is not None

    def _retire(self, code: str) -> None:
        self._session.merge(RetiredCodeTable(code=code))

    def list_all(self) -> list[Product]:
        """Return every product, newest first."""
        statement = select(ProductTable).order_by(
            col(ProductTable.created_at).desc(), col(ProductTable.id).desc()
        )
        return [self._to_entity(row) for row in self._session.exec(statement).all()]

    def count(self) -> int:
        return self._session.exec(select(func.count()).select_from(ProductTable)).one()

    def create(self, code: str, draft: ProductDraft) -> Product:
        now = utc_now()
        row = ProductTable(
            code=code,
            brand=draft.brand,
            generic_name=draft.generic_name,
            dosage_form=draft.dosage_form,
            price=float(draft.price),
            created_at=now,
            updated_at=now,
        )
        self._session.add(row)
        self._session.flush()
        return self._to_entity(row)

    def update(self, code: str, draft: ProductDraft) -> Product | None:
        row = self._get_row(code)
        if row is None:
            return None
        row.brand = draft.brand
        row.generic_name = draft.generic_name
        row.dosage_form = draft.dosage_form
        row.price = float(draft.price)
        row.updated_at = utc_now()
        self._session.add(row)
        self._session.flush()
        return self._to_entity(row)

    def delete(self, code: str) -> bool:
        row = self._get_row(code)
        if row is None:
            return False
        self._session.delete(row)
        self._retire(code)
        self._session.flush()
        return True

    def delete_all(self) -> int:
        """Remove every row inside the current transaction and return how many were removed."""
        rows = self._session.exec(select(ProductTable)).all()
        for row in rows:
            self._session.delete(row)
            self._retire(row.code)
        self._session.flush()
        return len(rows)
