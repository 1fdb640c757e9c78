"""Products REST API router with CRUD operations."""

from fastapi import APIRouter, Depends

from src.pharmacat.api.http.deps import get_record_store
from src.pharmacat.api.http.schemas import ErrorOut, MessageOut, ProductOut, ProductPayload
from src.pharmacat.stores import RecordStore

router = APIRouter(
    prefix="/products",
    tags=["products"],
    responses={
        404: {"model": ErrorOut, "description": "Unknown product code"},
        422: {"model": ErrorOut, "description": "Invalid product fields"},
    },
)


@router.get("", response_model=list[ProductOut])
def list_products(
    store: RecordStore = Depends(get_record_store),
) -> list[ProductOut]:
    """List all products, newest first."""
    return [ProductOut.from_product(product) for product in store.list()]


@router.post("", response_model=ProductOut)
def create_product(
    payload: ProductPayload,
    store: RecordStore = Depends(get_record_store),
) -> ProductOut:
    """Create a new product under a generated code."""
    product = store.create(payload.to_draft_data())
    return ProductOut.from_product(product)


@router.get("/{code}", response_model=ProductOut)
def get_product(
    code: str,
    store: RecordStore = Depends(get_record_store),
) -> ProductOut:
    """Get a product by code."""
    return ProductOut.from_product(store.get(code))


@router.put("/{code}", response_model=ProductOut)
def update_product(
    code: str,
    payload: ProductPayload,
    store: RecordStore = Depends(get_record_store),
) -> ProductOut:
    """Replace every editable field of a product."""
    product = store.update(code, payload.to_draft_data())
    return ProductOut.from_product(product)


@router.delete("/{code}", response_model=MessageOut)
def delete_product(
    code: str,
    store: RecordStore = Depends(get_record_store),
) -> MessageOut:
    """Delete a product."""
    store.delete(code)
    return MessageOut(message="Product deleted successfully")
