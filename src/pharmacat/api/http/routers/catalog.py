"""Catalog reference lookups used by the product form."""

from fastapi import APIRouter, Depends, Query

from src.pharmacat.api.http.deps import get_catalog
from src.pharmacat.catalog import CatalogReference

router = APIRouter(prefix="/catalog", tags=["catalog"])


@router.get("/generic-names", response_model=list[str])
def generic_names(catalog: CatalogReference = Depends(get_catalog)) -> list[str]:
    return catalog.unique_generic_names()


@router.get("/dosage-forms", response_model=list[str])
def dosage_forms(
    generic_name: str = Query(..., description="Generic name to look up"),
    catalog: CatalogReference = Depends(get_catalog),
) -> list[str]:
    """Dosage forms registered for ``generic_name``; empty when it is unknown."""
    return catalog.dosage_forms_for(generic_name)
