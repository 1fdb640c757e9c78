"""Server-rendered product manager pages."""

from __future__ import annotations

from pathlib import Path
from typing import Any
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.templating import Jinja2Templates
from loguru import logger
from starlette.datastructures import UploadFile

from src.pharmacat.api.http.deps import get_app_config, get_catalog, get_record_store
from src.pharmacat.catalog import CatalogReference
from src.pharmacat.core.errors import CatalogError, ValidationError
from src.pharmacat.presentation import ProductFormState, TableQuery, build_table_page
from src.pharmacat.presentation.table import COLUMN_LABELS, SORT_KEYS
from src.pharmacat.runtime.config.config_data import ConfigData
from src.pharmacat.stores import CsvOverlayRecordStore, RecordStore

TEMPLATES_DIR = Path(__file__).resolve().parents[3] / "web" / "templates"

templates = Jinja2Templates(directory=str(TEMPLATES_DIR))

router = APIRouter(tags=["ui"], include_in_schema=False)


def _redirect(message: str, status: str = "success") -> RedirectResponse:
    return RedirectResponse(
        url=f"/?{urlencode({'message': message, 'status': status})}", status_code=303
    )


def _product_label(brand: str) -> str:
    return brand or "Product"


def _page_context(store: RecordStore, config: ConfigData) -> dict[str, Any]:
    return {
        "title": config.ui.title,
        "backend": store.backend,
        "has_unsaved_changes": store.has_unsaved_changes,
        "can_reset": isinstance(store, CsvOverlayRecordStore),
    }


def _render_form(
    request: Request,
    form: ProductFormState,
    store: RecordStore,
    catalog: CatalogReference,
    config: ConfigData,
    status_code: int = 200,
) -> HTMLResponse:
    return templates.TemplateResponse(
        request,
        "form.html",
        {
            **_page_context(store, config),
            "form": form,
            "generic_names": catalog.unique_generic_names(),
            "dosage_forms": form.dosage_form_options(catalog),
        },
        status_code=status_code,
    )


@router.get("/", response_class=HTMLResponse)
def index(
    request: Request,
    search: str | None = None,
    sort: str | None = None,
    direction: str | None = None,
    page: str | None = None,
    message: str | None = None,
    status: str | None = None,
    store: RecordStore = Depends(get_record_store),
    config: ConfigData = Depends(get_app_config),
) -> HTMLResponse:
    """Toolbar, flash banner and the filtered, sorted, paginated product table."""
    query = TableQuery.from_params(search, sort, direction, page)
    context = _page_context(store, config)
    status_code = 200
    try:
        products = store.list()
    except CatalogError as e:
        logger.error("Cannot list products: {}", e.message)
        products = []
        message, status = f"Failed to load products: {e.message}", "error"
        status_code = 503

    table = build_table_page(products, query, config.ui.page_size)

    def table_url(**overrides: Any) -> str:
        return "/?" + urlencode(table.query.params(**overrides))

    def sort_url(key: str) -> str:
        return "/?" + urlencode(table.query.with_sort(key).params())

    return templates.TemplateResponse(
        request,
        "index.html",
        {
            **context,
            "table": table,
            "columns": [(key, COLUMN_LABELS[key]) for key in SORT_KEYS],
            "table_url": table_url,
            "sort_url": sort_url,
            "message": message,
            "status": status or "success",
        },
        status_code=status_code,
    )


@router.get("/products/new", response_class=HTMLResponse)
def new_product(
    request: Request,
    generic_name: str | None = None,
    store: RecordStore = Depends(get_record_store),
    catalog: CatalogReference = Depends(get_catalog),
    config: ConfigData = Depends(get_app_config),
) -> HTMLResponse:
    form = ProductFormState()
    if generic_name:
        form.select_generic_name(generic_name)
    return _render_form(request, form, store, catalog, config)


@router.get("/products/{code}/edit", response_class=HTMLResponse)
def edit_product(
    request: Request,
    code: str,
    store: RecordStore = Depends(get_record_store),
    catalog: CatalogReference = Depends(get_catalog),
    config: ConfigData = Depends(get_app_config),
):
    try:
        product = store.get(code)
    except CatalogError as e:
        return _redirect(f"Failed to load product: {e.message}", "error")
    return _render_form(request, ProductFormState.from_product(product), store, catalog, config)


@router.post("/products/form", response_class=HTMLResponse)
async def submit_form(
    request: Request,
    store: RecordStore = Depends(get_record_store),
    catalog: CatalogReference = Depends(get_catalog),
    config: ConfigData = Depends(get_app_config),
):
    """Handle both a generic name change and the final save of the form."""
    data = await request.form()
    form = ProductFormState.from_form(data)
    action = data.get("action", "save")

    if action == "select_generic_name":
        form.select_generic_name(form.generic_name)
        return _render_form(request, form, store, catalog, config)
    if action == "reset":
        form.reset()
        return _render_form(request, form, store, catalog, config)

    if not form.validate():
        return _render_form(request, form, store, catalog, config, status_code=422)

    verb, noun = ("updated", "update") if form.is_edit else ("added", "add")
    try:
        if form.is_edit:
            product = store.update(form.code, form.to_draft())
        else:
            product = store.create(form.to_draft())
    except ValidationError as e:
        form.errors.update(e.fields)
        return _render_form(request, form, store, catalog, config, status_code=422)
    except CatalogError as e:
        return _redirect(f"Failed to {noun} product: {e.message}", "error")

    message = f'Product "{_product_label(product.brand)}" {verb} successfully!'
    if store.has_unsaved_changes:
        message += " Download the database to save permanently."
    return _redirect(message)


@router.post("/products/{code}/delete")
def delete_product(code: str, store: RecordStore = Depends(get_record_store)):
    try:
        product = store.get(code)
        store.delete(code)
    except CatalogError as e:
        return _redirect(f"Failed to delete product: {e.message}", "error")
    return _redirect(f'Product "{_product_label(product.brand)}" deleted successfully!')


@router.post("/products/clear")
def clear_products(store: RecordStore = Depends(get_record_store)):
    try:
        removed = store.clear()
    except CatalogError as e:
        return _redirect(f"Failed to clear data: {e.message}", "error")
    return _redirect(f"All products cleared ({removed} removed)!")


@router.post("/products/upload")
async def upload_database(
    request: Request,
    store: RecordStore = Depends(get_record_store),
):
    data = await request.form()
    upload = data.get("database")
    if not isinstance(upload, UploadFile):
        return _redirect("Please select a database file to upload", "error")
    blob = await upload.read()
    if not blob:
        return _redirect("Uploaded file is empty", "error")
    try:
        store.import_snapshot(blob)
    except CatalogError as e:
        return _redirect(f"Failed to upload database: {e.message}", "error")
    return _redirect("Database uploaded successfully!")


@router.post("/products/reset")
def reset_changes(store: RecordStore = Depends(get_record_store)):
    """Drop local changes of the CSV store and show the base file again."""
    if not isinstance(store, CsvOverlayRecordStore):
        return _redirect("This store has no local changes to discard", "error")
    try:
        store.reset_to_original()
    except CatalogError as e:
        return _redirect(f"Failed to reset changes: {e.message}", "error")
    return _redirect("Local changes discarded")
