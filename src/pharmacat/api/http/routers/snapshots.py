"""Whole-store download and upload endpoints."""

from fastapi import APIRouter, Depends, File, UploadFile
from fastapi.responses import JSONResponse, Response

from src.pharmacat.api.http.deps import get_record_store
from src.pharmacat.api.http.schemas import ImportReportOut, MessageOut
from src.pharmacat.core.errors import ValidationError
from src.pharmacat.stores import RecordStore

router = APIRouter(tags=["snapshots"])

CSV_EXPORT_FILENAME = "products_export.csv"


def attachment(content: bytes, filename: str, media_type: str) -> Response:
    return Response(
        content=content,
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/download-db")
def download_db(store: RecordStore = Depends(get_record_store)) -> Response:
    """Download the whole store as a portable file."""
    return attachment(
        store.export_snapshot(), store.snapshot_filename, store.snapshot_media_type
    )


@router.post("/upload-db", response_model=MessageOut)
async def upload_db(
    database: UploadFile | None = File(default=None),
    store: RecordStore = Depends(get_record_store),
):
    """Replace the whole store with an uploaded snapshot."""
    if database is None:
        return JSONResponse(status_code=400, content={"error": "No file uploaded"})

    blob = await database.read()
    if not blob:
        return JSONResponse(status_code=400, content={"error": "Uploaded file is empty"})

    try:
        store.import_snapshot(blob)
    except ValidationError as e:
        return JSONResponse(
            status_code=400, content={"error": e.message, "fields": e.fields}
        )
    return MessageOut(message="Database updated successfully")


@router.get("/export-csv")
def export_csv(store: RecordStore = Depends(get_record_store)) -> Response:
    """Download every product as CSV."""
    return attachment(store.export_csv(), CSV_EXPORT_FILENAME, "text/csv")


@router.post("/import-csv", response_model=ImportReportOut)
async def import_csv(
    file: UploadFile | None = File(default=None),
    store: RecordStore = Depends(get_record_store),
):
    """Create one product per valid CSV row."""
    if file is None:
        return JSONResponse(status_code=400, content={"error": "No file uploaded"})
    report = store.import_csv(await file.read())
    return ImportReportOut(
        message=f"Imported {report.created_count} products",
        created=report.created_count,
        skipped=report.skipped,
    )
