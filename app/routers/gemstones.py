# =============================================================================
# app/routers/gemstones.py - Gemstone Inventory & Stock Import Endpoints
# =============================================================================
# Handles gemstone lot CRUD and bulk import from the stock spreadsheet.
#
# Fixed paths (import-template, import-csv) are declared before /{gemstone_id}
# so they aren't captured by it.
# =============================================================================

import logging
from typing import Annotated, Any

from fastapi import APIRouter, File, Form, Path, Query, UploadFile
from fastapi.responses import Response

from app.dependencies import GemstoneServiceDep, ImportServiceDep, SettingsDep
from app.exceptions import FileTooLargeError, InvalidFileTypeError
from core.models import (
    GemstoneCreate,
    GemstoneUpdate,
    ImportMode,
    ImportRequest,
    ImportResult,
    StockStatus,
)
from core.services.import_service import build_import_template

logger = logging.getLogger(__name__)

router = APIRouter()

ALLOWED_IMPORT_EXTENSIONS = [".csv"]


# =============================================================================
# Inventory
# =============================================================================

@router.get("")
def list_gemstones(
    service: GemstoneServiceDep,
    search: Annotated[str | None, Query(description="Match code, type, shape or color")] = None,
    type: Annotated[str | None, Query(description="Gemstone type, or 'all'")] = None,
    status: Annotated[StockStatus, Query(description="Stock status by carat balance")] = StockStatus.ALL,
) -> list[dict[str, Any]]:
    """
    List gemstone lots, newest first.

    Status filters by balance_ct: available (above the low-stock threshold),
    low-stock (above 0 up to the threshold), sold-out (0 or less).
    """
    return service.list_gemstones(search=search, gemstone_type=type, status=status)


@router.post("", status_code=201)
def create_gemstone(data: GemstoneCreate, service: GemstoneServiceDep) -> dict[str, Any]:
    """
    Add one lot by hand.

    At least one price is required, and each price needs a matching
    balance (carats for Price/CT, pieces for Price/Piece).
    """
    return service.create_gemstone(data)


# =============================================================================
# Stock CSV Import
# =============================================================================

@router.get("/import-template")
def download_import_template():
    """Download the stock sheet template with three sample lots."""
    return Response(
        content=build_import_template(),
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="gemstone_import_template.csv"'},
    )


@router.post("/import-csv", response_model=ImportResult)
def import_csv(request: ImportRequest, importer: ImportServiceDep):
    """
    Import gemstone lots from a CSV URL.

    Rows without a code, rows that are too short and repeated codes are
    skipped and listed in the response. Lots are written in batches; if a
    batch fails, the error details say how many rows were already written.
    """
    logger.info(f"Importing gemstones from {request.csv_url} (mode: {request.mode.value})")
    return importer.import_from_url(request.csv_url, request.mode)


@router.post("/import-csv/upload", response_model=ImportResult)
async def import_csv_upload(
    file: Annotated[UploadFile, File(description="Stock sheet CSV")],
    importer: ImportServiceDep,
    settings: SettingsDep,
    mode: Annotated[ImportMode, Form()] = ImportMode.INSERT,
):
    """Import gemstone lots from an uploaded CSV file."""
    filename = file.filename or "stock.csv"
    file_ext = "." + filename.rsplit(".", 1)[-1].lower() if "." in filename else ""

    if file_ext not in ALLOWED_IMPORT_EXTENSIONS:
        raise InvalidFileTypeError(filename, ALLOWED_IMPORT_EXTENSIONS)

    content = await file.read()
    if len(content) > settings.max_upload_size_bytes:
        raise FileTooLargeError(len(content) / (1024 * 1024), settings.MAX_UPLOAD_SIZE_MB)

    logger.info(f"Importing gemstones from upload {filename} ({len(content)} bytes, mode: {mode.value})")
    return importer.import_bytes(content, mode)


# =============================================================================
# Single Lot
# =============================================================================

@router.get("/{gemstone_id}")
def get_gemstone(
    gemstone_id: Annotated[str, Path(description="Gemstone id")],
    service: GemstoneServiceDep,
) -> dict[str, Any]:
    return service.get_gemstone(gemstone_id)


@router.put("/{gemstone_id}")
def update_gemstone(
    gemstone_id: Annotated[str, Path(description="Gemstone id")],
    data: GemstoneUpdate,
    service: GemstoneServiceDep,
) -> dict[str, Any]:
    """Update the fields sent in the body."""
    return service.update_gemstone(gemstone_id, data)


@router.delete("/{gemstone_id}")
def delete_gemstone(
    gemstone_id: Annotated[str, Path(description="Gemstone id")],
    service: GemstoneServiceDep,
) -> dict[str, Any]:
    service.delete_gemstone(gemstone_id)
    return {"success": True}
