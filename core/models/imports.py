# =============================================================================
# core/models/imports.py - Stock CSV Import Schemas
# =============================================================================
# Request and result shapes for bulk-loading gemstone lots from a CSV.
# Skipped rows and per-row warnings are returned to the caller instead of
# only showing up in the logs.
# =============================================================================

from enum import Enum

from pydantic import BaseModel, Field


class ImportMode(str, Enum):
    """
    How rows are written.

    - insert: plain insert; an existing code is a reported conflict
    - upsert: rows whose code already exists are updated in place
    """
    INSERT = "insert"
    UPSERT = "upsert"


class SkipReason(str, Enum):
    INSUFFICIENT_COLUMNS = "insufficient_columns"
    MISSING_CODE = "missing_code"
    DUPLICATE_CODE = "duplicate_code"


class ImportRequest(BaseModel):
    """
    Import from a CSV reachable by URL.

    Example:
        {
            "csv_url": "https://xyz.supabase.co/storage/v1/object/public/imports/stock.csv",
            "mode": "upsert"
        }
    """

    csv_url: str = Field(..., min_length=1, description="HTTP(S) URL of the stock CSV")
    mode: ImportMode = ImportMode.INSERT


class SkippedRow(BaseModel):
    """A source row that was not imported."""
    row: int = Field(..., description="1-based line number in the CSV")
    reason: SkipReason
    detail: str | None = None


class RowWarning(BaseModel):
    """A row that was imported with a field left empty."""
    row: int
    field: str
    value: str
    message: str


class ImportResult(BaseModel):
    """
    Outcome of a successful import.

    Example:
        {
            "success": true,
            "message": "Successfully imported 2 gemstones",
            "count": 2,
            "batch_count": 1,
            "skipped": [{"row": 3, "reason": "missing_code", "detail": null}],
            "warnings": []
        }
    """

    success: bool = True
    message: str
    count: int = Field(..., ge=0)
    batch_count: int = Field(default=0, ge=0)
    mode: ImportMode = ImportMode.INSERT
    skipped: list[SkippedRow] = Field(default_factory=list)
    warnings: list[RowWarning] = Field(default_factory=list)
