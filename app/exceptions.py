# =============================================================================
# app/exceptions.py - Custom Exception Handlers
# =============================================================================
# Centralized exception handling for the API.
# Every error response carries a human-readable "error" message plus a
# machine-readable "code"; most also say how to fix the problem.
# =============================================================================

from typing import Any

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse


class GemDeskException(Exception):
    """
    Base exception for the Gem Desk API.

    All custom exceptions inherit from this class.
    Provides structured error responses with actionable suggestions.
    """

    def __init__(
        self,
        message: str,
        code: str = "GEMDESK_ERROR",
        status_code: int = 500,
        suggestion: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code
        self.suggestion = suggestion
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to API response dict."""
        result = {
            "error": self.message,
            "code": self.code,
        }
        if self.suggestion:
            result["suggestion"] = self.suggestion
        if self.details:
            result["details"] = self.details
        return result


# =============================================================================
# Not Found Exceptions
# =============================================================================

class RecordNotFoundError(GemDeskException):
    """Raised when a row with the given id doesn't exist."""

    def __init__(self, entity: str, record_id: str, code: str):
        super().__init__(
            message=f"{entity} not found: {record_id}",
            code=code,
            status_code=404,
            suggestion=f"Check that the {entity.lower()} id is correct",
            details={"id": record_id}
        )


class GemstoneNotFoundError(RecordNotFoundError):
    def __init__(self, gemstone_id: str):
        super().__init__("Gemstone", gemstone_id, "GEMSTONE_NOT_FOUND")


class CustomerNotFoundError(RecordNotFoundError):
    def __init__(self, customer_id: str):
        super().__init__("Customer", customer_id, "CUSTOMER_NOT_FOUND")


class ProjectNotFoundError(RecordNotFoundError):
    def __init__(self, project_id: str):
        super().__init__("Manufacturing record", project_id, "PROJECT_NOT_FOUND")


# =============================================================================
# Inventory / Sales Exceptions
# =============================================================================

class DuplicateCodeError(GemDeskException):
    """Raised when a gemstone code already exists in the datastore."""

    def __init__(self, error: str, details: dict[str, Any] | None = None):
        super().__init__(
            message=f"Gemstone code already exists: {error}",
            code="DUPLICATE_GEMSTONE_CODE",
            status_code=409,
            suggestion="Use a unique code, or re-run the import with mode=upsert to update existing lots",
            details=details,
        )


class ProjectNotForSaleError(GemDeskException):
    """Raised when trying to sell a piece that isn't ready for sale."""

    def __init__(self, project_id: str, status: str):
        super().__init__(
            message=f"Manufacturing record {project_id} is not ready for sale (status: {status})",
            code="PROJECT_NOT_FOR_SALE",
            status_code=409,
            suggestion="Move the piece to ready_for_sale before marking it as sold",
            details={"id": project_id, "status": status}
        )


class DatastoreError(GemDeskException):
    """Raised when a datastore call fails outside of the import pipeline."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(
            message=message,
            code="DATASTORE_ERROR",
            status_code=500,
            suggestion="Try again later or check the Supabase project status",
            details=details,
        )


# =============================================================================
# CSV Import Exceptions
# =============================================================================

class CsvFetchError(GemDeskException):
    """Raised when the stock CSV can't be downloaded."""

    def __init__(self, url: str, error: str):
        super().__init__(
            message=f"Failed to fetch CSV: {error}",
            code="CSV_FETCH_FAILED",
            status_code=502,
            suggestion="Check that the CSV URL is publicly reachable",
            details={"csv_url": url}
        )


class EmptyCsvError(GemDeskException):
    """Raised when the CSV has no lines at all."""

    def __init__(self):
        super().__init__(
            message="CSV file is empty",
            code="CSV_EMPTY",
            status_code=400,
            suggestion="Export the stock sheet again and make sure it has a header row and data rows",
        )


class MissingColumnsError(GemDeskException):
    """Raised when required import columns are absent from the header row."""

    def __init__(self, missing: list[str], found: list[str]):
        super().__init__(
            message=f"CSV is missing required columns: {', '.join(missing)}",
            code="CSV_MISSING_COLUMNS",
            status_code=400,
            suggestion="Download the import template and match its header names",
            details={"missing": missing, "found_headers": found}
        )


class NoValidRowsError(GemDeskException):
    """Raised when every data row of the CSV was skipped."""

    def __init__(self, skipped: list[dict[str, Any]]):
        super().__init__(
            message="No valid gemstone data found in CSV",
            code="CSV_NO_VALID_ROWS",
            status_code=400,
            suggestion="Every row needs a code in the Code column",
            details={"skipped": skipped}
        )


class BatchInsertError(GemDeskException):
    """Raised when one batch of an import fails; earlier batches stay committed."""

    def __init__(self, error: str, details: dict[str, Any]):
        super().__init__(
            message=f"Error inserting batch: {error}",
            code="CSV_BATCH_FAILED",
            status_code=500,
            suggestion="Fix the reported rows and re-run the import with mode=upsert to avoid duplicates",
            details=details,
        )


# =============================================================================
# Upload Exceptions
# =============================================================================

class InvalidFileTypeError(GemDeskException):
    """Raised when uploaded file type is not allowed."""

    def __init__(self, filename: str, allowed: list[str]):
        super().__init__(
            message=f"Invalid file type: {filename}",
            code="INVALID_FILE_TYPE",
            status_code=400,
            suggestion=f"Only these file types are supported: {', '.join(allowed)}",
            details={"filename": filename, "allowed_types": allowed}
        )


class FileTooLargeError(GemDeskException):
    """Raised when uploaded file exceeds size limit."""

    def __init__(self, size_mb: float, max_mb: int):
        super().__init__(
            message=f"File too large: {size_mb:.1f}MB (max: {max_mb}MB)",
            code="FILE_TOO_LARGE",
            status_code=413,
            suggestion=f"Upload a file smaller than {max_mb}MB",
            details={"size_mb": size_mb, "max_mb": max_mb}
        )


class StorageUploadError(GemDeskException):
    """Raised when file upload to storage fails."""

    def __init__(self, error: str):
        super().__init__(
            message=f"Failed to upload file: {error}",
            code="STORAGE_UPLOAD_ERROR",
            status_code=500,
            suggestion="Try again later or contact support if the issue persists",
            details={"error": error}
        )


# =============================================================================
# Exception Handlers
# =============================================================================

async def gemdesk_exception_handler(
    request: Request,
    exc: GemDeskException
) -> JSONResponse:
    """
    Convert GemDeskException to JSON response.

    Returns structured error with:
    - error: Human-readable message
    - code: Machine-readable error code
    - suggestion: How to fix (if available)
    - details: Additional context
    """
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict()
    )


def _validation_message(error: dict[str, Any]) -> str:
    message = str(error.get("msg", "Invalid value"))
    return message.removeprefix("Value error, ")


async def validation_exception_handler(
    request: Request,
    exc: RequestValidationError
) -> JSONResponse:
    """
    Handle Pydantic validation errors.

    The first problem becomes the "error" message so a form can show it
    as-is (e.g. "Either Price per Carat or Price per Piece is required").
    """
    errors = [
        {
            "loc": [str(part) for part in error.get("loc", ())],
            "msg": _validation_message(error),
            "type": error.get("type"),
        }
        for error in exc.errors()
    ]
    return JSONResponse(
        status_code=422,
        content={
            "error": errors[0]["msg"] if errors else "Validation error",
            "code": "VALIDATION_ERROR",
            "details": {"errors": errors},
        }
    )
