# =============================================================================
# lib/supabase_client.py - Supabase Client Wrapper
# =============================================================================
# This module provides a typed wrapper for Supabase database and storage
# operations. One instance is built from Settings when the application starts
# and passed to whatever needs it; there is no module-level client.
#
# Usage:
#   from lib.supabase_client import SupabaseClient
#   db = SupabaseClient.from_settings(settings)
#   rows = db.insert_rows("gemstones", batch)
# =============================================================================

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from supabase import create_client, Client

if TYPE_CHECKING:
    from app.config import Settings

# Set up logging for this module
logger = logging.getLogger(__name__)

# PostgREST code for ".single()" matching no rows
NO_ROWS_CODE = "PGRST116"

# Postgres unique_violation
UNIQUE_VIOLATION_CODE = "23505"


class SupabaseClientError(Exception):
    """
    Error during Supabase operations.

    Keeps the datastore's own message (db_message) and Postgres error code
    (pg_code) so callers can decide how to surface the failure.
    """

    def __init__(
        self,
        message: str,
        code: str = "SUPABASE_ERROR",
        suggestion: str | None = None,
        details: dict[str, Any] | None = None,
        db_message: str | None = None,
        pg_code: str | None = None,
    ):
        super().__init__(message)
        self.code = code
        self.message = message
        self.suggestion = suggestion
        self.details = details or {}
        self.db_message = db_message or message
        self.pg_code = pg_code

    @property
    def is_unique_violation(self) -> bool:
        return self.pg_code == UNIQUE_VIOLATION_CODE

    def __str__(self) -> str:
        result = f"[{self.code}] {self.message}"
        if self.suggestion:
            result += f" Suggestion: {self.suggestion}"
        return result


def _error_parts(exc: Exception) -> tuple[str, str | None]:
    """Pull (message, postgres code) out of a postgrest APIError or any exception."""
    message = getattr(exc, "message", None) or str(exc)
    pg_code = getattr(exc, "code", None)
    return message, str(pg_code) if pg_code is not None else None


class SupabaseClient:
    """
    Typed wrapper for Supabase database and storage operations.

    Example:
        db = SupabaseClient.from_settings(settings)
        lot = db.fetch_by_id("gemstones", 42)
        db.insert_rows("gemstones", [{"code": "RUB-009", ...}])
    """

    def __init__(self, client: Client):
        self._client = client

    @classmethod
    def from_settings(cls, settings: Settings) -> SupabaseClient:
        """
        Create a client from application settings.

        Uses service_role key which bypasses Row Level Security (RLS).
        This is appropriate for server-side operations.

        Raises:
            SupabaseClientError: If client creation fails
        """
        try:
            client = create_client(settings.SUPABASE_URL, settings.SUPABASE_SERVICE_KEY)
        except Exception as e:
            raise SupabaseClientError(
                message=f"Failed to create Supabase client: {e}",
                code="CLIENT_INIT_FAILED",
                suggestion="Check SUPABASE_URL and SUPABASE_SERVICE_KEY in your .env file"
            )
        logger.info("Supabase client initialized successfully")
        return cls(client)

    @property
    def storage(self):
        return self._client.storage

    # -------------------------------------------------------------------------
    # Query Execution
    # -------------------------------------------------------------------------

    def table(self, name: str):
        """Start a PostgREST query builder on a table."""
        return self._client.table(name)

    def run(
        self,
        query,
        action: str,
        details: dict[str, Any] | None = None,
    ) -> list[dict[str, Any]]:
        """
        Execute a query builder and return its rows.

        Args:
            query: A PostgREST query builder (from table(...))
            action: Short description used in error messages ("fetch gemstones")
            details: Extra context attached to the error

        Returns:
            List of row dicts (empty if the query matched nothing)

        Raises:
            SupabaseClientError: If the query fails
        """
        try:
            response = query.execute()
        except Exception as e:
            db_message, pg_code = _error_parts(e)
            logger.error(f"Failed to {action}: {db_message}")
            raise SupabaseClientError(
                message=f"Failed to {action}: {db_message}",
                code="QUERY_FAILED",
                details=details,
                db_message=db_message,
                pg_code=pg_code,
            )

        data = response.data
        if data is None:
            return []
        if isinstance(data, dict):
            return [data]
        return data

    def count_rows(self, table: str) -> int:
        """
        Count the rows of a table without fetching them.

        Raises:
            SupabaseClientError: If the count query fails
        """
        try:
            response = self._client.table(table).select("id", count="exact", head=True).execute()
        except Exception as e:
            db_message, pg_code = _error_parts(e)
            logger.error(f"Failed to count {table}: {db_message}")
            raise SupabaseClientError(
                message=f"Failed to count {table}: {db_message}",
                code="QUERY_FAILED",
                details={"table": table},
                db_message=db_message,
                pg_code=pg_code,
            )
        return response.count or 0

    # -------------------------------------------------------------------------
    # Row Operations
    # -------------------------------------------------------------------------

    def fetch_by_id(
        self,
        table: str,
        row_id: str | int,
        columns: str = "*",
    ) -> dict[str, Any] | None:
        """
        Fetch one row by primary key.

        Returns:
            Row dict, or None if not found

        Raises:
            SupabaseClientError: If query fails
        """
        try:
            response = (
                self._client.table(table)
                .select(columns)
                .eq("id", row_id)
                .single()
                .execute()
            )
            return response.data

        except Exception as e:
            db_message, pg_code = _error_parts(e)
            if pg_code == NO_ROWS_CODE or NO_ROWS_CODE in str(e):
                return None
            raise SupabaseClientError(
                message=f"Failed to fetch {table} row: {db_message}",
                code="FETCH_FAILED",
                details={"table": table, "id": str(row_id)},
                db_message=db_message,
                pg_code=pg_code,
            )

    def insert_rows(self, table: str, rows: list[dict[str, Any]]) -> list[dict[str, Any]]:
        """
        Insert many rows in a single call.

        Returns:
            Inserted rows with generated ids and timestamps

        Raises:
            SupabaseClientError: If insert fails
        """
        try:
            response = self._client.table(table).insert(rows).execute()
        except Exception as e:
            db_message, pg_code = _error_parts(e)
            raise SupabaseClientError(
                message=f"Failed to insert into {table}: {db_message}",
                code="INSERT_FAILED",
                details={"table": table, "row_count": len(rows)},
                db_message=db_message,
                pg_code=pg_code,
            )

        logger.debug(f"Inserted {len(rows)} rows into {table}")
        return response.data or []

    def upsert_rows(
        self,
        table: str,
        rows: list[dict[str, Any]],
        on_conflict: str,
    ) -> list[dict[str, Any]]:
        """
        Insert rows, updating existing ones that collide on `on_conflict`.

        Raises:
            SupabaseClientError: If upsert fails
        """
        try:
            response = (
                self._client.table(table)
                .upsert(rows, on_conflict=on_conflict)
                .execute()
            )
        except Exception as e:
            db_message, pg_code = _error_parts(e)
            raise SupabaseClientError(
                message=f"Failed to upsert into {table}: {db_message}",
                code="UPSERT_FAILED",
                details={"table": table, "row_count": len(rows), "on_conflict": on_conflict},
                db_message=db_message,
                pg_code=pg_code,
            )

        logger.debug(f"Upserted {len(rows)} rows into {table}")
        return response.data or []

    def update_by_id(
        self,
        table: str,
        row_id: str | int,
        data: dict[str, Any],
    ) -> dict[str, Any] | None:
        """
        Update one row by primary key.

        Returns:
            Updated row, or None if no row has that id

        Raises:
            SupabaseClientError: If update fails
        """
        try:
            response = (
                self._client.table(table)
                .update(data)
                .eq("id", row_id)
                .execute()
            )
        except Exception as e:
            db_message, pg_code = _error_parts(e)
            raise SupabaseClientError(
                message=f"Failed to update {table} row: {db_message}",
                code="UPDATE_FAILED",
                details={"table": table, "id": str(row_id)},
                db_message=db_message,
                pg_code=pg_code,
            )

        if response.data:
            return response.data[0]
        return None

    def delete_by_id(self, table: str, row_id: str | int) -> None:
        """Delete one row by primary key."""
        self.delete_where(table, "id", row_id)

    def delete_where(self, table: str, column: str, value: Any) -> None:
        """
        Delete every row where `column` equals `value`.

        Raises:
            SupabaseClientError: If delete fails
        """
        try:
            self._client.table(table).delete().eq(column, value).execute()
        except Exception as e:
            db_message, pg_code = _error_parts(e)
            raise SupabaseClientError(
                message=f"Failed to delete from {table}: {db_message}",
                code="DELETE_FAILED",
                details={"table": table, column: str(value)},
                db_message=db_message,
                pg_code=pg_code,
            )

    # -------------------------------------------------------------------------
    # Storage Operations
    # -------------------------------------------------------------------------

    def upload_blob(
        self,
        bucket: str,
        path: str,
        content: bytes,
        content_type: str,
    ) -> str:
        """
        Store bytes in a storage bucket. Existing objects are not overwritten.

        Returns:
            The storage path

        Raises:
            SupabaseClientError: If upload fails
        """
        try:
            self._client.storage.from_(bucket).upload(
                path=path,
                file=content,
                file_options={"content-type": content_type, "upsert": "false"},
            )
        except Exception as e:
            db_message, _ = _error_parts(e)
            raise SupabaseClientError(
                message=f"Failed to upload {path} to {bucket}: {db_message}",
                code="STORAGE_UPLOAD_FAILED",
                details={"bucket": bucket, "path": path},
                db_message=db_message,
            )

        logger.info(f"Uploaded file to storage: {bucket}/{path}")
        return path

    def public_url(self, bucket: str, path: str) -> str:
        """Get the public URL of a stored object."""
        return self._client.storage.from_(bucket).get_public_url(path)
