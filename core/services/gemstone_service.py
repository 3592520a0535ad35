# =============================================================================
# core/services/gemstone_service.py - Gemstone Inventory Business Logic
# =============================================================================
# Handles gemstone lot CRUD and inventory filtering.
# Separates HTTP concerns from database/business logic.
# =============================================================================

import logging
from datetime import datetime, timezone
from typing import Any

from app.exceptions import DatastoreError, DuplicateCodeError, GemstoneNotFoundError
from core.models import GemstoneCreate, GemstoneUpdate, StockStatus
from lib.supabase_client import SupabaseClient, SupabaseClientError

logger = logging.getLogger(__name__)

TABLE = "gemstones"

SEARCH_COLUMNS = ("code", "type", "shape", "color")


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _search_filter(search: str) -> str:
    """PostgREST or-filter matching the term in any searchable column."""
    # Commas and parentheses would break the or() expression
    term = search.replace(",", " ").replace("(", " ").replace(")", " ").strip()
    return ",".join(f"{column}.ilike.%{term}%" for column in SEARCH_COLUMNS)


class GemstoneService:
    """
    Service for gemstone inventory operations.

    Provides a clean interface between API routes and database.
    """

    def __init__(self, db: SupabaseClient, low_stock_threshold_ct: float = 1.0):
        self.db = db
        self.low_stock_threshold_ct = low_stock_threshold_ct

    def list_gemstones(
        self,
        search: str | None = None,
        gemstone_type: str | None = None,
        status: StockStatus = StockStatus.ALL,
    ) -> list[dict[str, Any]]:
        """
        List lots, newest first.

        Args:
            search: Case-insensitive match on code, type, shape or color
            gemstone_type: Exact type ("all" or None for every type)
            status: available / low-stock / sold-out by carat balance

        Returns:
            List of gemstone row dicts
        """
        query = self.db.table(TABLE).select("*").order("created_at", desc=True)

        if search and search.strip():
            query = query.or_(_search_filter(search))

        if gemstone_type and gemstone_type != "all":
            query = query.eq("type", gemstone_type)

        threshold = self.low_stock_threshold_ct
        if status == StockStatus.AVAILABLE:
            query = query.gt("balance_ct", threshold)
        elif status == StockStatus.LOW_STOCK:
            query = query.lte("balance_ct", threshold).gt("balance_ct", 0)
        elif status == StockStatus.SOLD_OUT:
            query = query.lte("balance_ct", 0)

        try:
            return self.db.run(query, "fetch gemstones")
        except SupabaseClientError as e:
            raise DatastoreError("Failed to fetch gemstones", {"error": e.db_message})

    def get_gemstone(self, gemstone_id: str) -> dict[str, Any]:
        """
        Get a lot by id.

        Raises:
            GemstoneNotFoundError: If no lot has this id
        """
        gemstone = self.db.fetch_by_id(TABLE, gemstone_id)
        if not gemstone:
            raise GemstoneNotFoundError(gemstone_id)
        return gemstone

    def create_gemstone(self, data: GemstoneCreate) -> dict[str, Any]:
        """
        Create one lot from manual entry.

        Raises:
            DuplicateCodeError: If the code is already used
        """
        row = data.model_dump(mode="json")
        timestamp = _now_iso()
        row["created_at"] = timestamp
        row["updated_at"] = timestamp

        try:
            created = self.db.insert_rows(TABLE, [row])
        except SupabaseClientError as e:
            if e.is_unique_violation:
                raise DuplicateCodeError(e.db_message, {"code": data.code})
            raise DatastoreError("Failed to create gemstone", {"error": e.db_message})

        logger.info(f"Created gemstone: {data.code}")
        return created[0] if created else row

    def update_gemstone(self, gemstone_id: str, data: GemstoneUpdate) -> dict[str, Any]:
        """
        Update the fields present in `data`.

        Raises:
            GemstoneNotFoundError: If no lot has this id
            DuplicateCodeError: If the new code is already used
        """
        changes = data.model_dump(mode="json", exclude_unset=True)
        if not changes:
            return self.get_gemstone(gemstone_id)

        changes["updated_at"] = _now_iso()

        try:
            updated = self.db.update_by_id(TABLE, gemstone_id, changes)
        except SupabaseClientError as e:
            if e.is_unique_violation:
                raise DuplicateCodeError(e.db_message, {"code": changes.get("code")})
            raise DatastoreError("Failed to update gemstone", {"error": e.db_message})

        if updated is None:
            raise GemstoneNotFoundError(gemstone_id)

        logger.info(f"Updated gemstone: {gemstone_id}")
        return updated

    def delete_gemstone(self, gemstone_id: str) -> None:
        self.get_gemstone(gemstone_id)
        try:
            self.db.delete_by_id(TABLE, gemstone_id)
        except SupabaseClientError as e:
            raise DatastoreError("Failed to delete gemstone", {"error": e.db_message})
        logger.info(f"Deleted gemstone: {gemstone_id}")
