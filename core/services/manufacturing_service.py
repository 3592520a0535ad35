# =============================================================================
# core/services/manufacturing_service.py - Manufacturing Business Logic
# =============================================================================
# Handles jewelry pieces moving through the workshop:
# - Project CRUD with gemstone usages
# - Cost rollup from the lots' prices
# - Activity log of status changes
# - Point of sale (ready_for_sale -> sold)
#
# Usage and activity-log writes are secondary: a failure there is logged
# and the project write still succeeds.
# =============================================================================

import logging
from datetime import datetime, timezone
from typing import Any

from app.exceptions import DatastoreError, ProjectNotForSaleError, ProjectNotFoundError
from core.models import (
    GemstoneUsage,
    ProjectCreate,
    ProjectFilter,
    ProjectStatus,
    ProjectUpdate,
    SaleRequest,
)
from core.services.customer_service import CustomerService
from lib.supabase_client import SupabaseClient, SupabaseClientError

logger = logging.getLogger(__name__)

PROJECTS_TABLE = "manufacturing_projects"
USAGES_TABLE = "manufacturing_gemstones"
ACTIVITY_TABLE = "manufacturing_activity_log"

LIST_COLUMNS = f"*, {USAGES_TABLE}(*), {ACTIVITY_TABLE}(*)"
USAGE_WITH_PRICES = "*, gemstone:gemstones!manufacturing_gemstones_gemstone_code_fkey(price_ct, price_piece)"

# Fields only written when a piece becomes sold
SALE_FIELDS = {"customer_id", "selling_price", "sold_at"}

# Fields whose change means total_cost must be recomputed
COST_FIELDS = {"setting_cost", "diamond_cost"}


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def format_amount(value: float) -> str:
    """45000.0 -> "45000", 1250.5 -> "1250.5"."""
    value = float(value)
    return str(int(value)) if value.is_integer() else str(value)


def usage_cost(usage: dict[str, Any], prices: dict[str, Any]) -> float:
    """
    Cost of one usage row.

    Per-carat pricing wins when the piece uses weight and the lot has a
    per-carat price; otherwise pieces are priced per piece.
    """
    weight_used = float(usage.get("weight_used") or 0)
    pieces_used = float(usage.get("pieces_used") or 0)
    price_ct = float(prices.get("price_ct") or 0)
    price_piece = float(prices.get("price_piece") or 0)

    if weight_used > 0 and price_ct > 0:
        return weight_used * price_ct
    return pieces_used * price_piece


def calculate_total_cost(
    usages: list[dict[str, Any]],
    lot_prices: dict[str, dict[str, Any]],
    setting_cost: float | None,
    diamond_cost: float | None,
) -> tuple[float, float]:
    """
    Roll up a piece's cost.

    Args:
        usages: Usage rows (gemstone_code, pieces_used, weight_used)
        lot_prices: code -> {"price_ct", "price_piece"}
        setting_cost: Craftsman's setting cost
        diamond_cost: Side-diamond cost

    Returns:
        (gemstone_cost, total_cost)
    """
    gemstone_cost = sum(
        usage_cost(usage, lot_prices.get(usage.get("gemstone_code"), {}))
        for usage in usages
    )
    total_cost = gemstone_cost + float(setting_cost or 0) + float(diamond_cost or 0)
    return round(gemstone_cost, 2), round(total_cost, 2)


def status_change_note(
    old_status: str,
    new_status: str,
    selling_price: float | None = None,
    currency: str = "THB",
) -> str:
    note = f"Status changed from {old_status} to {new_status}"
    if new_status == ProjectStatus.SOLD.value and selling_price:
        note += f" for {format_amount(selling_price)} {currency}"
    return note


def _usage_rows(project_id: str | int, usages: list[GemstoneUsage]) -> list[dict[str, Any]]:
    """Usage rows to insert; blank codes are dropped."""
    return [usage.to_row(project_id) for usage in usages if usage.code.strip()]


class ManufacturingService:
    """Service for manufacturing project operations."""

    def __init__(self, db: SupabaseClient, currency: str = "THB"):
        self.db = db
        self.currency = currency

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def list_projects(
        self,
        status_filter: ProjectFilter | None = None,
        customer_id: str | None = None,
    ) -> list[dict[str, Any]]:
        """
        List projects with their usages and activity, newest first.

        Args:
            status_filter: in_production, ready_for_sale or sold
            customer_id: Only pieces sold to this customer
        """
        query = (
            self.db.table(PROJECTS_TABLE)
            .select(LIST_COLUMNS)
            .order("created_at", desc=True)
        )

        if status_filter == ProjectFilter.IN_PRODUCTION:
            query = query.not_.in_(
                "status",
                [ProjectStatus.READY_FOR_SALE.value, ProjectStatus.SOLD.value],
            )
        elif status_filter == ProjectFilter.READY_FOR_SALE:
            query = query.eq("status", ProjectStatus.READY_FOR_SALE.value)
        elif status_filter == ProjectFilter.SOLD:
            query = query.eq("status", ProjectStatus.SOLD.value)

        if customer_id:
            query = query.eq("customer_id", customer_id)

        try:
            return self.db.run(query, "fetch projects")
        except SupabaseClientError as e:
            raise DatastoreError("Failed to fetch projects", {"error": e.db_message})

    def get_project(self, project_id: str) -> dict[str, Any]:
        """
        Get a project with its usages (including lot prices) and activity log.

        Raises:
            ProjectNotFoundError: If no project has this id
        """
        project = self._get_row(project_id)

        usages: list[dict[str, Any]] = []
        activity: list[dict[str, Any]] = []
        try:
            usages = self.db.run(
                self.db.table(USAGES_TABLE).select(USAGE_WITH_PRICES).eq("project_id", project_id),
                "fetch project gemstones",
            )
        except SupabaseClientError as e:
            logger.error(f"Error fetching gemstones for project {project_id}: {e.db_message}")

        try:
            activity = self.db.run(
                self.db.table(ACTIVITY_TABLE)
                .select("*")
                .eq("project_id", project_id)
                .order("created_at", desc=True),
                "fetch project activity",
            )
        except SupabaseClientError as e:
            logger.error(f"Error fetching activity for project {project_id}: {e.db_message}")

        return {**project, USAGES_TABLE: usages, ACTIVITY_TABLE: activity}

    def lot_prices(self, codes: list[str]) -> dict[str, dict[str, Any]]:
        """Look up per-carat and per-piece prices of the given lot codes."""
        codes = sorted({code for code in codes if code})
        if not codes:
            return {}
        rows = self.db.run(
            self.db.table("gemstones").select("code, price_ct, price_piece").in_("code", codes),
            "fetch gemstone prices",
        )
        return {row["code"]: row for row in rows}

    # -------------------------------------------------------------------------
    # Commands
    # -------------------------------------------------------------------------

    def create_project(self, data: ProjectCreate) -> dict[str, Any]:
        """
        Create a project, its usages and the first activity entry.

        Returns:
            The created project row
        """
        row = data.model_dump(mode="json", exclude={"gemstones"})
        usages = [usage.to_row("") for usage in data.gemstones if usage.code.strip()]
        row["gemstone_cost"], row["total_cost"] = self._costs(usages, data.setting_cost, data.diamond_cost)
        row["photos"] = row.get("photos") or []

        try:
            created = self.db.insert_rows(PROJECTS_TABLE, [row])
        except SupabaseClientError as e:
            raise DatastoreError("Failed to create project", {"error": e.db_message})
        if not created:
            raise DatastoreError("Failed to create project", {"error": "Insert returned no data"})

        project = created[0]
        self._insert_usages(project["id"], data.gemstones)
        self._log_activity(
            project["id"],
            data.status.value,
            data.craftsman_name,
            f"Project created with status: {data.status.value}",
        )

        logger.info(f"Created manufacturing project {project['id']} ({data.project_name})")
        return project

    def update_project(self, project_id: str, data: ProjectUpdate) -> dict[str, Any]:
        """
        Apply a partial update.

        Supplied gemstones replace every existing usage. Sale fields are only
        written when the new status is sold. A status change is logged.

        Raises:
            ProjectNotFoundError: If no project has this id
        """
        current = self._get_row(project_id)

        changes = data.model_dump(
            mode="json",
            exclude_unset=True,
            exclude={"gemstones"} | SALE_FIELDS,
        )
        new_status = changes.get("status")

        if new_status == ProjectStatus.SOLD.value:
            changes["customer_id"] = data.customer_id
            changes["selling_price"] = data.selling_price
            changes["sold_at"] = data.sold_at.isoformat() if data.sold_at else _now_iso()

        if data.gemstones is not None:
            self._replace_usages(project_id, data.gemstones)

        if data.gemstones is not None or COST_FIELDS & changes.keys():
            usages = self._current_usages(project_id)
            changes["gemstone_cost"], changes["total_cost"] = self._costs(
                usages,
                changes.get("setting_cost", current.get("setting_cost")),
                changes.get("diamond_cost", current.get("diamond_cost")),
            )

        if not changes:
            return current

        try:
            project = self.db.update_by_id(PROJECTS_TABLE, project_id, changes)
        except SupabaseClientError as e:
            raise DatastoreError("Failed to update project", {"error": e.db_message})
        if project is None:
            raise ProjectNotFoundError(project_id)

        old_status = current.get("status")
        if new_status and new_status != old_status:
            self._log_activity(
                project_id,
                new_status,
                changes.get("craftsman_name", current.get("craftsman_name")),
                status_change_note(old_status, new_status, data.selling_price, self.currency),
            )

        logger.info(f"Updated manufacturing project {project_id}")
        return project

    def mark_as_sold(self, project_id: str, sale: SaleRequest) -> dict[str, Any]:
        """
        Sell a ready_for_sale piece.

        The buyer is either an existing customer or created from
        sale.new_customer.

        Raises:
            ProjectNotFoundError: If no project has this id
            ProjectNotForSaleError: If the piece isn't ready_for_sale
        """
        current = self._get_row(project_id)
        old_status = current.get("status")
        if old_status != ProjectStatus.READY_FOR_SALE.value:
            raise ProjectNotForSaleError(project_id, str(old_status))

        customer_id = sale.customer_id
        if sale.new_customer is not None:
            customer = CustomerService(self.db).create_customer(sale.new_customer)
            customer_id = customer["id"]

        changes = {
            "status": ProjectStatus.SOLD.value,
            "customer_id": customer_id,
            "selling_price": sale.selling_price,
            "sold_at": sale.sold_at.isoformat() if sale.sold_at else _now_iso(),
        }

        try:
            project = self.db.update_by_id(PROJECTS_TABLE, project_id, changes)
        except SupabaseClientError as e:
            raise DatastoreError("Failed to record sale", {"error": e.db_message})
        if project is None:
            raise ProjectNotFoundError(project_id)

        self._log_activity(
            project_id,
            ProjectStatus.SOLD.value,
            current.get("craftsman_name"),
            status_change_note(old_status, ProjectStatus.SOLD.value, sale.selling_price, self.currency),
        )

        logger.info(f"Sold manufacturing project {project_id} to customer {customer_id}")
        return project

    def delete_project(self, project_id: str) -> None:
        self._get_row(project_id)
        try:
            self.db.delete_by_id(PROJECTS_TABLE, project_id)
        except SupabaseClientError as e:
            raise DatastoreError("Failed to delete project", {"error": e.db_message})
        logger.info(f"Deleted manufacturing project {project_id}")

    def delete_usage(self, usage_id: str) -> None:
        """Remove one gemstone usage from its project."""
        try:
            self.db.delete_by_id(USAGES_TABLE, usage_id)
        except SupabaseClientError as e:
            raise DatastoreError("Failed to delete gemstone usage", {"error": e.db_message})
        logger.info(f"Deleted gemstone usage {usage_id}")

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _get_row(self, project_id: str) -> dict[str, Any]:
        try:
            project = self.db.fetch_by_id(PROJECTS_TABLE, project_id)
        except SupabaseClientError as e:
            raise DatastoreError("Failed to fetch project", {"error": e.db_message})
        if not project:
            raise ProjectNotFoundError(project_id)
        return project

    def _costs(
        self,
        usages: list[dict[str, Any]],
        setting_cost: float | None,
        diamond_cost: float | None,
    ) -> tuple[float, float]:
        try:
            prices = self.lot_prices([usage.get("gemstone_code") for usage in usages])
        except SupabaseClientError as e:
            logger.error(f"Error fetching gemstone prices: {e.db_message}")
            prices = {}
        return calculate_total_cost(usages, prices, setting_cost, diamond_cost)

    def _current_usages(self, project_id: str) -> list[dict[str, Any]]:
        try:
            return self.db.run(
                self.db.table(USAGES_TABLE)
                .select("gemstone_code, pieces_used, weight_used")
                .eq("project_id", project_id),
                "fetch project gemstones",
            )
        except SupabaseClientError as e:
            logger.error(f"Error fetching gemstones for project {project_id}: {e.db_message}")
            return []

    def _insert_usages(self, project_id: str | int, usages: list[GemstoneUsage]) -> None:
        rows = _usage_rows(project_id, usages)
        if not rows:
            return
        try:
            self.db.insert_rows(USAGES_TABLE, rows)
        except SupabaseClientError as e:
            logger.error(f"Error inserting gemstones for project {project_id}: {e.db_message}")

    def _replace_usages(self, project_id: str, usages: list[GemstoneUsage]) -> None:
        try:
            self.db.delete_where(USAGES_TABLE, "project_id", project_id)
        except SupabaseClientError as e:
            logger.error(f"Error clearing gemstones for project {project_id}: {e.db_message}")
            return
        self._insert_usages(project_id, usages)

    def _log_activity(
        self,
        project_id: str | int,
        status: str,
        craftsman_name: str | None,
        notes: str,
    ) -> None:
        try:
            self.db.insert_rows(ACTIVITY_TABLE, [{
                "project_id": project_id,
                "status": status,
                "craftsman_name": craftsman_name,
                "notes": notes,
            }])
        except SupabaseClientError as e:
            logger.error(f"Error creating activity log for project {project_id}: {e.db_message}")
