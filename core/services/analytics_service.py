# =============================================================================
# core/services/analytics_service.py - Sales Dashboard Numbers
# =============================================================================
# Aggregates sold manufacturing projects into the dashboard overview.
#
# A sale's amount is its selling_price, falling back to estimated_value and
# then 0. Its date is sold_at, falling back to created_at. Months are UTC.
# =============================================================================

import logging
from datetime import datetime, timezone
from typing import Any

import pandas as pd

from app.exceptions import DatastoreError
from core.models import (
    CurrentMonthSales,
    MonthlyRevenue,
    SalesOverview,
    SalesTotals,
    TopCustomer,
)
from lib.supabase_client import SupabaseClient, SupabaseClientError

logger = logging.getLogger(__name__)

MONTHS_IN_SERIES = 6
TOP_CUSTOMER_LIMIT = 5
UNKNOWN_CUSTOMER = "Unknown Customer"

SOLD_COLUMNS = (
    "id, project_name, selling_price, estimated_value, sold_at, created_at, "
    "customer_id, customers(id, name)"
)


def _sales_frame(sold_items: list[dict[str, Any]]) -> pd.DataFrame:
    """One row per sale: customer_id, customer_name, amount, sold_ts, month."""
    records = [
        {
            "customer_id": item.get("customer_id") or None,
            "customer_name": (item.get("customers") or {}).get("name"),
            "amount": float(item.get("selling_price") or item.get("estimated_value") or 0),
            "sold_on": item.get("sold_at") or item.get("created_at"),
        }
        for item in sold_items
    ]
    df = pd.DataFrame(records, columns=["customer_id", "customer_name", "amount", "sold_on"])
    df["amount"] = df["amount"].astype(float)
    df["sold_ts"] = pd.to_datetime(df["sold_on"], utc=True, format="ISO8601", errors="coerce")
    df["month"] = df["sold_ts"].dt.tz_convert(None).dt.to_period("M")
    return df


def _top_customers(buyers: pd.DataFrame) -> list[TopCustomer]:
    if buyers.empty:
        return []

    grouped = buyers.groupby("customer_id").agg(
        customer_name=("customer_name", "first"),
        total_spent=("amount", "sum"),
        purchases=("amount", "size"),
        last_ts=("sold_ts", "max"),
    )
    grouped = grouped.sort_values("total_spent", ascending=False, kind="stable").head(TOP_CUSTOMER_LIMIT)

    return [
        TopCustomer(
            customer_id=str(customer_id),
            customer_name=row.customer_name if isinstance(row.customer_name, str) else UNKNOWN_CUSTOMER,
            total_spent=float(row.total_spent),
            purchases=int(row.purchases),
            last_purchase="" if pd.isna(row.last_ts) else row.last_ts.isoformat(),
        )
        for customer_id, row in grouped.iterrows()
    ]


def build_sales_overview(
    sold_items: list[dict[str, Any]],
    customer_count: int,
    now: datetime | None = None,
) -> SalesOverview:
    """
    Compute the sales dashboard from sold projects.

    Args:
        sold_items: Sold project rows, optionally with an embedded
            "customers" {"id", "name"} object
        customer_count: Number of customers on file
        now: Reference time (defaults to the current UTC time)

    Returns:
        SalesOverview with current month, totals, last 6 months and top 5
        customers by spend
    """
    now = now or datetime.now(timezone.utc)
    current_period = pd.Period(year=now.year, month=now.month, freq="M")
    month_start = pd.Timestamp(year=now.year, month=now.month, day=1, tz="UTC")

    df = _sales_frame(sold_items)

    current = df[df["month"] == current_period]

    total_revenue = float(df["amount"].sum())
    total_orders = len(df)

    monthly = []
    for offset in range(MONTHS_IN_SERIES - 1, -1, -1):
        period = current_period - offset
        month_sales = df[df["month"] == period]
        monthly.append(MonthlyRevenue(
            month=period.strftime("%b"),
            revenue=float(month_sales["amount"].sum()),
            customers=int(month_sales["customer_id"].dropna().nunique()),
            orders=len(month_sales),
        ))

    buyers = df[df["customer_id"].notna()]

    return SalesOverview(
        current_month=CurrentMonthSales(
            revenue=float(current["amount"].sum()),
            transactions=len(current),
            start_date=month_start.isoformat(),
        ),
        totals=SalesTotals(
            revenue=total_revenue,
            orders=total_orders,
            avg_order_value=total_revenue / total_orders if total_orders else 0.0,
            customers=customer_count,
            customers_with_purchases=int(buyers["customer_id"].nunique()),
        ),
        monthly_revenue=monthly,
        top_customers=_top_customers(buyers),
    )


class AnalyticsService:
    """Loads sold projects and customers, then builds the overview."""

    def __init__(self, db: SupabaseClient):
        self.db = db

    def sales_overview(self, now: datetime | None = None) -> SalesOverview:
        try:
            sold_items = self.db.run(
                self.db.table("manufacturing_projects")
                .select(SOLD_COLUMNS)
                .eq("status", "sold")
                .order("sold_at", desc=True),
                "fetch sold items",
            )
            customer_count = self.db.count_rows("customers")
        except SupabaseClientError as e:
            raise DatastoreError("Failed to fetch analytics data", {"error": e.db_message})

        logger.debug(f"Building sales overview from {len(sold_items)} sold items")
        return build_sales_overview(sold_items, customer_count, now)
