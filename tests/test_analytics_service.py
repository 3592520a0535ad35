# =============================================================================
# tests/test_analytics_service.py - Sales Overview Tests
# =============================================================================

from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest

from app.exceptions import DatastoreError
from core.services.analytics_service import AnalyticsService, build_sales_overview
from lib.supabase_client import SupabaseClient, SupabaseClientError

NOW = datetime(2025, 3, 15, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def sold_items():
    return [
        {
            "customer_id": "c1",
            "customers": {"id": "c1", "name": "Ploy"},
            "selling_price": 1000,
            "estimated_value": 900,
            "sold_at": "2025-03-02T10:00:00+00:00",
            "created_at": "2025-01-05T10:00:00+00:00",
        },
        {
            # No selling price or sale date: estimated value, created date
            "customer_id": "c1",
            "customers": {"id": "c1", "name": "Ploy"},
            "selling_price": None,
            "estimated_value": 500,
            "sold_at": None,
            "created_at": "2025-02-10T08:00:00+00:00",
        },
        {
            "customer_id": "c2",
            "customers": {"id": "c2", "name": "Nok"},
            "selling_price": 3000,
            "sold_at": "2025-03-10T12:30:00+00:00",
        },
        {
            # Walk-in sale with no customer
            "customer_id": None,
            "customers": None,
            "selling_price": 200,
            "sold_at": "2024-12-31T23:00:00+00:00",
        },
    ]


class TestBuildSalesOverview:
    """Test the dashboard aggregation."""

    def test_current_month(self, sold_items):
        overview = build_sales_overview(sold_items, customer_count=5, now=NOW)

        assert overview.current_month.revenue == 4000.0
        assert overview.current_month.transactions == 2
        assert overview.current_month.start_date == "2025-03-01T00:00:00+00:00"

    def test_totals(self, sold_items):
        totals = build_sales_overview(sold_items, customer_count=5, now=NOW).totals

        assert totals.revenue == 4700.0
        assert totals.orders == 4
        assert totals.avg_order_value == 1175.0
        assert totals.customers == 5
        assert totals.customers_with_purchases == 2

    def test_last_six_months(self, sold_items):
        monthly = build_sales_overview(sold_items, customer_count=5, now=NOW).monthly_revenue

        assert [m.month for m in monthly] == ["Oct", "Nov", "Dec", "Jan", "Feb", "Mar"]
        by_month = {m.month: m for m in monthly}
        assert (by_month["Mar"].revenue, by_month["Mar"].customers, by_month["Mar"].orders) == (4000.0, 2, 2)
        assert (by_month["Feb"].revenue, by_month["Feb"].customers, by_month["Feb"].orders) == (500.0, 1, 1)
        assert (by_month["Dec"].revenue, by_month["Dec"].customers, by_month["Dec"].orders) == (200.0, 0, 1)
        assert by_month["Jan"].orders == 0

    def test_top_customers(self, sold_items):
        top = build_sales_overview(sold_items, customer_count=5, now=NOW).top_customers

        assert [c.customer_name for c in top] == ["Nok", "Ploy"]
        ploy = top[1]
        assert ploy.customer_id == "c1"
        assert ploy.total_spent == 1500.0
        assert ploy.purchases == 2
        assert ploy.last_purchase == "2025-03-02T10:00:00+00:00"

    def test_top_five_only(self):
        items = [
            {"customer_id": f"c{i}", "customers": {"name": f"Customer {i}"}, "selling_price": 100 * i,
             "sold_at": "2025-03-01T00:00:00+00:00"}
            for i in range(1, 8)
        ]
        top = build_sales_overview(items, customer_count=7, now=NOW).top_customers

        assert [c.customer_id for c in top] == ["c7", "c6", "c5", "c4", "c3"]

    def test_missing_customer_name(self):
        items = [{"customer_id": "c1", "selling_price": 100, "sold_at": "2025-03-01T00:00:00+00:00"}]
        top = build_sales_overview(items, customer_count=1, now=NOW).top_customers

        assert top[0].customer_name == "Unknown Customer"

    def test_no_sales(self):
        overview = build_sales_overview([], customer_count=3, now=NOW)

        assert overview.totals.revenue == 0.0
        assert overview.totals.avg_order_value == 0.0
        assert len(overview.monthly_revenue) == 6
        assert overview.top_customers == []


class TestAnalyticsService:
    def test_datastore_failure(self):
        db = MagicMock()
        db.run.side_effect = SupabaseClientError("boom")

        with pytest.raises(DatastoreError, match="Failed to fetch analytics data"):
            AnalyticsService(db).sales_overview(now=NOW)

    def test_counts_customers(self, sold_items):
        db = MagicMock()
        db.run.return_value = sold_items
        db.count_rows.return_value = 3

        overview = AnalyticsService(db).sales_overview(now=NOW)

        assert overview.totals.customers == 3
        assert overview.totals.orders == 4
        db.count_rows.assert_called_once_with("customers")


class TestCountRows:
    def test_uses_exact_head_count(self):
        client = MagicMock()
        query = client.table.return_value.select.return_value
        query.execute.return_value.count = 7

        assert SupabaseClient(client).count_rows("customers") == 7
        client.table.return_value.select.assert_called_once_with("id", count="exact", head=True)
