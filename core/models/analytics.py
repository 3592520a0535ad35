# =============================================================================
# core/models/analytics.py - Sales Analytics Schemas
# =============================================================================

from pydantic import BaseModel, Field


class CurrentMonthSales(BaseModel):
    revenue: float = 0.0
    transactions: int = 0
    start_date: str


class SalesTotals(BaseModel):
    revenue: float = 0.0
    orders: int = 0
    avg_order_value: float = 0.0
    customers: int = Field(default=0, description="All customers on file")
    customers_with_purchases: int = 0


class MonthlyRevenue(BaseModel):
    month: str = Field(..., examples=["Mar"])
    revenue: float = 0.0
    customers: int = Field(default=0, description="Distinct buyers that month")
    orders: int = 0


class TopCustomer(BaseModel):
    customer_id: str
    customer_name: str
    total_spent: float
    purchases: int
    last_purchase: str


class SalesOverview(BaseModel):
    """Dashboard numbers derived from sold manufacturing projects."""

    current_month: CurrentMonthSales
    totals: SalesTotals
    monthly_revenue: list[MonthlyRevenue] = Field(default_factory=list)
    top_customers: list[TopCustomer] = Field(default_factory=list)
