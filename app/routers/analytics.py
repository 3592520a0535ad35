# =============================================================================
# app/routers/analytics.py - Sales Dashboard Endpoint
# =============================================================================

from fastapi import APIRouter

from app.dependencies import AnalyticsServiceDep
from core.models import SalesOverview

router = APIRouter()


@router.get("", response_model=SalesOverview)
def get_sales_overview(service: AnalyticsServiceDep):
    """
    Sales overview from sold pieces.

    Current month revenue, all-time totals, the last six months and the
    five customers who spent the most.
    """
    return service.sales_overview()
