# =============================================================================
# app/routers/ - API Route Definitions
# =============================================================================
# This package contains FastAPI routers organized by feature:
# - health.py: Health check endpoints
# - gemstones.py: Gemstone inventory and stock CSV import
# - customers.py: Customer CRM, notes and activity
# - manufacturing.py: Workshop pieces and point of sale
# - analytics.py: Sales dashboard
# - upload.py: Photo uploads
#
# Each router is mounted in main.py with a URL prefix.
# =============================================================================

from . import health
from . import gemstones
from . import customers
from . import manufacturing
from . import analytics
from . import upload

__all__ = [
    "health",
    "gemstones",
    "customers",
    "manufacturing",
    "analytics",
    "upload",
]
