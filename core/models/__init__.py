# =============================================================================
# core/models/ - Pydantic Data Models
# =============================================================================
# This package contains Pydantic schemas for data validation:
# - gemstone.py: Gemstone lot schemas (manual entry, edits, import records)
# - customer.py: Customer CRM schemas
# - manufacturing.py: Manufacturing project, usage and sale schemas
# - imports.py: Stock CSV import request/result schemas
# - analytics.py: Sales dashboard schemas
#
# These models define the "contract" between API and clients.
# =============================================================================

from .gemstone import (
    GemstoneCreate,
    GemstoneRecord,
    GemstoneUpdate,
    StockStatus,
)

from .customer import (
    CustomerCreate,
    CustomerNoteCreate,
)

from .manufacturing import (
    GemstoneUsage,
    ProjectCreate,
    ProjectFilter,
    ProjectStatus,
    ProjectUpdate,
    SaleRequest,
)

from .imports import (
    ImportMode,
    ImportRequest,
    ImportResult,
    RowWarning,
    SkippedRow,
    SkipReason,
)

from .analytics import (
    CurrentMonthSales,
    MonthlyRevenue,
    SalesOverview,
    SalesTotals,
    TopCustomer,
)

__all__ = [
    # Gemstones
    "GemstoneCreate",
    "GemstoneRecord",
    "GemstoneUpdate",
    "StockStatus",
    # Customers
    "CustomerCreate",
    "CustomerNoteCreate",
    # Manufacturing
    "GemstoneUsage",
    "ProjectCreate",
    "ProjectFilter",
    "ProjectStatus",
    "ProjectUpdate",
    "SaleRequest",
    # Imports
    "ImportMode",
    "ImportRequest",
    "ImportResult",
    "RowWarning",
    "SkippedRow",
    "SkipReason",
    # Analytics
    "CurrentMonthSales",
    "MonthlyRevenue",
    "SalesOverview",
    "SalesTotals",
    "TopCustomer",
]
