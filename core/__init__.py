# =============================================================================
# core/ - Business Logic Package
# =============================================================================
# This package contains the back-office business logic:
# - models/: Pydantic schemas for data validation
# - services/: Stock import, inventory, CRM, manufacturing, analytics,
#   photo storage
#
# Services receive their SupabaseClient through the constructor and raise
# app.exceptions errors; they never touch the request/response cycle.
# =============================================================================
