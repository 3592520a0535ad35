# =============================================================================
# core/services/__init__.py - Service Layer Exports
# =============================================================================

from .import_service import GemstoneImportService
from .gemstone_service import GemstoneService
from .customer_service import CustomerService
from .manufacturing_service import ManufacturingService
from .analytics_service import AnalyticsService
from .storage_service import PhotoKind, StorageService

__all__ = [
    "GemstoneImportService",
    "GemstoneService",
    "CustomerService",
    "ManufacturingService",
    "AnalyticsService",
    "PhotoKind",
    "StorageService",
]
