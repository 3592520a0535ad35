# =============================================================================
# app/dependencies.py - Shared Dependencies
# =============================================================================
# FastAPI dependency injection for shared resources.
# These are injected into route handlers using Depends().
#
# The Supabase client and HTTP client are created once in the app lifespan
# and live on app.state; services are built per request around them.
# =============================================================================

from typing import Annotated

import httpx
from fastapi import Depends, Request

from app.config import Settings
from core.services import (
    AnalyticsService,
    CustomerService,
    GemstoneImportService,
    GemstoneService,
    ManufacturingService,
    StorageService,
)
from lib.supabase_client import SupabaseClient


def get_app_settings(request: Request) -> Settings:
    """Settings the app was created with."""
    return request.app.state.settings


def get_datastore(request: Request) -> SupabaseClient:
    """Supabase client created at startup."""
    return request.app.state.datastore


def get_http_client(request: Request) -> httpx.Client:
    """Shared HTTP client for fetching CSVs."""
    return request.app.state.http_client


SettingsDep = Annotated[Settings, Depends(get_app_settings)]
SupabaseDep = Annotated[SupabaseClient, Depends(get_datastore)]
HttpClientDep = Annotated[httpx.Client, Depends(get_http_client)]


# =============================================================================
# Services
# =============================================================================

def get_import_service(
    db: SupabaseDep,
    settings: SettingsDep,
    http_client: HttpClientDep,
) -> GemstoneImportService:
    return GemstoneImportService(
        db,
        batch_size=settings.CSV_IMPORT_BATCH_SIZE,
        column_mapping=settings.CSV_COLUMN_MAPPING,
        http_client=http_client,
        fetch_timeout=settings.CSV_FETCH_TIMEOUT_SECONDS,
    )


def get_gemstone_service(db: SupabaseDep, settings: SettingsDep) -> GemstoneService:
    return GemstoneService(db, low_stock_threshold_ct=settings.LOW_STOCK_THRESHOLD_CT)


def get_customer_service(db: SupabaseDep) -> CustomerService:
    return CustomerService(db)


def get_manufacturing_service(db: SupabaseDep, settings: SettingsDep) -> ManufacturingService:
    return ManufacturingService(db, currency=settings.CURRENCY_CODE)


def get_analytics_service(db: SupabaseDep) -> AnalyticsService:
    return AnalyticsService(db)


def get_storage_service(db: SupabaseDep, settings: SettingsDep) -> StorageService:
    return StorageService(
        db,
        customer_bucket=settings.CUSTOMER_PHOTO_BUCKET,
        manufacturing_bucket=settings.MANUFACTURING_PHOTO_BUCKET,
        max_size_mb=settings.PHOTO_MAX_SIZE_MB,
    )


ImportServiceDep = Annotated[GemstoneImportService, Depends(get_import_service)]
GemstoneServiceDep = Annotated[GemstoneService, Depends(get_gemstone_service)]
CustomerServiceDep = Annotated[CustomerService, Depends(get_customer_service)]
ManufacturingServiceDep = Annotated[ManufacturingService, Depends(get_manufacturing_service)]
AnalyticsServiceDep = Annotated[AnalyticsService, Depends(get_analytics_service)]
StorageServiceDep = Annotated[StorageService, Depends(get_storage_service)]
