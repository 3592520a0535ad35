# =============================================================================
# app/routers/health.py - Health Check Endpoints
# =============================================================================
# /health/ready reports on what the back office needs to work: the gemstones
# table that imports write into, and the two photo buckets uploads go to.
# =============================================================================

import logging
from datetime import datetime, timezone
from typing import Any

from fastapi import APIRouter

from app.dependencies import SettingsDep, SupabaseDep
from lib.supabase_client import SupabaseClient, SupabaseClientError

logger = logging.getLogger(__name__)

router = APIRouter()

VERSION = "1.0.0"


def check_inventory_table(db: SupabaseClient) -> str:
    try:
        db.run(db.table("gemstones").select("id").limit(1), "reach gemstones table")
    except SupabaseClientError as e:
        return f"unhealthy: {e.db_message}"
    return "healthy"


def check_photo_buckets(db: SupabaseClient, required: list[str]) -> str:
    """'healthy', or which configured buckets are missing or unreachable."""
    try:
        buckets = db.storage.list_buckets()
    except Exception as e:
        logger.warning(f"Storage check failed: {e}")
        return f"unhealthy: {e}"

    names = {getattr(bucket, "name", None) or getattr(bucket, "id", None) for bucket in buckets}
    missing = [name for name in required if name not in names]
    if missing:
        return f"missing buckets: {', '.join(missing)}"
    return "healthy"


@router.get("/health")
async def health_check(settings: SettingsDep) -> dict[str, Any]:
    return {
        "status": "healthy",
        "environment": settings.ENVIRONMENT,
        "version": VERSION,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@router.get("/health/ready")
def readiness_check(db: SupabaseDep, settings: SettingsDep) -> dict[str, Any]:
    """
    Check the gemstones table and the photo buckets.

    Status is "ready" only when every check passes, "degraded" otherwise.
    """
    checks = {
        "database": check_inventory_table(db),
        "storage": check_photo_buckets(
            db, [settings.CUSTOMER_PHOTO_BUCKET, settings.MANUFACTURING_PHOTO_BUCKET]
        ),
    }
    ready = all(result == "healthy" for result in checks.values())

    return {
        "status": "ready" if ready else "degraded",
        "checks": checks,
    }


@router.get("/health/live")
async def liveness_check() -> dict[str, str]:
    return {"status": "alive"}
