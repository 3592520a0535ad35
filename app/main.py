# =============================================================================
# app/main.py - FastAPI Application Entry Point
# =============================================================================
# This is the main entry point for the Gem Desk API.
# It configures the FastAPI application with middleware, routers, and handlers.
#
# Usage:
#   uvicorn app.main:app --reload
# =============================================================================

import logging
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.config import Settings, get_settings
from app.exceptions import (
    GemDeskException,
    gemdesk_exception_handler,
    validation_exception_handler,
)
from app.routers import analytics, customers, gemstones, health, manufacturing, upload
from lib.supabase_client import SupabaseClient

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Runs on startup and shutdown:
    - Startup: Create the Supabase client and the shared HTTP client
    - Shutdown: Close the HTTP client
    """
    settings: Settings = app.state.settings

    # Startup
    logger.info(f"Starting Gem Desk API in {settings.ENVIRONMENT} mode")
    logger.info(f"CORS origins: {settings.cors_origins_list}")

    app.state.datastore = SupabaseClient.from_settings(settings)
    app.state.http_client = httpx.Client(
        timeout=settings.CSV_FETCH_TIMEOUT_SECONDS,
        follow_redirects=True,
    )

    yield

    # Shutdown
    logger.info("Shutting down Gem Desk API")
    app.state.http_client.close()


def create_app(settings: Settings | None = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        settings: Settings to use (defaults to get_settings())
    """
    settings = settings or get_settings()

    # Configure logging
    logging.basicConfig(
        level=logging.DEBUG if settings.DEBUG else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    app = FastAPI(
        title="Gem Desk API",
        description="""
## Jewelry Back-Office API

Gem Desk keeps a jeweler's gemstone stock, customers and workshop in one place.

### Key Features

- **Stock import**: Load the gemstone stock spreadsheet from a CSV URL or upload
- **Inventory**: Search lots and track remaining pieces / carats
- **Manufacturing**: Follow each piece from approval to sale, with cost rollup
- **CRM**: Customers, notes and purchase activity
- **Analytics**: Monthly revenue and top customers

### Quick Start

```bash
# Import the stock sheet
curl -X POST http://localhost:8000/api/v1/gemstones/import-csv \\
  -H "Content-Type: application/json" \\
  -d '{"csv_url": "https://example.com/stock.csv"}'

# List low-stock lots
curl "http://localhost:8000/api/v1/gemstones?status=low-stock"
```
""",
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
        openapi_tags=[
            {
                "name": "Gemstones",
                "description": "Gemstone lots and stock CSV import",
            },
            {
                "name": "Customers",
                "description": "Customer records, notes and activity",
            },
            {
                "name": "Manufacturing",
                "description": "Workshop pieces, gemstone usage and point of sale",
            },
            {
                "name": "Analytics",
                "description": "Sales dashboard",
            },
            {
                "name": "Upload",
                "description": "Customer and manufacturing photos",
            },
            {
                "name": "Health",
                "description": "API health and readiness checks",
            },
        ],
    )
    app.state.settings = settings

    # =========================================================================
    # Middleware
    # =========================================================================

    # CORS middleware - allows cross-origin requests
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list if settings.is_production else ["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # =========================================================================
    # Exception Handlers
    # =========================================================================

    app.add_exception_handler(GemDeskException, gemdesk_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)

    @app.exception_handler(Exception)
    async def handle_general_exception(request: Request, exc: Exception):
        """Handle unexpected exceptions."""
        logger.exception(f"Unexpected error: {exc}")
        return JSONResponse(
            status_code=500,
            content={
                "error": "Internal server error",
                "code": "INTERNAL_ERROR",
            }
        )

    # =========================================================================
    # Routers
    # =========================================================================

    app.include_router(health.router, prefix=API_PREFIX, tags=["Health"])
    app.include_router(gemstones.router, prefix=f"{API_PREFIX}/gemstones", tags=["Gemstones"])
    app.include_router(customers.router, prefix=f"{API_PREFIX}/customers", tags=["Customers"])
    app.include_router(manufacturing.router, prefix=f"{API_PREFIX}/manufacturing", tags=["Manufacturing"])
    app.include_router(analytics.router, prefix=f"{API_PREFIX}/analytics", tags=["Analytics"])
    app.include_router(upload.router, prefix=f"{API_PREFIX}/upload", tags=["Upload"])

    # =========================================================================
    # Root Endpoint
    # =========================================================================

    @app.get("/", tags=["Root"])
    async def root():
        """
        Root endpoint - returns API info.
        """
        return {
            "name": "Gem Desk API",
            "version": "1.0.0",
            "docs": "/docs",
            "health": f"{API_PREFIX}/health",
        }

    return app


app = create_app()
