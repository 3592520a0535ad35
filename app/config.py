# =============================================================================
# app/config.py - Application Settings
# =============================================================================
# This module loads configuration from environment variables using pydantic-settings.
# It provides a single Settings class with all configuration values.
#
# Usage:
#   from app.config import get_settings
#   settings = get_settings()
#
# Environment variables are loaded from:
# 1. System environment variables
# 2. .env file in project root (if exists)
#
# Settings are read once when the application is created and handed to the
# parts that need them (app.state, service constructors). Nothing in the
# codebase reads the environment on its own.
# =============================================================================

from functools import lru_cache
from typing import Literal

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Uses pydantic-settings to:
    - Automatically load from .env file
    - Validate types and constraints
    - Provide sensible defaults for development
    """

    # -------------------------------------------------------------------------
    # Supabase Configuration
    # -------------------------------------------------------------------------
    # These are required - app won't start without them

    SUPABASE_URL: str = Field(
        ...,
        validation_alias=AliasChoices("SUPABASE_URL", "NEXT_PUBLIC_SUPABASE_URL"),
        description="Supabase project URL (e.g., https://xxx.supabase.co)"
    )

    SUPABASE_SERVICE_KEY: str = Field(
        ...,
        validation_alias=AliasChoices("SUPABASE_SERVICE_KEY", "SUPABASE_SERVICE_ROLE_KEY"),
        description="Supabase service_role key (bypasses RLS)"
    )

    # -------------------------------------------------------------------------
    # Application Settings
    # -------------------------------------------------------------------------

    ENVIRONMENT: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Current environment"
    )

    DEBUG: bool = Field(
        default=False,
        description="Enable debug mode (verbose logging)"
    )

    API_HOST: str = Field(
        default="0.0.0.0",
        description="Host to bind the API server to"
    )

    API_PORT: int = Field(
        default=8000,
        ge=1,
        le=65535,
        description="Port for the API server"
    )

    # CORS origins (comma-separated string that gets parsed)
    CORS_ORIGINS: str = Field(
        default="http://localhost:3000",
        description="Allowed CORS origins (comma-separated)"
    )

    # -------------------------------------------------------------------------
    # File Upload Settings
    # -------------------------------------------------------------------------

    MAX_UPLOAD_SIZE_MB: int = Field(
        default=10,
        ge=1,
        le=100,
        description="Maximum stock CSV upload size in MB"
    )

    PHOTO_MAX_SIZE_MB: int = Field(
        default=5,
        ge=1,
        le=50,
        description="Maximum photo upload size in MB"
    )

    CUSTOMER_PHOTO_BUCKET: str = Field(
        default="customer-photos",
        description="Storage bucket for customer photos"
    )

    MANUFACTURING_PHOTO_BUCKET: str = Field(
        default="manufacturing-photos",
        description="Storage bucket for manufacturing photos"
    )

    # -------------------------------------------------------------------------
    # Stock Import Settings
    # -------------------------------------------------------------------------

    CSV_IMPORT_BATCH_SIZE: int = Field(
        default=100,
        ge=1,
        le=1000,
        description="Rows written per datastore call during CSV import"
    )

    CSV_COLUMN_MAPPING: Literal["header", "positional"] = Field(
        default="header",
        description="Resolve import columns by header name or by fixed position"
    )

    CSV_FETCH_TIMEOUT_SECONDS: float = Field(
        default=30.0,
        gt=0,
        description="Timeout for fetching a stock CSV from a URL"
    )

    # -------------------------------------------------------------------------
    # Inventory / Sales
    # -------------------------------------------------------------------------

    LOW_STOCK_THRESHOLD_CT: float = Field(
        default=1.0,
        ge=0,
        description="Lots at or below this carat balance count as low stock"
    )

    CURRENCY_CODE: str = Field(
        default="THB",
        description="Currency used in sale log messages"
    )

    # -------------------------------------------------------------------------
    # Pydantic Settings Configuration
    # -------------------------------------------------------------------------

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_ignore_empty=True,
        case_sensitive=True,
        extra="ignore",
    )

    # -------------------------------------------------------------------------
    # Computed Properties
    # -------------------------------------------------------------------------

    @property
    def cors_origins_list(self) -> list[str]:
        """
        Parse CORS_ORIGINS string into a list.

        Example: "http://localhost:3000, https://shop.example" -> ["http://localhost:3000", "https://shop.example"]
        """
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",")]

    @property
    def max_upload_size_bytes(self) -> int:
        return self.MAX_UPLOAD_SIZE_MB * 1024 * 1024

    @property
    def photo_max_size_bytes(self) -> int:
        return self.PHOTO_MAX_SIZE_MB * 1024 * 1024

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.ENVIRONMENT == "production"


@lru_cache
def get_settings() -> Settings:
    """
    Get cached Settings instance.

    Using lru_cache ensures we only parse .env and validate once,
    not on every access.

    Returns:
        Settings: The application settings instance
    """
    return Settings()
