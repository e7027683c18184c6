"""
Application settings loaded from environment variables.

Uses pydantic-settings for validation and type safety.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field
from functools import lru_cache
from typing import Optional


class Settings(BaseSettings):
    """
    Application settings.

    All values loaded from .env file or environment variables.
    Validation happens automatically on startup.
    """

    model_config = SettingsConfigDict(
        env_file=(".env", "../.env"),  # Check current dir, then parent
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"  # Ignore extra env vars
    )

    # ===================
    # SUPABASE
    # ===================
    supabase_url: str = Field(
        ...,
        description="Supabase project URL"
    )
    supabase_key: str = Field(
        ...,
        description="Supabase anon/public key"
    )
    supabase_service_key: Optional[str] = Field(
        None,
        description="Supabase service role key (for admin operations)"
    )

    # ===================
    # BULK UPLOAD
    # ===================
    bulk_upload_max_rows: int = Field(
        default=5000,
        ge=1,
        le=50000,
        description="Maximum product rows accepted in one bulk upload"
    )
    sku_lookup_chunk_size: int = Field(
        default=200,
        ge=1,
        le=1000,
        description="SKUs per existing-product lookup query"
    )
    sku_conflict_max_retries: int = Field(
        default=1,
        ge=0,
        le=5,
        description="Re-classify attempts after a SKU unique-constraint violation on insert"
    )
    sku_rename_lookup_window: int = Field(
        default=10,
        ge=1,
        le=200,
        description="Rename candidates per renamed SKU checked against the store in one lookup"
    )
    default_currency: str = Field(
        default="USD",
        min_length=3,
        max_length=3,
        description="Currency used when a row does not name one"
    )

    # ===================
    # APP SETTINGS
    # ===================
    environment: str = Field(
        default="development",
        pattern="^(development|staging|production)$",
        description="Application environment"
    )
    debug: bool = Field(
        default=True,
        description="Enable debug mode"
    )
    log_level: str = Field(
        default="INFO",
        pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$",
        description="Logging level"
    )
    api_host: str = Field(
        default="0.0.0.0",
        description="API host"
    )
    api_port: int = Field(
        default=8000,
        ge=1,
        le=65535,
        description="API port"
    )
    cors_origins: list[str] = Field(
        default=["http://localhost:3000"],
        description="Origins allowed to call the API (vendor dashboard)"
    )

    @property
    def is_production(self) -> bool:
        """Check if running in production."""
        return self.environment == "production"


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload.

    Returns:
        Settings: Application settings

    Raises:
        ValidationError: If required env vars are missing or invalid
    """
    return Settings()


# For convenient imports: from config.settings import settings
settings = get_settings()
