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
    # ANTHROPIC
    # ===================
    anthropic_api_key: Optional[str] = Field(
        None,
        description="Anthropic API key used for column mapping inference"
    )
    mapping_model: str = Field(
        default="claude-sonnet-4-20250514",
        description="Claude model used to resolve column mappings"
    )
    mapping_max_tokens: int = Field(
        default=2048,
        ge=256,
        le=8192,
        description="Maximum tokens for the mapping response"
    )
    mapping_timeout_seconds: float = Field(
        default=60.0,
        gt=0,
        le=600,
        description="Timeout for the single mapping call per import"
    )

    # ===================
    # IMPORT SETTINGS
    # ===================
    mapping_sample_rows: int = Field(
        default=5,
        ge=1,
        le=20,
        description="Data rows sent alongside the header for mapping inference"
    )
    default_rating: float = Field(
        default=4.5,
        gt=0,
        le=5,
        description="Rating assigned to drafts without a rating column"
    )
    default_category_id: str = Field(
        default="uncategorized",
        min_length=1,
        description="Category id for text matching no keyword group"
    )
    max_upload_bytes: int = Field(
        default=10 * 1024 * 1024,
        ge=1024,
        description="Maximum accepted spreadsheet upload size"
    )
    preview_ttl_minutes: int = Field(
        default=30,
        ge=1,
        le=1440,
        description="Minutes an import preview stays available for review"
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
        ge=1000,
        le=65535,
        description="API port"
    )

    # ===================
    # COMPUTED PROPERTIES
    # ===================
    @property
    def is_production(self) -> bool:
        """Check if running in production."""
        return self.environment == "production"

    @property
    def anthropic_configured(self) -> bool:
        """Check if the Anthropic client can be created."""
        return bool(self.anthropic_api_key)


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload.

    Returns:
        Settings: Application settings

    Raises:
        ValidationError: If env vars are invalid
    """
    return Settings()


# For convenient imports: from config.settings import settings
settings = get_settings()
