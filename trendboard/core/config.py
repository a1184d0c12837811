"""
Application configuration using Pydantic Settings.

Loads configuration from environment variables and .env files.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Any

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _read_secret_file(path: str) -> str:
    try:
        content = Path(path).expanduser().read_text(encoding="utf-8").strip()
    except OSError as exc:
        msg = f"Could not read secret file '{path}'"
        raise ValueError(msg) from exc
    if not content:
        msg = f"Secret file '{path}' is empty"
        raise ValueError(msg)
    return content


class Settings(BaseSettings):
    """
    Application settings.

    All settings can be overridden via environment variables.
    For example, DATABASE_URL env var sets the database_url field.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # =========================================================================
    # Database
    # =========================================================================
    DATABASE_URL: str = Field(
        default="postgresql+asyncpg://postgres@localhost:5432/trendboard",
        description="Async PostgreSQL connection string",
    )
    DATABASE_URL_FILE: str | None = Field(
        default=None,
        description="Path to file containing DATABASE_URL",
    )
    DATABASE_URL_SYNC: str = Field(
        default="",
        description="Sync PostgreSQL connection string (for Alembic); derived if empty",
    )
    DATABASE_POOL_SIZE: int = Field(default=10, ge=1, le=100)
    DATABASE_MAX_OVERFLOW: int = Field(default=20, ge=0, le=100)
    DATABASE_POOL_TIMEOUT_SECONDS: int = Field(
        default=30,
        ge=1,
        le=600,
        description="Seconds to wait for a DB connection from pool before timing out",
    )

    @model_validator(mode="after")
    def _load_secret_file_values(self) -> Settings:
        if self.DATABASE_URL_FILE:
            self.DATABASE_URL = _read_secret_file(self.DATABASE_URL_FILE)
        return self

    @model_validator(mode="after")
    def _derive_database_url_sync(self) -> Settings:
        if self.DATABASE_URL.startswith("postgresql://"):
            # Runtime engines use asyncpg; normalize common sync-style URLs.
            self.DATABASE_URL = self.DATABASE_URL.replace(
                "postgresql://",
                "postgresql+asyncpg://",
                1,
            )
        if not self.DATABASE_URL_SYNC.strip():
            self.DATABASE_URL_SYNC = self.DATABASE_URL.replace("postgresql+asyncpg", "postgresql")
        return self

    # =========================================================================
    # API
    # =========================================================================
    API_HOST: str = Field(default="0.0.0.0")  # nosec B104
    API_PORT: int = Field(default=8000, ge=1, le=65535)
    API_RELOAD: bool = Field(default=True)
    CORS_ORIGINS: list[str] = Field(
        default=["http://localhost:3000"],
        description="Allowed CORS origins",
    )
    AUTH_USER_HEADER: str = Field(
        default="X-User-Email",
        description="Header carrying the signed-in user's email, set by the auth proxy",
    )

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def parse_cors_origins(cls, v: Any) -> list[str]:
        """Parse CORS origins from comma-separated string or list."""
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",")]
        return list(v) if v else []

    # =========================================================================
    # Bulk Operations
    # =========================================================================
    BULK_TRANSACTION_TIMEOUT_SECONDS: float = Field(
        default=10.0,
        gt=0,
        le=300,
        description="Time budget for one bulk cleanup/import transaction",
    )
    BULK_LOCK_KEY: int = Field(
        default=724_001,
        description="PostgreSQL advisory lock key guarding bulk operations",
    )

    # =========================================================================
    # Image Verification
    # =========================================================================
    IMAGE_CHECK_MAX_ATTEMPTS: int = Field(
        default=10,
        ge=1,
        le=50,
        description="HEAD attempts per image URL before it is considered unreachable",
    )
    IMAGE_CHECK_RETRY_DELAY_SECONDS: float = Field(
        default=1.0,
        ge=0,
        le=30,
        description="Delay between image reachability attempts",
    )
    IMAGE_CHECK_TIMEOUT_SECONDS: float = Field(default=10.0, gt=0, le=120)

    # =========================================================================
    # Google Sheets
    # =========================================================================
    GOOGLE_SHEETS_API_BASE: str = Field(
        default="https://sheets.googleapis.com/v4",
        description="Base URL of the Google Sheets REST API",
    )
    SHEETS_VALUE_RANGE: str = Field(
        default="A:D",
        description="Column range read from the first sheet (date, value, segment, percent)",
    )
    SHEETS_REQUEST_TIMEOUT_SECONDS: float = Field(default=20.0, gt=0, le=120)

    # =========================================================================
    # Catalog
    # =========================================================================
    FREE_TIER_ITEM_LIMIT: int = Field(
        default=3,
        ge=0,
        description="Items shown to users without an active subscription",
    )

    # =========================================================================
    # Application
    # =========================================================================
    ENVIRONMENT: str = Field(
        default="development",
        description="Environment: development, staging, production",
    )
    SQL_ECHO: bool = Field(
        default=False,
        description="Log SQL statements from SQLAlchemy engine",
    )
    LOG_LEVEL: str = Field(default="INFO")
    LOG_FORMAT: str = Field(default="json", description="json or console")

    # =========================================================================
    # Integration Tests
    # =========================================================================
    INTEGRATION_DB_TRUNCATE_ALLOWED: bool = Field(
        default=False,
        description="Allow integration tests to truncate a database not named like *_test",
    )
    INTEGRATION_DB_TRUNCATE_ALLOW_REMOTE: bool = Field(
        default=False,
        description="Allow integration tests to truncate a database on a non-local host",
    )

    # =========================================================================
    # Computed Properties
    # =========================================================================

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.ENVIRONMENT == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.ENVIRONMENT == "production"

    @property
    def effective_log_level(self) -> str:
        """Log level, forced to DEBUG when SQL echo is enabled outside production."""
        if self.SQL_ECHO and not self.is_production:
            return "DEBUG"
        return self.LOG_LEVEL


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    """
    return Settings()


# Convenience instance
settings = get_settings()
