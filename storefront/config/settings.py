"""
==============================================================================
Application Settings Module
==============================================================================

Configuration management using Pydantic Settings.

A single cached Settings instance is shared across the process; call
``get_settings.cache_clear()`` to force a reload (tests do this).

Configuration Priority (highest to lowest):
------------------------------------------
1. Environment variables
2. .env file
3. Default values

Catalog Cache Defaults:
----------------------
- Snapshot considered fresh for 300 seconds
- One retry after a failed fetch, 1000 ms later

==============================================================================
"""

from __future__ import annotations

import json
import logging
from functools import lru_cache
from pathlib import Path
from typing import List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


# Module logger
logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Attributes:
        app_name: Display name for the application
        app_env: Environment mode (development/staging/production)
        debug: Enable debug mode for verbose logging
        host: Server bind address
        port: Server port number
        catalog_source: Where the catalog is fetched from ("http" or "file")
        catalog_url: Upstream endpoint returning the product list
        catalog_file: Local JSON file used when catalog_source is "file"
        catalog_request_timeout_seconds: Timeout for one upstream request
        catalog_stale_after_seconds: Maximum snapshot age before load() refetches
        catalog_retry_delay_ms: Delay before the retry of a failed fetch
        catalog_retry_attempts: Retries after the first failed attempt
        catalog_preload: Fetch the catalog during startup
        cors_origins: Allowed CORS origins (JSON array string)

    Example:
        >>> settings = Settings()
        >>> settings.catalog_stale_after_seconds
        300.0
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        validate_default=True,
    )

    # =========================================================================
    # APPLICATION SETTINGS
    # =========================================================================
    app_name: str = Field(
        default="Storefront Catalog",
        description="Display name for the application"
    )

    app_env: str = Field(
        default="development",
        description="Environment mode: development, staging, production"
    )

    debug: bool = Field(
        default=False,
        description="Enable debug mode for verbose logging"
    )

    # =========================================================================
    # SERVER SETTINGS
    # =========================================================================
    host: str = Field(
        default="0.0.0.0",
        description="Server bind address"
    )

    port: int = Field(
        default=8000,
        ge=1,
        le=65535,
        description="Server port number"
    )

    # =========================================================================
    # CATALOG SOURCE SETTINGS
    # =========================================================================
    catalog_source: str = Field(
        default="http",
        description="Catalog fetch boundary: http or file"
    )

    catalog_url: str = Field(
        default="http://localhost:8080/api/products",
        description="Upstream endpoint returning the product list"
    )

    catalog_file: str = Field(
        default="data/products.json",
        description="Path to a product list JSON file"
    )

    catalog_request_timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        le=120,
        description="Timeout for a single upstream request"
    )

    # =========================================================================
    # CATALOG CACHE SETTINGS
    # =========================================================================
    catalog_stale_after_seconds: float = Field(
        default=300.0,
        ge=0,
        description="Maximum snapshot age before load() fetches again"
    )

    catalog_retry_delay_ms: int = Field(
        default=1000,
        ge=0,
        le=60000,
        description="Delay before retrying a failed fetch"
    )

    catalog_retry_attempts: int = Field(
        default=1,
        ge=0,
        le=5,
        description="Retries after the first failed fetch attempt"
    )

    catalog_preload: bool = Field(
        default=False,
        description="Fetch the catalog during application startup"
    )

    # =========================================================================
    # CORS SETTINGS
    # =========================================================================
    cors_origins: str = Field(
        default='["*"]',
        description="Allowed CORS origins as JSON array string"
    )

    # =========================================================================
    # VALIDATORS
    # =========================================================================
    @field_validator("app_env")
    @classmethod
    def validate_app_env(cls, value: str) -> str:
        """
        Validate and normalize application environment.

        Unknown values fall back to "development" with a warning.
        """
        valid_envs = {"development", "staging", "production"}
        normalized = value.lower().strip()

        if normalized not in valid_envs:
            logger.warning(
                f"Unknown environment '{value}', defaulting to 'development'"
            )
            return "development"

        return normalized

    @field_validator("catalog_source")
    @classmethod
    def validate_catalog_source(cls, value: str) -> str:
        """
        Validate the catalog source name.

        Raises:
            ValueError: If the source is not "http" or "file"
        """
        normalized = value.lower().strip()
        if normalized not in {"http", "file"}:
            raise ValueError(
                f"Unsupported catalog source: {value}. Supported: http, file"
            )
        return normalized

    # =========================================================================
    # COMPUTED PROPERTIES
    # =========================================================================
    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.app_env == "production"

    @property
    def catalog_path(self) -> Path:
        """Get the catalog file as a Path object."""
        return Path(self.catalog_file)

    @property
    def catalog_retry_delay_seconds(self) -> float:
        """Retry delay converted to seconds."""
        return self.catalog_retry_delay_ms / 1000.0

    @property
    def cors_origins_list(self) -> List[str]:
        """
        Parse CORS origins from JSON string to list.

        Returns:
            List of allowed origin strings
        """
        try:
            origins = json.loads(self.cors_origins)
            if isinstance(origins, list):
                return origins
            return ["*"]
        except json.JSONDecodeError:
            logger.warning(
                f"Invalid CORS origins JSON: {self.cors_origins}, "
                "defaulting to ['*']"
            )
            return ["*"]

    def __repr__(self) -> str:
        """String representation for debugging."""
        return (
            f"Settings(app_name={self.app_name!r}, "
            f"app_env={self.app_env!r}, "
            f"catalog_source={self.catalog_source!r})"
        )


# =============================================================================
# SINGLETON INSTANCE MANAGEMENT
# =============================================================================

@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Get the global Settings instance (singleton pattern).

    Returns:
        Global Settings instance
    """
    settings = Settings()

    if settings.debug:
        logger.info(f"Configuration loaded: {settings}")

    return settings
