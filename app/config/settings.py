"""
==============================================================================
Application Settings Module
==============================================================================

Configuration management using Pydantic Settings.

A single cached Settings instance is shared by the whole application.
Values are read once at startup and are not hot-reloadable.

Features:
---------
- Environment variable loading with type validation
- .env file support for local development
- Scan debounce timings (cooldown, processing timeout)
- Local-only mode switch and remote sync endpoint

Configuration Priority (highest to lowest):
------------------------------------------
1. Environment variables
2. .env file
3. Default values

==============================================================================
"""

from __future__ import annotations

import json
import logging
from functools import lru_cache
from pathlib import Path
from typing import List, Optional

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
        database_url: SQLAlchemy database connection string
        local_mode: Disable all network synchronization
        api_url: Base URL of the remote sync service
        scan_cooldown_ms: Minimum time before the same payload is re-accepted
        processing_timeout_ms: Automatic release delay of the processing flag
        local_mode_delay_ms: Cosmetic delay of a local-mode sync
        sync_timeout_seconds: Per-request timeout of remote sync calls
        record_repeat_scans: Insert a new record for already known payloads
        cors_origins: Allowed CORS origins (JSON array string)

    Example:
        >>> settings = Settings()
        >>> settings.scan_cooldown_ms
        3000
        >>> settings.local_mode
        True
    """

    # =========================================================================
    # PYDANTIC SETTINGS CONFIGURATION
    # =========================================================================
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
        default="QR Scanner API",
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
    # DATABASE SETTINGS
    # =========================================================================
    database_url: str = Field(
        default="sqlite:///./storage/db/scans.db",
        description="SQLAlchemy database connection string"
    )

    # =========================================================================
    # SCAN DEBOUNCE SETTINGS
    # =========================================================================
    scan_cooldown_ms: int = Field(
        default=3000,
        ge=0,
        le=60_000,
        description="Minimum time before the same payload is accepted again"
    )

    processing_timeout_ms: int = Field(
        default=1000,
        ge=1,
        le=30_000,
        description="Delay after which the processing flag is released"
    )

    record_repeat_scans: bool = Field(
        default=False,
        description="Insert a new record when an already known code is scanned"
    )

    # =========================================================================
    # SYNC SETTINGS
    # =========================================================================
    local_mode: bool = Field(
        default=True,
        description="Keep scans local only, no network synchronization"
    )

    api_url: str = Field(
        default="http://localhost:3000",
        description="Base URL of the remote sync service"
    )

    local_mode_delay_ms: int = Field(
        default=500,
        ge=0,
        le=10_000,
        description="Simulated delay of a local-mode sync"
    )

    sync_timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        le=120,
        description="Timeout of a single sync request"
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

        Unknown values fall back to 'development' with a warning.
        """
        valid_envs = {"development", "staging", "production"}
        normalized = value.lower().strip()

        if normalized not in valid_envs:
            logger.warning(
                f"Unknown environment '{value}', defaulting to 'development'"
            )
            return "development"

        return normalized

    @field_validator("api_url")
    @classmethod
    def validate_api_url(cls, value: str) -> str:
        """
        Validate the remote base URL.

        Raises:
            ValueError: If the URL is not http(s)
        """
        value = value.strip()
        if not value.startswith(("http://", "https://")):
            raise ValueError(f"api_url must be an http(s) URL, got: {value!r}")
        return value.rstrip("/")

    # =========================================================================
    # COMPUTED PROPERTIES
    # =========================================================================
    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.app_env == "production"

    @property
    def sync_endpoint(self) -> str:
        """Full URL records are posted to."""
        return f"{self.api_url}/codigos"

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

    # =========================================================================
    # UTILITY METHODS
    # =========================================================================
    def get_database_path(self) -> Optional[Path]:
        """
        Extract database file path for SQLite databases.

        Returns:
            Path to database file, or None for in-memory/non-SQLite databases
        """
        if not self.database_url.startswith("sqlite:///"):
            return None
        db_path = self.database_url.replace("sqlite:///", "", 1)
        if not db_path or db_path == ":memory:":
            return None
        if db_path.startswith("./"):
            db_path = db_path[2:]
        return Path(db_path)

    def ensure_directories(self) -> None:
        """Create the database directory for file-based SQLite."""
        db_path = self.get_database_path()
        if db_path:
            db_path.parent.mkdir(parents=True, exist_ok=True)

        logger.debug("Required directories created/verified")

    def __repr__(self) -> str:
        """String representation for debugging."""
        return (
            f"Settings(app_name={self.app_name!r}, "
            f"app_env={self.app_env!r}, "
            f"local_mode={self.local_mode})"
        )


# =============================================================================
# SINGLETON INSTANCE MANAGEMENT
# =============================================================================

@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Get the global Settings instance.

    Returns:
        Global Settings instance
    """
    settings = Settings()
    settings.ensure_directories()

    if settings.debug:
        logger.info(f"Configuration loaded: {settings}")

    return settings
