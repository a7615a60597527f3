"""Application configuration using Pydantic Settings.

Configuration is environment-aware:
- APP_ENV determines which .env file to load
- Supports: development, testing, staging, production
- Each environment has its own .env.{environment} file
"""

from __future__ import annotations

import os
from pathlib import Path

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


# Determine which environment to load (default: development)
APP_ENV = os.getenv("APP_ENV", "development")

# Project root (so .env resolution doesn't depend on current working directory)
PROJECT_ROOT = Path(__file__).resolve().parents[2]

# Map environments to their respective .env files (relative to PROJECT_ROOT)
ENV_FILE_MAP = {
    "development": ".env.development",
    "testing": ".env.testing",
    "staging": ".env.staging",
    "production": ".env.production",
}

_env_filename = ENV_FILE_MAP.get(APP_ENV, ".env.development")
_env_path = PROJECT_ROOT / _env_filename

# Only load from file if it exists (production might inject via env vars only)
_env_file = str(_env_path) if _env_path.is_file() else None


# Load .env file early to populate os.environ before creating nested settings
# This is necessary because Pydantic nested BaseSettings don't inherit env_file
if _env_file:
    from dotenv import load_dotenv
    load_dotenv(_env_file, override=True)


def _build_log_settings() -> "LogSettings":
    """Build logging settings from environment."""

    return LogSettings()


def _build_store_settings() -> "StoreSettings":
    """Build store settings from environment."""

    return StoreSettings()


def _build_app_settings() -> "AppSettings":
    """Build app settings from environment."""

    return AppSettings()


class ThrottleDefinition(BaseModel):
    """Declarative throttle registered at application start-up."""

    limit: float = Field(
        ...,
        description="Events allowed per window; values <= 0 deny every call",
    )
    ttl: float = Field(
        ...,
        description="Window length in seconds",
        gt=0,
    )
    pause_to_recover: bool = Field(
        False,
        description="Require a real idle gap before admitting again once saturated",
    )


class LogSettings(BaseSettings):
    """Logging configuration."""

    level: str = Field("INFO", description="Root log level")
    format: str = Field("json", description="Log format: json or plain")
    output: str = Field("stdout", description="Log output: stdout or file")
    file_path: str | None = Field(None, description="Log file path when output=file")
    max_bytes: int = Field(
        10 * 1024 * 1024,
        description="Rotate the log file after this many bytes (0 disables rotation)",
        ge=0,
    )
    backup_count: int = Field(5, description="Rotated log files to keep", ge=0)
    request_id_header: str = Field(
        "X-Request-ID",
        description="Header carrying the correlation id",
    )

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        case_sensitive=False,
    )


class StoreSettings(BaseSettings):
    """Shared key-value store (Redis-compatible) configuration.

    Used only when no store handle or resolver was supplied explicitly, to
    construct the process-wide default client.
    """

    url: str = Field(
        "redis://localhost:6379/0",
        description="Redis connection URL (redis:// or rediss://)",
    )
    socket_timeout_seconds: float = Field(
        2.0,
        description="Socket read/write timeout for store commands",
        gt=0,
    )
    socket_connect_timeout_seconds: float = Field(
        2.0,
        description="Socket connect timeout",
        gt=0,
    )

    model_config = SettingsConfigDict(
        env_prefix="STORE_",
        case_sensitive=False,
    )


class AppSettings(BaseSettings):
    """Application-wide configuration."""

    debug: bool = Field(
        False,
        description="Enable debug mode with verbose logging",
    )
    host: str = Field("127.0.0.1", description="Bind address for the API server")
    port: int = Field(8000, description="Bind port for the API server", ge=1, le=65535)
    api_key_required: bool = Field(
        True,
        description="Whether API key authentication is required",
    )
    api_keys: str | None = Field(
        None,
        description="Comma-separated list of valid API keys for authentication",
    )

    rate_limit_enabled: bool = Field(
        True,
        description="Enable sliding-window rate limiting per API key",
    )
    rate_limit_requests: float = Field(
        10,
        description="Maximum number of requests allowed per window (per API key)",
        ge=0,
    )
    rate_limit_window_seconds: float = Field(
        60,
        description="Rolling window size in seconds",
        gt=0,
    )
    rate_limit_pause_to_recover: bool = Field(
        False,
        description="Keep rejecting saturating clients until they pause for a full window",
    )
    rate_limit_include_headers: bool = Field(
        True,
        description="Include X-RateLimit-* and Retry-After headers when throttling",
    )
    rate_limit_fail_open: bool = Field(
        False,
        description="Allow requests when the throttle store is unreachable",
    )

    throttles: dict[str, ThrottleDefinition] = Field(
        default_factory=dict,
        description="Named throttles to register at start-up (JSON mapping)",
    )

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        case_sensitive=False,
    )


class Settings(BaseSettings):
    """Main application settings container.

    Automatically loads from the appropriate .env.{APP_ENV} file.

    Environments:
    - development: Local development (DEBUG=true)
    - testing: Automated tests (uses .env.testing)
    - staging: Pre-production (uses .env.staging)
    - production: Production deployment (uses .env.production)
    """

    app_env: str = APP_ENV
    log: LogSettings = Field(default_factory=_build_log_settings)
    store: StoreSettings = Field(default_factory=_build_store_settings)
    app: AppSettings = Field(default_factory=_build_app_settings)

    model_config = SettingsConfigDict(
        case_sensitive=False,
    )


# Global settings instance - composed from domain-specific settings
# Nested settings are created via default_factory so env loading works.
settings = Settings()
