"""Application configuration using Pydantic Settings.

Configuration is environment-aware:
- APP_ENV determines which .env file to load
- Supports: development, testing, staging, production
- Each environment has its own .env.{environment} file
- TESTING=true skips .env loading entirely (see tests/conftest.py)
"""

from __future__ import annotations

import os
from pathlib import Path

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


# Determine which environment to load (default: development)
APP_ENV = os.getenv("APP_ENV", "development")

# Project root (so .env resolution doesn't depend on current working directory)
PROJECT_ROOT = Path(__file__).resolve().parents[2]

ENV_FILE_MAP = {
    "development": ".env.development",
    "testing": ".env.testing",
    "staging": ".env.staging",
    "production": ".env.production",
}

_env_filename = ENV_FILE_MAP.get(APP_ENV, ".env.development")
_env_path = PROJECT_ROOT / _env_filename

# Only load from file if it exists (production might inject via env vars only)
_testing = os.getenv("TESTING", "").lower() in {"1", "true", "yes"}
_env_file = str(_env_path) if _env_path.is_file() and not _testing else None


# Load .env file early to populate os.environ before creating nested settings
# This is necessary because Pydantic nested BaseSettings don't inherit env_file
if _env_file:
    from dotenv import load_dotenv
    load_dotenv(_env_file, override=True)


def _build_log_settings() -> "LogSettings":
    return LogSettings()


def _build_app_settings() -> "AppSettings":
    return AppSettings()


def _build_rate_limit_settings() -> "RateLimitStoreSettings":
    return RateLimitStoreSettings()


class LogSettings(BaseSettings):
    """Logging output configuration."""

    level: str = Field("INFO", description="Root log level")
    format: str = Field("json", description="Log format: json or plain")
    output: str = Field("stdout", description="Log destination: stdout or file")
    file_path: str | None = Field(
        None,
        description="Log file path when output=file (defaults to logs/app.log)",
    )
    max_bytes: int = Field(
        10 * 1024 * 1024,
        description="Rotate the log file after this many bytes (0 disables rotation)",
        ge=0,
    )
    backup_count: int = Field(5, description="Number of rotated files to keep", ge=0)
    request_id_header: str = Field(
        "X-Request-ID",
        description="Header used to read and propagate the request correlation id",
    )

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        case_sensitive=False,
    )


class AppSettings(BaseSettings):
    """Application-wide configuration."""

    debug: bool = Field(
        False,
        description="Enable debug mode with verbose logging",
    )
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
        description="Enforce route rate limits on the HTTP layer",
    )
    rate_limit_include_headers: bool = Field(
        True,
        description="Include X-RateLimit-* and Retry-After headers in responses",
    )
    host: str = Field(
        "127.0.0.1",
        description="Interface the HTTP server binds to",
    )
    port: int = Field(
        8000,
        ge=1,
        le=65535,
        description="Port the HTTP server listens on",
    )

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        case_sensitive=False,
    )


class RateLimitStoreSettings(BaseSettings):
    """Shared window store used by the sliding-window limiter.

    ``backend=redis`` without a URL leaves the limiter unconfigured, which
    turns every check into a pass-through (local development, builds).
    """

    backend: str = Field(
        "redis",
        description="Window store backend: redis, memory or none",
    )
    redis_url: str | None = Field(
        None,
        description="Redis connection URL (RATE_LIMIT_REDIS_URL or REDIS_URL)",
        validation_alias=AliasChoices("RATE_LIMIT_REDIS_URL", "REDIS_URL"),
    )
    key_prefix: str = Field(
        "rate-limit:",
        description="Prefix prepended to every identifier key in the store",
    )
    operation_timeout_seconds: float = Field(
        0.5,
        description="Upper bound for a single store round trip",
        gt=0,
    )
    connect_timeout_seconds: float = Field(
        1.0,
        description="Socket connect timeout for the Redis client",
        gt=0,
    )
    max_retries: int = Field(
        1,
        description="Retries after a failed store call before failing open",
        ge=0,
        le=1,
    )

    model_config = SettingsConfigDict(
        env_prefix="RATE_LIMIT_",
        case_sensitive=False,
        populate_by_name=True,
    )


class Settings(BaseSettings):
    """Main application settings container.

    Automatically loads from the appropriate .env.{APP_ENV} file.
    Raises validation errors on startup if settings are malformed.
    """

    app_env: str = APP_ENV
    log: LogSettings = Field(default_factory=_build_log_settings)
    app: AppSettings = Field(default_factory=_build_app_settings)
    rate_limit: RateLimitStoreSettings = Field(default_factory=_build_rate_limit_settings)

    model_config = SettingsConfigDict(
        case_sensitive=False,
    )


# Global settings instance - composed from domain-specific settings
# Nested settings are created via default_factory so env loading works.
settings = Settings()
