"""Runtime configuration for the species cache proxy.

Four settings groups, one per concern, each read from its own environment
prefix (``UPSTREAM_``, ``CACHE_``, ``APP_``, ``LOG_``). Before any group is
built, the dotenv file matching ``APP_ENV`` is loaded into the process
environment when it exists:

    APP_ENV=development -> .env.development (default)
    APP_ENV=testing     -> .env.testing
    APP_ENV=staging     -> .env.staging
    APP_ENV=production  -> .env.production
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Literal

from dotenv import load_dotenv
from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

APP_ENV = os.getenv("APP_ENV", "development")

PROJECT_ROOT = Path(__file__).resolve().parents[2]

KNOWN_ENVIRONMENTS = ("development", "testing", "staging", "production")


def resolve_env_file(app_env: str, root: Path = PROJECT_ROOT) -> Path | None:
    """Dotenv file for ``app_env`` under ``root``, or None if it is absent.

    Unknown environment names fall back to the development file.
    """
    name = app_env if app_env in KNOWN_ENVIRONMENTS else "development"
    candidate = root / f".env.{name}"
    return candidate if candidate.is_file() else None


# Nested BaseSettings do not share an env_file, so populate os.environ once
# and let every group read from it.
_env_file = resolve_env_file(APP_ENV)
if _env_file is not None:
    load_dotenv(_env_file, override=True)


def _build_upstream_settings() -> "UpstreamSettings":
    # BaseSettings fields come from the environment, not constructor args
    return UpstreamSettings()  # type: ignore[call-arg]


def _build_cache_settings() -> "CacheSettings":
    return CacheSettings()  # type: ignore[call-arg]


def _build_app_settings() -> "AppSettings":
    return AppSettings()  # type: ignore[call-arg]


def _build_log_settings() -> "LogSettings":
    return LogSettings()  # type: ignore[call-arg]


class UpstreamSettings(BaseSettings):
    """Species catalog API configuration."""

    base_url: str = Field(
        "https://pokeapi.co/api/v2",
        description="Base URL of the upstream species API",
    )
    timeout_seconds: float = Field(
        10.0,
        description="Request timeout for upstream calls in seconds",
        gt=0,
    )
    search_pool_size: int = Field(
        500,
        description="Size of the unfiltered upstream page pulled when filtering by name",
        ge=1,
    )

    model_config = SettingsConfigDict(
        env_prefix="UPSTREAM_",
        case_sensitive=False,
    )


class CacheSettings(BaseSettings):
    """Shared cache store and codec configuration."""

    backend: Literal["redis", "memory"] = Field(
        "redis",
        description="Cache store backend: redis (shared) or memory (single process)",
    )
    redis_url: str = Field(
        "redis://localhost:6379/0",
        description="Connection URL of the shared Redis store",
    )
    namespace: str = Field(
        "pokemon",
        description="Prefix for every cache key written by the access layer",
        min_length=1,
    )
    ttl_list_seconds: int = Field(
        3600,
        description="TTL for unfiltered list pages",
        ge=1,
    )
    ttl_search_seconds: int = Field(
        1800,
        description="TTL for name-filtered list pages",
        ge=1,
    )
    ttl_detail_seconds: int = Field(
        86400,
        description="TTL for item details (change least often)",
        ge=1,
    )
    codec_mode: Literal["plain", "compressed", "auto"] = Field(
        "auto",
        description="How values are encoded before storage; decoding accepts all modes",
    )
    compress_min_bytes: int = Field(
        1024,
        description="Minimum JSON size before auto mode tries compression",
        ge=0,
    )
    scan_count: int = Field(
        1000,
        description="Page size hint for SCAN during administrative cache clears",
        ge=1,
    )

    model_config = SettingsConfigDict(
        env_prefix="CACHE_",
        case_sensitive=False,
    )

    @model_validator(mode="after")
    def _check_ttl_ordering(self) -> "CacheSettings":
        if not (self.ttl_detail_seconds > self.ttl_list_seconds > self.ttl_search_seconds):
            raise ValueError(
                "TTL policy requires ttl_detail_seconds > ttl_list_seconds > ttl_search_seconds"
            )
        return self


class AppSettings(BaseSettings):
    """Application-wide configuration."""

    debug: bool = Field(
        False,
        description="Enable debug mode with verbose logging",
    )
    default_page_size: int = Field(
        20,
        description="Page size used when the limit parameter is absent or invalid",
        ge=1,
    )
    max_page_size: int = Field(
        100,
        description="Upper bound for the limit parameter on list requests",
        ge=1,
    )
    batch_chunk_size: int = Field(
        5,
        description="Number of identifiers processed per batch chunk",
        ge=1,
    )
    batch_pacing_ms: int = Field(
        50,
        description="Delay inserted after every batch item, in milliseconds",
        ge=0,
    )
    admin_api_key_required: bool = Field(
        True,
        description="Whether the administrative endpoints require an API key",
    )
    admin_api_keys: str | None = Field(
        None,
        description="Comma-separated list of valid admin API keys",
    )

    rate_limit_enabled: bool = Field(
        True,
        description="Enable per-client rate limiting",
    )
    rate_limit_requests: int = Field(
        50,
        description="Maximum number of requests allowed per window (per client)",
        ge=1,
    )
    rate_limit_window_seconds: int = Field(
        60,
        description="Rate limit window size in seconds",
        ge=1,
    )
    rate_limit_include_headers: bool = Field(
        True,
        description="Include X-RateLimit-* and Retry-After headers when throttling",
    )

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        case_sensitive=False,
    )


class LogSettings(BaseSettings):
    """Logging configuration."""

    level: str = Field("INFO", description="Root log level")
    format: Literal["json", "plain"] = Field("json", description="Log line format")
    output: Literal["stdout", "file"] = Field("stdout", description="Log destination")
    file_path: str | None = Field(None, description="Log file path when output=file")
    max_bytes: int = Field(
        10_485_760,
        description="Rotate the log file after this many bytes (0 disables rotation)",
        ge=0,
    )
    backup_count: int = Field(5, description="Rotated log files to keep", ge=0)
    request_id_header: str = Field(
        "X-Request-ID",
        description="Header carrying the request correlation id",
    )

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        case_sensitive=False,
    )


class Settings(BaseSettings):
    """All settings groups, validated together at import time.

    A misordered TTL policy or an out-of-range limit fails startup rather
    than the first request that needs it.
    """

    app_env: str = APP_ENV
    upstream: UpstreamSettings = Field(default_factory=_build_upstream_settings)
    cache: CacheSettings = Field(default_factory=_build_cache_settings)
    app: AppSettings = Field(default_factory=_build_app_settings)
    log: LogSettings = Field(default_factory=_build_log_settings)

    model_config = SettingsConfigDict(case_sensitive=False)


settings = Settings()
