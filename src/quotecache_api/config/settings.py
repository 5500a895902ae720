# src/quotecache_api/config/settings.py
# Copyright (c) Quotecache.
# SPDX-License-Identifier: MIT
"""Quotecache Configuration (Pydantic Settings, v2)

Summary:
    Typed, validated application configuration for the Quotecache API. This
    module centralizes environment parsing and validation. Only the bootstrap
    layer reads it at runtime; services receive plain values via DI.

Design:
    - Pydantic v2 BaseSettings with `extra='forbid'` to catch unknown keys.
    - Explicit field declarations with constrained types and ranges.
    - TTL bands are validated: current quotes <= 60 s, day series >= 60 s,
      and the single-flight lock never outlives a cached current quote.
    - Singleton accessor `get_settings()` with LRU cache.
    - Safe, structured logging (no secrets).
"""

from __future__ import annotations

import logging
import re
from datetime import timedelta, timezone
from enum import Enum
from functools import lru_cache

from pydantic import Field, ValidationError, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

_OFFSET_RE = re.compile(r"^([+-])(\d{2}):(\d{2})$")


class Environment(str, Enum):
    """Logical deployment environment."""

    DEVELOPMENT = "development"
    TEST = "test"
    CI = "ci"
    STAGING = "staging"
    PRODUCTION = "production"


class Settings(BaseSettings):
    """Typed application configuration for Quotecache."""

    # ---------------------------
    # Core environment
    # ---------------------------
    environment: Environment = Field(
        default=Environment.DEVELOPMENT,
        description="Logical deployment environment.",
        validation_alias="ENVIRONMENT",
    )

    # ---------------------------
    # Redis
    # ---------------------------
    redis_url: str = Field(
        default="redis://localhost:6379/0",
        description="Redis connection URL backing the quote cache.",
        validation_alias="REDIS_URL",
    )
    redis_health_check_interval_s: int = Field(
        default=15,
        ge=1,
        le=3600,
        description="Health check interval for Redis clients in seconds.",
        validation_alias="REDIS_HEALTH_CHECK_INTERVAL_S",
    )
    redis_socket_timeout_s: float = Field(
        default=3.0,
        ge=0.1,
        le=60.0,
        description="Socket timeout in seconds for Redis commands.",
        validation_alias="REDIS_SOCKET_TIMEOUT_S",
    )
    redis_socket_connect_timeout_s: float = Field(
        default=3.0,
        ge=0.1,
        le=60.0,
        description="Socket connect timeout in seconds for Redis.",
        validation_alias="REDIS_SOCKET_CONNECT_TIMEOUT_S",
    )

    # ---------------------------
    # Cache policy
    # ---------------------------
    cache_namespace: str = Field(
        default="quotecache:v1",
        min_length=1,
        description="Key prefix; bump the version segment on record schema changes.",
        validation_alias="CACHE_NAMESPACE",
    )
    market_suffix: str = Field(
        default=".NS",
        description="Exchange suffix appended to every requested symbol.",
        validation_alias="MARKET_SUFFIX",
    )
    quote_ttl_s: int = Field(
        default=60,
        ge=1,
        le=60,
        description="TTL for current quotes in seconds.",
        validation_alias="QUOTE_TTL_S",
    )
    day_series_ttl_s: int = Field(
        default=900,
        ge=60,
        le=7 * 24 * 60 * 60,
        description="TTL for day series in seconds.",
        validation_alias="DAY_SERIES_TTL_S",
    )
    cache_scan_page_size: int = Field(
        default=100,
        ge=1,
        le=10_000,
        description="COUNT hint for each SCAN page when aggregating day series.",
        validation_alias="CACHE_SCAN_PAGE_SIZE",
    )
    cache_singleflight_enabled: bool = Field(
        default=False,
        description="Collapse concurrent misses on one key into a single provider fetch.",
        validation_alias="CACHE_SINGLEFLIGHT_ENABLED",
    )
    cache_singleflight_lock_ttl_s: int = Field(
        default=5,
        ge=1,
        le=60,
        description="TTL of the single-flight lock key in seconds.",
        validation_alias="CACHE_SINGLEFLIGHT_LOCK_TTL_S",
    )
    cache_singleflight_wait_s: float = Field(
        default=0.5,
        ge=0.0,
        le=30.0,
        description="Max seconds a waiting caller polls for the elected fetcher's result.",
        validation_alias="CACHE_SINGLEFLIGHT_WAIT_S",
    )

    # ---------------------------
    # Exchange calendar
    # ---------------------------
    exchange_utc_offset: str = Field(
        default="+05:30",
        description="Exchange-local UTC offset (+HH:MM) bounding a dated day series.",
        validation_alias="EXCHANGE_UTC_OFFSET",
    )
    day_trailing_days: int = Field(
        default=30,
        ge=1,
        le=366,
        description="Window (days) of daily bars served when no date is requested.",
        validation_alias="DAY_TRAILING_DAYS",
    )

    # ---------------------------
    # Yahoo Finance provider
    # ---------------------------
    yahoo_base_url: str = Field(
        default="https://query1.finance.yahoo.com",
        description="Yahoo Finance chart API base URL.",
        validation_alias="YAHOO_BASE_URL",
    )
    yahoo_timeout_s: float = Field(
        default=8.0,
        ge=0.1,
        le=60.0,
        description="Per-request timeout in seconds for Yahoo chart calls.",
        validation_alias="YAHOO_TIMEOUT_S",
    )
    yahoo_user_agent: str = Field(
        default="Mozilla/5.0 (compatible; quotecache/1.0)",
        description="User-Agent header sent upstream.",
        validation_alias="YAHOO_USER_AGENT",
    )

    # ---------------------------
    # Service identity / docs / logging
    # ---------------------------
    service_name: str = Field(
        default="quotecache-api",
        description="Logical service name for logging.",
        validation_alias="SERVICE_NAME",
    )
    service_version: str | None = Field(
        default=None,
        description="Service version reported in OpenAPI and logs.",
        validation_alias="SERVICE_VERSION",
    )
    log_level: str | None = Field(
        default=None,
        description="Override log level (e.g., 'DEBUG', 'INFO').",
        validation_alias="LOG_LEVEL",
    )
    docs_url: str | None = Field(
        default="/docs",
        description="Swagger UI docs URL. Set to None to disable interactive docs.",
        validation_alias="DOCS_URL",
    )
    openapi_url: str | None = Field(
        default="/openapi.json",
        description="OpenAPI JSON schema URL.",
        validation_alias="OPENAPI_URL",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="forbid",
        case_sensitive=False,
        populate_by_name=True,
    )

    @field_validator("exchange_utc_offset")
    @classmethod
    def _validate_offset(cls, value: str) -> str:
        m = _OFFSET_RE.match(value.strip())
        if not m or int(m.group(2)) > 14 or int(m.group(3)) > 59:
            raise ValueError("EXCHANGE_UTC_OFFSET must look like +HH:MM")
        return value.strip()

    @field_validator("market_suffix")
    @classmethod
    def _validate_suffix(cls, value: str) -> str:
        value = value.strip().upper()
        if any(ch in value for ch in "*?[]\\"):
            raise ValueError("MARKET_SUFFIX must not contain glob characters")
        return value

    @model_validator(mode="after")
    def _validate_singleflight(self) -> Settings:
        """Keep the single-flight lock from outliving a cached current quote.

        Raises:
            ValueError: If the lock TTL exceeds the current-quote TTL.
        """
        if (
            self.cache_singleflight_enabled
            and self.cache_singleflight_lock_ttl_s > self.quote_ttl_s
        ):
            raise ValueError(
                "CACHE_SINGLEFLIGHT_LOCK_TTL_S must not exceed QUOTE_TTL_S "
                "when single-flight is enabled."
            )
        return self

    @property
    def exchange_tz(self) -> timezone:
        """Return the exchange offset as a fixed ``timezone``."""
        m = _OFFSET_RE.match(self.exchange_utc_offset)
        if m is None:
            raise ValueError(f"unparseable exchange offset: {self.exchange_utc_offset!r}")
        sign = -1 if m.group(1) == "-" else 1
        delta = timedelta(hours=int(m.group(2)), minutes=int(m.group(3)))
        return timezone(sign * delta)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached singleton `Settings` instance.

    Raises:
        RuntimeError: If configuration is invalid.
    """
    try:
        settings = Settings()
    except ValidationError as exc:
        logger.exception("Invalid application configuration")
        raise RuntimeError(f"Invalid configuration: {exc}") from exc

    logger.info(
        "Settings initialized",
        extra={
            "extra": {
                "environment": settings.environment.value,
                "cache_namespace": settings.cache_namespace,
                "market_suffix": settings.market_suffix,
                "quote_ttl_s": settings.quote_ttl_s,
                "day_series_ttl_s": settings.day_series_ttl_s,
                "singleflight": settings.cache_singleflight_enabled,
                "yahoo_base_url": settings.yahoo_base_url,
            }
        },
    )
    return settings
