# Copyright (c) Quotecache.
# SPDX-License-Identifier: MIT
"""Pydantic settings for the Yahoo Finance chart client."""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class YahooSettings(BaseSettings):
    """Configuration for the Yahoo Finance chart API.

    Environment variables (with ``model_config.env_prefix``):

    * ``YAHOO_BASE_URL``
    * ``YAHOO_TIMEOUT_S``
    * ``YAHOO_USER_AGENT``
    """

    base_url: str = Field(
        "https://query1.finance.yahoo.com",
        description="Base URL for the Yahoo Finance chart API.",
    )
    timeout_s: float = Field(
        8.0,
        description="Per-request timeout in seconds for the transport client.",
    )
    user_agent: str = Field(
        "Mozilla/5.0 (compatible; quotecache/1.0)",
        description="User-Agent header; the chart API rejects empty agents.",
    )

    model_config: SettingsConfigDict = SettingsConfigDict(
        env_prefix="YAHOO_",
        extra="ignore",
    )

    @property
    def chart_url(self) -> str:
        """Return the chart endpoint prefix (symbol is appended by the caller)."""
        return f"{self.base_url.rstrip('/')}/v8/finance/chart"
