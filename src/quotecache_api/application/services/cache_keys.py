# src/quotecache_api/application/services/cache_keys.py
# Copyright (c) Quotecache.
# SPDX-License-Identifier: MIT
"""Cache key builder.

Synopsis:
    Pure, deterministic mapping from ``(kind, symbol, date?)`` to the cache
    key tail. The store adapter prepends its namespace.

Key shapes (suffix ``.NS``):
    * CURRENT        -> ``TCS.NS``
    * DAY_BY_DATE    -> ``TCS.NS_2024-05-02``
    * DAY_AGGREGATE  -> ``TCS.NS_day``

Layer:
    application/services
"""

from __future__ import annotations

import re
from datetime import date
from enum import Enum
from typing import Final

from quotecache_api.domain.exceptions.market_data import InvalidQuoteRequest

__all__ = ["KeyKind", "CacheKeyBuilder", "parse_date"]

# Letters, digits and the punctuation exchanges use (M&M, BAJAJ-AUTO, ^NSEI).
# Glob metacharacters are excluded so a symbol can never widen a scan pattern.
_SYMBOL_RE: Final[re.Pattern[str]] = re.compile(r"^[A-Z0-9&^=.\-]{1,32}$")
_DATE_RE: Final[re.Pattern[str]] = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_AGGREGATE_TAG: Final[str] = "day"


class KeyKind(str, Enum):
    """Cacheable unit kinds."""

    CURRENT = "current"
    DAY_BY_DATE = "day_by_date"
    DAY_AGGREGATE = "day_aggregate"


def parse_date(raw: str) -> date:
    """Parse a strict ``YYYY-MM-DD`` calendar date.

    Raises:
        InvalidQuoteRequest: If the string is not a real calendar date.
    """
    value = raw.strip()
    if not _DATE_RE.match(value):
        raise InvalidQuoteRequest(
            "date must be formatted as YYYY-MM-DD", details={"date": raw}
        )
    try:
        return date.fromisoformat(value)
    except ValueError as exc:
        raise InvalidQuoteRequest("date is not a valid calendar date", details={"date": raw}) from exc


class CacheKeyBuilder:
    """Build cache keys for quote lookups.

    Args:
        market_suffix: Exchange suffix appended to every symbol (e.g. ``".NS"``).
    """

    def __init__(self, market_suffix: str = ".NS") -> None:
        self._suffix = market_suffix.strip().upper()

    @property
    def market_suffix(self) -> str:
        return self._suffix

    def normalize_symbol(self, symbol: str) -> str:
        """Return the upper-cased bare symbol or raise ``InvalidQuoteRequest``."""
        value = (symbol or "").strip().upper()
        if not value:
            raise InvalidQuoteRequest("symbol must be non-empty")
        if not _SYMBOL_RE.match(value):
            raise InvalidQuoteRequest("symbol contains unsupported characters", details={"symbol": symbol})
        return value

    def qualify(self, symbol: str) -> str:
        """Return the suffix-qualified symbol used upstream and in records."""
        value = self.normalize_symbol(symbol)
        if self._suffix and value.endswith(self._suffix):
            return value
        return f"{value}{self._suffix}"

    def build_key(self, kind: KeyKind, symbol: str, day: str | date | None = None) -> str:
        """Build the key tail for a lookup.

        Args:
            kind: Which cacheable unit is addressed.
            symbol: Bare or suffix-qualified symbol.
            day: Calendar date, required for ``DAY_BY_DATE`` only.

        Returns:
            The key tail (no namespace).

        Raises:
            InvalidQuoteRequest: On an invalid symbol or date, or a date
                supplied for a kind that does not take one.
        """
        qualified = self.qualify(symbol)
        if kind is KeyKind.DAY_BY_DATE:
            if day is None:
                raise InvalidQuoteRequest("date is required for a dated day series")
            parsed = day if isinstance(day, date) else parse_date(day)
            return f"{qualified}_{parsed.isoformat()}"
        if day is not None:
            raise InvalidQuoteRequest(f"date is not accepted for {kind.value} keys")
        if kind is KeyKind.CURRENT:
            return qualified
        return f"{qualified}_{_AGGREGATE_TAG}"

    def day_aggregate_pattern(self) -> str:
        """Return the glob matching every ``DAY_AGGREGATE`` key."""
        return f"*{self._suffix}_{_AGGREGATE_TAG}"
