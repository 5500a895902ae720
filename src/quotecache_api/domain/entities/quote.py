# Copyright (c) Quotecache.
# SPDX-License-Identifier: MIT
"""Quote Entities.

Purpose:
    Immutable OHLCV records served by the cache: a single quote, the series of
    quotes observed for one symbol over a day (or trailing period), and the
    aggregate of every cached day series.

Layer: domain/entities
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

from .base import BaseEntity, require_price


@dataclass(frozen=True, slots=True)
class Quote(BaseEntity):
    """One OHLCV observation for a symbol.

    Args:
        symbol: Market-suffix qualified symbol (e.g. ``"RELIANCE.NS"``).
        timestamp: Observation time in epoch seconds.
        open: Opening price (finite, >= 0).
        high: High price (finite, >= 0).
        low: Low price (finite, >= 0).
        close: Closing price (finite, >= 0).
        volume: Traded volume (>= 0).

    Raises:
        ValueError: If invariants are violated.
    """

    symbol: str
    timestamp: int
    open: float
    high: float
    low: float
    close: float
    volume: int

    def __post_init__(self) -> None:
        if not self.symbol or not self.symbol.strip():
            raise ValueError("symbol must be non-empty")
        if self.timestamp < 0:
            raise ValueError("timestamp must be >= 0")
        for name in ("open", "high", "low", "close"):
            require_price(name, getattr(self, name))
        if self.volume < 0:
            raise ValueError("volume must be >= 0")


@dataclass(frozen=True, slots=True)
class DaySeries(BaseEntity):
    """Quotes for one symbol, indexed by observation timestamp.

    Entries are keyed by ``str(quote.timestamp)`` so two observations of the
    same symbol never overwrite each other.
    """

    symbol: str
    data: Mapping[str, Quote] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.symbol:
            raise ValueError("symbol must be non-empty")
        for key, quote in self.data.items():
            if quote.symbol != self.symbol:
                raise ValueError(
                    f"quote symbol {quote.symbol!r} does not match series symbol {self.symbol!r}"
                )
            if key != str(quote.timestamp):
                raise ValueError(f"series key {key!r} must equal the quote timestamp")
        object.__setattr__(self, "data", MappingProxyType(dict(self.data)))

    @classmethod
    def from_quotes(cls, symbol: str, quotes: Iterable[Quote]) -> DaySeries:
        """Build a series from quotes; a later duplicate timestamp wins."""
        return cls(symbol=symbol, data={str(q.timestamp): q for q in quotes})

    def quotes(self) -> list[Quote]:
        """Return quotes ordered by timestamp."""
        return sorted(self.data.values(), key=lambda q: q.timestamp)

    def __len__(self) -> int:
        return len(self.data)


@dataclass(frozen=True, slots=True)
class AggregateResult(BaseEntity):
    """Every day series present in the cache at scan time (unordered)."""

    series: tuple[DaySeries, ...] = ()

    def symbols(self) -> set[str]:
        return {s.symbol for s in self.series}
