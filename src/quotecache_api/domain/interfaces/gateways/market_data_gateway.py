# src/quotecache_api/domain/interfaces/gateways/market_data_gateway.py
# Copyright (c) Quotecache.
# SPDX-License-Identifier: MIT
"""Market Data Gateway Protocol.

Synopsis:
    Domain-level Protocol (PEP 544) that abstracts the upstream market data
    provider. Concrete implementations (e.g., Yahoo Finance) live in the
    adapters layer and must satisfy this contract.

Design:
    * Keeps the domain/application layers independent of HTTP.
    * Covers the latest quote for a symbol and a bounded range of quotes at
      a given granularity.
    * Calls are read-only queries; executing one twice is harmless.

Layer:
    domain/interfaces/gateways
"""

from __future__ import annotations

from datetime import datetime
from typing import Protocol

from quotecache_api.domain.entities.quote import Quote


class MarketDataGatewayProtocol(Protocol):
    """Abstraction over external market data providers.

    Implementations translate provider failures into domain exceptions:
    ``SymbolNotFound``, ``MarketDataUnavailable``, ``MarketDataBadRequest``
    and ``MarketDataValidationError``. No HTTP types leak through.
    """

    async def latest_quote(self, symbol: str) -> Quote:
        """Return the most recent daily quote for ``symbol``.

        Args:
            symbol: Market-suffix qualified symbol.

        Raises:
            SymbolNotFound: Provider has no data for the symbol.
            MarketDataUnavailable: Provider unreachable or failing.
            MarketDataValidationError: Provider payload invalid.
        """
        ...

    async def quote_range(
        self,
        symbol: str,
        start: datetime,
        end: datetime,
        interval: str,
    ) -> list[Quote]:
        """Return quotes between ``start`` and ``end`` (inclusive).

        Args:
            symbol: Market-suffix qualified symbol.
            start: Timezone-aware window start.
            end: Timezone-aware window end.
            interval: Provider granularity label (``"1m"``, ``"1d"``...).

        Raises:
            SymbolNotFound: Provider has no data for the symbol.
            MarketDataUnavailable: Provider unreachable or failing.
            MarketDataBadRequest: The range or interval was rejected.
            MarketDataValidationError: Provider payload invalid.
        """
        ...
