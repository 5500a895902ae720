# src/quotecache_api/adapters/gateways/yahoo_gateway.py
# Copyright (c) Quotecache.
# SPDX-License-Identifier: MIT
"""Adapter Gateway: Yahoo Finance chart API -> domain quotes.

This gateway implements ``MarketDataGatewayProtocol`` on top of a shared
``httpx.AsyncClient``:

* ``latest_quote``: ``range=5d&interval=1d``, last valid row wins.
* ``quote_range``: ``period1``/``period2`` epoch bounds plus an interval.

Design principles:
    * Rows whose OHLC values are null or non-finite are dropped, not failed.
    * Provider failures map to domain exceptions; no httpx types leak out.
    * Every call is timed and counted via ``observe_upstream_request``.
    * No retries. The cache in front of the gateway absorbs repeated reads.
"""

from __future__ import annotations

import math
from collections.abc import Mapping, Sequence
from datetime import datetime
from typing import Any
from urllib.parse import quote as url_quote

import httpx

from quotecache_api.domain.entities.quote import Quote
from quotecache_api.domain.exceptions.base import DomainError
from quotecache_api.domain.exceptions.market_data import (
    MarketDataBadRequest,
    MarketDataUnavailable,
    MarketDataValidationError,
    SymbolNotFound,
)
from quotecache_api.domain.interfaces.gateways.market_data_gateway import (
    MarketDataGatewayProtocol,
)
from quotecache_api.infrastructure.external_apis.yahoo.settings import YahooSettings
from quotecache_api.infrastructure.logging.logger import get_json_logger, get_request_id
from quotecache_api.infrastructure.observability.metrics import observe_upstream_request

__all__ = ["YahooFinanceGateway", "parse_chart_payload"]

PROVIDER = "yahoo"
LATEST_RANGE = "5d"
LATEST_INTERVAL = "1d"

logger = get_json_logger(__name__)


def _finite(value: Any) -> bool:
    if value is None or isinstance(value, bool):
        return False
    if not isinstance(value, int | float):
        return False
    return math.isfinite(value)


def _column(quote_block: Mapping[str, Any], name: str) -> Sequence[Any]:
    col = quote_block.get(name)
    if col is None:
        return []
    if not isinstance(col, list):
        raise MarketDataValidationError("bad_shape", details={"expected": f"{name}:list"})
    return col


def _raise_chart_error(err: Mapping[str, Any], symbol: str) -> None:
    code = str(err.get("code") or "")
    description = err.get("description")
    if code.lower() == "not found":
        raise SymbolNotFound(
            f"no market data for {symbol}",
            details={"symbol": symbol, "message": description},
        )
    raise MarketDataBadRequest(
        "provider rejected the query",
        details={"symbol": symbol, "provider_code": code, "message": description},
    )


def parse_chart_payload(payload: Any, symbol: str) -> list[Quote]:
    """Convert a chart API payload into quotes ordered by timestamp.

    Args:
        payload: Parsed JSON body.
        symbol: Suffix-qualified symbol stamped on every quote.

    Returns:
        Valid quotes; empty when the window holds no trading activity.

    Raises:
        SymbolNotFound: ``chart.error`` reports "Not Found" or no result exists.
        MarketDataBadRequest: ``chart.error`` reports another provider error.
        MarketDataValidationError: The payload shape is unexpected.
    """
    if not isinstance(payload, Mapping):
        raise MarketDataValidationError("bad_shape", details={"expected": "object"})
    chart = payload.get("chart")
    if not isinstance(chart, Mapping):
        raise MarketDataValidationError("bad_shape", details={"expected": "chart:object"})

    err = chart.get("error")
    if isinstance(err, Mapping):
        _raise_chart_error(err, symbol)

    result = chart.get("result")
    if result is None or result == []:
        raise SymbolNotFound(f"no market data for {symbol}", details={"symbol": symbol})
    if not isinstance(result, list) or not isinstance(result[0], Mapping):
        raise MarketDataValidationError("bad_shape", details={"expected": "result:list[object]"})
    first = result[0]

    timestamps = first.get("timestamp") or []
    if not isinstance(timestamps, list):
        raise MarketDataValidationError("bad_shape", details={"expected": "timestamp:list"})
    if not timestamps:
        return []

    indicators = first.get("indicators")
    blocks = indicators.get("quote") if isinstance(indicators, Mapping) else None
    if not isinstance(blocks, list) or not blocks or not isinstance(blocks[0], Mapping):
        raise MarketDataValidationError(
            "bad_shape", details={"expected": "indicators.quote:list[object]"}
        )
    block = blocks[0]

    opens = _column(block, "open")
    highs = _column(block, "high")
    lows = _column(block, "low")
    closes = _column(block, "close")
    volumes = _column(block, "volume")

    quotes: list[Quote] = []
    n = min(len(timestamps), len(opens), len(highs), len(lows), len(closes))
    for i in range(n):
        o, h, lo, c = opens[i], highs[i], lows[i], closes[i]
        if not all(_finite(v) for v in (o, h, lo, c)):
            continue
        v = volumes[i] if i < len(volumes) else None
        try:
            quotes.append(
                Quote(
                    symbol=symbol,
                    timestamp=int(timestamps[i]),
                    open=float(o),
                    high=float(h),
                    low=float(lo),
                    close=float(c),
                    volume=int(v) if _finite(v) else 0,
                )
            )
        except (TypeError, ValueError) as exc:
            raise MarketDataValidationError(
                "bad_values", details={"index": i, "error": str(exc)}
            ) from exc

    quotes.sort(key=lambda q: q.timestamp)
    return quotes


class YahooFinanceGateway(MarketDataGatewayProtocol):
    """Yahoo Finance adapter implementing the market data gateway."""

    def __init__(self, client: httpx.AsyncClient, settings: YahooSettings | None = None) -> None:
        """Initialize the gateway.

        Args:
            client: Shared ``httpx.AsyncClient`` (owned by the application lifespan).
            settings: Provider settings; defaults are loaded from ``YAHOO_*`` env vars.
        """
        self._client = client
        self._settings = settings or YahooSettings()

    async def latest_quote(self, symbol: str) -> Quote:
        """Return the most recent valid daily quote for ``symbol``."""
        quotes = await self._chart(
            symbol,
            {"range": LATEST_RANGE, "interval": LATEST_INTERVAL},
            endpoint="latest",
            interval=LATEST_INTERVAL,
        )
        if not quotes:
            raise SymbolNotFound(
                f"no recent quote for {symbol}", details={"symbol": symbol}
            )
        return quotes[-1]

    async def quote_range(
        self,
        symbol: str,
        start: datetime,
        end: datetime,
        interval: str,
    ) -> list[Quote]:
        """Return quotes for ``symbol`` between ``start`` and ``end``."""
        if start.tzinfo is None or end.tzinfo is None:
            raise MarketDataBadRequest(
                "range bounds must be timezone-aware", details={"symbol": symbol}
            )
        if end < start:
            raise MarketDataBadRequest(
                "range end precedes start",
                details={"symbol": symbol, "start": start.isoformat(), "end": end.isoformat()},
            )
        params = {
            "period1": str(int(start.timestamp())),
            "period2": str(int(end.timestamp())),
            "interval": interval,
        }
        return await self._chart(symbol, params, endpoint="range", interval=interval)

    # --------------------------------------------------------------------- #
    # Private helpers
    # --------------------------------------------------------------------- #
    async def _chart(
        self,
        symbol: str,
        params: Mapping[str, str],
        *,
        endpoint: str,
        interval: str,
    ) -> list[Quote]:
        url = f"{self._settings.chart_url}/{url_quote(symbol, safe='')}"
        headers: dict[str, str] = {}
        request_id = get_request_id()
        if request_id:
            headers["X-Request-ID"] = request_id

        with observe_upstream_request(
            provider=PROVIDER, endpoint=endpoint, interval=interval
        ) as obs:
            try:
                try:
                    response = await self._client.get(url, params=dict(params), headers=headers)
                except httpx.TimeoutException as exc:
                    raise MarketDataUnavailable(
                        "provider timed out", details={"symbol": symbol, "error": "timeout"}
                    ) from exc
                except httpx.HTTPError as exc:
                    raise MarketDataUnavailable(
                        "provider unreachable",
                        details={"symbol": symbol, "error": type(exc).__name__},
                    ) from exc
                payload = self._handle_response(response, symbol)
                quotes = parse_chart_payload(payload, symbol)
            except DomainError as exc:
                obs.mark_error(exc.code.lower())
                logger.warning(
                    "upstream_call_failed",
                    extra={
                        "extra": {
                            "provider": PROVIDER,
                            "endpoint": endpoint,
                            "symbol": symbol,
                            "code": exc.code,
                            "details": exc.details,
                        }
                    },
                )
                raise

        logger.debug(
            "upstream_call_ok",
            extra={
                "extra": {
                    "provider": PROVIDER,
                    "endpoint": endpoint,
                    "symbol": symbol,
                    "rows": len(quotes),
                }
            },
        )
        return quotes

    @staticmethod
    def _handle_response(response: httpx.Response, symbol: str) -> Any:
        """Map HTTP status codes to domain exceptions and parse the JSON body.

        Raises:
            SymbolNotFound: On 404, or a "Not Found" chart error.
            MarketDataBadRequest: On 400/422 with any other chart error.
            MarketDataUnavailable: On 429, 5xx, or other non-success statuses.
            MarketDataValidationError: On non-JSON payloads.
        """
        status = response.status_code
        if status == 404:
            raise SymbolNotFound(
                f"no market data for {symbol}", details={"symbol": symbol, "status": status}
            )
        if status == 429:
            raise MarketDataUnavailable(
                "provider rate limited", details={"symbol": symbol, "status": status}
            )
        if status >= 500:
            raise MarketDataUnavailable(
                "provider error", details={"symbol": symbol, "status": status}
            )
        if status in (400, 422):
            try:
                body: Any = response.json()
            except ValueError:
                body = {}
            chart = body.get("chart") if isinstance(body, Mapping) else None
            err = chart.get("error") if isinstance(chart, Mapping) else None
            if isinstance(err, Mapping):
                _raise_chart_error(err, symbol)
            raise MarketDataBadRequest(
                "provider rejected the query", details={"symbol": symbol, "status": status}
            )
        if not response.is_success:
            raise MarketDataUnavailable(
                "provider refused the request", details={"symbol": symbol, "status": status}
            )
        try:
            return response.json()
        except ValueError as exc:
            raise MarketDataValidationError(
                "non_json", details={"symbol": symbol, "error": str(exc)}
            ) from exc
