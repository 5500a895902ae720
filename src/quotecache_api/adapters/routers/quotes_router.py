# Copyright (c) Quotecache.
# SPDX-License-Identifier: MIT
"""
Quotes Router.

Summary:
    Read-through quote endpoints under `/v1/quotes`:

    * `GET /v1/quotes/current?symbol=TCS`: latest quote.
    * `GET /v1/quotes/day?symbol=TCS[&date=YYYY-MM-DD]`: day series.
    * `GET /v1/quotes/day/all`: every cached date-less day series.

    `GET /fetch` and `GET /fetchday?day=` are unversioned aliases of the
    first two routes.

    Boundary errors from the quote service are rendered as ErrorEnvelope with
    the error's HTTP status and the request id as `trace_id`.

Layer:
    adapters/routers
"""
from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request, status
from fastapi.responses import JSONResponse

from quotecache_api.adapters.routers.base_router import BaseRouter
from quotecache_api.adapters.schemas.http.envelopes import SuccessEnvelope
from quotecache_api.application.schemas.dto.quotes import (
    AggregateResultDTO,
    DaySeriesDTO,
    QuoteDTO,
)
from quotecache_api.application.services.quote_service import QuoteService
from quotecache_api.dependencies.market_data import get_quote_service
from quotecache_api.domain.exceptions.base import BoundaryError

router = BaseRouter(version="v1", resource="quotes", tags=["Quotes"])


@router.get(
    "/current",
    response_model=SuccessEnvelope[QuoteDTO],
    status_code=status.HTTP_200_OK,
    responses=BaseRouter.std_error_responses(),
    summary="Get the latest quote for a symbol",
)
async def get_current_quote(
    request: Request,
    symbol: Annotated[str, Query(min_length=1, max_length=64, examples=["TCS"])],
    service: Annotated[QuoteService, Depends(get_quote_service)],
) -> SuccessEnvelope[QuoteDTO] | JSONResponse:
    """Return the latest quote, served from cache for up to the quote TTL."""
    try:
        quote = await service.current_quote(symbol)
    except BoundaryError as exc:
        return BaseRouter.send_error(request, exc)
    return SuccessEnvelope[QuoteDTO](data=QuoteDTO.from_entity(quote))


@router.get(
    "/day",
    response_model=SuccessEnvelope[DaySeriesDTO],
    status_code=status.HTTP_200_OK,
    responses=BaseRouter.std_error_responses(),
    summary="Get the day series for a symbol",
)
async def get_day_series(
    request: Request,
    symbol: Annotated[str, Query(min_length=1, max_length=64, examples=["TCS"])],
    service: Annotated[QuoteService, Depends(get_quote_service)],
    date: Annotated[
        str | None,
        Query(
            description="Exchange-local day (YYYY-MM-DD). Omit for the trailing daily series.",
            examples=["2024-05-02"],
        ),
    ] = None,
) -> SuccessEnvelope[DaySeriesDTO] | JSONResponse:
    """Return 1-minute bars for `date`, or daily bars over the trailing window."""
    try:
        series = await service.day_quote(symbol, date)
    except BoundaryError as exc:
        return BaseRouter.send_error(request, exc)
    return SuccessEnvelope[DaySeriesDTO](data=DaySeriesDTO.from_entity(series))


@router.get(
    "/day/all",
    response_model=SuccessEnvelope[AggregateResultDTO],
    status_code=status.HTTP_200_OK,
    responses=BaseRouter.std_error_responses(),
    summary="List every cached day series",
)
async def get_all_day_series(
    request: Request,
    service: Annotated[QuoteService, Depends(get_quote_service)],
) -> SuccessEnvelope[AggregateResultDTO] | JSONResponse:
    """Return the cached date-less day series of every symbol (unordered)."""
    try:
        result = await service.all_day_series()
    except BoundaryError as exc:
        return BaseRouter.send_error(request, exc)
    return SuccessEnvelope[AggregateResultDTO](data=AggregateResultDTO.from_entity(result))


# Unversioned aliases for pre-v1 clients of `/fetch` and `/fetchday`.
legacy_router = APIRouter(tags=["Quotes"], deprecated=True)


@legacy_router.get(
    "/fetch",
    response_model=SuccessEnvelope[QuoteDTO],
    responses=BaseRouter.std_error_responses(),
    summary="Alias of /v1/quotes/current",
)
async def fetch_quote(
    request: Request,
    symbol: Annotated[str, Query(min_length=1, max_length=64)],
    service: Annotated[QuoteService, Depends(get_quote_service)],
) -> SuccessEnvelope[QuoteDTO] | JSONResponse:
    return await get_current_quote(request, symbol, service)


@legacy_router.get(
    "/fetchday",
    response_model=SuccessEnvelope[DaySeriesDTO],
    responses=BaseRouter.std_error_responses(),
    summary="Alias of /v1/quotes/day (`day` maps to `date`)",
)
async def fetch_day(
    request: Request,
    symbol: Annotated[str, Query(min_length=1, max_length=64)],
    service: Annotated[QuoteService, Depends(get_quote_service)],
    day: Annotated[str | None, Query(examples=["2024-05-02"])] = None,
) -> SuccessEnvelope[DaySeriesDTO] | JSONResponse:
    return await get_day_series(request, symbol, service, day)
