# src/quotecache_api/application/schemas/dto/quotes.py
# Copyright (c) Quotecache.
# SPDX-License-Identifier: MIT
"""Quote DTOs and Cache Codec (Application Layer).

Synopsis:
    Fixed, schema-checked representations of the quote entities. The same
    DTOs serve as the JSON stored in the cache and as the HTTP payload.

Design:
    * Field names are stable; unknown extra fields are ignored on decode.
    * Missing fields, wrong types, negative or non-finite numbers fail
      validation. Callers treat that as a corrupt entry.
    * ``EntityCodec`` pairs a DTO class with its entity for encode/decode.

Layer:
    application/schemas/dto
"""

from __future__ import annotations

from typing import Generic, TypeVar

from pydantic import Field

from quotecache_api.application.schemas.dto.base import BaseDTO
from quotecache_api.domain.entities.quote import AggregateResult, DaySeries, Quote

__all__ = [
    "QuoteDTO",
    "DaySeriesDTO",
    "AggregateResultDTO",
    "EntityCodec",
    "QUOTE_CODEC",
    "DAY_SERIES_CODEC",
]


class QuoteDTO(BaseDTO):
    """One OHLCV observation."""

    symbol: str = Field(..., min_length=1, description="Suffix-qualified symbol, e.g. TCS.NS")
    timestamp: int = Field(..., ge=0, description="Observation time (epoch seconds).")
    open: float = Field(..., ge=0)
    high: float = Field(..., ge=0)
    low: float = Field(..., ge=0)
    close: float = Field(..., ge=0)
    volume: int = Field(..., ge=0)

    @classmethod
    def from_entity(cls, q: Quote) -> QuoteDTO:
        return cls(
            symbol=q.symbol,
            timestamp=q.timestamp,
            open=q.open,
            high=q.high,
            low=q.low,
            close=q.close,
            volume=q.volume,
        )

    def to_entity(self) -> Quote:
        return Quote(
            symbol=self.symbol,
            timestamp=self.timestamp,
            open=self.open,
            high=self.high,
            low=self.low,
            close=self.close,
            volume=self.volume,
        )


class DaySeriesDTO(BaseDTO):
    """Quotes for one symbol keyed by observation timestamp."""

    symbol: str = Field(..., min_length=1)
    data: dict[str, QuoteDTO] = Field(default_factory=dict)

    @classmethod
    def from_entity(cls, s: DaySeries) -> DaySeriesDTO:
        return cls(
            symbol=s.symbol,
            data={key: QuoteDTO.from_entity(q) for key, q in s.data.items()},
        )

    def to_entity(self) -> DaySeries:
        return DaySeries(
            symbol=self.symbol,
            data={key: dto.to_entity() for key, dto in self.data.items()},
        )


class AggregateResultDTO(BaseDTO):
    """All cached day series at scan time."""

    series: list[DaySeriesDTO] = Field(default_factory=list)

    @classmethod
    def from_entity(cls, r: AggregateResult) -> AggregateResultDTO:
        return cls(series=[DaySeriesDTO.from_entity(s) for s in r.series])


E = TypeVar("E")
D = TypeVar("D", QuoteDTO, DaySeriesDTO)


class EntityCodec(Generic[E, D]):
    """JSON codec for an entity type via its DTO.

    ``decode`` raises ``ValueError`` (pydantic ``ValidationError`` included)
    on any malformed payload.
    """

    def __init__(self, dto_cls: type[D]) -> None:
        self._dto_cls = dto_cls

    def encode(self, entity: E) -> str:
        return self._dto_cls.from_entity(entity).model_dump_json()  # type: ignore[arg-type]

    def decode(self, raw: str | bytes) -> E:
        return self._dto_cls.model_validate_json(raw).to_entity()  # type: ignore[return-value]


QUOTE_CODEC: EntityCodec[Quote, QuoteDTO] = EntityCodec(QuoteDTO)
DAY_SERIES_CODEC: EntityCodec[DaySeries, DaySeriesDTO] = EntityCodec(DaySeriesDTO)
