# tests/unit/domain/test_quote_entities.py
from __future__ import annotations

import math

import pytest

from quotecache_api.domain.entities.quote import AggregateResult, DaySeries, Quote


def test_quote_rejects_negative_and_non_finite_prices(make_quote) -> None:
    with pytest.raises(ValueError):
        make_quote(open=-1.0)
    with pytest.raises(ValueError):
        make_quote(close=math.nan)
    with pytest.raises(ValueError):
        make_quote(high=math.inf)
    with pytest.raises(ValueError):
        make_quote(volume=-5)


def test_quote_rejects_blank_symbol() -> None:
    with pytest.raises(ValueError):
        Quote(symbol=" ", timestamp=1, open=1, high=1, low=1, close=1, volume=0)


def test_day_series_keeps_one_entry_per_timestamp(make_quote) -> None:
    a = make_quote(timestamp=60)
    b = make_quote(timestamp=120, close=103.5)
    series = DaySeries.from_quotes("TICK.NS", [b, a])

    assert len(series) == 2
    assert set(series.data) == {"60", "120"}
    assert [q.timestamp for q in series.quotes()] == [60, 120]


def test_day_series_rejects_foreign_symbol_and_mismatched_key(make_quote) -> None:
    with pytest.raises(ValueError):
        DaySeries.from_quotes("OTHER.NS", [make_quote()])
    with pytest.raises(ValueError):
        DaySeries(symbol="TICK.NS", data={"1": make_quote(timestamp=2)})


def test_day_series_data_is_read_only(make_quote) -> None:
    series = DaySeries.from_quotes("TICK.NS", [make_quote()])
    with pytest.raises(TypeError):
        series.data["999"] = make_quote(timestamp=999)  # type: ignore[index]


def test_empty_day_series_is_valid_and_falsy() -> None:
    series = DaySeries(symbol="TICK.NS")
    assert len(series) == 0
    assert series.quotes() == []


def test_aggregate_result_symbols(make_quote) -> None:
    result = AggregateResult(
        series=(
            DaySeries.from_quotes("TICK.NS", [make_quote()]),
            DaySeries.from_quotes("TCS.NS", [make_quote(symbol="TCS.NS")]),
        )
    )
    assert result.symbols() == {"TICK.NS", "TCS.NS"}
