"""Tests for the screener and benchmark market health."""

import math
from dataclasses import replace
from datetime import date, timedelta
from unittest.mock import AsyncMock

import pytest

from swingscore.data.yahoo_client import DataFetchError, FetchOutcome, PriceHistory
from swingscore.screener import (
    fetch_market_health,
    market_health_from_history,
    screen_histories,
    screen_symbols,
)
from swingscore.strategy.models import Bar


def _bars(closes: list[float]) -> list[Bar]:
    start = date(2024, 6, 3)
    return [
        Bar(
            date=(start + timedelta(days=i)).isoformat(),
            open=c - 0.4,
            high=c + 1.0,
            low=c - 1.0,
            close=c,
            volume=1000.0 + 150.0 * (i % 5),
        )
        for i, c in enumerate(closes)
    ]


def _history(symbol: str, closes: list[float]) -> PriceHistory:
    return PriceHistory(
        symbol=symbol,
        currency="INR",
        exchange="NSI",
        regular_market_price=closes[-1],
        previous_close=None,
        fifty_two_week_high=max(closes) * 1.1,
        fifty_two_week_low=min(closes) * 0.9,
        bars=_bars(closes),
    )


def _wavy(n: int, drift: float, phase: float = 0.0) -> list[float]:
    return [100.0 + i * drift + 3.0 * math.sin(i / 4 + phase) for i in range(n)]


class TestScreenHistories:
    def test_sorted_and_filtered(self):
        histories = [
            _history("UP", _wavy(120, 0.4)),
            _history("DOWN", _wavy(120, -0.3)),
            _history("FLAT", _wavy(120, 0.0, phase=1.0)),
        ]
        screened = screen_histories(histories, min_score=0.0)
        scores = [s.result.score for s in screened]
        assert scores == sorted(scores, reverse=True)
        assert {s.symbol for s in screened} == {"UP", "DOWN", "FLAT"}

        threshold = scores[0]
        assert all(s.result.score >= threshold for s in screen_histories(histories, threshold))

    def test_equal_scores_keep_input_order(self):
        closes = _wavy(80, 0.2)
        screened = screen_histories([_history("A", closes), _history("B", closes)], 0.0)
        assert [s.symbol for s in screened] == ["A", "B"]

    def test_short_history_is_skipped(self):
        screened = screen_histories([_history("NEW", _wavy(15, 0.5))], 0.0)
        assert screened == []

    def test_to_dict_carries_symbol(self):
        stock = screen_histories([_history("A", _wavy(80, 0.2))], 0.0)[0]
        data = stock.to_dict()
        assert data["symbol"] == "A"
        assert data["max_score"] == 10.0
        assert data["name"] == "A"
        assert data["sector"] is None

    def test_to_dict_names_catalogued_symbols(self):
        data = screen_histories([_history("INFY", _wavy(80, 0.2))], 0.0)[0].to_dict()
        assert data["name"] == "Infosys Ltd"
        assert data["sector"] == "IT"
        assert data["market_cap"] == "Large Cap"


class TestMarketHealth:
    def test_rising_index(self):
        health = market_health_from_history(_history("^NSEI", [100.0 + i for i in range(60)]))
        assert health.trend == "UP"
        assert health.change_percent == 0.63

    def test_falling_index(self):
        health = market_health_from_history(_history("^NSEI", [200.0 - i for i in range(60)]))
        assert health.trend == "DOWN"

    def test_day_change_uses_last_two_closes(self):
        history = replace(
            _history("^NSEI", [100.0 + i for i in range(60)] + [158.0]),
            previous_close=50.0,
        )
        health = market_health_from_history(history)
        assert health.change_percent == -0.63
        assert health.trend == "SIDEWAYS"

    def test_too_short(self):
        assert market_health_from_history(_history("^NSEI", [100.0])) is None


@pytest.mark.asyncio
async def test_screen_symbols_skips_fetch_failures():
    client = AsyncMock()
    client.fetch_many.return_value = [
        FetchOutcome("A", history=_history("A", _wavy(80, 0.2))),
        FetchOutcome("BAD", error="Failed to fetch data for BAD"),
        FetchOutcome("B", history=_history("B", _wavy(80, 0.3))),
    ]

    screened = await screen_symbols(client, ["A", "BAD", "B"], min_score=0.0, limit=1)
    assert len(screened) == 1
    assert screened[0].symbol in {"A", "B"}
    client.fetch_many.assert_awaited_once_with(["A", "BAD", "B"], None)


@pytest.mark.asyncio
async def test_market_health_unavailable():
    client = AsyncMock()
    client.fetch_history.side_effect = DataFetchError("index down")
    assert await fetch_market_health(client) is None


@pytest.mark.asyncio
async def test_screen_symbols_by_sector():
    client = AsyncMock()
    client.fetch_many.return_value = [FetchOutcome("TCS", history=_history("TCS", _wavy(80, 0.2)))]

    screened = await screen_symbols(client, ["SBIN", "TCS", "ITC"], min_score=0.0, sector="IT")
    assert [s.symbol for s in screened] == ["TCS"]
    client.fetch_many.assert_awaited_once_with(["TCS"], None)


@pytest.mark.asyncio
async def test_empty_sector_fetches_nothing():
    client = AsyncMock()
    assert await screen_symbols(client, ["SBIN"], sector="IT") == []
    client.fetch_many.assert_not_awaited()
