"""Tests for swingscore.data — Yahoo chart client with mocked HTTP responses."""

import httpx
import pytest

from swingscore.config import Config
from swingscore.data.yahoo_client import (
    DataFetchError,
    YahooChartClient,
    parse_chart,
    period_seconds,
)


def _make_config(batch_size: int = 5) -> Config:
    return Config(
        data_base_url="https://query1.finance.yahoo.com",
        symbol_suffix=".NS",
        history_period="1y",
        screen_period="6mo",
        cache_ttl_seconds=300.0,
        fetch_batch_size=batch_size,
        fetch_batch_delay=0.0,
        screen_symbols=("TCS", "INFY"),
        min_score=5.0,
        log_level="INFO",
        api_port=8080,
    )


# ── Mock chart responses ─────────────────────────────────────────────────

MOCK_CHART_RESPONSE = {
    "chart": {
        "result": [
            {
                "meta": {
                    "currency": "INR",
                    "exchangeName": "NSI",
                    "regularMarketPrice": 3925.5,
                    "previousClose": 3890.0,
                    "fiftyTwoWeekHigh": 4592.25,
                    "fiftyTwoWeekLow": 3056.05,
                },
                "timestamp": [1735776000, 1735862400, 1736121600],
                "indicators": {
                    "quote": [
                        {
                            "open": [3890.0, 3900.0, None],
                            "high": [3920.0, 3940.0, None],
                            "low": [3880.0, 3895.0, None],
                            "close": [3910.0, 3925.5, None],
                            "volume": [1200000, 1350000, None],
                        }
                    ]
                },
            }
        ],
        "error": None,
    }
}

MOCK_NOT_FOUND = {
    "chart": {
        "result": None,
        "error": {"code": "Not Found", "description": "No data found, symbol may be delisted"},
    }
}


def _ok(url: str, payload: dict = MOCK_CHART_RESPONSE) -> httpx.Response:
    return httpx.Response(200, json=payload, request=httpx.Request("GET", url))


# ── Parsing ──────────────────────────────────────────────────────────────


class TestParseChart:
    def test_bars_and_meta(self):
        history = parse_chart("TCS", MOCK_CHART_RESPONSE)
        assert history.currency == "INR"
        assert history.fifty_two_week_high == pytest.approx(4592.25)
        assert history.fifty_two_week_low == pytest.approx(3056.05)
        assert [b.date for b in history.bars] == ["2025-01-02", "2025-01-03"]
        assert history.bars[-1].close == pytest.approx(3925.5)
        assert history.bars[0].volume == 1200000

    def test_null_close_sessions_dropped(self):
        assert len(parse_chart("TCS", MOCK_CHART_RESPONSE).bars) == 2

    def test_range_start_close_is_not_previous_close(self):
        result = dict(MOCK_CHART_RESPONSE["chart"]["result"][0])
        result["meta"] = {"currency": "INR", "chartPreviousClose": 50.0}
        history = parse_chart("^NSEI", {"chart": {"result": [result], "error": None}})
        assert history.previous_close is None

    def test_error_payload(self):
        with pytest.raises(DataFetchError, match="No chart data"):
            parse_chart("NOPE", MOCK_NOT_FOUND)


class TestSymbols:
    def test_suffix_and_special_symbols(self):
        client = YahooChartClient(_make_config())
        assert client.to_provider_symbol("TCS") == "TCS.NS"
        assert client.to_provider_symbol("M&M") == "M%26M.NS"
        assert client.to_provider_symbol("^NSEI") == "^NSEI"

    def test_period_seconds(self):
        assert period_seconds("6mo") == 180 * 86400
        with pytest.raises(ValueError):
            period_seconds("5y")


# ── Fetching ─────────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_fetch_history_uses_daily_interval(monkeypatch):
    client = YahooChartClient(_make_config())
    captured = {}

    async def _mock_get(self, url, *, headers=None, params=None, timeout=None):
        captured["url"] = url
        captured["params"] = params
        return _ok(url)

    monkeypatch.setattr(httpx.AsyncClient, "get", _mock_get)

    history = await client.fetch_history("M&M", "6mo")
    assert history.symbol == "M&M"
    assert captured["url"].endswith("/v8/finance/chart/M%26M.NS")
    assert captured["params"]["interval"] == "1d"
    assert captured["params"]["period2"] - captured["params"]["period1"] == 180 * 86400


@pytest.mark.asyncio
async def test_fetch_history_is_cached(monkeypatch):
    client = YahooChartClient(_make_config())
    calls = []

    async def _mock_get(self, url, *, headers=None, params=None, timeout=None):
        calls.append(url)
        return _ok(url)

    monkeypatch.setattr(httpx.AsyncClient, "get", _mock_get)

    first = await client.fetch_history("TCS")
    second = await client.fetch_history("TCS")
    assert first is second
    assert len(calls) == 1


@pytest.mark.asyncio
async def test_retries_server_errors(monkeypatch):
    client = YahooChartClient(_make_config(), retry_base_delay=0.0)
    statuses = [503, 200]

    async def _mock_get(self, url, *, headers=None, params=None, timeout=None):
        status = statuses.pop(0)
        if status != 200:
            return httpx.Response(status, request=httpx.Request("GET", url))
        return _ok(url)

    monkeypatch.setattr(httpx.AsyncClient, "get", _mock_get)

    history = await client.fetch_history("TCS")
    assert len(history.bars) == 2
    assert statuses == []


@pytest.mark.asyncio
async def test_transport_errors_exhaust_retries(monkeypatch):
    client = YahooChartClient(_make_config(), retry_base_delay=0.0)
    attempts = []

    async def _mock_get(self, url, *, headers=None, params=None, timeout=None):
        attempts.append(url)
        raise httpx.ConnectError("connection refused")

    monkeypatch.setattr(httpx.AsyncClient, "get", _mock_get)

    with pytest.raises(DataFetchError, match="TCS"):
        await client.fetch_history("TCS")
    assert len(attempts) == 3


@pytest.mark.asyncio
async def test_not_found_is_not_retried(monkeypatch):
    client = YahooChartClient(_make_config(), retry_base_delay=0.0)
    attempts = []

    async def _mock_get(self, url, *, headers=None, params=None, timeout=None):
        attempts.append(url)
        return httpx.Response(404, json=MOCK_NOT_FOUND, request=httpx.Request("GET", url))

    monkeypatch.setattr(httpx.AsyncClient, "get", _mock_get)

    with pytest.raises(DataFetchError):
        await client.fetch_history("NOPE")
    assert len(attempts) == 1


@pytest.mark.asyncio
async def test_fetch_many_keeps_order_and_captures_failures(monkeypatch):
    client = YahooChartClient(_make_config(batch_size=2))

    async def _mock_get(self, url, *, headers=None, params=None, timeout=None):
        if "BAD" in url:
            return httpx.Response(404, json=MOCK_NOT_FOUND, request=httpx.Request("GET", url))
        return _ok(url)

    monkeypatch.setattr(httpx.AsyncClient, "get", _mock_get)

    outcomes = await client.fetch_many(["TCS", "BAD", "INFY"])
    assert [o.symbol for o in outcomes] == ["TCS", "BAD", "INFY"]
    assert outcomes[0].history is not None
    assert outcomes[1].history is None
    assert "BAD" in outcomes[1].error
    assert outcomes[2].history is not None
