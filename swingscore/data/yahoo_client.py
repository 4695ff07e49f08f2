"""Yahoo Finance chart API async client.

Fetches daily OHLCV history plus the 52-week range for a symbol, with
retry on transient failures and a TTL cache in front of the network.
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

import httpx

from swingscore.config import Config
from swingscore.data.cache import TTLCache
from swingscore.strategy.models import Bar

logger = logging.getLogger("swingscore.data")

# Retry settings
_MAX_RETRIES = 3
_RETRY_BASE_DELAY = 2.0  # seconds; doubles each attempt
_RETRYABLE_STATUS_CODES = {502, 503, 504, 429}

_PERIOD_DAYS: dict[str, int] = {
    "1mo": 30,
    "2mo": 60,
    "3mo": 90,
    "6mo": 180,
    "1y": 365,
    "2y": 730,
}

# Symbols whose exchange ticker needs escaping in the URL path.
_SPECIAL_SYMBOLS: dict[str, str] = {
    "M&M": "M%26M",
}

_HEADERS = {
    "User-Agent": "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36",
}


class DataFetchError(Exception):
    """Price history could not be fetched or parsed."""


@dataclass(frozen=True)
class PriceHistory:
    """Daily bars and quote metadata for one symbol."""

    symbol: str
    currency: Optional[str]
    exchange: Optional[str]
    regular_market_price: Optional[float]
    previous_close: Optional[float]
    fifty_two_week_high: Optional[float]
    fifty_two_week_low: Optional[float]
    bars: list[Bar]


@dataclass(frozen=True)
class FetchOutcome:
    """Result of one symbol in a batch fetch: a history or an error."""

    symbol: str
    history: Optional[PriceHistory] = None
    error: Optional[str] = None


def period_seconds(period: str) -> int:
    if period not in _PERIOD_DAYS:
        raise ValueError(
            f"Unknown period '{period}'. Available: {', '.join(_PERIOD_DAYS)}"
        )
    return _PERIOD_DAYS[period] * 86400


def parse_chart(symbol: str, payload: dict) -> PriceHistory:
    """Convert a chart API payload into a ``PriceHistory``.

    Sessions with a null close are dropped; a null open/high/low falls back
    to the close.
    """
    chart = payload.get("chart") or {}
    results = chart.get("result") or []
    if chart.get("error") or not results:
        raise DataFetchError(f"No chart data for {symbol}: {chart.get('error')}")

    result = results[0]
    meta = result.get("meta", {})
    quote = result.get("indicators", {}).get("quote", [{}])[0]
    timestamps = result.get("timestamp") or []

    bars: list[Bar] = []
    for i, ts in enumerate(timestamps):
        close = quote.get("close", [])[i]
        if close is None:
            continue
        opened = quote.get("open", [])[i]
        high = quote.get("high", [])[i]
        low = quote.get("low", [])[i]
        volume = quote.get("volume", [])[i]
        bars.append(
            Bar(
                date=datetime.fromtimestamp(ts, tz=timezone.utc).date().isoformat(),
                open=float(close if opened is None else opened),
                high=float(close if high is None else high),
                low=float(close if low is None else low),
                close=float(close),
                volume=float(volume or 0),
            )
        )

    return PriceHistory(
        symbol=symbol,
        currency=meta.get("currency"),
        exchange=meta.get("exchangeName"),
        regular_market_price=meta.get("regularMarketPrice"),
        previous_close=meta.get("previousClose"),
        fifty_two_week_high=meta.get("fiftyTwoWeekHigh"),
        fifty_two_week_low=meta.get("fiftyTwoWeekLow"),
        bars=bars,
    )


class YahooChartClient:
    """Async client for the Yahoo Finance v8 chart endpoint.

    Args:
        config: Application configuration.
        cache: Optional cache; one is created from ``config`` if omitted.
        retry_base_delay: First retry delay in seconds.
    """

    def __init__(
        self,
        config: Config,
        cache: Optional[TTLCache] = None,
        retry_base_delay: float = _RETRY_BASE_DELAY,
    ) -> None:
        self._config = config
        self._base_url = config.data_base_url.rstrip("/")
        self._cache = cache if cache is not None else TTLCache(config.cache_ttl_seconds)
        self._retry_base_delay = retry_base_delay

    def to_provider_symbol(self, symbol: str) -> str:
        """Exchange ticker for *symbol*; index symbols (``^NSEI``) take no suffix."""
        if symbol.startswith("^"):
            return symbol
        return f"{_SPECIAL_SYMBOLS.get(symbol, symbol)}{self._config.symbol_suffix}"

    # ── Retry helper ─────────────────────────────────────────────────────

    async def _get_with_retry(self, url: str, params: dict) -> httpx.Response:
        """GET with exponential-backoff retry.

        Retries on transient server errors (502, 503, 504) and rate-limits
        (429).  Non-retryable errors are raised immediately.
        """
        last_exc: Optional[Exception] = None

        for attempt in range(_MAX_RETRIES):
            delay = self._retry_base_delay * (2 ** attempt)
            try:
                async with httpx.AsyncClient() as client:
                    resp = await client.get(
                        url, headers=_HEADERS, params=params, timeout=10.0,
                    )

                if resp.status_code in _RETRYABLE_STATUS_CODES:
                    logger.warning(
                        "GET %s returned %d — retry %d/%d in %.1fs",
                        url, resp.status_code, attempt + 1, _MAX_RETRIES, delay,
                    )
                    last_exc = httpx.HTTPStatusError(
                        f"Server error '{resp.status_code}'",
                        request=resp.request,
                        response=resp,
                    )
                    await asyncio.sleep(delay)
                    continue

                resp.raise_for_status()
                return resp

            except httpx.TransportError as exc:
                logger.warning(
                    "GET %s transport error (%s) — retry %d/%d in %.1fs",
                    url, exc, attempt + 1, _MAX_RETRIES, delay,
                )
                last_exc = exc
                await asyncio.sleep(delay)

        raise last_exc  # type: ignore[misc]

    # ── History ──────────────────────────────────────────────────────────

    async def fetch_history(self, symbol: str, period: Optional[str] = None) -> PriceHistory:
        """Fetch daily history for *symbol* over *period* (e.g. ``"6mo"``).

        Raises ``DataFetchError`` if the request fails after retries or the
        payload carries no chart data.
        """
        period = period or self._config.history_period
        key = (symbol, period)
        cached = self._cache.get(key)
        if cached is not None:
            return cached

        now = int(time.time())
        url = f"{self._base_url}/v8/finance/chart/{self.to_provider_symbol(symbol)}"
        params = {
            "period1": now - period_seconds(period),
            "period2": now,
            "interval": "1d",
            "includePrePost": "false",
        }

        try:
            resp = await self._get_with_retry(url, params)
            history = parse_chart(symbol, resp.json())
        except httpx.HTTPError as exc:
            raise DataFetchError(f"Failed to fetch data for {symbol}: {exc}") from exc

        self._cache.set(key, history)
        logger.debug("Fetched %d bars for %s (%s)", len(history.bars), symbol, period)
        return history

    async def fetch_many(
        self, symbols: list[str], period: Optional[str] = None
    ) -> list[FetchOutcome]:
        """Fetch several symbols in small concurrent batches.

        Failures are captured per symbol instead of aborting the batch.
        """
        size = self._config.fetch_batch_size
        outcomes: list[FetchOutcome] = []

        async def _one(symbol: str) -> FetchOutcome:
            try:
                return FetchOutcome(symbol, history=await self.fetch_history(symbol, period))
            except DataFetchError as exc:
                logger.warning("%s", exc)
                return FetchOutcome(symbol, error=str(exc))

        for start in range(0, len(symbols), size):
            batch = symbols[start:start + size]
            outcomes.extend(await asyncio.gather(*(_one(s) for s in batch)))
            if start + size < len(symbols) and self._config.fetch_batch_delay > 0:
                await asyncio.sleep(self._config.fetch_batch_delay)

        return outcomes
