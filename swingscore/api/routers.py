"""API routers — /score, /stock, /screen, /sectors, /stocks and
/market-health endpoints.

No scoring logic here. Delegates to the engine, the screener and the
data client injected at startup.
"""

import logging
from dataclasses import asdict
from typing import Optional

from fastapi import APIRouter, Query

from swingscore.config import Config
from swingscore.data.universe import STOCKS, filter_by_sector, get_stock_info, sector_counts
from swingscore.data.yahoo_client import DataFetchError, YahooChartClient
from swingscore.scoring.engine import score_bars
from swingscore.screener import fetch_market_health, score_history, screen_symbols
from swingscore.strategy.models import bars_from_dicts

logger = logging.getLogger("swingscore.api")
router = APIRouter()

RECENT_BARS = 30  # candles returned with a single-stock lookup

# ── Shared state (set during app startup) ────────────────────────────────

_client: Optional[YahooChartClient] = None  # Set via configure_routers()
_config: Optional[Config] = None  # Set via configure_routers()


def configure_routers(client: Optional[YahooChartClient] = None, config: Optional[Config] = None) -> None:
    """Inject dependencies from the application startup.

    Args:
        client: A ``YahooChartClient`` (or duck-type for tests).
        config: Loaded ``Config``; supplies the screening universe and
            default thresholds.
    """
    global _client, _config  # noqa: PLW0603
    _client = client
    _config = config


# ── Scoring ──────────────────────────────────────────────────────────────


@router.post("/score")
async def post_score(body: dict):
    """Score caller-supplied daily bars.

    Body: ``{"bars": [{date, open, high, low, close, volume}, ...],
    "fifty_two_week_high": float?, "fifty_two_week_low": float?}``.
    """
    rows = body.get("bars")
    if not isinstance(rows, list):
        return {"status": "error", "errors": ["bars must be a list of OHLCV objects"]}

    try:
        bars = bars_from_dicts(rows)
        high52 = body.get("fifty_two_week_high")
        low52 = body.get("fifty_two_week_low")
        high52 = float(high52) if high52 is not None else None
        low52 = float(low52) if low52 is not None else None
    except (KeyError, TypeError, ValueError) as exc:
        return {"status": "error", "errors": [f"Invalid bar data: {exc}"]}

    result = score_bars(bars, high52, low52)
    return {"status": "ok", **result.to_dict()}


@router.get("/stock/{symbol}")
async def get_stock(symbol: str, period: Optional[str] = Query(default=None)):
    """Fetch and score a single symbol.

    Adds the full indicator detail and the most recent bars to the score.
    """
    if _client is None:
        return {"error": "No data client configured"}

    symbol = symbol.upper()
    try:
        history = await _client.fetch_history(symbol, period)
    except (DataFetchError, ValueError) as exc:
        logger.warning("Stock lookup failed for %s: %s", symbol, exc)
        return {"symbol": symbol, "error": str(exc)}

    result = score_history(history)
    info = get_stock_info(symbol)
    return {
        "symbol": symbol,
        "name": info.name if info else symbol,
        "sector": info.sector if info else None,
        "currency": history.currency,
        "exchange": history.exchange,
        "fifty_two_week_high": history.fifty_two_week_high,
        "fifty_two_week_low": history.fifty_two_week_low,
        "bar_count": len(history.bars),
        **result.to_dict(),
        "technical": result.snapshot.to_dict() if result.snapshot else None,
        "candles": [asdict(bar) for bar in history.bars[-RECENT_BARS:]],
    }


@router.get("/screen")
async def get_screen(
    min_score: Optional[float] = Query(default=None, ge=0, le=10),
    limit: int = Query(default=20, ge=1, le=100),
    sector: Optional[str] = Query(default=None),
):
    """Screen the configured universe, or one sector of it, and return the
    best setups."""
    if _client is None or _config is None:
        return {"error": "No data client configured"}
    if sector and not filter_by_sector(list(_config.screen_symbols), sector):
        return {"error": f"No stocks in sector '{sector}'"}

    threshold = _config.min_score if min_score is None else min_score
    market = await fetch_market_health(_client, _config.screen_period)
    stocks = await screen_symbols(
        _client,
        list(_config.screen_symbols),
        period=_config.screen_period,
        min_score=threshold,
        limit=limit,
        market_health=market,
        sector=sector,
    )
    return {
        "count": len(stocks),
        "min_score": threshold,
        "sector": sector,
        "market_health": _market_dict(market),
        "stocks": [s.to_dict() for s in stocks],
    }


@router.get("/sectors")
async def get_sectors():
    """Sectors of the screening universe with their stock counts."""
    symbols = list(_config.screen_symbols) if _config else None
    return {
        "sectors": [
            {"name": name, "stock_count": count}
            for name, count in sector_counts(symbols).items()
        ]
    }


@router.get("/stocks")
async def get_stocks(sector: Optional[str] = Query(default=None)):
    """Catalogued stocks, optionally limited to one sector."""
    stocks = list(STOCKS)
    if sector:
        kept = set(filter_by_sector([s.symbol for s in stocks], sector))
        stocks = [s for s in stocks if s.symbol in kept]
    return {"count": len(stocks), "stocks": [s.to_dict() for s in stocks]}


@router.get("/market-health")
async def get_market_health():
    """Return the benchmark index trend."""
    if _client is None:
        return {"error": "No data client configured"}
    market = await fetch_market_health(_client, _config.screen_period if _config else None)
    if market is None:
        return {"error": "Market data unavailable"}
    return _market_dict(market)


def _market_dict(market) -> Optional[dict]:
    if market is None:
        return None
    return {
        "name": market.name,
        "trend": market.trend,
        "change_percent": market.change_percent,
    }
