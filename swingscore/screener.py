"""Screener — score a universe of symbols and keep the best setups."""

import logging
from dataclasses import dataclass
from typing import Optional

from swingscore.data.universe import filter_by_sector, get_stock_info
from swingscore.data.yahoo_client import DataFetchError, PriceHistory, YahooChartClient
from swingscore.scoring.engine import ScoreResult, Signal, score_bars
from swingscore.scoring.factors import MarketHealth
from swingscore.strategy.rounding import round_half_away

logger = logging.getLogger("swingscore.screener")

BENCHMARK_SYMBOL = "^NSEI"
BENCHMARK_NAME = "NIFTY 50"


@dataclass(frozen=True)
class ScreenedStock:
    symbol: str
    result: ScoreResult

    def to_dict(self) -> dict:
        info = get_stock_info(self.symbol)
        return {
            "symbol": self.symbol,
            "name": info.name if info else self.symbol,
            "sector": info.sector if info else None,
            "market_cap": info.market_cap if info else None,
            **self.result.to_dict(),
        }


def _sma(values: list[float], period: int) -> float:
    window = values[-period:]
    return sum(window) / len(window)


def market_health_from_history(
    history: PriceHistory, name: str = BENCHMARK_NAME
) -> Optional[MarketHealth]:
    """Classify a benchmark index as UP, DOWN or SIDEWAYS.

    UP when the last close is above both its 20- and 50-session averages
    and the last session closed up on the one before; DOWN is the mirror
    image.  The day change always comes from the last two bars.
    """
    closes = [bar.close for bar in history.bars]
    if len(closes) < 2:
        return None

    price = closes[-1]
    previous = closes[-2]
    change = (price - previous) / previous * 100 if previous else 0.0
    above20 = price > _sma(closes, 20)
    above50 = price > _sma(closes, 50)

    if above20 and above50 and change > 0:
        trend = "UP"
    elif not above20 and not above50 and change < 0:
        trend = "DOWN"
    else:
        trend = "SIDEWAYS"
    return MarketHealth(name=name, trend=trend, change_percent=round_half_away(change, 2))


def score_history(
    history: PriceHistory, market_health: Optional[MarketHealth] = None
) -> ScoreResult:
    return score_bars(
        history.bars,
        fifty_two_week_high=history.fifty_two_week_high,
        fifty_two_week_low=history.fifty_two_week_low,
        market_health=market_health,
    )


def screen_histories(
    histories: list[PriceHistory],
    min_score: float = 5.0,
    market_health: Optional[MarketHealth] = None,
) -> list[ScreenedStock]:
    """Score every history and keep those scoring at least *min_score*.

    Results are sorted by score, highest first; equal scores keep input
    order.  Failed results (insufficient data, errors) are never kept.
    """
    kept: list[ScreenedStock] = []
    for history in histories:
        result = score_history(history, market_health)
        if result.signal in (Signal.INSUFFICIENT_DATA, Signal.ERROR):
            logger.info("Skipping %s: %s", history.symbol, result.error)
            continue
        if result.score >= min_score:
            kept.append(ScreenedStock(history.symbol, result))
    kept.sort(key=lambda stock: stock.result.score, reverse=True)
    return kept


async def fetch_market_health(
    client: YahooChartClient, period: Optional[str] = None
) -> Optional[MarketHealth]:
    """Benchmark context, or ``None`` when the index cannot be fetched."""
    try:
        history = await client.fetch_history(BENCHMARK_SYMBOL, period)
    except DataFetchError as exc:
        logger.warning("Market health unavailable: %s", exc)
        return None
    return market_health_from_history(history)


async def screen_symbols(
    client: YahooChartClient,
    symbols: list[str],
    period: Optional[str] = None,
    min_score: float = 5.0,
    limit: Optional[int] = None,
    market_health: Optional[MarketHealth] = None,
    sector: Optional[str] = None,
) -> list[ScreenedStock]:
    """Fetch *symbols* and screen them; symbols that fail to fetch are skipped.

    With *sector*, only catalogued symbols of that sector are fetched.
    """
    if sector:
        symbols = filter_by_sector(symbols, sector)
        if not symbols:
            return []
    outcomes = await client.fetch_many(symbols, period)
    histories = [o.history for o in outcomes if o.history is not None]
    logger.info(
        "Screening %d/%d symbols (min score %.1f)",
        len(histories), len(symbols), min_score,
    )
    screened = screen_histories(histories, min_score, market_health)
    return screened[:limit] if limit is not None else screened
