"""Score factors — the ten weighted confirmations behind the 0-10 score.

Each scorer is a pure function of the readings it needs and returns a
``FactorScore`` capped at the factor's maximum.  ``FACTOR_SCORERS`` maps
every ``Factor`` member to its scorer; the mapping is checked against the
enum at import time.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Optional

from swingscore.risk.trade_setup import reward_to_risk, stop_loss_price, target_price
from swingscore.strategy.candlesticks import CandlestickReading
from swingscore.strategy.indicators import (
    ADXReading,
    ATRReading,
    EMAReading,
    MACDReading,
    RSIReading,
    VolumeReading,
)
from swingscore.strategy.rounding import round_half_away
from swingscore.strategy.snapshot import IndicatorSnapshot
from swingscore.strategy.sr_levels import SupportResistance
from swingscore.strategy.trend import TrendState


class Factor(str, Enum):
    TREND = "trend"
    RSI = "rsi"
    MACD = "macd"
    VOLUME = "volume"
    PATTERN = "pattern"
    SUPPORT = "support"
    ADX = "adx"
    SECTOR = "sector"
    WEEK52 = "week52"
    RISK_REWARD = "risk_reward"


FACTOR_MAX: dict[Factor, float] = {
    Factor.TREND: 1.5,
    Factor.RSI: 1.0,
    Factor.MACD: 1.0,
    Factor.VOLUME: 1.5,
    Factor.PATTERN: 1.0,
    Factor.SUPPORT: 1.0,
    Factor.ADX: 1.0,
    Factor.SECTOR: 0.5,
    Factor.WEEK52: 0.5,
    Factor.RISK_REWARD: 1.0,
}

# Minimum score for a factor to count as confirmed.
_PASS_THRESHOLD: dict[Factor, float] = {
    Factor.TREND: 1.0,
    Factor.RSI: 0.5,
    Factor.MACD: 0.5,
    Factor.VOLUME: 0.8,
    Factor.PATTERN: 0.5,
    Factor.SUPPORT: 0.4,
    Factor.ADX: 0.5,
    Factor.WEEK52: 0.3,
    Factor.RISK_REWARD: 0.5,
}


@dataclass(frozen=True)
class FactorScore:
    score: float
    max: float
    reasons: tuple[str, ...]
    passed: bool
    detail: dict = field(default_factory=dict)


@dataclass(frozen=True)
class MarketHealth:
    """Benchmark context supplied by the caller (e.g. the NIFTY 50 trend).

    Reported alongside the sector factor but never scored.
    """

    name: str
    trend: str  # "UP", "DOWN" or "SIDEWAYS"
    change_percent: float


def _factor_score(factor: Factor, score: float, reasons: list[str], **detail) -> FactorScore:
    threshold = _PASS_THRESHOLD.get(factor)
    return FactorScore(
        score=min(score, FACTOR_MAX[factor]),
        max=FACTOR_MAX[factor],
        reasons=tuple(reasons),
        passed=threshold is not None and score >= threshold,
        detail=detail,
    )


# ── Scorers ──────────────────────────────────────────────────────────────


def score_trend(emas: EMAReading, trend: TrendState) -> FactorScore:
    score = 0.0
    reasons: list[str] = []
    if emas.above_ema50:
        score += 0.5
        reasons.append("Price above 50 EMA")
    if emas.ema50_above_200:
        score += 0.5
        reasons.append("50 EMA above 200 EMA")
    if trend.is_uptrend:
        score += 0.5
        reasons.append("Confirmed uptrend")
    if not reasons:
        reasons.append("Price below key moving averages")
    return _factor_score(Factor.TREND, score, reasons)


def score_rsi(rsi: RSIReading) -> FactorScore:
    value = rsi.current
    if rsi.in_swing_zone:
        score, reason = 1.0, f"RSI at {value:.1f} - momentum room available"
    elif rsi.is_recovering:
        score, reason = 1.0, "RSI recovering from oversold zone"
    elif 35 <= value <= 65:
        score, reason = 0.5, f"RSI at {value:.1f} - acceptable range"
    elif rsi.is_overbought:
        score, reason = 0.0, "RSI overbought - risky entry"
    elif rsi.is_oversold:
        score, reason = 0.5, "RSI oversold - potential reversal"
    else:
        score, reason = 0.0, f"RSI at {value:.1f} - outside preferred range"
    return _factor_score(Factor.RSI, score, [reason], value=value)


def score_macd(macd: MACDReading) -> FactorScore:
    if macd.bullish_crossover:
        score, reason = 1.0, "Fresh MACD bullish crossover"
    elif macd.recent_bullish_crossover:
        score, reason = 0.8, "Recent MACD bullish crossover (within 3 days)"
    elif macd.is_bullish and macd.histogram_increasing:
        score, reason = 0.7, "MACD bullish with increasing momentum"
    elif macd.is_bullish:
        score, reason = 0.5, "MACD above signal line"
    else:
        score, reason = 0.0, "MACD below signal line"
    return _factor_score(Factor.MACD, score, [reason])


def score_volume(volume: VolumeReading) -> FactorScore:
    ratio = volume.ratio
    if volume.is_very_high_volume:
        score, reason = 1.5, f"Volume {ratio}x average - very high interest"
    elif volume.is_high_volume:
        score, reason = 1.2, f"Volume {ratio}x average - strong interest"
    elif volume.is_above_average:
        score, reason = 0.8, f"Volume {ratio}x average - above normal"
    else:
        score, reason = 0.3, "Below average volume"
    return _factor_score(Factor.VOLUME, score, [reason], ratio=ratio)


def score_pattern(candles: CandlestickReading) -> FactorScore:
    names = [p.name for p in candles.patterns]
    if candles.has_strong_bullish_pattern:
        strong = [p.name for p in candles.patterns if p.category == "bullish" and p.strength == "strong"]
        score, reason = 1.0, f"Strong pattern: {', '.join(strong)}"
    elif candles.has_bullish_pattern:
        bullish = [p.name for p in candles.patterns if p.category == "bullish"]
        score, reason = 0.6, f"Bullish pattern: {', '.join(bullish)}"
    elif candles.current_is_bullish:
        score, reason = 0.3, "Current candle is bullish"
    else:
        score, reason = 0.0, "No bullish price action"
    return _factor_score(Factor.PATTERN, score, [reason], patterns=names)


def score_support(emas: EMAReading, levels: SupportResistance) -> FactorScore:
    score = 0.0
    reasons: list[str] = []
    dist20 = emas.distance.get(20)
    dist50 = emas.distance.get(50)

    if dist20 is not None and abs(dist20) <= 1 and emas.above_ema20:
        score += 0.5
        reasons.append("Price near 20 EMA support")
    if dist50 is not None and abs(dist50) <= 2 and emas.above_ema50:
        score += 0.3
        reasons.append("Price near 50 EMA support")
    if levels.near_support:
        score += 0.2
        reasons.append("Near swing low support")
    if not reasons:
        reasons.append("Not near a support level")
    return _factor_score(Factor.SUPPORT, score, reasons)


def score_adx(adx: ADXReading) -> FactorScore:
    value = adx.adx
    if not adx.available:
        score, reason = 0.0, "ADX unavailable - series too short"
    elif adx.is_strong_trend and adx.is_bullish_trend:
        score, reason = 1.0, f"Strong bullish trend (ADX: {value:.1f})"
    elif adx.is_trending and adx.is_bullish_trend:
        score, reason = 0.7, f"Moderate bullish trend (ADX: {value:.1f})"
    elif adx.is_trending:
        score, reason = 0.4, f"Trending market (ADX: {value:.1f})"
    else:
        score, reason = 0.0, "Ranging market - weak trend"
    return _factor_score(Factor.ADX, score, [reason], value=value)


def score_sector(market_health: Optional[MarketHealth]) -> FactorScore:
    """Reserved: needs market-breadth data the engine does not have."""
    reasons = ["Sector analysis not available"]
    detail = {}
    if market_health is not None:
        reasons.append(
            f"{market_health.name} {market_health.trend} "
            f"({market_health.change_percent:+.2f}%)"
        )
        detail = {
            "market": market_health.name,
            "market_trend": market_health.trend,
            "market_change_percent": market_health.change_percent,
        }
    return _factor_score(Factor.SECTOR, 0.0, reasons, **detail)


def score_week52(
    price: float, high52: Optional[float], low52: Optional[float]
) -> FactorScore:
    if not high52 or not low52 or high52 <= low52:
        return _factor_score(Factor.WEEK52, 0.0, ["52-week data not available"])

    position = (price - low52) / (high52 - low52) * 100
    if 20 <= position <= 80:
        score, reason = 0.5, f"Price at {position:.0f}% of 52-week range"
    elif position < 20:
        score, reason = 0.3, "Near 52-week low - recovery potential"
    else:
        score, reason = 0.0, "Near 52-week high - risky entry"
    return _factor_score(Factor.WEEK52, score, [reason], position=round_half_away(position, 0))


def score_risk_reward(price: float, atr: ATRReading, levels: SupportResistance) -> FactorScore:
    stop = stop_loss_price(price, atr.value, levels.nearest_support)
    target = target_price(price, atr.value, levels.nearest_resistance)
    ratio = reward_to_risk(price, stop, target)

    if ratio >= 3:
        score, label = 1.0, "Excellent"
    elif ratio >= 2:
        score, label = 0.7, "Good"
    elif ratio >= 1.5:
        score, label = 0.4, "Acceptable"
    else:
        score, label = 0.0, "Poor"
    return _factor_score(
        Factor.RISK_REWARD,
        score,
        [f"{label} R:R ratio of 1:{ratio:.1f}"],
        ratio=round_half_away(ratio, 2),
    )


# ── Registry ─────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class ScoringContext:
    snapshot: IndicatorSnapshot
    fifty_two_week_high: Optional[float] = None
    fifty_two_week_low: Optional[float] = None
    market_health: Optional[MarketHealth] = None


FACTOR_SCORERS: dict[Factor, Callable[[ScoringContext], FactorScore]] = {
    Factor.TREND: lambda ctx: score_trend(ctx.snapshot.emas, ctx.snapshot.trend),
    Factor.RSI: lambda ctx: score_rsi(ctx.snapshot.rsi),
    Factor.MACD: lambda ctx: score_macd(ctx.snapshot.macd),
    Factor.VOLUME: lambda ctx: score_volume(ctx.snapshot.volume),
    Factor.PATTERN: lambda ctx: score_pattern(ctx.snapshot.candles),
    Factor.SUPPORT: lambda ctx: score_support(ctx.snapshot.emas, ctx.snapshot.levels),
    Factor.ADX: lambda ctx: score_adx(ctx.snapshot.adx),
    Factor.SECTOR: lambda ctx: score_sector(ctx.market_health),
    Factor.WEEK52: lambda ctx: score_week52(
        ctx.snapshot.current_price, ctx.fifty_two_week_high, ctx.fifty_two_week_low
    ),
    Factor.RISK_REWARD: lambda ctx: score_risk_reward(
        ctx.snapshot.current_price, ctx.snapshot.atr, ctx.snapshot.levels
    ),
}

_missing = set(Factor) - set(FACTOR_SCORERS)
if _missing or set(FACTOR_MAX) != set(Factor):
    raise RuntimeError(f"Factor registry incomplete: {sorted(f.value for f in _missing)}")


def score_factors(ctx: ScoringContext) -> dict[Factor, FactorScore]:
    """Score every factor, in ``Factor`` declaration order."""
    return {factor: FACTOR_SCORERS[factor](ctx) for factor in Factor}
