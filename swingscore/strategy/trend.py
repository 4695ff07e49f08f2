"""Trend classification — EMA alignment plus 20-bar price change."""

from dataclasses import dataclass
from typing import Literal

from swingscore.strategy.indicators import EMAReading
from swingscore.strategy.rounding import round_half_away


@dataclass(frozen=True)
class TrendState:
    """Snapshot of the overall trend direction and strength."""

    direction: Literal["UP", "DOWN", "SIDEWAYS"]
    strength: Literal["Strong", "Moderate", "Weak"]
    change_20d: float  # percent, two decimals
    is_uptrend: bool
    is_downtrend: bool
    is_sideways: bool
    ema_trend_aligned: bool


def analyze_trend(closes: list[float], emas: EMAReading, lookback: int = 20) -> TrendState:
    """Classify trend direction using EMA alignment and recent change.

    Rules:
        - **Up**: price > EMA50 AND EMA50 > EMA200 AND change > 0.
        - **Down**: price < EMA50 AND EMA50 < EMA200 AND change < 0.
          Needs both EMAs, so short series are never in a downtrend.
        - **Sideways**: everything else.

    Strength is "Strong" above 10% absolute change, "Moderate" above 5%.
    """
    recent = closes[-lookback:]
    start, end = recent[0], recent[-1]
    change = (end - start) / start * 100

    price = closes[-1]
    below_ema50 = emas.ema50 is not None and price < emas.ema50
    ema50_below_200 = (
        emas.ema50 is not None and emas.ema200 is not None and emas.ema50 < emas.ema200
    )

    is_uptrend = emas.above_ema50 and emas.ema50_above_200 and change > 0
    is_downtrend = below_ema50 and ema50_below_200 and change < 0

    if abs(change) > 10:
        strength = "Strong"
    elif abs(change) > 5:
        strength = "Moderate"
    else:
        strength = "Weak"

    if is_uptrend:
        direction = "UP"
    elif is_downtrend:
        direction = "DOWN"
    else:
        direction = "SIDEWAYS"

    return TrendState(
        direction=direction,
        strength=strength,
        change_20d=round_half_away(change, 2),
        is_uptrend=is_uptrend,
        is_downtrend=is_downtrend,
        is_sideways=not is_uptrend and not is_downtrend,
        ema_trend_aligned=emas.above_ema50 and emas.ema50_above_200,
    )
