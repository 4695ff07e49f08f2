"""Candlestick pattern detection on the last three bars — pure functions, no I/O.

Every rule is a ratio between the candle body and its wicks, so the same
thresholds work for any price level.
"""

from dataclasses import dataclass

from swingscore.strategy.errors import InsufficientDataError
from swingscore.strategy.models import Bar, PatternMatch, order_patterns
from swingscore.strategy.rounding import round_half_away


@dataclass(frozen=True)
class CandleShape:
    """Body and wick geometry of a single bar."""

    body: float  # signed: close - open
    body_size: float
    upper_wick: float
    lower_wick: float
    total_range: float


def candle_shape(bar: Bar) -> CandleShape:
    return CandleShape(
        body=bar.close - bar.open,
        body_size=abs(bar.close - bar.open),
        upper_wick=bar.high - max(bar.open, bar.close),
        lower_wick=min(bar.open, bar.close) - bar.low,
        total_range=bar.high - bar.low,
    )


@dataclass(frozen=True)
class CandlestickReading:
    patterns: tuple[PatternMatch, ...]  # display-priority order
    has_bullish_pattern: bool
    has_strong_bullish_pattern: bool
    current_is_bullish: bool
    body_percent: float


# ── Single-pattern rules ─────────────────────────────────────────────────


def _is_bullish_engulfing(prev: Bar, cur: Bar) -> bool:
    return (
        cur.close > cur.open
        and prev.close < prev.open
        and cur.open < prev.close
        and cur.close > prev.open
    )


def _is_hammer(shape: CandleShape) -> bool:
    return (
        shape.lower_wick > shape.body_size * 2
        and shape.upper_wick < shape.body_size * 0.5
        and shape.body > 0
    )


def _is_inverted_hammer(shape: CandleShape) -> bool:
    return (
        shape.upper_wick > shape.body_size * 2
        and shape.lower_wick < shape.body_size * 0.5
        and shape.body > 0
    )


def _is_doji(shape: CandleShape) -> bool:
    return shape.body_size < shape.total_range * 0.1


def _is_morning_star(first: Bar, middle: Bar, cur: Bar) -> bool:
    """Bearish bar, small-bodied pause, then a bullish close above the
    first bar's midpoint."""
    return (
        first.close < first.open
        and abs(middle.close - middle.open) < (first.high - first.low) * 0.3
        and cur.close > cur.open
        and cur.close > (first.open + first.close) / 2
    )


def _is_bullish_marubozu(shape: CandleShape) -> bool:
    return (
        shape.body > 0
        and shape.upper_wick < shape.body_size * 0.1
        and shape.lower_wick < shape.body_size * 0.1
    )


def detect_candle_patterns(bars: list[Bar]) -> CandlestickReading:
    """Evaluate the most recent bars for candlestick patterns.

    Several patterns may match the same bar; all of them are returned,
    ordered by display priority.

    Raises ``InsufficientDataError`` with fewer than three bars.
    """
    if len(bars) < 3:
        raise InsufficientDataError(
            f"Need at least 3 bars for candlestick patterns, got {len(bars)}"
        )

    first, prev, cur = bars[-3:]
    shape = candle_shape(cur)
    found: list[PatternMatch] = []

    if _is_bullish_engulfing(prev, cur):
        found.append(PatternMatch(
            "Bullish Engulfing", "bullish", "strong",
            description="Bullish body engulfs the prior bearish body",
        ))
    if _is_hammer(shape):
        found.append(PatternMatch(
            "Hammer", "bullish", "moderate",
            description="Long lower wick rejected lower prices",
        ))
    if _is_inverted_hammer(shape):
        found.append(PatternMatch(
            "Inverted Hammer", "bullish", "moderate",
            description="Long upper wick after buyers stepped in",
        ))
    if _is_doji(shape):
        found.append(PatternMatch(
            "Doji", "neutral", "weak",
            description="Open and close almost equal; indecision",
        ))
    if _is_morning_star(first, prev, cur):
        found.append(PatternMatch(
            "Morning Star", "bullish", "strong",
            description="Three-bar bullish reversal",
        ))
    if _is_bullish_marubozu(shape):
        found.append(PatternMatch(
            "Bullish Marubozu", "bullish", "strong",
            description="Full bullish body with almost no wicks",
        ))

    return CandlestickReading(
        patterns=order_patterns(found),
        has_bullish_pattern=any(p.category == "bullish" for p in found),
        has_strong_bullish_pattern=any(
            p.category == "bullish" and p.strength == "strong" for p in found
        ),
        current_is_bullish=shape.body > 0,
        body_percent=(
            round_half_away(shape.body_size / shape.total_range * 100, 2)
            if shape.total_range > 0
            else 0.0
        ),
    )
