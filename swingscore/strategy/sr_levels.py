"""Swing points and nearest support/resistance — pure functions."""

from dataclasses import dataclass

from swingscore.strategy.models import Bar
from swingscore.strategy.rounding import round_half_away


@dataclass(frozen=True)
class SwingPoint:
    index: int
    price: float


def find_swing_highs(bars: list[Bar], window: int = 2) -> list[SwingPoint]:
    """Identify swing highs.

    A swing high is a bar whose high is strictly higher than the highs of
    the *window* bars on each side.
    """
    points: list[SwingPoint] = []
    for i in range(window, len(bars) - window):
        high = bars[i].high
        is_swing = True
        for j in range(1, window + 1):
            if bars[i - j].high >= high or bars[i + j].high >= high:
                is_swing = False
                break
        if is_swing:
            points.append(SwingPoint(i, high))
    return points


def find_swing_lows(bars: list[Bar], window: int = 2) -> list[SwingPoint]:
    """Identify swing lows.

    A swing low is a bar whose low is strictly lower than the lows of the
    *window* bars on each side.
    """
    points: list[SwingPoint] = []
    for i in range(window, len(bars) - window):
        low = bars[i].low
        is_swing = True
        for j in range(1, window + 1):
            if bars[i - j].low <= low or bars[i + j].low <= low:
                is_swing = False
                break
        if is_swing:
            points.append(SwingPoint(i, low))
    return points


@dataclass(frozen=True)
class SupportResistance:
    nearest_support: float
    nearest_resistance: float
    support_levels: tuple[float, ...]  # up to 3, nearest first
    resistance_levels: tuple[float, ...]
    near_support: bool
    distance_to_support: float  # % of price, two decimals
    distance_to_resistance: float


def find_support_resistance(bars: list[Bar], near_pct: float = 2.0) -> SupportResistance:
    """Locate the nearest swing support below and resistance above price.

    Falls back to the lowest low / highest high of the series when no
    swing point qualifies, so distances are always defined.

    Args:
        bars: Bar series, oldest-first.
        near_pct: Price is "near support" when it sits less than this
            percentage above the nearest support.
    """
    price = bars[-1].close

    supports = sorted(
        (p.price for p in find_swing_lows(bars) if p.price < price), reverse=True
    )
    resistances = sorted(p.price for p in find_swing_highs(bars) if p.price > price)

    nearest_support = supports[0] if supports else min(b.low for b in bars)
    nearest_resistance = resistances[0] if resistances else max(b.high for b in bars)

    return SupportResistance(
        nearest_support=nearest_support,
        nearest_resistance=nearest_resistance,
        support_levels=tuple(supports[:3]),
        resistance_levels=tuple(resistances[:3]),
        near_support=(price - nearest_support) / price * 100 < near_pct,
        distance_to_support=round_half_away((price - nearest_support) / price * 100, 2),
        distance_to_resistance=round_half_away(
            (nearest_resistance - price) / price * 100, 2
        ),
    )
