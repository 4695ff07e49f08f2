"""Swing-structure pattern detection — pure functions, no I/O.

Detects four multi-week structures on daily bars:

* **Flag/Pennant**: a sharp pole followed by a tight, low-volume pause.
* **Triangle**: ascending (flat highs, rising lows) or symmetrical
  (converging highs and lows).
* **Double Bottom / Double Top**: two matching extremes around a neckline.
* **Consolidation Breakout**: a tight multi-week range and its breakout.

Each detector returns a ``PatternMatch`` or ``None``.
"""

from dataclasses import dataclass
from typing import Optional

from swingscore.strategy.models import Bar, PatternMatch, order_patterns
from swingscore.strategy.sr_levels import SwingPoint, find_swing_highs, find_swing_lows

BREAKOUT_VOLUME_MULT = 1.5


def _mean(values: list[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def _pct_range(high: float, low: float) -> float:
    return (high - low) / low * 100


# ── Flag / Pennant ───────────────────────────────────────────────────────


def detect_flag(
    bars: list[Bar],
    lookback: int = 20,
    min_pole_pct: float = 10.0,
) -> Optional[PatternMatch]:
    """Detect a bull flag or pennant.

    1. Pole: the largest close-to-close move of at least *min_pole_pct*
       over any 5-10 bar sub-window of the last *lookback* bars.
    2. Consolidation: the bars after the pole, excluding the current bar.
       Valid if its range is under 8% and either volume dried up (average
       below 70% of the pole's) or the range is under 5%.
    3. Breakout: current close above the consolidation high on more than
       1.5× consolidation volume.

    Target is a measured move: current price + 0.8 × pole height.
    """
    n = len(bars)
    if n < lookback:
        return None

    closes = [b.close for b in bars]
    volumes = [b.volume for b in bars]

    best_move = 0.0
    pole_start = pole_end = -1
    for i in range(n - lookback, n - 5):
        for j in range(i + 5, min(i + 10, n - 5) + 1):
            move = (closes[j] - closes[i]) / closes[i] * 100
            if move >= min_pole_pct and move > best_move:
                best_move = move
                pole_start, pole_end = i, j

    if pole_end == -1:
        return None

    pause = closes[pole_end:-1]
    if len(pause) < 3:
        return None

    pause_high = max(pause)
    pause_low = min(pause)
    pause_range = _pct_range(pause_high, pause_low)

    pause_volume = _mean(volumes[pole_end:-1])
    pole_volume = _mean(volumes[max(0, pole_end - 10):pole_end])
    volume_dry_up = pause_volume < pole_volume * 0.7

    if not (pause_range < 8 and (volume_dry_up or pause_range < 5)):
        return None

    price = closes[-1]
    is_breakout = price > pause_high and volumes[-1] > pause_volume * BREAKOUT_VOLUME_MULT
    pole_height = closes[pole_end] - closes[pole_start]

    if is_breakout:
        outcome = "Breakout confirmed."
    else:
        outcome = f"Watch for breakout above {pause_high:.2f}."
    return PatternMatch(
        name="Flag/Pennant",
        category="bullish",
        strength="strong",
        is_breakout=is_breakout,
        target=price + 0.8 * pole_height,
        description=(
            f"Sharp {best_move:.1f}% move followed by {pause_range:.1f}% "
            f"consolidation. {outcome}"
        ),
    )


# ── Triangle ─────────────────────────────────────────────────────────────


def detect_triangle(bars: list[Bar], window: int = 20) -> Optional[PatternMatch]:
    """Detect an ascending or symmetrical triangle over the last *window* bars.

    Swing points use a strict 2-bars-each-side test.  Ascending: first and
    last swing highs within 2% and the last swing low at least 2% above the
    first.  Symmetrical: lower highs and non-falling lows.  Breakout: close
    above the highest swing high on more than 1.5× the window's average
    volume (current bar excluded).
    """
    if len(bars) < 15:
        return None

    recent = bars[-window:]
    highs = find_swing_highs(recent)
    lows = find_swing_lows(recent)
    if len(highs) < 2 or len(lows) < 2:
        return None

    first_high, last_high = highs[0].price, highs[-1].price
    first_low, last_low = lows[0].price, lows[-1].price

    flat_highs = abs(last_high - first_high) / first_high < 0.02
    rising_lows = last_low >= first_low * 1.02
    converging = last_high < first_high and last_low >= first_low

    triangle_high = max(p.price for p in highs)
    price = recent[-1].close
    avg_volume = _mean([b.volume for b in recent[:-1]])
    is_breakout = price > triangle_high and recent[-1].volume > avg_volume * BREAKOUT_VOLUME_MULT

    if flat_highs and rising_lows:
        return PatternMatch(
            name="Ascending Triangle",
            category="bullish",
            strength="strong",
            is_breakout=is_breakout,
            target=triangle_high + (triangle_high - first_low),
            description=(
                f"Ascending triangle with resistance at {triangle_high:.2f}. "
                + ("Breakout confirmed." if is_breakout else "Watch for breakout.")
            ),
        )

    if converging:
        return PatternMatch(
            name="Symmetrical Triangle",
            category="neutral",
            strength="moderate",
            is_breakout=is_breakout,
            description="Converging price action. Breakout direction will confirm trend.",
        )

    return None


# ── Double Top / Bottom ──────────────────────────────────────────────────


def _dominant_extremes(
    values: list[float], span: int, pick
) -> list[SwingPoint]:
    """Bars whose value equals ``pick`` (max or min) of the ±*span* window."""
    return [
        SwingPoint(i, values[i])
        for i in range(span, len(values) - span)
        if values[i] == pick(values[i - span : i + span + 1])
    ]


def detect_double(
    bars: list[Bar],
    window: int = 40,
    tolerance: float = 0.03,
    min_separation: int = 5,
) -> Optional[PatternMatch]:
    """Detect a double bottom (checked first) or double top.

    The last two extremes must sit within *tolerance* of each other and at
    least *min_separation* bars apart.  The neckline is the highest high
    (bottom) or lowest low (top) between them.  Target projects the
    pattern height beyond the neckline.
    """
    if len(bars) < 30:
        return None

    recent = bars[-window:]
    highs = [b.high for b in recent]
    lows = [b.low for b in recent]
    price = recent[-1].close

    swing_lows = _dominant_extremes(lows, 3, min)
    if len(swing_lows) >= 2:
        a, b = swing_lows[-2:]
        if abs(a.price - b.price) / a.price < tolerance and b.index - a.index >= min_separation:
            neckline = max(highs[a.index : b.index])
            is_breakout = price > neckline
            target = neckline + (neckline - min(a.price, b.price))
            if is_breakout:
                outcome = f"Breakout confirmed. Target: {target:.2f}"
            else:
                outcome = f"Watch for break above {neckline:.2f}"
            return PatternMatch(
                name="Double Bottom",
                category="bullish",
                strength="strong",
                is_breakout=is_breakout,
                target=target,
                description=f"W pattern with neckline at {neckline:.2f}. {outcome}",
            )

    swing_highs = _dominant_extremes(highs, 3, max)
    if len(swing_highs) >= 2:
        a, b = swing_highs[-2:]
        if abs(a.price - b.price) / a.price < tolerance and b.index - a.index >= min_separation:
            neckline = min(lows[a.index : b.index])
            is_breakdown = price < neckline
            target = neckline - (max(a.price, b.price) - neckline)
            if is_breakdown:
                outcome = "Breakdown, avoid."
            else:
                outcome = f"Watch for support at {neckline:.2f}"
            return PatternMatch(
                name="Double Top",
                category="bearish",
                strength="strong",
                is_breakout=is_breakdown,
                target=target,
                description=f"M pattern with neckline at {neckline:.2f}. {outcome}",
            )

    return None


# ── Consolidation breakout ───────────────────────────────────────────────


def detect_consolidation(
    bars: list[Bar],
    min_period: int = 10,
    max_period: int = 20,
) -> Optional[PatternMatch]:
    """Detect a tight 2-4 week range ending on the previous bar.

    Scans window lengths from *min_period* to *max_period* and reports the
    first qualifying window (range under 8%) that either broke out on the
    current bar (close above the range high on more than 1.5× window
    volume) or is still tighter than 6%.  Target = range high + range
    height.
    """
    n = len(bars)
    if n < 15:
        return None

    price = bars[-1].close
    current_volume = bars[-1].volume

    for period in range(min_period, max_period + 1):
        if n < period + 5:
            continue
        window = bars[n - period - 1 : n - 1]
        range_high = max(b.high for b in window)
        range_low = min(b.low for b in window)
        range_pct = _pct_range(range_high, range_low)
        if range_pct >= 8:
            continue

        avg_volume = _mean([b.volume for b in window])
        is_breakout = price > range_high and current_volume > avg_volume * BREAKOUT_VOLUME_MULT
        if not (is_breakout or range_pct < 6):
            continue

        target = range_high + (range_high - range_low)
        if is_breakout:
            outcome = f"Breakout. Target: {target:.2f}"
        else:
            outcome = f"Watch for break above {range_high:.2f}"
        return PatternMatch(
            name="Consolidation Breakout" if is_breakout else "Tight Range",
            category="bullish" if is_breakout else "neutral",
            strength="strong" if is_breakout else "moderate",
            is_breakout=is_breakout,
            target=target,
            description=f"{period} days consolidation ({range_pct:.1f}% range). {outcome}",
        )

    return None


# ── Aggregate ────────────────────────────────────────────────────────────

SWING_DETECTORS = (detect_flag, detect_triangle, detect_double, detect_consolidation)


@dataclass(frozen=True)
class SwingPatternReading:
    patterns: tuple[PatternMatch, ...]  # display-priority order
    has_bullish_pattern: bool
    has_breakout: bool
    summary: str


def detect_swing_patterns(bars: list[Bar]) -> SwingPatternReading:
    """Run every swing detector and collect the matches."""
    found = [m for m in (detector(bars) for detector in SWING_DETECTORS) if m is not None]
    ordered = order_patterns(found)
    return SwingPatternReading(
        patterns=ordered,
        has_bullish_pattern=any(p.category == "bullish" for p in found),
        has_breakout=any(p.is_breakout for p in found),
        summary=(
            ", ".join(p.name for p in ordered) if ordered else "No major patterns detected"
        ),
    )
