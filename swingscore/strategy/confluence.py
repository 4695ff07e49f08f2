"""Confluence checklist — four independent confirmations for a swing entry.

A setup is valid when at least three of the four categories (trend,
volume, momentum, pattern) pass.  Each category is capped at 2 points.
"""

from dataclasses import dataclass
from typing import Literal

from swingscore.strategy.snapshot import IndicatorSnapshot

CATEGORY_MAX = 2.0
MIN_PASSED = 3

CheckStatus = Literal["pass", "warn", "fail", "info"]


@dataclass(frozen=True)
class ConfluenceCheck:
    status: CheckStatus
    text: str


@dataclass(frozen=True)
class ConfluenceCategory:
    name: str
    checks: tuple[ConfluenceCheck, ...]
    score: float
    pass_threshold: float
    max_score: float = CATEGORY_MAX

    @property
    def passed(self) -> bool:
        return self.score >= self.pass_threshold


@dataclass(frozen=True)
class ConfluenceResult:
    trend: ConfluenceCategory
    volume: ConfluenceCategory
    momentum: ConfluenceCategory
    pattern: ConfluenceCategory

    @property
    def categories(self) -> tuple[ConfluenceCategory, ...]:
        return (self.trend, self.volume, self.momentum, self.pattern)

    @property
    def passed_count(self) -> int:
        return sum(1 for c in self.categories if c.passed)

    @property
    def is_valid(self) -> bool:
        return self.passed_count >= MIN_PASSED

    @property
    def summary(self) -> str:
        count = self.passed_count
        if count >= 4:
            return "STRONG CONFLUENCE (4/4)"
        if count >= 3:
            return "VALID CONFLUENCE (3/4)"
        if count >= 2:
            return "WEAK CONFLUENCE (2/4)"
        return "NO CONFLUENCE"


def _category(name: str, checks: list[ConfluenceCheck], score: float, threshold: float) -> ConfluenceCategory:
    return ConfluenceCategory(
        name=name,
        checks=tuple(checks),
        score=min(score, CATEGORY_MAX),
        pass_threshold=threshold,
    )


def trend_category(above_ema20: bool, above_ema50: bool, is_uptrend: bool) -> ConfluenceCategory:
    """Price above the 20 and 50 EMAs; the uptrend check is informational."""
    checks: list[ConfluenceCheck] = []
    score = 0.0
    if above_ema20:
        checks.append(ConfluenceCheck("pass", "Price above 20 EMA"))
        score += 1
    else:
        checks.append(ConfluenceCheck("fail", "Price below 20 EMA"))
    if above_ema50:
        checks.append(ConfluenceCheck("pass", "Price above 50 EMA"))
        score += 1
    else:
        checks.append(ConfluenceCheck("fail", "Price below 50 EMA"))
    if is_uptrend:
        checks.append(ConfluenceCheck("info", "Clear uptrend (EMA alignment and rising price)"))
    return _category("Trend Confirmation", checks, score, 2.0)


def volume_category(ratio: float) -> ConfluenceCategory:
    if ratio >= 1.5:
        check = ConfluenceCheck("pass", f"High volume ({ratio}x average)")
        score = 2.0
    elif ratio >= 1.2:
        check = ConfluenceCheck("warn", f"Moderate volume ({ratio}x average)")
        score = 1.0
    else:
        check = ConfluenceCheck("fail", f"Low volume ({ratio}x average)")
        score = 0.0
    return _category("Volume Confirmation", [check], score, 1.0)


def momentum_category(rsi: float, histogram: float, histogram_increasing: bool) -> ConfluenceCategory:
    checks: list[ConfluenceCheck] = []
    score = 0.0
    if 40 <= rsi <= 70:
        checks.append(ConfluenceCheck("pass", f"RSI in favorable zone ({rsi:.1f})"))
        score += 1
    elif rsi < 40:
        checks.append(ConfluenceCheck("warn", f"RSI oversold ({rsi:.1f}) - potential bounce"))
        score += 0.5
    else:
        checks.append(ConfluenceCheck("fail", f"RSI overbought ({rsi:.1f}) - risky entry"))

    if histogram > 0:
        checks.append(ConfluenceCheck("pass", "MACD histogram positive"))
        score += 1
    elif histogram_increasing:
        checks.append(ConfluenceCheck("warn", "MACD histogram improving"))
        score += 0.5
    else:
        checks.append(ConfluenceCheck("fail", "MACD histogram negative"))
    return _category("Momentum Confirmation", checks, score, 1.5)


def pattern_category(distance_to_resistance: float, near_support: bool) -> ConfluenceCategory:
    checks: list[ConfluenceCheck] = []
    if distance_to_resistance < 1:
        checks.append(ConfluenceCheck("warn", "Near resistance - potential breakout"))
        score = 1.0
    elif distance_to_resistance > 5:
        checks.append(ConfluenceCheck("pass", "Room to move (far from resistance)"))
        score = 1.0
    else:
        checks.append(ConfluenceCheck("info", "Moderate distance from resistance"))
        score = 0.5
    if near_support:
        checks.append(ConfluenceCheck("pass", "Bouncing from support level"))
        score += 1
    return _category("Pattern Confirmation", checks, score, 1.0)


def evaluate_confluence(snapshot: IndicatorSnapshot) -> ConfluenceResult:
    """Run the four-category checklist on a snapshot."""
    return ConfluenceResult(
        trend=trend_category(
            snapshot.emas.above_ema20,
            snapshot.emas.above_ema50,
            snapshot.trend.is_uptrend,
        ),
        volume=volume_category(snapshot.volume.ratio),
        momentum=momentum_category(
            snapshot.rsi.current,
            snapshot.macd.histogram,
            snapshot.macd.histogram_increasing,
        ),
        pattern=pattern_category(
            snapshot.levels.distance_to_resistance,
            snapshot.levels.near_support,
        ),
    )
