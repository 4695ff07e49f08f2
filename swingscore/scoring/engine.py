"""Scoring engine — turns a daily bar series into a scored trade signal.

``score_bars`` is the only entry point the outer layers need.  It is a pure
function: the same bars always produce the same ``ScoreResult`` and nothing
is cached between calls, so it is safe to call concurrently for many
symbols.
"""

import logging
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Optional

from swingscore.risk.trade_setup import TradeSetup, calculate_trade_setup
from swingscore.scoring.factors import (
    Factor,
    FactorScore,
    MarketHealth,
    ScoringContext,
    score_factors,
)
from swingscore.strategy.confluence import ConfluenceResult, evaluate_confluence
from swingscore.strategy.errors import ComputationError
from swingscore.strategy.models import Bar, PatternMatch, order_patterns, validate_bars
from swingscore.strategy.rounding import round_half_away
from swingscore.strategy.snapshot import MIN_BARS, IndicatorSnapshot, build_snapshot

logger = logging.getLogger("swingscore.scoring")

MAX_SCORE = 10.0


class Signal(str, Enum):
    STRONG_BUY = "STRONG_BUY"
    BUY = "BUY"
    WATCHLIST = "WATCHLIST"
    AVOID = "AVOID"
    INSUFFICIENT_DATA = "INSUFFICIENT_DATA"
    ERROR = "ERROR"


@dataclass(frozen=True)
class SignalClass:
    signal: Signal
    confidence: str  # "HIGH", "MEDIUM", "LOW" or "NONE"
    text: str


def classify(score: float) -> SignalClass:
    """Map a score onto the signal bands.

    STRONG_BUY [8, 10], BUY [7, 8), WATCHLIST [5, 7), AVOID [0, 5).
    """
    if score >= 8:
        return SignalClass(Signal.STRONG_BUY, "HIGH", "Strong Buy - High confidence setup")
    if score >= 7:
        return SignalClass(Signal.BUY, "MEDIUM", "Buy - Good setup with caution")
    if score >= 5:
        return SignalClass(Signal.WATCHLIST, "LOW", "Watchlist - Monitor for better entry")
    return SignalClass(Signal.AVOID, "NONE", "Avoid - Weak setup")


@dataclass(frozen=True)
class SignalReasons:
    type: str  # "bullish", "neutral" or "bearish"
    title: str
    items: tuple[str, ...]
    summary: str


def build_signal_reasons(breakdown: dict[Factor, FactorScore], score: float) -> SignalReasons:
    """Pick the reasons worth showing for a score.

    Confirmed factors contribute their first reason; factors that scored
    zero contribute theirs as an issue.  The sector factor is skipped.
    """
    positives: list[str] = []
    issues: list[str] = []
    for factor, result in breakdown.items():
        if factor is Factor.SECTOR or not result.reasons:
            continue
        if result.passed:
            positives.append(result.reasons[0])
        elif result.score == 0:
            issues.append(result.reasons[0])

    if score >= 7:
        return SignalReasons(
            type="bullish",
            title="Strong Setup" if score >= 8 else "Buy Reasons",
            items=tuple(positives[:4]),
            summary=f"{len(positives)} bullish factors confirmed",
        )
    if score >= 5:
        return SignalReasons(
            type="neutral",
            title="Watch For",
            items=tuple(positives[:2] + issues[:2]),
            summary=f"{len(positives)} positive, needs {len(issues)} more confirmations",
        )
    return SignalReasons(
        type="bearish",
        title="Avoid Because",
        items=tuple(issues[:4]),
        summary=f"{len(issues)} negative factors detected",
    )


@dataclass(frozen=True)
class IndicatorSummary:
    rsi: float
    macd_histogram: float
    macd_bullish: bool
    volume_ratio: float
    adx: float
    trend: str
    ema50: Optional[float]
    ema200: Optional[float]


@dataclass(frozen=True)
class ScoreResult:
    score: float
    signal: Signal
    confidence: str
    signal_text: str = ""
    breakdown: dict[Factor, FactorScore] = field(default_factory=dict)
    indicators: Optional[IndicatorSummary] = None
    trade_setup: Optional[TradeSetup] = None
    signal_reasons: Optional[SignalReasons] = None
    patterns: tuple[PatternMatch, ...] = ()
    confluence: Optional[ConfluenceResult] = None
    current_price: Optional[float] = None
    price_change: Optional[float] = None
    error: Optional[str] = None
    max_score: float = MAX_SCORE
    snapshot: Optional[IndicatorSnapshot] = field(default=None, repr=False, compare=False)

    def to_dict(self) -> dict:
        """Flat, JSON-ready representation.

        The full indicator snapshot is left out; callers that want it use
        ``snapshot.to_dict()``.
        """
        return {
            "score": self.score,
            "max_score": self.max_score,
            "signal": self.signal.value,
            "confidence": self.confidence,
            "signal_text": self.signal_text,
            "signal_reasons": asdict(self.signal_reasons) if self.signal_reasons else None,
            "breakdown": {f.value: asdict(s) for f, s in self.breakdown.items()},
            "indicators": asdict(self.indicators) if self.indicators else None,
            "trade_setup": asdict(self.trade_setup) if self.trade_setup else None,
            "patterns": [asdict(p) for p in self.patterns],
            "confluence": _confluence_dict(self.confluence) if self.confluence else None,
            "current_price": self.current_price,
            "price_change": self.price_change,
            "error": self.error,
        }


def _confluence_dict(confluence: ConfluenceResult) -> dict:
    categories = {}
    for key, category in zip(("trend", "volume", "momentum", "pattern"), confluence.categories):
        categories[key] = {
            "name": category.name,
            "checks": [asdict(c) for c in category.checks],
            "score": category.score,
            "max_score": category.max_score,
            "pass_threshold": category.pass_threshold,
            "passed": category.passed,
        }
    return {
        **categories,
        "passed_count": confluence.passed_count,
        "total_checks": len(confluence.categories),
        "is_valid": confluence.is_valid,
        "summary": confluence.summary,
    }


def _failure(signal: Signal, message: str) -> ScoreResult:
    return ScoreResult(score=0.0, signal=signal, confidence="NONE", error=message)


def score_snapshot(
    snapshot: IndicatorSnapshot,
    fifty_two_week_high: Optional[float] = None,
    fifty_two_week_low: Optional[float] = None,
    market_health: Optional[MarketHealth] = None,
) -> ScoreResult:
    """Score an already-built snapshot."""
    breakdown = score_factors(
        ScoringContext(
            snapshot=snapshot,
            fifty_two_week_high=fifty_two_week_high,
            fifty_two_week_low=fifty_two_week_low,
            market_health=market_health,
        )
    )
    score = round_half_away(sum(result.score for result in breakdown.values()), 1)
    signal = classify(score)
    price = snapshot.current_price

    return ScoreResult(
        score=score,
        signal=signal.signal,
        confidence=signal.confidence,
        signal_text=signal.text,
        breakdown=breakdown,
        indicators=IndicatorSummary(
            rsi=snapshot.rsi.current,
            macd_histogram=snapshot.macd.histogram,
            macd_bullish=snapshot.macd.is_bullish,
            volume_ratio=snapshot.volume.ratio,
            adx=snapshot.adx.adx,
            trend=snapshot.trend.direction,
            ema50=snapshot.emas.ema50,
            ema200=snapshot.emas.ema200,
        ),
        trade_setup=calculate_trade_setup(
            price,
            snapshot.atr.value,
            snapshot.levels.nearest_support,
            snapshot.levels.nearest_resistance,
        ),
        signal_reasons=build_signal_reasons(breakdown, score),
        patterns=order_patterns(list(snapshot.candles.patterns) + list(snapshot.swings.patterns)),
        confluence=evaluate_confluence(snapshot),
        current_price=price,
        price_change=round_half_away(
            (price - snapshot.previous_close) / snapshot.previous_close * 100, 2
        ),
        snapshot=snapshot,
    )


def compute_score(
    bars: list[Bar],
    fifty_two_week_high: Optional[float] = None,
    fifty_two_week_low: Optional[float] = None,
    market_health: Optional[MarketHealth] = None,
) -> ScoreResult:
    """Validate, build the snapshot and score it.

    Raises ``ComputationError`` wrapping whatever failed underneath.
    """
    try:
        validate_bars(bars)
        snapshot = build_snapshot(bars)
        return score_snapshot(snapshot, fifty_two_week_high, fifty_two_week_low, market_health)
    except Exception as exc:
        raise ComputationError(f"{type(exc).__name__}: {exc}") from exc


def score_bars(
    bars: list[Bar],
    fifty_two_week_high: Optional[float] = None,
    fifty_two_week_low: Optional[float] = None,
    market_health: Optional[MarketHealth] = None,
) -> ScoreResult:
    """Score a daily bar series (oldest-first).

    Returns an ``INSUFFICIENT_DATA`` result below the minimum length and an
    ``ERROR`` result if anything fails during computation; neither carries
    a partial breakdown.
    """
    count = len(bars) if bars else 0
    if count < MIN_BARS:
        return _failure(
            Signal.INSUFFICIENT_DATA,
            f"Need at least {MIN_BARS} daily bars, got {count}",
        )

    try:
        result = compute_score(bars, fifty_two_week_high, fifty_two_week_low, market_health)
    except ComputationError as exc:
        logger.exception("Scoring failed for %d bars ending %s", count, bars[-1].date)
        return _failure(Signal.ERROR, str(exc))

    logger.debug(
        "Scored %d bars ending %s: %.1f %s",
        count, bars[-1].date, result.score, result.signal.value,
    )
    return result
