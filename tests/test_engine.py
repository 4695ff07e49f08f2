"""Deterministic tests for the scoring engine.

Synthetic bar series built from fixed formulas. Same input = same output.
"""

import json
import math
from dataclasses import replace
from datetime import date, timedelta

import pytest

from swingscore.scoring.engine import (
    Signal,
    classify,
    compute_score,
    score_bars,
    score_snapshot,
)
from swingscore.scoring.factors import Factor
from swingscore.strategy.candlesticks import CandlestickReading
from swingscore.strategy.errors import ComputationError
from swingscore.strategy.indicators import (
    MACDReading,
    adx_reading,
    atr_reading,
    rsi_reading,
    volume_reading,
)
from swingscore.strategy.models import Bar, PatternMatch
from swingscore.strategy.rounding import round_half_away
from swingscore.strategy.snapshot import build_snapshot
from swingscore.strategy.sr_levels import SupportResistance


# ── Fixtures ─────────────────────────────────────────────────────────────


def _series(n: int = 260, drift: float = 0.3) -> list[Bar]:
    """A wavy trend: *drift* per bar plus a slow sine swing."""
    start = date(2024, 1, 1)
    bars = []
    for i in range(n):
        base = 100.0 + i * drift + 3.0 * math.sin(i / 4)
        o = base - 0.5 * math.cos(i / 3)
        c = base + 0.5 * math.cos(i / 3)
        bars.append(
            Bar(
                date=(start + timedelta(days=i)).isoformat(),
                open=o,
                high=max(o, c) + 1.0,
                low=min(o, c) - 1.0,
                close=c,
                volume=1000.0 + 200.0 * (i % 7),
            )
        )
    return bars


def _with_last_volume(bars: list[Bar], volume: float) -> list[Bar]:
    return bars[:-1] + [replace(bars[-1], volume=volume)]


def _strong_snapshot():
    """Snapshot overridden so every scored factor sits at its maximum."""
    base = build_snapshot(_series())
    price = 150.0
    return replace(
        base,
        current_price=price,
        previous_close=148.0,
        emas=replace(
            base.emas,
            above_ema20=True,
            above_ema50=True,
            ema50_above_200=True,
            distance={9: 0.8, 20: 0.5, 21: 0.6, 50: 1.5, 200: 6.0},
        ),
        trend=replace(base.trend, is_uptrend=True),
        rsi=rsi_reading(52.0, 48.0),
        macd=MACDReading(
            macd=1.2, signal=1.0, histogram=0.2, history=(),
            is_bullish=True, bullish_crossover=True, bearish_crossover=False,
            recent_bullish_crossover=True, histogram_increasing=True,
        ),
        volume=volume_reading(2500.0, 1000.0, 1200.0),
        candles=CandlestickReading(
            patterns=(PatternMatch("Bullish Engulfing", "bullish", "strong"),),
            has_bullish_pattern=True,
            has_strong_bullish_pattern=True,
            current_is_bullish=True,
            body_percent=80.0,
        ),
        adx=adx_reading(45.0, 30.0, 12.0),
        atr=atr_reading(2.0, price),
        levels=SupportResistance(
            nearest_support=price,
            nearest_resistance=200.0,
            support_levels=(price,),
            resistance_levels=(200.0,),
            near_support=True,
            distance_to_support=0.0,
            distance_to_resistance=33.33,
        ),
    )


def _weak_snapshot():
    base = build_snapshot(_series())
    return replace(
        base,
        emas=replace(
            base.emas,
            above_ema20=False,
            above_ema50=False,
            ema50_above_200=False,
            distance={9: -3.0, 20: -4.0, 21: -4.1, 50: -6.0, 200: -9.0},
        ),
        trend=replace(base.trend, is_uptrend=False),
        rsi=rsi_reading(78.0, 74.0),
        macd=MACDReading(
            macd=-1.0, signal=-0.5, histogram=-0.5, history=(),
            is_bullish=False, bullish_crossover=False, bearish_crossover=True,
            recent_bullish_crossover=False, histogram_increasing=False,
        ),
        volume=volume_reading(500.0, 1000.0, 800.0),
        candles=CandlestickReading((), False, False, False, 10.0),
        adx=adx_reading(15.0, 10.0, 20.0),
        levels=replace(base.levels, near_support=False),
    )


# ── Classification ───────────────────────────────────────────────────────


class TestClassify:
    @pytest.mark.parametrize(
        "score, signal",
        [
            (10.0, Signal.STRONG_BUY),
            (8.0, Signal.STRONG_BUY),
            (7.9, Signal.BUY),
            (7.0, Signal.BUY),
            (6.9, Signal.WATCHLIST),
            (5.0, Signal.WATCHLIST),
            (4.9, Signal.AVOID),
            (0.0, Signal.AVOID),
        ],
    )
    def test_bands(self, score, signal):
        assert classify(score).signal == signal


# ── Full pipeline ────────────────────────────────────────────────────────


class TestScoreBars:
    def test_score_is_bounded_sum_of_factors(self):
        result = score_bars(_series(), 160.0, 90.0)
        assert 0.0 <= result.score <= 10.0
        assert result.score == round_half_away(sum(f.score for f in result.breakdown.values()), 1)
        assert list(result.breakdown) == list(Factor)
        for factor_score in result.breakdown.values():
            assert 0.0 <= factor_score.score <= factor_score.max
        assert result.signal == classify(result.score).signal

    def test_repeatable_and_json_ready(self):
        first = score_bars(_series(), 160.0, 90.0).to_dict()
        second = score_bars(_series(), 160.0, 90.0).to_dict()
        assert json.dumps(first, sort_keys=True) == json.dumps(second, sort_keys=True)
        assert set(first["breakdown"]) == {f.value for f in Factor}

    def test_sector_factor_never_scores(self):
        result = score_bars(_series())
        assert result.breakdown[Factor.SECTOR].score == 0.0
        assert result.breakdown[Factor.WEEK52].score == 0.0

    def test_more_volume_never_lowers_the_score(self):
        bars = _series()
        scores = [
            score_bars(_with_last_volume(bars, v)).score
            for v in (100.0, 900.0, 1300.0, 1700.0, 2500.0, 10000.0)
        ]
        assert scores == sorted(scores)

    def test_trade_setup_ratio_matches_prices(self):
        setup = score_bars(_series()).trade_setup
        if setup.entry > setup.stop_loss:
            expected = (setup.target2 - setup.entry) / (setup.entry - setup.stop_loss)
            assert setup.risk_reward_ratio == round_half_away(expected, 2)
        else:
            assert setup.risk_reward_ratio == 0.0

    def test_minimum_length_scores_without_adx(self):
        result = score_bars(_series(26))
        assert result.signal not in (Signal.INSUFFICIENT_DATA, Signal.ERROR)
        assert result.breakdown[Factor.ADX].score == 0.0
        assert result.indicators.ema50 is None

    def test_patterns_are_ordered(self):
        ranks = {"strong": 0, "moderate": 1, "weak": 2}
        patterns = score_bars(_series()).patterns
        assert [ranks[p.strength] for p in patterns] == sorted(ranks[p.strength] for p in patterns)


class TestFailures:
    def test_fifteen_bars_is_insufficient(self):
        result = score_bars(_series(15))
        assert result.signal == Signal.INSUFFICIENT_DATA
        assert result.score == 0.0
        assert result.breakdown == {}
        assert "26" in result.error

    def test_empty_series(self):
        assert score_bars([]).signal == Signal.INSUFFICIENT_DATA

    def test_non_finite_price_is_an_error(self):
        bars = _series(40)
        bars[-1] = replace(bars[-1], close=float("nan"))
        result = score_bars(bars)
        assert result.signal == Signal.ERROR
        assert result.score == 0.0
        assert result.error.startswith("ValueError")

    def test_compute_score_wraps_failures(self):
        bars = _series(40)
        bars[-1] = replace(bars[-1], high=float("inf"))
        with pytest.raises(ComputationError, match="^ValueError") as excinfo:
            compute_score(bars)
        assert isinstance(excinfo.value.__cause__, ValueError)

    def test_out_of_order_dates_is_an_error(self):
        bars = _series(40)
        bars[10], bars[11] = bars[11], bars[10]
        result = score_bars(bars)
        assert result.signal == Signal.ERROR
        assert result.to_dict()["breakdown"] == {}


class TestSnapshotDetail:
    def test_warm_up_gaps_serialise_as_null(self):
        detail = build_snapshot(_series(30)).to_dict()
        json.dumps(detail, allow_nan=False)
        assert detail["macd"]["history"][-1]["signal"] is None
        assert detail["emas"]["ema200"] is None
        assert detail["emas"]["distance"]["200"] is None

    def test_result_carries_its_snapshot(self):
        result = score_bars(_series(), 160.0, 90.0)
        detail = result.snapshot.to_dict()
        assert detail["rsi"]["current"] == result.indicators.rsi
        assert "snapshot" not in result.to_dict()

    def test_failures_have_no_snapshot(self):
        assert score_bars(_series(15)).snapshot is None


# ── Scenarios ────────────────────────────────────────────────────────────


class TestScenarios:
    def test_strong_buy(self):
        result = score_snapshot(_strong_snapshot(), 200.0, 100.0)
        assert result.score == 9.5
        assert result.signal == Signal.STRONG_BUY
        assert result.confidence == "HIGH"
        assert result.signal_reasons.type == "bullish"
        assert result.signal_reasons.title == "Strong Setup"
        assert len(result.signal_reasons.items) == 4
        assert result.trade_setup.risk_reward_ratio == 4.0
        assert result.price_change == 1.35

    def test_sixty_bars_cannot_confirm_the_long_term_trend(self):
        result = score_bars(_series(60, drift=0.5))
        trend = result.breakdown[Factor.TREND]
        assert result.indicators.ema200 is None
        assert "50 EMA above 200 EMA" not in trend.reasons
        assert "Confirmed uptrend" not in trend.reasons
        assert trend.score <= 0.5

    def test_avoid(self):
        result = score_snapshot(_weak_snapshot(), 200.0, 100.0)
        assert result.signal == Signal.AVOID
        assert result.signal_reasons.type == "bearish"
        assert "RSI overbought - risky entry" in result.signal_reasons.items
        assert "MACD below signal line" in result.signal_reasons.items
        assert result.breakdown[Factor.VOLUME].score == 0.3

    def test_confluence_is_reported(self):
        result = score_snapshot(_strong_snapshot(), 200.0, 100.0)
        data = result.to_dict()["confluence"]
        assert data["total_checks"] == 4
        assert data["is_valid"] is True
        assert data["volume"]["passed"] is True
