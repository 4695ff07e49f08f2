"""Deterministic tests for the indicator module.

Fixed series only. Same input = same output, always.
"""

import math

import pytest

from swingscore.strategy.errors import InsufficientDataError
from swingscore.strategy.indicators import (
    analyze_bollinger,
    analyze_emas,
    analyze_macd,
    analyze_volume,
    atr_reading,
    calculate_atr,
    calculate_bollinger,
    calculate_dmi,
    calculate_ema,
    calculate_macd,
    calculate_rsi,
    rsi_reading,
    volume_reading,
)
from swingscore.strategy.rounding import round_half_away


def _rising(n: int, start: float = 100.0, step: float = 1.0) -> list[float]:
    return [start + i * step for i in range(n)]


class TestRounding:
    def test_half_rounds_away_from_zero(self):
        assert round_half_away(2.675, 2) == 2.68
        assert round_half_away(0.125, 2) == 0.13
        assert round_half_away(-0.125, 2) == -0.13

    def test_zero_places(self):
        assert round_half_away(2.5, 0) == 3.0
        assert round_half_away(-2.5, 0) == -3.0

    def test_non_finite_passthrough(self):
        assert math.isnan(round_half_away(float("nan")))


class TestEMA:
    def test_seeded_with_sma(self):
        ema = calculate_ema([1.0, 2.0, 3.0, 4.0, 5.0], 3)
        assert math.isnan(ema[0]) and math.isnan(ema[1])
        assert ema[2] == pytest.approx(2.0)
        assert ema[3] == pytest.approx(3.0)
        assert ema[4] == pytest.approx(4.0)

    def test_too_short_raises(self):
        with pytest.raises(InsufficientDataError):
            calculate_ema([1.0, 2.0], 3)


class TestRSI:
    def test_only_gains_is_100(self):
        assert calculate_rsi(_rising(30))[-1] == pytest.approx(100.0)

    def test_only_losses_is_0(self):
        assert calculate_rsi(_rising(30, step=-1.0))[-1] == pytest.approx(0.0)

    def test_first_value_at_period(self):
        rsi = calculate_rsi(_rising(15))
        assert math.isnan(rsi[13])
        assert not math.isnan(rsi[14])

    def test_needs_period_plus_one(self):
        with pytest.raises(InsufficientDataError):
            calculate_rsi(_rising(14))

    def test_swing_zone_lower_boundary(self):
        at_40 = rsi_reading(40.0, 39.0)
        assert at_40.in_swing_zone
        assert at_40.is_recovering

        below = rsi_reading(39.9, 35.0)
        assert not below.in_swing_zone
        assert not below.is_recovering

    def test_extremes(self):
        assert rsi_reading(75.0, 70.0).is_overbought
        assert rsi_reading(25.0, 28.0).is_oversold


class TestMACD:
    def test_signal_not_ready_before_34_bars(self):
        _, signal, _ = calculate_macd(_rising(40))
        assert math.isnan(signal[32])
        assert not math.isnan(signal[33])

    def test_flat_series_is_zero(self):
        macd, signal, hist = calculate_macd([50.0] * 40)
        assert macd[-1] == pytest.approx(0.0)
        assert signal[-1] == pytest.approx(0.0)
        assert hist[-1] == pytest.approx(0.0)

    def test_short_series_reads_zero_signal(self):
        reading = analyze_macd(_rising(30))
        assert reading.signal == 0.0
        assert reading.histogram == 0.0
        assert not reading.bullish_crossover

    def test_rising_series_is_bullish(self):
        closes = [100.0] * 30 + [100.0 + 2 * i for i in range(1, 21)]
        assert analyze_macd(closes).macd > 0


class TestDMI:
    def test_steady_uptrend(self):
        closes = _rising(40)
        highs = [c + 1 for c in closes]
        lows = [c - 1 for c in closes]
        adx, plus_di, minus_di = calculate_dmi(highs, lows, closes)
        assert adx[-1] == pytest.approx(100.0)
        assert plus_di[-1] == pytest.approx(50.0)
        assert minus_di[-1] == pytest.approx(0.0)

    def test_first_adx_at_twice_period(self):
        closes = _rising(28)
        adx, _, _ = calculate_dmi([c + 1 for c in closes], [c - 1 for c in closes], closes)
        assert math.isnan(adx[26])
        assert not math.isnan(adx[27])

    def test_needs_two_periods(self):
        closes = _rising(27)
        with pytest.raises(InsufficientDataError):
            calculate_dmi(closes, closes, closes)


class TestEMAReading:
    def test_short_series_has_no_long_emas(self):
        reading = analyze_emas(_rising(30))
        assert reading.ema50 is None
        assert reading.ema200 is None
        assert not reading.above_ema50
        assert not reading.ema50_above_200
        assert reading.distance[50] is None

    def test_uptrend_alignment(self):
        reading = analyze_emas(_rising(60))
        assert reading.ema50 is not None
        assert reading.ema200 is None
        assert reading.above_ema9 and reading.above_ema20 and reading.above_ema50
        assert reading.ema9_above_20
        assert reading.ema20_above_50
        assert reading.distance[20] > 0


class TestVolume:
    def test_ratio_thresholds_are_strict(self):
        reading = volume_reading(30.0, 20.0)
        assert reading.ratio == 1.5
        assert reading.is_above_average
        assert not reading.is_high_volume
        assert reading.signal == "MODERATE"

    def test_zero_average(self):
        reading = volume_reading(10.0, 0.0)
        assert reading.ratio == 0.0
        assert not reading.is_above_average

    def test_twenty_bar_average(self):
        volumes = [1000.0] * 19 + [3000.0]
        reading = analyze_volume([500.0] * 5 + volumes)
        assert reading.average20 == pytest.approx(1100.0)
        assert reading.ratio == 2.73
        assert reading.is_very_high_volume
        assert reading.is_increasing


class TestBollinger:
    def test_flat_bands(self):
        upper, middle, lower = calculate_bollinger([10.0] * 20)
        assert upper[-1] == middle[-1] == lower[-1] == 10.0

    def test_flat_percent_b_is_mid_band(self):
        assert analyze_bollinger([10.0] * 25).percent_b == 50.0


class TestATR:
    def test_constant_range(self):
        closes = [100.0] * 20
        atr = calculate_atr([c + 1 for c in closes], [c - 1 for c in closes], closes)
        assert math.isnan(atr[13])
        assert atr[14] == pytest.approx(2.0)
        assert atr[-1] == pytest.approx(2.0)

    def test_reading(self):
        reading = atr_reading(2.0, 100.0)
        assert reading.percent == 2.0
        assert reading.suggested_stop_loss == 96.0
        assert reading.suggested_target == 106.0
