"""Technical indicators — EMA, RSI, MACD, ADX/DMI, Bollinger Bands, ATR, volume.

Pure functions, no I/O.  The ``calculate_*`` functions return full series
aligned with their input (``nan`` before the indicator is ready); the
``analyze_*`` functions reduce a series to the current reading and the flags
the scoring engine consumes.
"""

import math
from dataclasses import dataclass, field
from typing import Optional

from swingscore.strategy.errors import InsufficientDataError
from swingscore.strategy.rounding import round_half_away

NAN = float("nan")

EMA_PERIODS: tuple[int, ...] = (9, 20, 21, 50, 200)
HISTORY_POINTS = 20
EMA_HISTORY_POINTS = 50


def _require(values: list[float], minimum: int, label: str) -> None:
    if len(values) < minimum:
        raise InsufficientDataError(
            f"Need at least {minimum} bars for {label}, got {len(values)}"
        )


def _finite(values: list[float]) -> list[float]:
    return [v for v in values if not math.isnan(v)]


def _or_zero(value: float) -> float:
    return 0.0 if math.isnan(value) else value


# ── Series calculations ──────────────────────────────────────────────────


def calculate_ema(values: list[float], period: int) -> list[float]:
    """Calculate an Exponential Moving Average series.

    Uses the standard EMA formula:
        ``EMA_today = value × k + EMA_yesterday × (1 - k)``
    where ``k = 2 / (period + 1)``.

    The first EMA value is seeded with the SMA of the first *period*
    values.  Entries before the seed are ``nan``.

    Raises ``InsufficientDataError`` if fewer than *period* values are given.
    """
    _require(values, period, f"EMA({period})")

    k = 2.0 / (period + 1)
    ema: list[float] = [NAN] * len(values)
    ema[period - 1] = sum(values[:period]) / period

    for i in range(period, len(values)):
        ema[i] = values[i] * k + ema[i - 1] * (1 - k)

    return ema


def calculate_rsi(closes: list[float], period: int = 14) -> list[float]:
    """Calculate Wilder's Relative Strength Index.

    Algorithm (Wilder-smoothed):
        1. delta = close[i] - close[i-1]
        2. Separate gains (positive) and losses (|negative|).
        3. Seed average gain/loss = SMA of first *period* deltas.
        4. Subsequent: avg = (prev_avg × (period-1) + current) / period
        5. RS = avg_gain / avg_loss
        6. RSI = 100 - 100 / (1 + RS)

    Requires at least ``period + 1`` closes.
    """
    _require(closes, period + 1, f"RSI({period})")

    deltas = [closes[i] - closes[i - 1] for i in range(1, len(closes))]
    gains = [max(d, 0.0) for d in deltas]
    losses = [abs(min(d, 0.0)) for d in deltas]

    rsi: list[float] = [NAN] * len(closes)

    avg_gain = sum(gains[:period]) / period
    avg_loss = sum(losses[:period]) / period

    def _rsi_from_avgs(ag: float, al: float) -> float:
        if al == 0:
            return 100.0
        return 100.0 - 100.0 / (1.0 + ag / al)

    rsi[period] = _rsi_from_avgs(avg_gain, avg_loss)

    for i in range(period, len(deltas)):
        avg_gain = (avg_gain * (period - 1) + gains[i]) / period
        avg_loss = (avg_loss * (period - 1) + losses[i]) / period
        # deltas are offset by one bar
        rsi[i + 1] = _rsi_from_avgs(avg_gain, avg_loss)

    return rsi


def calculate_macd(
    closes: list[float],
    fast: int = 12,
    slow: int = 26,
    signal: int = 9,
) -> tuple[list[float], list[float], list[float]]:
    """Calculate MACD on an EMA basis.

    MACD line = EMA(fast) − EMA(slow); signal = EMA(signal) of the MACD
    line, seeded once *signal* MACD values exist; histogram = MACD − signal.

    Requires at least *slow* closes.  The signal line needs
    ``slow + signal − 1`` closes and is ``nan`` until then.

    Returns ``(macd, signal, histogram)`` aligned with *closes*.
    """
    _require(closes, slow, f"MACD({fast},{slow},{signal})")

    fast_ema = calculate_ema(closes, fast)
    slow_ema = calculate_ema(closes, slow)
    n = len(closes)

    macd_line = [NAN] * n
    for i in range(slow - 1, n):
        macd_line[i] = fast_ema[i] - slow_ema[i]

    signal_line = [NAN] * n
    defined = macd_line[slow - 1:]
    if len(defined) >= signal:
        for offset, value in enumerate(calculate_ema(defined, signal)):
            signal_line[slow - 1 + offset] = value

    histogram = [m - s for m, s in zip(macd_line, signal_line)]
    return macd_line, signal_line, histogram


def calculate_dmi(
    highs: list[float],
    lows: list[float],
    closes: list[float],
    period: int = 14,
) -> tuple[list[float], list[float], list[float]]:
    """Calculate the Average Directional Index with +DI and −DI.

    Algorithm:
        1. +DM / -DM directional movement per bar.
        2. Wilder-smooth +DM, -DM, and TR over *period*.
        3. +DI = 100 × smoothed_+DM / smoothed_TR
        4. -DI = 100 × smoothed_-DM / smoothed_TR
        5. DX = 100 × |+DI − −DI| / (+DI + −DI)
        6. ADX = Wilder-smoothed DX over *period*.

    Requires at least ``2 × period`` bars.

    Returns ``(adx, plus_di, minus_di)`` aligned with the input.
    """
    n = len(closes)
    _require(closes, 2 * period, f"ADX({period})")

    plus_dm_raw: list[float] = [0.0]
    minus_dm_raw: list[float] = [0.0]
    tr_raw: list[float] = [0.0]

    for i in range(1, n):
        up_move = highs[i] - highs[i - 1]
        down_move = lows[i - 1] - lows[i]

        pdm = up_move if (up_move > down_move and up_move > 0) else 0.0
        mdm = down_move if (down_move > up_move and down_move > 0) else 0.0
        tr = max(
            highs[i] - lows[i],
            abs(highs[i] - closes[i - 1]),
            abs(lows[i] - closes[i - 1]),
        )

        plus_dm_raw.append(pdm)
        minus_dm_raw.append(mdm)
        tr_raw.append(tr)

    smoothed_plus_dm = sum(plus_dm_raw[1 : period + 1])
    smoothed_minus_dm = sum(minus_dm_raw[1 : period + 1])
    smoothed_tr = sum(tr_raw[1 : period + 1])

    plus_di = [NAN] * n
    minus_di = [NAN] * n
    dx_values: list[float] = []

    def _record(index: int) -> None:
        if smoothed_tr == 0:
            pdi = mdi = 0.0
        else:
            pdi = 100.0 * smoothed_plus_dm / smoothed_tr
            mdi = 100.0 * smoothed_minus_dm / smoothed_tr
        plus_di[index] = pdi
        minus_di[index] = mdi
        di_sum = pdi + mdi
        dx_values.append(0.0 if di_sum == 0 else 100.0 * abs(pdi - mdi) / di_sum)

    _record(period)

    for i in range(period + 1, n):
        smoothed_plus_dm = smoothed_plus_dm - smoothed_plus_dm / period + plus_dm_raw[i]
        smoothed_minus_dm = smoothed_minus_dm - smoothed_minus_dm / period + minus_dm_raw[i]
        smoothed_tr = smoothed_tr - smoothed_tr / period + tr_raw[i]
        _record(i)

    # dx_values[0] belongs to bar *period*; the ADX seed averages the
    # first *period* DX values and lands on bar 2 × period − 1.
    adx = [NAN] * n
    adx_prev = sum(dx_values[:period]) / period
    adx[2 * period - 1] = adx_prev
    for j in range(period, len(dx_values)):
        adx_prev = (adx_prev * (period - 1) + dx_values[j]) / period
        adx[period + j] = adx_prev

    return adx, plus_di, minus_di


def calculate_bollinger(
    closes: list[float],
    period: int = 20,
    std_dev: float = 2.0,
) -> tuple[list[float], list[float], list[float]]:
    """Calculate Bollinger Bands.

    Middle = SMA(close, *period*)
    Upper  = middle + *std_dev* × σ
    Lower  = middle − *std_dev* × σ

    Requires at least *period* closes.

    Returns ``(upper, middle, lower)`` aligned with *closes*.
    """
    _require(closes, period, f"Bollinger({period})")

    n = len(closes)
    upper = [NAN] * n
    middle = [NAN] * n
    lower = [NAN] * n

    for i in range(period - 1, n):
        window = closes[i - period + 1 : i + 1]
        sma = sum(window) / period
        sigma = math.sqrt(sum((x - sma) ** 2 for x in window) / period)
        middle[i] = sma
        upper[i] = sma + std_dev * sigma
        lower[i] = sma - std_dev * sigma

    return upper, middle, lower


def calculate_atr(
    highs: list[float],
    lows: list[float],
    closes: list[float],
    period: int = 14,
) -> list[float]:
    """Calculate the Average True Range series.

    TR = max(high - low, |high - prev_close|, |low - prev_close|).  The
    first ATR is the mean of the first *period* true ranges, later values
    are Wilder-smoothed.

    Requires at least ``period + 1`` bars (TR needs a previous close).
    """
    _require(closes, period + 1, f"ATR({period})")

    true_ranges = [
        max(
            highs[i] - lows[i],
            abs(highs[i] - closes[i - 1]),
            abs(lows[i] - closes[i - 1]),
        )
        for i in range(1, len(closes))
    ]

    atr = [NAN] * len(closes)
    prev = sum(true_ranges[:period]) / period
    atr[period] = prev
    for i in range(period, len(true_ranges)):
        prev = (prev * (period - 1) + true_ranges[i]) / period
        atr[i + 1] = prev
    return atr


# ── Readings ─────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class RSIReading:
    current: float
    previous: float
    history: tuple[float, ...]
    is_oversold: bool
    is_overbought: bool
    in_swing_zone: bool
    is_recovering: bool


def rsi_reading(current: float, previous: float, history: tuple[float, ...] = ()) -> RSIReading:
    """Derive the RSI flags from the last two values."""
    return RSIReading(
        current=current,
        previous=previous,
        history=history,
        is_oversold=current < 30,
        is_overbought=current > 70,
        in_swing_zone=40 <= current <= 60,
        is_recovering=previous < 40 and current >= 40,
    )


def analyze_rsi(closes: list[float], period: int = 14) -> RSIReading:
    values = _finite(calculate_rsi(closes, period))
    previous = values[-2] if len(values) > 1 else NAN
    return rsi_reading(values[-1], previous, tuple(values[-HISTORY_POINTS:]))


@dataclass(frozen=True)
class MACDPoint:
    macd: float
    signal: float
    histogram: float


def _is_bullish_cross(prev: MACDPoint, cur: MACDPoint) -> bool:
    return prev.macd <= prev.signal and cur.macd > cur.signal


@dataclass(frozen=True)
class MACDReading:
    macd: float
    signal: float
    histogram: float
    history: tuple[MACDPoint, ...]
    is_bullish: bool
    bullish_crossover: bool
    bearish_crossover: bool
    recent_bullish_crossover: bool
    histogram_increasing: bool


def analyze_macd(closes: list[float]) -> MACDReading:
    """Reduce the MACD series to the current reading.

    Crossover checks compare against ``nan`` while the signal line is not
    ready, which makes them false.
    """
    macd_line, signal_line, histogram = calculate_macd(closes)
    points = [
        MACDPoint(m, s, h)
        for m, s, h in zip(macd_line, signal_line, histogram)
        if not math.isnan(m)
    ]
    current = points[-1]
    previous = points[-2] if len(points) > 1 else None
    tail = points[-3:]

    return MACDReading(
        macd=_or_zero(current.macd),
        signal=_or_zero(current.signal),
        histogram=_or_zero(current.histogram),
        history=tuple(points[-HISTORY_POINTS:]),
        is_bullish=current.macd > current.signal,
        bullish_crossover=previous is not None and _is_bullish_cross(previous, current),
        bearish_crossover=(
            previous is not None
            and previous.macd >= previous.signal
            and current.macd < current.signal
        ),
        recent_bullish_crossover=any(
            _is_bullish_cross(tail[i - 1], tail[i]) for i in range(1, len(tail))
        ),
        histogram_increasing=previous is not None and current.histogram > previous.histogram,
    )


@dataclass(frozen=True)
class EMAReading:
    ema9: float
    ema20: float
    ema21: float
    ema50: Optional[float]
    ema200: Optional[float]
    above_ema9: bool
    above_ema20: bool
    above_ema21: bool
    above_ema50: bool
    above_ema200: bool
    ema9_above_20: bool
    ema20_above_50: bool
    ema50_above_200: bool
    ema9_above_21: bool
    ema9_bullish_crossover: bool
    ema9_bearish_crossover: bool
    recent_ema9_crossover: bool
    # EMA period -> % distance of price from that EMA (None if unavailable)
    distance: dict[int, Optional[float]] = field(default_factory=dict)
    history: dict[int, tuple[float, ...]] = field(default_factory=dict)


def _above(a: Optional[float], b: Optional[float]) -> bool:
    return a is not None and b is not None and a > b


def analyze_emas(closes: list[float]) -> EMAReading:
    """Compute the EMA family and price/alignment flags.

    EMA-9/20/21 are required; EMA-50 and EMA-200 are ``None`` when the
    series is shorter than their period.
    """
    series: dict[int, list[float]] = {}
    latest: dict[int, Optional[float]] = {}
    for period in EMA_PERIODS:
        if period in (50, 200) and len(closes) < period:
            latest[period] = None
            continue
        series[period] = calculate_ema(closes, period)
        latest[period] = series[period][-1]

    price = closes[-1]
    ema9, ema21 = series[9], series[21]

    recent_cross = False
    for i in range(1, 4):
        idx = len(ema9) - 1 - i
        if idx < 0:
            break
        pair = (ema9[idx], ema21[idx], ema9[idx + 1], ema21[idx + 1])
        if any(math.isnan(v) for v in pair):
            continue
        if pair[0] <= pair[1] and pair[2] > pair[3]:
            recent_cross = True
            break

    distance: dict[int, Optional[float]] = {}
    for period, value in latest.items():
        distance[period] = (
            None if not value else round_half_away((price - value) / value * 100, 2)
        )

    return EMAReading(
        ema9=latest[9],
        ema20=latest[20],
        ema21=latest[21],
        ema50=latest[50],
        ema200=latest[200],
        above_ema9=_above(price, latest[9]),
        above_ema20=_above(price, latest[20]),
        above_ema21=_above(price, latest[21]),
        above_ema50=_above(price, latest[50]),
        above_ema200=_above(price, latest[200]),
        ema9_above_20=_above(latest[9], latest[20]),
        ema20_above_50=_above(latest[20], latest[50]),
        ema50_above_200=_above(latest[50], latest[200]),
        ema9_above_21=_above(latest[9], latest[21]),
        ema9_bullish_crossover=ema9[-2] <= ema21[-2] and ema9[-1] > ema21[-1],
        ema9_bearish_crossover=ema9[-2] >= ema21[-2] and ema9[-1] < ema21[-1],
        recent_ema9_crossover=recent_cross,
        distance=distance,
        history={
            period: tuple(_finite(values)[-EMA_HISTORY_POINTS:])
            for period, values in series.items()
            if period != 200
        },
    )


@dataclass(frozen=True)
class ADXReading:
    adx: float
    pdi: float
    mdi: float
    is_trending: bool
    is_strong_trend: bool
    is_bullish_trend: bool
    trend_strength: str  # "Strong", "Moderate" or "Weak"
    available: bool = True


def adx_reading(adx: float, pdi: float, mdi: float, available: bool = True) -> ADXReading:
    """Derive the ADX flags from the current ADX, +DI and −DI."""
    if adx > 40:
        label = "Strong"
    elif adx > 25:
        label = "Moderate"
    else:
        label = "Weak"
    return ADXReading(
        adx=adx,
        pdi=pdi,
        mdi=mdi,
        is_trending=adx > 25,
        is_strong_trend=adx > 40,
        is_bullish_trend=pdi > mdi,
        trend_strength=label,
        available=available,
    )


def analyze_dmi(
    highs: list[float], lows: list[float], closes: list[float], period: int = 14
) -> ADXReading:
    adx, plus_di, minus_di = calculate_dmi(highs, lows, closes, period)
    return adx_reading(_or_zero(adx[-1]), _or_zero(plus_di[-1]), _or_zero(minus_di[-1]))


@dataclass(frozen=True)
class VolumeReading:
    current: float
    average20: float
    ratio: float  # two decimals
    is_above_average: bool
    is_high_volume: bool
    is_very_high_volume: bool
    is_increasing: bool
    signal: str  # "STRONG", "MODERATE" or "WEAK"


def volume_reading(
    current: float, average: float, previous: Optional[float] = None
) -> VolumeReading:
    """Classify the current volume against its average.

    Flags use the raw ratio; the stored ratio is rounded to two decimals.
    A zero average yields a ratio of 0.
    """
    ratio = current / average if average > 0 else 0.0
    if ratio > 1.5:
        signal = "STRONG"
    elif ratio > 1.2:
        signal = "MODERATE"
    else:
        signal = "WEAK"
    return VolumeReading(
        current=current,
        average20=average,
        ratio=round_half_away(ratio, 2),
        is_above_average=ratio > 1.2,
        is_high_volume=ratio > 1.5,
        is_very_high_volume=ratio > 2.0,
        is_increasing=previous is not None and current > previous,
        signal=signal,
    )


def analyze_volume(volumes: list[float], period: int = 20) -> VolumeReading:
    _require(volumes, period, f"volume average({period})")
    recent = volumes[-period:]
    return volume_reading(volumes[-1], sum(recent) / len(recent), volumes[-2])


@dataclass(frozen=True)
class BollingerReading:
    upper: float
    middle: float
    lower: float
    bandwidth: float
    percent_b: float  # 0-100 scale
    near_lower: bool
    near_upper: bool


def analyze_bollinger(
    closes: list[float], period: int = 20, std_dev: float = 2.0
) -> BollingerReading:
    upper, middle, lower = (s[-1] for s in calculate_bollinger(closes, period, std_dev))
    price = closes[-1]
    width = upper - lower
    return BollingerReading(
        upper=upper,
        middle=middle,
        lower=lower,
        bandwidth=round_half_away(width / middle * 100, 2) if middle else 0.0,
        # zero-width bands put price exactly mid-band
        percent_b=round_half_away((price - lower) / width * 100, 2) if width > 0 else 50.0,
        near_lower=price <= lower * 1.02,
        near_upper=price >= upper * 0.98,
    )


@dataclass(frozen=True)
class ATRReading:
    value: float
    percent: float
    suggested_stop_loss: float
    suggested_target: float


def atr_reading(value: float, price: float) -> ATRReading:
    return ATRReading(
        value=value,
        percent=round_half_away(value / price * 100, 2) if price else 0.0,
        suggested_stop_loss=price - value * 2,
        suggested_target=price + value * 3,
    )


def analyze_atr(
    highs: list[float], lows: list[float], closes: list[float], period: int = 14
) -> ATRReading:
    return atr_reading(calculate_atr(highs, lows, closes, period)[-1], closes[-1])
