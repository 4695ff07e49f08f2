"""Indicator snapshot — every indicator and detector reading for one series.

Built fresh on every scoring call and never cached.
"""

import logging
import math
from dataclasses import asdict, dataclass

from swingscore.strategy.candlesticks import CandlestickReading, detect_candle_patterns
from swingscore.strategy.errors import InsufficientDataError
from swingscore.strategy.indicators import (
    ADXReading,
    ATRReading,
    BollingerReading,
    EMAReading,
    MACDReading,
    RSIReading,
    VolumeReading,
    adx_reading,
    analyze_atr,
    analyze_bollinger,
    analyze_dmi,
    analyze_emas,
    analyze_macd,
    analyze_rsi,
    analyze_volume,
)
from swingscore.strategy.models import Bar
from swingscore.strategy.sr_levels import SupportResistance, find_support_resistance
from swingscore.strategy.swing_patterns import SwingPatternReading, detect_swing_patterns
from swingscore.strategy.trend import TrendState, analyze_trend

logger = logging.getLogger("swingscore.strategy")

MIN_BARS = 26


@dataclass(frozen=True)
class IndicatorSnapshot:
    current_price: float
    previous_close: float
    rsi: RSIReading
    macd: MACDReading
    emas: EMAReading
    adx: ADXReading
    volume: VolumeReading
    bollinger: BollingerReading
    atr: ATRReading
    candles: CandlestickReading
    swings: SwingPatternReading
    trend: TrendState
    levels: SupportResistance

    def to_dict(self) -> dict:
        """Every reading in JSON-ready form; non-finite numbers become ``None``."""
        return _json_ready({
            "rsi": asdict(self.rsi),
            "macd": asdict(self.macd),
            "emas": asdict(self.emas),
            "adx": asdict(self.adx),
            "volume": asdict(self.volume),
            "bollinger_bands": asdict(self.bollinger),
            "atr": asdict(self.atr),
            "trend": asdict(self.trend),
            "candlestick_patterns": asdict(self.candles),
            "swing_patterns": asdict(self.swings),
            "support_resistance": asdict(self.levels),
        })


def _json_ready(value):
    if isinstance(value, float):
        return value if math.isfinite(value) else None
    if isinstance(value, dict):
        return {str(k): _json_ready(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_json_ready(v) for v in value]
    return value


def build_snapshot(bars: list[Bar]) -> IndicatorSnapshot:
    """Compute every reading for *bars* (oldest-first).

    Raises ``InsufficientDataError`` below ``MIN_BARS``.  ADX needs
    ``2 × 14`` bars; shorter series get a zero reading flagged
    ``available=False`` instead of failing the whole snapshot.
    """
    if len(bars) < MIN_BARS:
        raise InsufficientDataError(
            f"Need at least {MIN_BARS} bars for technical analysis, got {len(bars)}"
        )

    closes = [b.close for b in bars]
    highs = [b.high for b in bars]
    lows = [b.low for b in bars]
    volumes = [b.volume for b in bars]

    emas = analyze_emas(closes)

    try:
        adx = analyze_dmi(highs, lows, closes)
    except InsufficientDataError as exc:
        logger.debug("ADX unavailable: %s", exc)
        adx = adx_reading(0.0, 0.0, 0.0, available=False)

    return IndicatorSnapshot(
        current_price=closes[-1],
        previous_close=closes[-2],
        rsi=analyze_rsi(closes),
        macd=analyze_macd(closes),
        emas=emas,
        adx=adx,
        volume=analyze_volume(volumes),
        bollinger=analyze_bollinger(closes),
        atr=analyze_atr(highs, lows, closes),
        candles=detect_candle_patterns(bars),
        swings=detect_swing_patterns(bars),
        trend=analyze_trend(closes, emas),
        levels=find_support_resistance(bars),
    )
