"""Strategy data models — typed representations of bars and detector outputs."""

import math
from dataclasses import dataclass
from typing import Literal, Optional

PatternCategory = Literal["bullish", "bearish", "neutral"]
PatternStrength = Literal["weak", "moderate", "strong"]


@dataclass(frozen=True)
class Bar:
    """One daily OHLCV session."""

    date: str  # ISO date, e.g. "2025-01-31"
    open: float
    high: float
    low: float
    close: float
    volume: float


@dataclass(frozen=True)
class PatternMatch:
    """A candlestick or swing-structure pattern found in a bar series."""

    name: str
    category: PatternCategory
    strength: PatternStrength
    is_breakout: bool = False
    target: Optional[float] = None
    description: str = ""


# ── Display priority ─────────────────────────────────────────────────────
# Overlapping matches (e.g. Hammer + Doji on the same bar) are ordered by
# strength, then category, then the order the detectors emitted them.

_STRENGTH_RANK: dict[str, int] = {"strong": 0, "moderate": 1, "weak": 2}
_CATEGORY_RANK: dict[str, int] = {"bullish": 0, "neutral": 1, "bearish": 2}


def order_patterns(patterns: list[PatternMatch]) -> tuple[PatternMatch, ...]:
    """Return *patterns* in display-priority order.

    ``sorted`` is stable, so matches with equal strength and category keep
    their detector order.
    """
    return tuple(
        sorted(
            patterns,
            key=lambda p: (_STRENGTH_RANK[p.strength], _CATEGORY_RANK[p.category]),
        )
    )


# ── Series helpers ───────────────────────────────────────────────────────


def validate_bars(bars: list[Bar]) -> None:
    """Check the bar-series contract.

    Raises ``ValueError`` if dates go backwards or any price is not a
    finite number.
    """
    for i, bar in enumerate(bars):
        for field_name in ("open", "high", "low", "close", "volume"):
            value = getattr(bar, field_name)
            if value is None or not math.isfinite(value):
                raise ValueError(
                    f"Bar {i} ({bar.date}) has invalid {field_name}: {value!r}"
                )
        if i > 0 and bar.date < bars[i - 1].date:
            raise ValueError(
                f"Bars out of order: {bars[i - 1].date} followed by {bar.date}"
            )


def bars_from_dicts(rows: list[dict]) -> list[Bar]:
    """Build bars from plain mappings, skipping sessions with no close."""
    bars: list[Bar] = []
    for row in rows:
        if row.get("close") is None:
            continue
        bars.append(
            Bar(
                date=str(row["date"]),
                open=float(row["open"]),
                high=float(row["high"]),
                low=float(row["low"]),
                close=float(row["close"]),
                volume=float(row.get("volume") or 0),
            )
        )
    return bars
