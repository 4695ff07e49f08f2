"""Stop-loss and target calculation — pure math, no I/O.

ATR-anchored levels clipped by structure:
    Stop is 2 × ATR below entry, raised to just under the nearest support
    when that support is closer.  Target 1 is 2 × ATR above entry; target 2
    is 3 × ATR above entry, lowered to just under the nearest resistance
    when that resistance is closer.
"""

from dataclasses import dataclass

from swingscore.strategy.rounding import round_half_away

STOP_ATR_MULT = 2.0
TARGET1_ATR_MULT = 2.0
TARGET2_ATR_MULT = 3.0
LEVEL_BUFFER = 0.99  # stay 1% inside support/resistance


@dataclass(frozen=True)
class TradeSetup:
    """Entry, stop and targets for a long swing trade (two decimals)."""

    entry: float
    stop_loss: float
    target1: float
    target2: float
    risk_percent: float
    reward_percent: float
    risk_reward_ratio: float
    position_size_note: str


def stop_loss_price(price: float, atr: float, nearest_support: float) -> float:
    return max(price - atr * STOP_ATR_MULT, nearest_support * LEVEL_BUFFER)


def target_price(price: float, atr: float, nearest_resistance: float) -> float:
    return min(price + atr * TARGET2_ATR_MULT, nearest_resistance * LEVEL_BUFFER)


def reward_to_risk(entry: float, stop: float, target: float) -> float:
    """Reward divided by risk; 0.0 when the stop is not below entry."""
    risk = entry - stop
    if risk <= 0:
        return 0.0
    return (target - entry) / risk


def calculate_trade_setup(
    price: float,
    atr: float,
    nearest_support: float,
    nearest_resistance: float,
) -> TradeSetup:
    """Build the trade setup for a long entry at *price*.

    Prices are rounded first; percentages and the ratio are derived from
    the rounded prices so a consumer can recompute them exactly.

    Args:
        price: Entry price (latest close).
        atr: Current ATR(14).
        nearest_support: Nearest support below price.
        nearest_resistance: Nearest resistance above price.
    """
    entry = round_half_away(price, 2)
    stop = round_half_away(stop_loss_price(price, atr, nearest_support), 2)
    target1 = round_half_away(price + atr * TARGET1_ATR_MULT, 2)
    target2 = round_half_away(target_price(price, atr, nearest_resistance), 2)

    risk = entry - stop
    reward = target2 - entry
    risk_pct = risk / entry * 100 if entry else 0.0

    return TradeSetup(
        entry=entry,
        stop_loss=stop,
        target1=target1,
        target2=target2,
        risk_percent=round_half_away(risk_pct, 2),
        reward_percent=round_half_away(reward / entry * 100 if entry else 0.0, 2),
        risk_reward_ratio=round_half_away(reward_to_risk(entry, stop, target2), 2),
        position_size_note=f"Risk {round_half_away(risk_pct, 1)}% per trade",
    )
