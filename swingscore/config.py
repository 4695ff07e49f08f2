"""SwingScore — application configuration.

Loads .env variables into a typed config object.
Validates numeric variables on startup.
"""

import os
from dataclasses import dataclass

from dotenv import load_dotenv

from swingscore.data.universe import STOCKS

DEFAULT_UNIVERSE: tuple[str, ...] = tuple(s.symbol for s in STOCKS)


@dataclass(frozen=True)
class Config:
    """Typed configuration loaded from environment variables."""

    data_base_url: str
    symbol_suffix: str
    history_period: str
    screen_period: str
    cache_ttl_seconds: float
    fetch_batch_size: int
    fetch_batch_delay: float
    screen_symbols: tuple[str, ...]
    min_score: float
    log_level: str
    api_port: int


def _number(name: str, default: str, kind: type):
    raw = os.environ.get(name, default)
    try:
        value = kind(raw)
    except ValueError:
        raise ValueError(f"Invalid value for {name}: {raw!r}") from None
    if value < 0:
        raise ValueError(f"{name} must not be negative, got {raw!r}")
    return value


def load_config(env_path: str | None = None) -> Config:
    """Load configuration from environment variables.

    Raises ``ValueError`` naming the variable when a numeric variable does
    not parse or is negative.
    """
    load_dotenv(dotenv_path=env_path)

    symbols_raw = os.environ.get("SCREEN_SYMBOLS", "")
    symbols = tuple(s.strip().upper() for s in symbols_raw.split(",") if s.strip())

    batch_size = _number("FETCH_BATCH_SIZE", "5", int)
    if batch_size < 1:
        raise ValueError("FETCH_BATCH_SIZE must be at least 1")

    return Config(
        data_base_url=os.environ.get("DATA_BASE_URL", "https://query1.finance.yahoo.com"),
        symbol_suffix=os.environ.get("SYMBOL_SUFFIX", ".NS"),
        history_period=os.environ.get("HISTORY_PERIOD", "1y"),
        screen_period=os.environ.get("SCREEN_PERIOD", "6mo"),
        cache_ttl_seconds=_number("CACHE_TTL_SECONDS", "300", float),
        fetch_batch_size=batch_size,
        fetch_batch_delay=_number("FETCH_BATCH_DELAY", "0.5", float),
        screen_symbols=symbols or DEFAULT_UNIVERSE,
        min_score=_number("MIN_SCORE", "5.0", float),
        log_level=os.environ.get("LOG_LEVEL", "INFO"),
        api_port=_number("API_PORT", "8080", int),
    )
