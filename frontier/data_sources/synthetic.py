"""Synthetic return histories used when live data cannot be trusted.

A single-factor model: every ticker loads on a shared market path with a
ticker-specific beta, plus independent noise. That keeps the correlation
structure plausible without any network access.
"""

from __future__ import annotations

import hashlib

import numpy as np
import pandas as pd

from frontier.models import TimeRange
from frontier.utils.logger import setup_logger

logger = setup_logger("synthetic")

MARKET_DRIFT = 0.0005
MARKET_VOL = 0.01
BASE_VOL = 0.01


def box_muller(rng: np.random.Generator, size: int | tuple[int, ...]) -> np.ndarray:
    """Standard-normal draws via the Box-Muller transform.

    Uniforms are taken from (0, 1] so ``log(u)`` is always finite.
    """
    u = 1.0 - rng.random(size)
    v = 1.0 - rng.random(size)
    return np.sqrt(-2.0 * np.log(u)) * np.cos(2.0 * np.pi * v)


def ticker_hash(ticker: str) -> int:
    """Stable across processes, unlike the builtin ``hash``."""
    return int(hashlib.md5(ticker.encode("utf-8")).hexdigest()[:8], 16)


def ticker_parameters(ticker: str) -> tuple[float, float]:
    """Deterministic (beta, volatility offset) for *ticker*.

    beta lies in [0.5, 1.4]; the offset in [0, 0.019] is added to the 1%
    base daily volatility.
    """
    h = ticker_hash(ticker)
    beta = 0.5 + (h % 10) / 10
    vol_offset = (h % 20) / 1000
    return beta, vol_offset


class SyntheticReturnGenerator:
    """Generate a correlated daily-return matrix for any ticker list."""

    def __init__(self, rng: np.random.Generator | int | None = None) -> None:
        self.rng = rng if isinstance(rng, np.random.Generator) else np.random.default_rng(rng)

    def generate(self, tickers: list[str], time_range: TimeRange) -> pd.DataFrame:
        """Return a DataFrame with one column per ticker and ``trading_days`` rows."""
        time_range = TimeRange.parse(time_range)
        days = time_range.trading_days
        logger.info("Generating synthetic history: %d tickers x %d days", len(tickers), days)

        market = box_muller(self.rng, days) * MARKET_VOL + MARKET_DRIFT

        columns: dict[str, np.ndarray] = {}
        for ticker in tickers:
            beta, vol_offset = ticker_parameters(ticker)
            # 1% to 3% daily vol
            volatility = BASE_VOL + vol_offset + self.rng.random() * 0.01
            alpha = (self.rng.random() - 0.5) * 0.001
            idiosyncratic = box_muller(self.rng, days) * volatility
            columns[ticker] = alpha + beta * market + idiosyncratic

        index = pd.RangeIndex(days, name="period")
        return pd.DataFrame(columns, index=index, columns=list(tickers))
