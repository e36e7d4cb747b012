"""Shared pytest fixtures for the Frontier Analyst test suite.

Provides synthetic price histories with fixed random seeds and a fake fetch
collaborator. Nothing here touches the network.
"""

import threading

import numpy as np
import pandas as pd
import pytest

from frontier.models import PriceHistory, SymbolNotFound, TimeRange, TransientFailure


def make_history(ticker, n=260, seed=0, start_price=100.0, mean=0.0004, std=0.015,
                 start="2023-01-02", drop_dates=(), display_name=None):
    """PriceHistory over ``n`` business days, optionally with missing dates."""
    rng = np.random.default_rng(seed)
    dates = pd.bdate_range(start=start, periods=n).strftime("%Y-%m-%d")
    prices = start_price * np.cumprod(1 + rng.normal(mean, std, n))
    keep = [i for i, d in enumerate(dates) if d not in set(drop_dates)]
    return PriceHistory(
        ticker=ticker,
        dates=tuple(dates[i] for i in keep),
        prices=tuple(float(prices[i]) for i in keep),
        display_name=display_name,
    )


class FakeFetch:
    """Fetch collaborator returning canned outcomes and recording every call."""

    def __init__(self, outcomes: dict):
        self.outcomes = outcomes
        self.calls: list[tuple[str, TimeRange]] = []
        self._lock = threading.Lock()

    def __call__(self, ticker, time_range):
        with self._lock:
            self.calls.append((ticker, time_range))
        outcome = self.outcomes.get(ticker)
        if isinstance(outcome, Exception):
            raise outcome
        if outcome is None:
            return TransientFailure(ticker, "no canned outcome")
        return outcome

    @property
    def called_tickers(self) -> list[str]:
        return [t for t, _ in self.calls]


# ---------------------------------------------------------------------------
# 1. Price history fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def history_factory():
    """Factory for PriceHistory objects (see ``make_history``)."""
    return make_history


@pytest.fixture
def live_outcomes():
    """Three healthy assets plus a healthy ^GSPC benchmark."""
    return {
        "AAPL": make_history("AAPL", seed=1, display_name="Apple Inc."),
        "MSFT": make_history("MSFT", seed=2, display_name="Microsoft Corporation"),
        "JNJ": make_history("JNJ", seed=3, std=0.01),
        "^GSPC": make_history("^GSPC", seed=4, std=0.01, display_name="S&P 500"),
    }


@pytest.fixture
def fake_fetch_factory():
    """Build a FakeFetch from a ticker -> outcome mapping."""
    return FakeFetch


@pytest.fixture
def symbol_not_found():
    return SymbolNotFound


@pytest.fixture
def transient_failure():
    return TransientFailure


# ---------------------------------------------------------------------------
# 2. Statistics fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def sample_returns_df():
    """Daily returns for three correlated assets, 500 observations, seeded at 42."""
    rng = np.random.default_rng(42)
    n = 500
    market = rng.normal(0.0005, 0.01, n)
    data = {
        "A": 0.0002 + 0.8 * market + rng.normal(0, 0.010, n),
        "B": 0.0001 + 1.2 * market + rng.normal(0, 0.015, n),
        "C": 0.0003 - 0.3 * market + rng.normal(0, 0.020, n),
    }
    return pd.DataFrame(data, index=pd.bdate_range(start="2022-01-03", periods=n))


@pytest.fixture
def three_asset_stats(sample_returns_df):
    from frontier.analysis.statistics import compute_statistics
    return compute_statistics(sample_returns_df)
