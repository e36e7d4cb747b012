"""Value objects shared by the data, statistics and sampling layers.

Everything here is created per optimisation request and never mutated
afterwards (frozen dataclasses, numpy arrays are not written to).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Union

import numpy as np
import pandas as pd

TRADING_DAYS = 252
VAR95_Z = 1.645


def _to_float(val: Any) -> float:
    """Coerce numpy/pandas scalar to plain float for JSON serialization."""
    return round(float(val), 6)


class TimeRange(str, Enum):
    """Lookback horizon for the return history."""

    ONE_YEAR = "1y"
    TWO_YEARS = "2y"
    FIVE_YEARS = "5y"

    @property
    def trading_days(self) -> int:
        return _RANGE_TRADING_DAYS[self]

    @classmethod
    def parse(cls, value: str | TimeRange) -> TimeRange:
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            valid = ", ".join(r.value for r in cls)
            raise ValueError(f"Unknown time range '{value}' (expected one of: {valid})") from None


_RANGE_TRADING_DAYS: dict[TimeRange, int] = {
    TimeRange.ONE_YEAR: 252,
    TimeRange.TWO_YEARS: 504,
    TimeRange.FIVE_YEARS: 1260,
}


@dataclass(frozen=True)
class AssetPosition:
    """One user-entered holding. ``raw_weight`` is a percentage, not normalised."""

    ticker: str
    raw_weight: float


# ---------------------------------------------------------------------------
# Fetch outcomes (tagged variant)
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class PriceHistory:
    """Successful fetch: closing prices keyed by ISO date strings."""

    ticker: str
    dates: tuple[str, ...]
    prices: tuple[float, ...]
    display_name: str | None = None

    def __post_init__(self):
        if len(self.dates) != len(self.prices):
            raise ValueError(
                f"{self.ticker}: {len(self.dates)} dates but {len(self.prices)} prices"
            )

    def to_series(self) -> pd.Series:
        series = pd.Series(self.prices, index=list(self.dates), dtype=float, name=self.ticker)
        # Later duplicates win, mirroring a date -> price lookup table
        return series[~series.index.duplicated(keep="last")]


@dataclass(frozen=True)
class SymbolNotFound:
    """The data source does not know this ticker. Never masked by fallback."""

    ticker: str
    reason: str = "Symbol not found"


@dataclass(frozen=True)
class TransientFailure:
    """Network, proxy, rate-limit or parse trouble. Recovered via synthetic data."""

    ticker: str
    reason: str = "Transient failure"


FetchOutcome = Union[PriceHistory, SymbolNotFound, TransientFailure]


@dataclass(frozen=True)
class ReturnsBundle:
    """Output of the returns provider.

    ``returns`` has one column per requested ticker (input order) and one row
    per period. ``benchmark_returns`` is None when the benchmark was
    unavailable.
    """

    returns: pd.DataFrame
    is_simulation: bool
    display_names: dict[str, str] = field(default_factory=dict)
    benchmark_returns: pd.Series | None = None


# ---------------------------------------------------------------------------
# Statistics and portfolios
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class MarketStatistics:
    """Annualised mean vector, covariance and correlation, indexed by asset order."""

    mean_annual: np.ndarray
    cov_annual: np.ndarray
    corr: np.ndarray

    @property
    def volatilities(self) -> np.ndarray:
        return np.sqrt(np.clip(np.diag(self.cov_annual), 0.0, None))

    @property
    def n_assets(self) -> int:
        return len(self.mean_annual)


@dataclass(frozen=True)
class PortfolioStats:
    annualized_return: float
    annualized_risk: float
    sharpe_ratio: float
    weights: tuple[float, ...]
    var95: float | None = None

    def to_dict(self, tickers: list[str] | None = None) -> dict:
        if tickers is not None and len(tickers) == len(self.weights):
            weights: Any = {t: _to_float(w) for t, w in zip(tickers, self.weights)}
        else:
            weights = [_to_float(w) for w in self.weights]
        return {
            "expected_return": _to_float(self.annualized_return),
            "expected_volatility": _to_float(self.annualized_risk),
            "sharpe_ratio": _to_float(self.sharpe_ratio),
            "var_95": _to_float(self.var95) if self.var95 is not None else None,
            "weights": weights,
        }


@dataclass(frozen=True)
class FrontierResult:
    """Monte-Carlo cloud plus the two tracked extremes."""

    cloud: tuple[PortfolioStats, ...]
    min_variance: PortfolioStats
    max_sharpe: PortfolioStats


@dataclass(frozen=True)
class OptimizationResult:
    """Everything a presentation layer needs for one optimisation request."""

    assets: tuple[str, ...]
    correlation_matrix: np.ndarray
    frontier: tuple[PortfolioStats, ...]
    current: PortfolioStats
    min_variance: PortfolioStats
    max_sharpe: PortfolioStats
    risk_contributions: np.ndarray
    is_simulation: bool
    benchmark: PortfolioStats | None = None
    display_names: dict[str, str] = field(default_factory=dict)
    efficient_curve: tuple[PortfolioStats, ...] = ()
    capital_market_line: tuple[tuple[float, float], ...] = ()

    def to_dict(self, include_cloud: bool = False) -> dict:
        """JSON-friendly view. The full cloud is large, so it is opt-in."""
        tickers = list(self.assets)
        n = len(tickers)
        result = {
            "tickers": tickers,
            "is_simulation": self.is_simulation,
            "display_names": dict(self.display_names),
            "correlation_matrix": {
                tickers[i]: {tickers[j]: _to_float(self.correlation_matrix[i, j]) for j in range(n)}
                for i in range(n)
            },
            "current_portfolio": self.current.to_dict(tickers),
            "min_variance_portfolio": self.min_variance.to_dict(tickers),
            "max_sharpe_portfolio": self.max_sharpe.to_dict(tickers),
            "risk_contribution_pct": {
                tickers[i]: _to_float(self.risk_contributions[i]) for i in range(n)
            },
            "benchmark_portfolio": self.benchmark.to_dict() if self.benchmark else None,
            "efficient_curve": [
                {"risk": _to_float(p.annualized_risk), "return": _to_float(p.annualized_return)}
                for p in self.efficient_curve
            ],
            "capital_market_line": [
                {"risk": _to_float(r), "return": _to_float(ret)}
                for r, ret in self.capital_market_line
            ],
            "n_samples": len(self.frontier),
        }
        if include_cloud:
            result["frontier"] = [p.to_dict(tickers) for p in self.frontier]
        return result
