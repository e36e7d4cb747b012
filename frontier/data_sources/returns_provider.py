"""Aligned return histories for a ticker list, from live data or synthetic fallback.

Policy, in order:
  1. any unknown symbol aborts the request (InvalidSymbolError);
  2. any transient failure replaces *all* series with synthetic ones;
  3. too few common trading days, or a non-finite return, also replaces
     all series;
  4. otherwise returns are computed on the common calendar.

Live and synthetic series are never mixed: a covariance matrix across a
mixed set would be meaningless.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from typing import Callable

import numpy as np
import pandas as pd

from frontier.config import SETTINGS, portfolio_setting
from frontier.data_sources.synthetic import SyntheticReturnGenerator
from frontier.errors import InvalidSymbolError
from frontier.models import (
    FetchOutcome,
    PriceHistory,
    ReturnsBundle,
    SymbolNotFound,
    TimeRange,
    TransientFailure,
)
from frontier.utils.logger import setup_logger

logger = setup_logger("returns_provider")

FetchFunction = Callable[[str, TimeRange], FetchOutcome]

MIN_BENCHMARK_PRICES = 11


def simple_returns(prices: pd.DataFrame | pd.Series) -> pd.DataFrame | pd.Series:
    """Per-period simple returns ``(p[t] - p[t-1]) / p[t-1]``; drops the first row."""
    return prices.pct_change().iloc[1:]


class ReturnsProvider:
    """Fetch every ticker concurrently and turn the batch into a return matrix."""

    def __init__(
        self,
        fetch: FetchFunction | None = None,
        benchmark_ticker: str | None = None,
        min_overlap_days: int | None = None,
        max_workers: int | None = None,
        generator: SyntheticReturnGenerator | None = None,
    ) -> None:
        if fetch is None:
            from frontier.data_sources.market_data import MarketDataClient
            fetch = MarketDataClient().fetch_history
        self.fetch = fetch
        self.benchmark_ticker = benchmark_ticker or portfolio_setting("benchmark_ticker", "^GSPC")
        self.min_overlap_days = (
            min_overlap_days if min_overlap_days is not None
            else portfolio_setting("min_overlap_days", 50)
        )
        self.max_workers = max_workers or SETTINGS.get("fetch", {}).get("max_workers", 8)
        self.generator = generator or SyntheticReturnGenerator()

    # ------------------------------------------------------------------
    #  Main entry point
    # ------------------------------------------------------------------
    def obtain_returns(
        self,
        tickers: list[str],
        time_range: TimeRange | str,
        include_benchmark: bool = True,
    ) -> ReturnsBundle:
        """Build the aligned return matrix for *tickers*.

        Raises:
            InvalidSymbolError: if the data source reports any ticker as unknown.
        """
        if not tickers:
            raise ValueError("At least one ticker is required")
        time_range = TimeRange.parse(time_range)
        tickers = list(tickers)

        requested = tickers + ([self.benchmark_ticker] if include_benchmark else [])
        outcomes = self._fetch_all(requested, time_range)
        asset_outcomes = outcomes[: len(tickers)]
        benchmark_returns = (
            self._benchmark_returns(outcomes[-1]) if include_benchmark else None
        )

        invalid = [o.ticker for o in asset_outcomes if isinstance(o, SymbolNotFound)]
        if invalid:
            raise InvalidSymbolError(invalid)

        transient = [o for o in asset_outcomes if isinstance(o, TransientFailure)]
        if transient:
            logger.warning(
                "Network/source issues for %s. Falling back to simulation mode.",
                ", ".join(o.ticker for o in transient),
            )
            return self._simulated(tickers, time_range, benchmark_returns)

        histories: list[PriceHistory] = list(asset_outcomes)
        prices = self._align_prices(histories)
        if len(prices) < self.min_overlap_days:
            logger.warning(
                "Only %d overlapping trading days (need %d). Falling back to simulation.",
                len(prices), self.min_overlap_days,
            )
            return self._simulated(tickers, time_range, benchmark_returns)

        returns = simple_returns(prices)
        if not np.isfinite(returns.to_numpy()).all():
            logger.warning("Non-finite returns in live data. Falling back to simulation.")
            return self._simulated(tickers, time_range, benchmark_returns)

        display_names = {h.ticker: h.display_name or h.ticker for h in histories}
        logger.info(
            "Aligned %d tickers on %d common dates (%d return periods)",
            len(tickers), len(prices), len(returns),
        )
        return ReturnsBundle(
            returns=returns,
            is_simulation=False,
            display_names=display_names,
            benchmark_returns=benchmark_returns,
        )

    # ------------------------------------------------------------------
    #  Fetching
    # ------------------------------------------------------------------
    def _fetch_all(self, tickers: list[str], time_range: TimeRange) -> list[FetchOutcome]:
        """Run every fetch concurrently and wait for all of them.

        There is no short-circuit: classifying the batch needs every outcome.
        Results come back in input order.
        """
        workers = max(1, min(self.max_workers, len(tickers)))
        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures = [executor.submit(self._safe_fetch, t, time_range) for t in tickers]
            return [f.result() for f in futures]

    def _safe_fetch(self, ticker: str, time_range: TimeRange) -> FetchOutcome:
        try:
            outcome = self.fetch(ticker, time_range)
        except Exception as exc:
            logger.warning("Fetch for %s raised: %s", ticker, exc)
            return TransientFailure(ticker, str(exc))
        if not isinstance(outcome, (PriceHistory, SymbolNotFound, TransientFailure)):
            logger.warning("Fetch for %s returned %r, treating as transient", ticker, outcome)
            return TransientFailure(ticker, "unrecognised fetch result")
        return outcome

    # ------------------------------------------------------------------
    #  Alignment
    # ------------------------------------------------------------------
    @staticmethod
    def _align_prices(histories: list[PriceHistory]) -> pd.DataFrame:
        """Prices on the intersection of all trading calendars, oldest first.

        Exchanges differ in holidays, so only dates every series shares are kept.
        """
        frames = [h.to_series() for h in histories]
        combined = pd.concat(frames, axis=1, join="inner")
        combined.columns = [h.ticker for h in histories]
        return combined.sort_index()

    def _simulated(
        self,
        tickers: list[str],
        time_range: TimeRange,
        benchmark_returns: pd.Series | None,
    ) -> ReturnsBundle:
        return ReturnsBundle(
            returns=self.generator.generate(tickers, time_range),
            is_simulation=True,
            display_names={},
            benchmark_returns=benchmark_returns,
        )

    def _benchmark_returns(self, outcome: FetchOutcome) -> pd.Series | None:
        """Benchmark returns from its own calendar. Failure only omits the benchmark."""
        if not isinstance(outcome, PriceHistory):
            logger.info("Benchmark %s unavailable (%s), ignoring.", outcome.ticker, outcome.reason)
            return None
        if len(outcome.prices) < MIN_BENCHMARK_PRICES:
            logger.info("Benchmark %s has too few prices, ignoring.", outcome.ticker)
            return None
        series = outcome.to_series().sort_index()
        returns = simple_returns(series)
        if not np.isfinite(returns.to_numpy()).all():
            logger.info("Benchmark %s has non-finite returns, ignoring.", outcome.ticker)
            return None
        return returns
