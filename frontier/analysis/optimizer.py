"""End-to-end optimisation run: positions in, OptimizationResult out.

This is the calling layer of the statistics core. It validates the user's
positions, obtains aligned returns, and fans the same statistics out to the
sampler, the evaluator and the risk decomposer.
"""

from __future__ import annotations

import math
from typing import Sequence

import numpy as np

from frontier.analysis.evaluator import evaluate_portfolio, normalize_weights
from frontier.analysis.frontier import capital_market_line, efficient_curve, sample_frontier
from frontier.analysis.risk_decomposition import decompose_risk
from frontier.analysis.statistics import compute_statistics
from frontier.config import portfolio_setting
from frontier.data_sources.returns_provider import ReturnsProvider
from frontier.errors import PositionValidationError
from frontier.models import (
    AssetPosition,
    MarketStatistics,
    OptimizationResult,
    PortfolioStats,
    ReturnsBundle,
    TimeRange,
)
from frontier.utils.logger import setup_logger

logger = setup_logger("optimizer")

CML_POINTS = 25


def validate_positions(
    positions: Sequence[AssetPosition],
    min_positions: int = 2,
    require_full_allocation: bool = True,
    tolerance: float = 0.1,
) -> list[AssetPosition]:
    """Check user input and return positions with cleaned tickers.

    Tickers are stripped and upper-cased. Duplicates are detected on the
    cleaned form, so "aapl" and "AAPL " collide.

    Raises:
        PositionValidationError: on too few positions, blank tickers,
            duplicates, negative or non-finite weights, or (when
            *require_full_allocation*) weights not totalling 100%.
    """
    if len(positions) < min_positions:
        raise PositionValidationError(
            f"At least {min_positions} positions are required, got {len(positions)}"
        )

    cleaned = [AssetPosition(p.ticker.strip().upper(), float(p.raw_weight)) for p in positions]

    if any(not p.ticker for p in cleaned):
        raise PositionValidationError("Empty ticker fields must be filled in or removed")

    seen: set[str] = set()
    duplicates: list[str] = []
    for p in cleaned:
        if p.ticker in seen and p.ticker not in duplicates:
            duplicates.append(p.ticker)
        seen.add(p.ticker)
    if duplicates:
        raise PositionValidationError(
            f"Duplicate tickers found: {', '.join(duplicates)}. Each asset may appear only once."
        )

    bad = [p.ticker for p in cleaned if not math.isfinite(p.raw_weight) or p.raw_weight < 0]
    if bad:
        raise PositionValidationError(
            f"Weights must be finite and non-negative: {', '.join(bad)}"
        )

    if require_full_allocation:
        total = sum(p.raw_weight for p in cleaned)
        if abs(total - 100.0) > tolerance:
            raise PositionValidationError(
                f"Total weight is {total:.1f}%; all positions must sum to exactly 100%"
            )

    return cleaned


class PortfolioOptimizer:
    """Run the full statistics pipeline for one set of positions."""

    def __init__(
        self,
        provider: ReturnsProvider | None = None,
        risk_free_rate: float | None = None,
        trials: int | None = None,
        sampler_workers: int | None = None,
        rng: np.random.Generator | int | None = None,
        validate: bool = True,
    ) -> None:
        self.provider = provider or ReturnsProvider()
        self.risk_free_rate = (
            risk_free_rate if risk_free_rate is not None
            else portfolio_setting("risk_free_rate", 0.02)
        )
        self.trials = trials if trials is not None else portfolio_setting("trials", 15000)
        self.sampler_workers = (
            sampler_workers if sampler_workers is not None
            else portfolio_setting("sampler_workers", 1)
        )
        self.rng = rng if isinstance(rng, np.random.Generator) else np.random.default_rng(rng)
        self.validate = validate

    # ----- statistics only ------------------------------------------------

    def statistics(
        self, tickers: list[str], time_range: TimeRange | str = TimeRange.ONE_YEAR
    ) -> tuple[ReturnsBundle, MarketStatistics]:
        """Fetch returns and annualise them without sampling."""
        bundle = self.provider.obtain_returns(tickers, time_range, include_benchmark=False)
        return bundle, compute_statistics(bundle.returns)

    # ----- full run -------------------------------------------------------

    def run(
        self,
        positions: Sequence[AssetPosition],
        time_range: TimeRange | str = TimeRange.ONE_YEAR,
    ) -> OptimizationResult:
        """Optimise *positions* over *time_range*.

        Raises:
            PositionValidationError: if the positions are malformed.
            InvalidSymbolError: if any ticker is unknown to the data source.
        """
        time_range = TimeRange.parse(time_range)
        if self.validate:
            positions = validate_positions(
                positions,
                min_positions=portfolio_setting("min_positions", 2),
                require_full_allocation=portfolio_setting("require_full_allocation", True),
                tolerance=portfolio_setting("weight_tolerance", 0.1),
            )
        tickers = [p.ticker for p in positions]
        current_weights = normalize_weights([p.raw_weight for p in positions])

        logger.info("Optimisation started: tickers=%s range=%s", tickers, time_range.value)
        bundle = self.provider.obtain_returns(tickers, time_range)
        stats = compute_statistics(bundle.returns)

        frontier = sample_frontier(
            stats.mean_annual,
            stats.cov_annual,
            trials=self.trials,
            risk_free_rate=self.risk_free_rate,
            rng=self.rng,
            workers=self.sampler_workers,
        )
        current = evaluate_portfolio(
            current_weights, stats.mean_annual, stats.cov_annual, self.risk_free_rate
        )
        contributions = decompose_risk(current_weights, stats.cov_annual, current.annualized_risk)

        result = OptimizationResult(
            assets=tuple(tickers),
            correlation_matrix=stats.corr,
            frontier=frontier.cloud,
            current=current,
            min_variance=frontier.min_variance,
            max_sharpe=frontier.max_sharpe,
            risk_contributions=contributions,
            is_simulation=bundle.is_simulation,
            benchmark=self._benchmark_stats(bundle),
            display_names=dict(bundle.display_names),
            efficient_curve=efficient_curve(frontier.cloud),
            capital_market_line=tuple(capital_market_line(
                frontier.max_sharpe, self.risk_free_rate, self._cml_risks(frontier.cloud)
            )),
        )
        logger.info(
            "Optimisation finished: simulation=%s current risk %.4f, benchmark=%s",
            result.is_simulation, current.annualized_risk,
            "yes" if result.benchmark else "no",
        )
        return result

    def _benchmark_stats(self, bundle: ReturnsBundle) -> PortfolioStats | None:
        """Single-asset portfolio (weight 1.0) on the benchmark's own history."""
        series = bundle.benchmark_returns
        if series is None or len(series) < 2:
            return None
        bench = compute_statistics(series.to_frame())
        return evaluate_portfolio([1.0], bench.mean_annual, bench.cov_annual, self.risk_free_rate)

    @staticmethod
    def _cml_risks(cloud) -> np.ndarray:
        """Evenly spaced risk levels from 0 up to the riskiest sample."""
        top = max(p.annualized_risk for p in cloud)
        return np.linspace(0.0, top, CML_POINTS)
