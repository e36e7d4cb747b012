"""Monte-Carlo sampling of the long-only efficient frontier.

Random fully-invested, non-negative weight vectors are scored against the
annualised statistics. The lowest-risk and highest-Sharpe samples are
approximations of the analytic minimum-variance and tangency portfolios;
their error shrinks as the trial count grows.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from functools import reduce
from typing import Iterable, Sequence

import numpy as np

from frontier.analysis.evaluator import portfolio_risks, sharpe_ratio
from frontier.models import VAR95_Z, FrontierResult, PortfolioStats
from frontier.utils.logger import setup_logger

logger = setup_logger("frontier_sampler")

DEFAULT_TRIALS = 15000
_CHUNK_SIZE = 5000


@dataclass(frozen=True)
class _Extremes:
    """Running extremes of a contiguous block of trials (global indices)."""

    min_risk_idx: int
    min_risk: float
    max_sharpe_idx: int
    max_sharpe: float


def _merge_extremes(earlier: _Extremes, later: _Extremes) -> _Extremes:
    """Associative merge; on ties the earlier block wins (first found)."""
    if later.min_risk < earlier.min_risk:
        min_idx, min_risk = later.min_risk_idx, later.min_risk
    else:
        min_idx, min_risk = earlier.min_risk_idx, earlier.min_risk
    if later.max_sharpe > earlier.max_sharpe:
        max_idx, max_sharpe = later.max_sharpe_idx, later.max_sharpe
    else:
        max_idx, max_sharpe = earlier.max_sharpe_idx, earlier.max_sharpe
    return _Extremes(min_idx, min_risk, max_idx, max_sharpe)


def random_weights(rng: np.random.Generator, trials: int, n_assets: int) -> np.ndarray:
    """Uniform draws in (0, 1] per asset, each row normalised to sum to 1."""
    raw = 1.0 - rng.random((trials, n_assets))
    return raw / raw.sum(axis=1, keepdims=True)


def _score_block(
    weights: np.ndarray,
    mean_annual: np.ndarray,
    cov_annual: np.ndarray,
    risk_free_rate: float,
    offset: int,
) -> tuple[np.ndarray, np.ndarray, np.ndarray, _Extremes]:
    returns = weights @ mean_annual
    risks = portfolio_risks(weights, cov_annual)
    sharpes = sharpe_ratio(returns, risks, risk_free_rate)
    # argmin/argmax return the first occurrence, matching the tie rule
    i_min = int(np.argmin(risks))
    i_max = int(np.argmax(sharpes))
    extremes = _Extremes(offset + i_min, float(risks[i_min]), offset + i_max, float(sharpes[i_max]))
    return returns, risks, sharpes, extremes


def sample_frontier(
    mean_annual: np.ndarray,
    cov_annual: np.ndarray,
    trials: int = DEFAULT_TRIALS,
    risk_free_rate: float = 0.02,
    rng: np.random.Generator | int | None = None,
    workers: int = 1,
) -> FrontierResult:
    """Sample *trials* random portfolios and track the two extremes.

    All weights are drawn up front from *rng*, so the result for a given
    seed does not depend on *workers*. Scoring runs in blocks that are
    folded together with ``_merge_extremes`` in block order.

    Args:
        mean_annual: Annualised mean returns.
        cov_annual: Annualised covariance matrix.
        trials: Number of random portfolios.
        risk_free_rate: Annual risk-free rate for Sharpe ratios.
        rng: Generator or seed.
        workers: Threads used to score blocks.

    Returns:
        FrontierResult with the full cloud (trial order), the minimum-risk
        sample and the maximum-Sharpe sample.
    """
    if trials < 1:
        raise ValueError("trials must be at least 1")
    mu = np.asarray(mean_annual, dtype=float)
    cov = np.atleast_2d(np.asarray(cov_annual, dtype=float))
    n = len(mu)
    if n == 0 or cov.shape != (n, n):
        raise ValueError(f"Shape mismatch: mean {mu.shape}, covariance {cov.shape}")

    if not isinstance(rng, np.random.Generator):
        rng = np.random.default_rng(rng)

    weights = random_weights(rng, trials, n)
    offsets = list(range(0, trials, _CHUNK_SIZE))
    blocks = [weights[o:o + _CHUNK_SIZE] for o in offsets]

    def _score(args):
        block, offset = args
        return _score_block(block, mu, cov, risk_free_rate, offset)

    if workers > 1 and len(blocks) > 1:
        with ThreadPoolExecutor(max_workers=workers) as executor:
            scored = list(executor.map(_score, zip(blocks, offsets)))
    else:
        scored = [_score(item) for item in zip(blocks, offsets)]

    returns = np.concatenate([s[0] for s in scored])
    risks = np.concatenate([s[1] for s in scored])
    sharpes = np.concatenate([s[2] for s in scored])
    extremes = reduce(_merge_extremes, (s[3] for s in scored))

    var95 = VAR95_Z * risks
    cloud = tuple(
        PortfolioStats(
            annualized_return=float(returns[i]),
            annualized_risk=float(risks[i]),
            sharpe_ratio=float(sharpes[i]),
            weights=tuple(weights[i].tolist()),
            var95=float(var95[i]),
        )
        for i in range(trials)
    )

    logger.info(
        "Sampled %d portfolios over %d assets: min risk %.4f, max Sharpe %.4f",
        trials, n, extremes.min_risk, extremes.max_sharpe,
    )
    return FrontierResult(
        cloud=cloud,
        min_variance=cloud[extremes.min_risk_idx],
        max_sharpe=cloud[extremes.max_sharpe_idx],
    )


def efficient_curve(cloud: Iterable[PortfolioStats]) -> tuple[PortfolioStats, ...]:
    """Upper boundary of the cloud: sort by risk, keep each new return high."""
    curve: list[PortfolioStats] = []
    best_return = -np.inf
    for point in sorted(cloud, key=lambda p: p.annualized_risk):
        if point.annualized_return > best_return:
            curve.append(point)
            best_return = point.annualized_return
    return tuple(curve)


def capital_market_line(
    max_sharpe: PortfolioStats,
    risk_free_rate: float,
    risks: Sequence[float],
) -> list[tuple[float, float]]:
    """(risk, return) points on the line from the risk-free rate through the tangency portfolio."""
    slope = max_sharpe.sharpe_ratio
    return [(float(r), float(risk_free_rate + slope * r)) for r in risks]
