"""Euler decomposition of portfolio volatility across holdings.

sigma(w) is homogeneous of degree one, so sum_i w_i * d(sigma)/d(w_i) = sigma.
Each holding's term divided by sigma is its fraction of total risk, and the
fractions sum to 1.
"""

from __future__ import annotations

from typing import Sequence

import numpy as np

from frontier.analysis.evaluator import ZERO_RISK_EPS
from frontier.utils.logger import setup_logger

logger = setup_logger("risk_decomposition")


def marginal_contributions(weights: Sequence[float], cov_annual: np.ndarray) -> np.ndarray:
    """Cov @ w: the covariance of each asset with the portfolio."""
    w = np.asarray(weights, dtype=float)
    return np.atleast_2d(np.asarray(cov_annual, dtype=float)) @ w


def decompose_risk(
    weights: Sequence[float],
    cov_annual: np.ndarray,
    total_risk: float,
) -> np.ndarray:
    """Fraction of *total_risk* attributable to each holding.

    All fractions are 0 when the portfolio has zero risk.
    """
    w = np.asarray(weights, dtype=float)
    if total_risk <= ZERO_RISK_EPS:
        logger.debug("Zero portfolio risk, contributions set to 0")
        return np.zeros_like(w)
    mrc = marginal_contributions(w, cov_annual)
    contribution = w * mrc / total_risk
    return contribution / total_risk
