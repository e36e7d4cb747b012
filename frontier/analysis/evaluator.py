"""Evaluate a single weight vector against annualised statistics."""

from __future__ import annotations

from typing import Sequence

import numpy as np

from frontier.models import VAR95_Z, PortfolioStats

# Risk at or below this is treated as zero when forming ratios
ZERO_RISK_EPS = 1e-12

# Variance below this fraction of sum_i w_i^2 Cov_ii is estimation round-off
ZERO_VARIANCE_RTOL = 1e-12


def normalize_weights(raw_weights: Sequence[float]) -> np.ndarray:
    """Scale raw percentages to fractions summing to 1.

    A non-positive total yields all zeros rather than dividing by it.
    """
    raw = np.asarray(raw_weights, dtype=float)
    total = raw.sum()
    if total > 0:
        return raw / total
    return np.zeros_like(raw)


def sharpe_ratio(
    annual_return: float | np.ndarray,
    annual_risk: float | np.ndarray,
    risk_free_rate: float,
) -> float | np.ndarray:
    """(return - rf) / risk, defined as 0 where risk is zero."""
    ret = np.asarray(annual_return, dtype=float)
    risk = np.asarray(annual_risk, dtype=float)
    with np.errstate(divide="ignore", invalid="ignore"):
        sharpe = np.where(risk > ZERO_RISK_EPS, (ret - risk_free_rate) / risk, 0.0)
    if sharpe.ndim == 0:
        return float(sharpe)
    return sharpe


def portfolio_risks(weights: np.ndarray, cov_annual: np.ndarray) -> np.ndarray:
    """Annualised standard deviation sqrt(w' Cov w) for each row of *weights*.

    A variance that is negligible next to the undiversified scale
    sum_i w_i^2 Cov_ii is set to exactly 0, so fully hedged portfolios
    estimated from data get zero risk rather than round-off noise.
    """
    w = np.atleast_2d(np.asarray(weights, dtype=float))
    cov = np.atleast_2d(np.asarray(cov_annual, dtype=float))
    variances = np.einsum("ij,jk,ik->i", w, cov, w)
    floors = ZERO_VARIANCE_RTOL * ((w * w) @ np.clip(np.diag(cov), 0.0, None))
    return np.where(variances > floors, np.sqrt(np.clip(variances, 0.0, None)), 0.0)


def portfolio_risk(weights: np.ndarray, cov_annual: np.ndarray) -> float:
    """Risk of a single weight vector, see ``portfolio_risks``."""
    return float(portfolio_risks(weights, cov_annual)[0])


def evaluate_portfolio(
    weights: Sequence[float],
    mean_annual: np.ndarray,
    cov_annual: np.ndarray,
    risk_free_rate: float = 0.02,
) -> PortfolioStats:
    """Return, risk, Sharpe and parametric 95% VaR of one allocation.

    Args:
        weights: Fractions in asset order (already normalised).
        mean_annual: Annualised mean returns.
        cov_annual: Annualised covariance matrix.
        risk_free_rate: Annual risk-free rate for the Sharpe ratio.
    """
    w = np.asarray(weights, dtype=float)
    mu = np.asarray(mean_annual, dtype=float)
    cov = np.atleast_2d(np.asarray(cov_annual, dtype=float))
    if w.shape != mu.shape or cov.shape != (len(mu), len(mu)):
        raise ValueError(
            f"Shape mismatch: weights {w.shape}, mean {mu.shape}, covariance {cov.shape}"
        )

    port_ret = float(w @ mu)
    port_risk = portfolio_risk(w, cov)
    return PortfolioStats(
        annualized_return=port_ret,
        annualized_risk=port_risk,
        sharpe_ratio=sharpe_ratio(port_ret, port_risk, risk_free_rate),
        weights=tuple(w.tolist()),
        var95=VAR95_Z * port_risk,
    )
