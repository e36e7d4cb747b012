"""Annualised mean, covariance and correlation of a return matrix."""

from __future__ import annotations

import numpy as np
import pandas as pd

from frontier.models import TRADING_DAYS, MarketStatistics
from frontier.utils.logger import setup_logger

logger = setup_logger("statistics")


def annualize_mean(daily_mean: float | np.ndarray) -> float | np.ndarray:
    return daily_mean * TRADING_DAYS


def deannualize_mean(annual_mean: float | np.ndarray) -> float | np.ndarray:
    return annual_mean / TRADING_DAYS


def _as_matrix(returns: pd.DataFrame | np.ndarray) -> np.ndarray:
    """Periods in rows, assets in columns, as float64."""
    if isinstance(returns, pd.DataFrame):
        matrix = returns.to_numpy(dtype=float)
    else:
        matrix = np.asarray(returns, dtype=float)
        if matrix.ndim == 1:
            matrix = matrix.reshape(-1, 1)
    if matrix.ndim != 2:
        raise ValueError(f"returns must be 2-dimensional, got shape {matrix.shape}")
    return matrix


def correlation_from_covariance(cov: np.ndarray) -> np.ndarray:
    """Correlation matrix with the zero-volatility guard.

    Entries involving an asset with zero volatility are 0. The diagonal of
    every other asset is exactly 1 and all entries are clipped to [-1, 1]
    to absorb floating-point overshoot.
    """
    vols = np.sqrt(np.clip(np.diag(cov), 0.0, None))
    std_outer = np.outer(vols, vols)
    with np.errstate(divide="ignore", invalid="ignore"):
        corr = np.where(std_outer > 0, cov / std_outer, 0.0)
    corr = np.clip(corr, -1.0, 1.0)
    nonzero = vols > 0
    corr[np.diag_indices_from(corr)] = np.where(nonzero, 1.0, 0.0)
    if not nonzero.all():
        logger.debug("Zero-volatility assets at positions %s", np.flatnonzero(~nonzero).tolist())
    return corr


def compute_statistics(returns: pd.DataFrame | np.ndarray) -> MarketStatistics:
    """Annualise a per-period return matrix.

    Args:
        returns: One column per asset, one row per period.

    Returns:
        MarketStatistics with mean x 252, sample covariance (n-1) x 252 and
        the guarded correlation matrix. The annualisation factor does not
        depend on the lookback horizon.
    """
    matrix = _as_matrix(returns)
    n_obs = matrix.shape[0]
    if n_obs < 2:
        raise ValueError(f"At least two return observations are required, got {n_obs}")

    daily_mean = matrix.mean(axis=0)
    daily_cov = np.atleast_2d(np.cov(matrix, rowvar=False, ddof=1))

    cov_annual = daily_cov * TRADING_DAYS
    # Exact symmetry so downstream quadratic forms see identical (i, j)/(j, i)
    cov_annual = (cov_annual + cov_annual.T) / 2.0

    return MarketStatistics(
        mean_annual=annualize_mean(daily_mean),
        cov_annual=cov_annual,
        corr=correlation_from_covariance(cov_annual),
    )
