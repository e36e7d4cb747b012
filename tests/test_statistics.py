"""Tests for frontier.analysis.statistics -- annualised means, covariance, correlation."""

import numpy as np
import pandas as pd
import pytest

from frontier.analysis.statistics import (
    annualize_mean,
    compute_statistics,
    correlation_from_covariance,
    deannualize_mean,
)
from frontier.models import TRADING_DAYS


# ---------------------------------------------------------------------------
# Known two-asset scenario
# ---------------------------------------------------------------------------

class TestKnownScenario:

    @pytest.fixture
    def stats(self):
        returns = pd.DataFrame({
            "A": [0.01, -0.02, 0.015, 0.005],
            "B": [0.02, -0.01, 0.01, 0.0],
        })
        return compute_statistics(returns)

    def test_daily_means(self, stats):
        daily = stats.mean_annual / TRADING_DAYS
        assert daily[0] == pytest.approx(0.0025, abs=1e-12)
        assert daily[1] == pytest.approx(0.005, abs=1e-12)

    def test_daily_covariance_uses_n_minus_one(self, stats):
        daily_cov = stats.cov_annual[0, 1] / TRADING_DAYS
        assert daily_cov == pytest.approx(0.0005 / 3, rel=1e-9)
        assert daily_cov == pytest.approx(0.0001667, abs=1e-7)

    def test_annualised_covariance(self, stats):
        assert stats.cov_annual[0, 1] == pytest.approx(0.042, abs=1e-6)
        assert stats.cov_annual[1, 0] == stats.cov_annual[0, 1]

    def test_ndarray_input_matches_dataframe(self, stats):
        arr = np.array([[0.01, 0.02], [-0.02, -0.01], [0.015, 0.01], [0.005, 0.0]])
        from_array = compute_statistics(arr)
        np.testing.assert_allclose(from_array.mean_annual, stats.mean_annual)
        np.testing.assert_allclose(from_array.cov_annual, stats.cov_annual)


# ---------------------------------------------------------------------------
# Annualisation
# ---------------------------------------------------------------------------

class TestAnnualisation:

    @pytest.mark.parametrize("daily", [0.0, 0.0004, -0.0013, 0.12345])
    def test_round_trip(self, daily):
        assert deannualize_mean(annualize_mean(daily)) == pytest.approx(daily, abs=1e-15)

    def test_factor_is_fixed(self):
        assert annualize_mean(0.001) == pytest.approx(0.252)

    def test_factor_independent_of_history_length(self):
        rng = np.random.default_rng(7)
        short = pd.DataFrame({"X": rng.normal(0.001, 0.01, 251)})
        long = pd.concat([short] * 5, ignore_index=True)
        assert compute_statistics(short).mean_annual[0] == pytest.approx(
            compute_statistics(long).mean_annual[0]
        )


# ---------------------------------------------------------------------------
# Correlation properties
# ---------------------------------------------------------------------------

class TestCorrelation:

    def test_diagonal_is_exactly_one(self, three_asset_stats):
        assert np.all(np.diag(three_asset_stats.corr) == 1.0)

    def test_symmetric(self, three_asset_stats):
        corr = three_asset_stats.corr
        assert np.array_equal(corr, corr.T)

    def test_entries_within_bounds(self, three_asset_stats):
        corr = three_asset_stats.corr
        assert corr.min() >= -1.0
        assert corr.max() <= 1.0

    def test_matches_pandas_corr(self, sample_returns_df, three_asset_stats):
        expected = sample_returns_df.corr().to_numpy()
        np.testing.assert_allclose(three_asset_stats.corr, expected, atol=1e-10)

    def test_negative_correlation_sign(self, three_asset_stats):
        # C loads negatively on the market factor
        assert three_asset_stats.corr[0, 2] < 0

    def test_zero_volatility_asset_gets_zero_entries(self):
        rng = np.random.default_rng(1)
        returns = pd.DataFrame({
            "FLAT": np.zeros(100),
            "LIVE": rng.normal(0, 0.01, 100),
        })
        stats = compute_statistics(returns)
        assert stats.cov_annual[0, 0] == pytest.approx(0.0, abs=1e-18)
        assert stats.corr[0, 0] == 0.0
        assert stats.corr[0, 1] == 0.0
        assert stats.corr[1, 0] == 0.0
        assert stats.corr[1, 1] == 1.0

    def test_perfect_anticorrelation(self):
        rng = np.random.default_rng(3)
        base = rng.normal(0.0005, 0.01, 300)
        stats = compute_statistics(pd.DataFrame({"A": base, "B": -base}))
        assert stats.corr[0, 1] == pytest.approx(-1.0, abs=1e-12)

    def test_overshoot_is_clipped(self):
        cov = np.array([[1.0, 1.0 + 1e-12], [1.0 + 1e-12, 1.0]])
        corr = correlation_from_covariance(cov)
        assert corr[0, 1] == 1.0


# ---------------------------------------------------------------------------
# Input validation
# ---------------------------------------------------------------------------

class TestInputValidation:

    def test_single_observation_raises(self):
        with pytest.raises(ValueError, match="At least two"):
            compute_statistics(pd.DataFrame({"A": [0.01], "B": [0.02]}))

    def test_single_asset_shapes(self):
        stats = compute_statistics(pd.DataFrame({"ONLY": [0.01, -0.01, 0.02]}))
        assert stats.mean_annual.shape == (1,)
        assert stats.cov_annual.shape == (1, 1)
        assert stats.corr[0, 0] == 1.0

    def test_volatilities_property(self, three_asset_stats):
        expected = np.sqrt(np.diag(three_asset_stats.cov_annual))
        np.testing.assert_allclose(three_asset_stats.volatilities, expected)
        assert three_asset_stats.n_assets == 3
