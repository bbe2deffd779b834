"""Tests for the likelihood-ratio, deviance and Wald tests."""

import numpy as np
import pytest
from scipy import stats

from mlelr.significance import (
    chi2_sf,
    deviance_test,
    likelihood_ratio_df,
    likelihood_ratio_test,
    model_fit_tests,
    wald_tests,
)


class TestChiSquare:
    def test_matches_scipy(self):
        assert chi2_sf(3.84, 1) == pytest.approx(stats.chi2.sf(3.84, 1))

    @pytest.mark.parametrize("df", [0, -2])
    def test_non_positive_df_is_nan(self, df):
        assert np.isnan(chi2_sf(1.0, df))


class TestLikelihoodRatio:
    def test_default_df_formula(self):
        # K = 5, J = 3: 5·2 − 3 − 1
        assert likelihood_ratio_df(5, 3) == 6

    def test_nested_df_formula(self):
        # K = 5, J = 3: 5·2 − 2
        assert likelihood_ratio_df(5, 3, "nested") == 8

    def test_statistic(self):
        test = likelihood_ratio_test(-120.0, -110.0, 5, 3)
        assert test.statistic == pytest.approx(20.0)
        assert test.df == 6
        assert test.p_value == pytest.approx(stats.chi2.sf(20.0, 6))

    def test_intercept_only_df_has_no_p_value(self):
        test = likelihood_ratio_test(-10.0, -10.0, 1, 2)
        assert test.df == -2
        assert np.isnan(test.p_value)


class TestDeviance:
    def test_df(self):
        test = deviance_test(4.5, N=6, K=4, J=3)
        assert test.df == 4
        assert test.statistic == 4.5
        assert test.p_value == pytest.approx(stats.chi2.sf(4.5, 4))

    def test_bundle(self):
        fit = model_fit_tests(-50.0, -45.0, 3.0, 6, 4, 3, lr_df="nested")
        assert fit.intercept_only.df == 6
        assert fit.saturated.df == 4
        assert fit.final_loglike == -45.0
        assert fit.to_dict()["saturated"]["statistic"] == 3.0


class TestWald:
    def test_statistics(self):
        beta = np.array([1.0, -2.0])
        cov = np.array([[0.25, 0.1], [0.1, 1.0]])
        stderr, wald, p, available = wald_tests(beta, cov)
        np.testing.assert_allclose(stderr, [0.5, 1.0])
        np.testing.assert_allclose(wald, [4.0, 4.0])
        np.testing.assert_allclose(p, stats.chi2.sf(4.0, 1))
        assert available.tolist() == [True, True]

    def test_non_positive_variance_unavailable(self):
        beta = np.array([1.0, 2.0, 3.0])
        cov = np.diag([4.0, 0.0, -1.0])
        stderr, wald, p, available = wald_tests(beta, cov)
        assert available.tolist() == [True, False, False]
        assert stderr[0] == 2.0
        assert np.all(np.isnan(stderr[1:]))
        assert np.all(np.isnan(wald[1:]))
        assert np.all(np.isnan(p[1:]))
