"""Likelihood-ratio, deviance and Wald tests for a converged fit.

* **Fitted vs. intercept-only** — ``χ² = 2 (ℓ_final − ℓ₀)`` where ``ℓ₀``
  is the log-likelihood at iteration 0 (``β = 0``).  The degrees of
  freedom default to ``K·(J−1) − J − 1``; pass ``lr_df="nested"`` for
  the nested-model count ``K·(J−1) − (J−1)``.
* **Fitted vs. saturated** — ``χ² = D`` (the deviance) on
  ``N·(J−1) − K·(J−1)`` degrees of freedom.
* **Wald** — per parameter, ``(β / se)²`` against χ²(1), with
  ``se = sqrt(diag(H⁻¹))``.  Parameters whose variance is not positive
  get NaN statistics and ``available = False``.

All p-values are upper-tail probabilities from :mod:`scipy.stats`.  A
test with non-positive degrees of freedom has a NaN p-value.
"""

from __future__ import annotations

import numpy as np
from scipy import stats

from ._results import ChiSquareTest, ModelFitTests


def chi2_sf(statistic: float, df: float) -> float:
    """Upper-tail chi-square probability; NaN when ``df ≤ 0``."""
    if not df > 0:
        return float("nan")
    return float(stats.chi2.sf(statistic, df))


def likelihood_ratio_df(K: int, J: int, formula: str = "classic") -> int:
    if formula == "nested":
        return K * (J - 1) - (J - 1)
    return K * (J - 1) - J - 1


def likelihood_ratio_test(
    initial_loglike: float,
    final_loglike: float,
    K: int,
    J: int,
    *,
    lr_df: str = "classic",
) -> ChiSquareTest:
    """Test the fitted model against the intercept-only model."""
    statistic = 2.0 * (final_loglike - initial_loglike)
    df = likelihood_ratio_df(K, J, lr_df)
    return ChiSquareTest(statistic, float(df), chi2_sf(statistic, df))


def deviance_test(deviance: float, N: int, K: int, J: int) -> ChiSquareTest:
    """Test the fitted model against the saturated model."""
    df = N * (J - 1) - K * (J - 1)
    return ChiSquareTest(float(deviance), float(df), chi2_sf(deviance, df))


def model_fit_tests(
    initial_loglike: float,
    final_loglike: float,
    deviance: float,
    N: int,
    K: int,
    J: int,
    *,
    lr_df: str = "classic",
) -> ModelFitTests:
    return ModelFitTests(
        intercept_only=likelihood_ratio_test(
            initial_loglike, final_loglike, K, J, lr_df=lr_df
        ),
        saturated=deviance_test(deviance, N, K, J),
        initial_loglike=float(initial_loglike),
        final_loglike=float(final_loglike),
        deviance=float(deviance),
    )


def wald_tests(
    beta: np.ndarray,
    covariance: np.ndarray,
) -> tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
    """Per-parameter Wald chi-square tests.

    Returns:
        ``(stderr, wald, p_values, available)``, each shaped like
        *beta*.  Entries where the variance is not positive are NaN and
        ``available`` is ``False`` there.
    """
    beta = np.asarray(beta, dtype=float)
    variance = np.diag(np.asarray(covariance, dtype=float))
    available = variance > 0

    stderr = np.full(beta.shape, np.nan)
    wald = np.full(beta.shape, np.nan)
    p_values = np.full(beta.shape, np.nan)

    stderr[available] = np.sqrt(variance[available])
    wald[available] = (beta[available] / stderr[available]) ** 2
    p_values[available] = stats.chi2.sf(wald[available], 1)
    return stderr, wald, p_values, available


__all__ = [
    "chi2_sf",
    "deviance_test",
    "likelihood_ratio_df",
    "likelihood_ratio_test",
    "model_fit_tests",
    "wald_tests",
]
