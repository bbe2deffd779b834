"""Newton-Raphson / Fisher-scoring estimation of the multinomial logit.

Model
~~~~~
Population ``i`` has covariates ``xᵢ`` (a row of the design matrix),
total weight ``nᵢ`` and response counts ``yᵢⱼ`` for ``j = 0 … J−1``.
With one coefficient vector ``βⱼ`` per non-reference level::

    πᵢⱼ     = exp(xᵢ·βⱼ) / (1 + Σₘ exp(xᵢ·βₘ))     j < J−1
    πᵢ,J−1 = 1          / (1 + Σₘ exp(xᵢ·βₘ))

Each iteration evaluates, at the current ``β``:

* the multinomial log-likelihood
  ``ℓ = Σᵢ [log nᵢ! − Σⱼ log yᵢⱼ! + Σⱼ yᵢⱼ log πᵢⱼ]``;
* the deviance ``D = 2 Σ yᵢⱼ log(yᵢⱼ / (nᵢ πᵢⱼ))`` over cells with
  ``yᵢⱼ > 0``;
* the gradient ``g[j,k] = Σᵢ (yᵢⱼ − nᵢ πᵢⱼ) xᵢₖ``;
* the expected information
  ``H[(j,k),(j',k')] = Σᵢ wᵢⱼⱼ' xᵢₖ xᵢₖ'`` with
  ``wᵢⱼⱼ = nᵢ πᵢⱼ (1 − πᵢⱼ)`` and ``wᵢⱼⱼ' = −nᵢ πᵢⱼ πᵢⱼ'``.

The update solves for the new parameter vector directly::

    β_new = H⁻¹ (H β + g)

which equals ``β + H⁻¹ g`` but yields ``H⁻¹`` as a by-product for the
standard errors.

Iteration starts from ``β = 0`` and stops when every parameter
satisfies ``|β_new − β_old| ≤ ε |β_old|`` or after ``max_iter``
iterations.  Failure of the symmetric solve aborts the fit with a
:class:`~mlelr.errors.NumericFailure`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

import numpy as np
from scipy.special import gammaln, xlogy

from ._config import DEFAULT_EPSILON, DEFAULT_MAX_ITER
from .design import DesignMatrix
from .errors import NumericFailure
from .linalg import spd_solve

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NewtonStep:
    """Quantities from one Newton-Raphson iteration."""

    beta: np.ndarray
    """Parameters after the update."""

    covariance: np.ndarray
    """``H⁻¹`` evaluated at the parameters before the update."""

    loglike: float
    """Log-likelihood at the parameters before the update."""

    deviance: float
    """Deviance at the parameters before the update."""


@dataclass(frozen=True)
class NewtonResult:
    """Outcome of :func:`fit_newton`."""

    beta: np.ndarray
    covariance: np.ndarray
    converged: bool
    n_iter: int
    loglike_history: list[float] = field(default_factory=list)
    deviance_history: list[float] = field(default_factory=list)

    @property
    def initial_loglike(self) -> float:
        return self.loglike_history[0]

    @property
    def loglike(self) -> float:
        return self.loglike_history[-1]

    @property
    def deviance(self) -> float:
        return self.deviance_history[-1]


def predicted_probabilities(X: np.ndarray, beta: np.ndarray, J: int) -> np.ndarray:
    """Fitted response probabilities ``(N, J)``, reference level last."""
    K = X.shape[1]
    eta = X @ beta.reshape(J - 1, K).T  # (N, J−1)
    numer = np.exp(eta)
    denom = 1.0 + numer.sum(axis=1)
    return np.column_stack([numer / denom[:, None], 1.0 / denom])


def log_likelihood(counts: np.ndarray, n: np.ndarray, pi: np.ndarray) -> float:
    """Multinomial log-likelihood including the multinomial coefficients."""
    return float(
        gammaln(n + 1.0).sum() - gammaln(counts + 1.0).sum() + xlogy(counts, pi).sum()
    )


def deviance(counts: np.ndarray, n: np.ndarray, pi: np.ndarray) -> float:
    """Deviance against the saturated model; empty cells contribute 0."""
    fitted = n[:, None] * pi
    return float(2.0 * (xlogy(counts, counts) - xlogy(counts, fitted)).sum())


def information_matrix(X: np.ndarray, n: np.ndarray, pi: np.ndarray) -> np.ndarray:
    """Expected information ``(K·(J−1), K·(J−1))`` in response-major order."""
    N, K = X.shape
    p = pi[:, :-1]  # (N, J−1)
    Jm1 = p.shape[1]
    # w[i, j, j'] = n_i (δ_jj' π_ij − π_ij π_ij')
    w = n[:, None, None] * (
        np.einsum("ij,jk->ijk", p, np.eye(Jm1)) - p[:, :, None] * p[:, None, :]
    )
    H = np.einsum("iab,ik,il->akbl", w, X, X)
    return H.reshape(Jm1 * K, Jm1 * K)


def newton_raphson_step(design: DesignMatrix, beta0: np.ndarray) -> NewtonStep:
    """Run one Fisher-scoring update from *beta0*.

    Raises:
        NumericFailure: If the information matrix cannot be inverted.
    """
    X, n, J = design.X, design.n, design.J
    counts = design.counts()

    pi = predicted_probabilities(X, beta0, J)
    loglike = log_likelihood(counts, n, pi)
    dev = deviance(counts, n, pi)

    resid = design.Y - n[:, None] * pi[:, :-1]  # (N, J−1)
    g = (resid.T @ X).ravel()
    H = information_matrix(X, n, pi)

    beta1, covariance = spd_solve(H, H @ beta0 + g)
    return NewtonStep(beta=beta1, covariance=covariance, loglike=loglike, deviance=dev)


def has_converged(beta_new: np.ndarray, beta_old: np.ndarray, epsilon: float) -> bool:
    """Relative change test applied to every parameter."""
    return bool(np.all(np.abs(beta_new - beta_old) <= epsilon * np.abs(beta_old)))


def fit_newton(
    design: DesignMatrix,
    *,
    max_iter: int = DEFAULT_MAX_ITER,
    epsilon: float = DEFAULT_EPSILON,
) -> NewtonResult:
    """Iterate Newton-Raphson from ``β = 0`` until convergence or the cap.

    Args:
        design: Design and response matrices.
        max_iter: Maximum number of iterations.
        epsilon: Relative tolerance of the convergence test.

    Returns:
        A :class:`NewtonResult`.  When the cap is reached without
        convergence ``converged`` is ``False`` and ``beta`` holds the
        last iterate.

    Raises:
        NumericFailure: If the symmetric solve fails at any iteration;
            ``exc.iteration`` records which one.
    """
    beta = np.zeros(design.n_params)
    covariance = np.full((design.n_params, design.n_params), np.nan)
    loglikes: list[float] = []
    deviances: list[float] = []

    iteration = 0
    converged = False
    while iteration < max_iter and not converged:
        beta_old = beta
        try:
            step = newton_raphson_step(design, beta_old)
        except NumericFailure as exc:
            exc.iteration = iteration
            logger.debug("Iteration %d failed: %s", iteration, exc)
            raise

        beta = step.beta
        covariance = step.covariance
        loglikes.append(step.loglike)
        deviances.append(step.deviance)
        converged = has_converged(beta, beta_old, epsilon)

        logger.debug(
            "Iter: %d, LL: %f, Deviance: %f, Convergence: %d",
            iteration,
            step.loglike,
            step.deviance,
            converged,
        )
        iteration += 1

    return NewtonResult(
        beta=beta,
        covariance=covariance,
        converged=converged,
        n_iter=iteration,
        loglike_history=loglikes,
        deviance_history=deviances,
    )


__all__ = [
    "NewtonResult",
    "NewtonStep",
    "deviance",
    "fit_newton",
    "has_converged",
    "information_matrix",
    "log_likelihood",
    "newton_raphson_step",
    "predicted_probabilities",
]
