"""Maximum-likelihood estimation of multinomial logistic regression.

:func:`logistic_regression` runs one complete fit::

    observations ──tabulate──▶ population table + level tables
                 ──build_design──▶ X, Y, n
                 ──fit_newton──▶ β, H⁻¹, log-likelihood, deviance
                 ──significance──▶ χ² tests, Wald tests

Working on aggregated populations rather than raw observations keeps
the solver cost independent of the number of observations: every
iteration touches ``N`` populations, and data that arrive already
aggregated (one row per cell with a count as weight) give exactly the
same estimates as the expanded data.

Outcomes
~~~~~~~~
* **Converged** — estimates, standard errors, Wald tests and the two
  whole-model chi-square tests.
* **Not converged** (iteration cap reached) — ``converged=False``, the
  last iterate in ``beta``, NaN standard errors, ``model_fit=None`` and
  a ``UserWarning``.  This is not an error.
* **Numeric failure** — the information matrix could not be inverted;
  :class:`~mlelr.errors.NumericFailure` propagates and no estimates are
  returned.
* **Bad input** — :class:`~mlelr.errors.InputError` is raised before
  the solver runs.

Reference:
    Czepiel, S. A. (2002). Maximum likelihood estimation of logistic
    regression models: theory and implementation.
"""

from __future__ import annotations

import logging
import warnings

import numpy as np

from ._compat import DataFrameLike, _ensure_pandas_df, is_dataframe_like
from ._config import FitOptions
from ._context import FitContext
from ._results import LogisticRegressionResult
from .dataset import Dataset
from .design import build_design
from .errors import InputError
from .model import ModelSpec, parse_model
from .newton import fit_newton
from .significance import model_fit_tests, wald_tests
from .tabulate import tabulate

logger = logging.getLogger(__name__)


def _resolve_dataset(
    data: Dataset | DataFrameLike,
    weight: str | None,
    handle: str,
) -> tuple[Dataset, int | None]:
    if isinstance(data, Dataset):
        if weight is None:
            return data, data.weight
        return data, data.require_varname(weight)
    if is_dataframe_like(data):
        dataset = Dataset.from_frame(_ensure_pandas_df(data), handle, weight=weight)
        return dataset, dataset.weight
    raise TypeError(
        "'data' must be a Dataset or a pandas/Polars DataFrame, "
        f"got {type(data).__name__}."
    )


def _resolve_model(dataset: Dataset, model: ModelSpec | str) -> ModelSpec:
    if isinstance(model, str):
        return parse_model(dataset, model)
    if model.dataset is not dataset:
        raise InputError(
            "The model specification refers to a different dataset "
            f"('{model.dataset.handle}') than the one being fitted "
            f"('{dataset.handle}')."
        )
    return model


def logistic_regression(
    data: Dataset | DataFrameLike,
    model: ModelSpec | str,
    *,
    weight: str | None = None,
    options: FitOptions | None = None,
    handle: str = "data",
) -> LogisticRegressionResult:
    """Fit a multinomial logistic regression by maximum likelihood.

    Args:
        data: A :class:`~mlelr.dataset.Dataset`, or a pandas / Polars
            DataFrame (converted with
            :meth:`~mlelr.dataset.Dataset.from_frame`).
        model: A :class:`~mlelr.model.ModelSpec` built on *data*, or a
            formula such as ``"y = a b direct.c a*b"``.
        weight: Name of a frequency-weight variable.  When *data* is a
            :class:`Dataset` it overrides the dataset's own weight
            variable for this fit only; the dataset is not modified.
        options: Coding, iteration cap and tolerance.  Defaults to
            ``FitOptions()`` (which reads the ``MLELR_*`` environment
            variables).
        handle: Label for a dataset built from a DataFrame.

    Returns:
        A frozen :class:`~mlelr._results.LogisticRegressionResult` with
        the :class:`~mlelr._context.FitContext` attached as
        ``result.context``.

    Raises:
        InputError: Unknown variables, malformed formula, or a response
            with fewer than two levels.
        NumericFailure: The information matrix could not be inverted.
    """
    if options is None:
        options = FitOptions()

    dataset, weight_idx = _resolve_dataset(data, weight, handle)
    spec = _resolve_model(dataset, model)
    ctx = FitContext(
        dataset=dataset, model=spec, options=options, weight=weight_idx
    )

    logger.debug("Fitting '%s' on dataset '%s'", spec.dependent, dataset.handle)

    # ---- Aggregate and build -------------------------------------
    ctx.xtab, ctx.freqs = tabulate(dataset, spec, weight=weight_idx)
    design = build_design(ctx.xtab, ctx.freqs, spec, dummy=options.dummy)
    ctx.design = design

    # ---- Iterate -------------------------------------------------
    fit = fit_newton(design, max_iter=options.max_iter, epsilon=options.epsilon)
    ctx.loglike_history = list(fit.loglike_history)
    ctx.deviance_history = list(fit.deviance_history)
    ctx.covariance = fit.covariance

    # ---- Test ----------------------------------------------------
    n_params = design.n_params
    if fit.converged:
        stderr, wald, p_values, available = wald_tests(fit.beta, fit.covariance)
        model_fit = model_fit_tests(
            fit.initial_loglike,
            fit.loglike,
            fit.deviance,
            design.N,
            design.K,
            design.J,
            lr_df=options.lr_df,
        )
    else:
        msg = (
            f"Newton-Raphson did not converge in {fit.n_iter} iterations; "
            "estimates are from the last iteration and significance tests "
            "are omitted."
        )
        ctx.warnings_captured.append(msg)
        warnings.warn(msg, UserWarning, stacklevel=2)
        stderr = np.full(n_params, np.nan)
        wald = np.full(n_params, np.nan)
        p_values = np.full(n_params, np.nan)
        available = np.zeros(n_params, dtype=bool)
        model_fit = None

    return LogisticRegressionResult(
        dependent=spec.dependent or "",
        effects=spec.ivnames,
        interactions=[inter.name for inter in spec.interactions],
        response_levels=design.response_levels,
        labels=list(design.labels),
        coding=options.coding,
        n_populations=design.N,
        n_columns=design.K,
        n_response_levels=design.J,
        total_weight=design.total_weight,
        n_iter=fit.n_iter,
        converged=fit.converged,
        beta=fit.beta,
        stderr=stderr,
        wald=wald,
        p_values=p_values,
        available=available,
        loglike=fit.loglike,
        initial_loglike=fit.initial_loglike,
        deviance=fit.deviance,
        model_fit=model_fit,
        context=ctx,
    )


__all__ = ["logistic_regression"]
