"""Computation context — accumulator for per-fit artifacts.

A :class:`FitContext` travels through one fit, collecting intermediate
artifacts at their natural computation points.  Downstream consumers
(the reporter, tests, interactive inspection) read from the context
instead of re-computing.

The context is **not** part of the public serialisation API: it carries
NumPy arrays and tables that should not be JSON'd.
:meth:`~_results.LogisticRegressionResult.to_dict` skips it.

Lifecycle::

    ┌─────────────────────────────────────────────────────────┐
    │  logistic_regression()                                  │
    │  ├─ ctx = FitContext(dataset, model, options, weight)   │
    │  ├─ ctx.xtab, ctx.freqs = tabulate(…)                   │
    │  ├─ ctx.design = build_design(…)                        │
    │  ├─ fit = fit_newton(…)          # returns NewtonResult │
    │  ├─ ctx.loglike_history = list(fit.loglike_history)     │
    │  ├─ ctx.deviance_history = list(fit.deviance_history)   │
    │  ├─ ctx.covariance = fit.covariance                     │
    │  ├─ ctx.warnings_captured.append(…)   # not converged   │
    │  ├─ result.context = ctx                                │
    │  └─ return result                                       │
    └─────────────────────────────────────────────────────────┘

:func:`~mlelr.newton.fit_newton` never sees the context; the fit copies
the histories and covariance out of its result once it returns.

Every context is created fresh by one fit and owned by it alone.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import numpy as np

if TYPE_CHECKING:
    from ._config import FitOptions
    from .dataset import Dataset
    from .design import DesignMatrix
    from .model import ModelSpec
    from .tabulate import FrequencyTable, PopulationTable


@dataclass
class FitContext:
    """Mutable accumulator for computation artifacts.

    Every artifact field defaults to ``None`` (or an empty container)
    so the context can be created at the start of the fit and populated
    incrementally.  ``None`` means that stage has not run yet.
    """

    # ---- Inputs --------------------------------------------------
    dataset: Dataset
    model: ModelSpec
    options: FitOptions
    weight: int | None = None
    """Weight column used by this fit; may differ from ``dataset.weight``."""

    # ---- Aggregation ---------------------------------------------
    xtab: PopulationTable | None = None
    """Sorted cross-tabulation of all model variables."""

    freqs: list[FrequencyTable] = field(default_factory=list)
    """Level tables: one per effect, then the dependent variable."""

    # ---- Design --------------------------------------------------
    design: DesignMatrix | None = None

    # ---- Iteration -----------------------------------------------
    loglike_history: list[float] = field(default_factory=list)
    """Log-likelihood evaluated at the start of each iteration."""

    deviance_history: list[float] = field(default_factory=list)
    """Deviance evaluated at the start of each iteration."""

    covariance: np.ndarray | None = None
    """Inverse information matrix from the final iteration."""

    # ---- Warnings ------------------------------------------------
    warnings_captured: list[str] = field(default_factory=list)


__all__ = ["FitContext"]
