"""Fixed-width text rendering of datasets, tables and fit results.

:func:`print_results` prints a complete report in this order:

1. model summary (dependent variable, effects, interactions and the
   dimensions N, M, J, K);
2. frequency table of the dependent variable;
3. cross-tabulation of all model variables;
4. design matrix, values rounded;
5. iteration count and convergence;
6. whole-model tests (converged fits only);
7. maximum-likelihood parameter estimates.

Every function only formats what it is given.  Nothing is recomputed.
"""

from __future__ import annotations

import math
import textwrap
from typing import TYPE_CHECKING

import numpy as np

if TYPE_CHECKING:
    from ._results import ChiSquareTest, LogisticRegressionResult
    from .dataset import Dataset
    from .design import DesignMatrix
    from .tabulate import FrequencyTable, PopulationTable

_WIDTH = 80


def _truncate(name: str, max_len: int) -> str:
    """Truncate *name* to *max_len*, appending ``'...'`` if needed."""
    if len(name) <= max_len:
        return name
    return name[: max_len - 3] + "..."


def _fmt(val: float, spec: str, width: int) -> str:
    """Format *val* with *spec*, or ``'N/A'`` for NaN, right-aligned."""
    if isinstance(val, float) and math.isnan(val):
        return f"{'N/A':>{width}}"
    return f"{val:>{width}{spec}}"


def _banner(title: str) -> None:
    print("=" * _WIDTH)
    for line in textwrap.wrap(title, width=_WIDTH - 2):
        print(f"{line:^{_WIDTH}}")
    print("=" * _WIDTH)


def _section(title: str) -> None:
    print()
    print(title)
    print("=" * max(len(title), 1))


def _print_columns(names: list[str], rows: np.ndarray, width: int = 16) -> None:
    print("".join(f"{_truncate(n, width - 1):>{width}}" for n in names))
    for row in rows:
        print("".join(f"{v:>{width}.2f}" for v in row))


def print_dataset(dataset: Dataset, n: int = 0, *, header: bool = True) -> None:
    """Print the first *n* observations of *dataset* (all when ``n == 0``)."""
    if header:
        print(f"Dataset: {dataset.handle}")
        print(f"Number of observations: {dataset.n}")
        print(f"Number of variables: {dataset.nvars}")
        if dataset.weight_name is not None:
            print(f"Weight variable: {dataset.weight_name}")
    rows = dataset.values if n <= 0 else dataset.values[:n]
    _print_columns(dataset.varnames, rows)


def print_frequency_table(table: FrequencyTable, *, title: str | None = None) -> None:
    """Print the levels and accumulated weights of one variable."""
    if title is not None:
        _section(title)
    rows = np.column_stack([table.levels, table.weights])
    _print_columns([table.name, "_Count"], rows)


def print_crosstab(xtab: PopulationTable) -> None:
    _section("Crosstabulation of all Model Variables")
    rows = np.column_stack([xtab.keys, xtab.weights])
    _print_columns([*xtab.varnames, "_Count"], rows)


def print_design_matrix(design: DesignMatrix) -> None:
    _section("Design Matrix (all values rounded)")
    for row in design.X:
        print("".join(f"{v:4.0f}  " for v in row))


def _print_chisq(test: ChiSquareTest) -> None:
    print(
        f"Chisq value: {test.statistic:10.4f}, df: {test.df:5.0f}, "
        f"Pr(ChiSq): {_fmt(test.p_value, '.4f', 8)}"
    )


def print_model_summary(result: LogisticRegressionResult) -> None:
    """Print the model declaration and the fit's dimensions."""
    _section("Model Summary")
    ctx = result.context
    if ctx is not None:
        for line in ctx.model.describe():
            print(line)
    else:
        print(f"Dependent variable: {result.dependent}")
        print(f"Number of independent variables: {len(result.effects)}")
        for i, name in enumerate(result.effects, start=1):
            print(f"Effect {i}: {name}")
        print(f"Number of interactions: {len(result.interactions)}")
        for i, name in enumerate(result.interactions, start=1):
            print(f"Interaction {i}: {name}")
    print(f"Number of populations: {result.n_populations}")
    print(f"Total frequency: {result.total_weight:f}")
    print(f"Response Levels: {result.n_response_levels}")
    print(f"Number of columns in X: {result.n_columns}")
    print(f"Coding: {result.coding}")


def print_model_fit(result: LogisticRegressionResult) -> None:
    """Print iteration count, convergence and the whole-model tests."""
    _section("Model Results")
    print(f"Number of Newton-Raphson iterations: {result.n_iter}")
    print(f"Convergence: {'YES' if result.converged else 'NO'}")

    fit = result.model_fit
    if fit is None:
        return

    _section("Model Fit Results")
    print("Test 1:  Fitted model vs. intercept-only model")
    print(f"Initial log likelihood: {fit.initial_loglike:f}")
    print(f"Final log likelihood:   {fit.final_loglike:f}")
    _print_chisq(fit.intercept_only)
    print()
    print("Test 2:  Fitted model vs. saturated model")
    print(f"Deviance: {fit.deviance:f}")
    _print_chisq(fit.saturated)


def print_parameter_estimates(result: LogisticRegressionResult) -> None:
    """Print one row per (design column, response level)."""
    _section("Maximum Likelihood Parameter Estimates")
    print(
        f"{'Parameter':>20}{'DV':>4}{'Estimate':>12}{'Std Err':>10}"
        f"{'Wald Chisq':>12}{'Pr > Chisq':>12}"
    )
    table = result.parameter_table()
    for row in table.itertuples(index=False):
        print(
            f"{_truncate(row[0], 20):>20}{row[1]:>4d}{row[2]:>12.8f}"
            f"{_fmt(row[3], '.4f', 10)}{_fmt(row[4], '.4f', 12)}"
            f"{_fmt(row[5], '.4f', 12)}"
        )


def print_results(
    result: LogisticRegressionResult,
    *,
    title: str = "Maximum Likelihood Estimation of Logistic Regression Model",
) -> None:
    """Print the full report for *result*.

    The frequency table, cross-tabulation and design matrix are taken
    from ``result.context`` and skipped when it is absent.
    """
    _banner(title)
    print_model_summary(result)

    ctx = result.context
    if ctx is not None:
        if ctx.freqs:
            print_frequency_table(
                ctx.freqs[-1], title="Frequency Table for Dependent Variable"
            )
        if ctx.xtab is not None:
            print_crosstab(ctx.xtab)
        if ctx.design is not None:
            print_design_matrix(ctx.design)

    print_model_fit(result)
    for msg in ctx.warnings_captured if ctx is not None else []:
        print(f"Warning: {msg}")
    print_parameter_estimates(result)


__all__ = [
    "print_crosstab",
    "print_dataset",
    "print_design_matrix",
    "print_frequency_table",
    "print_model_fit",
    "print_model_summary",
    "print_parameter_estimates",
    "print_results",
]
