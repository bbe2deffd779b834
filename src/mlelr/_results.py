"""Typed result objects for multinomial logit fits.

Frozen dataclasses that provide:

* **Attribute access** — ``result.beta``, ``result.converged``, etc.
* **Dict-like access** — ``result["converged"]``, ``result.get("key")``,
  ``"key" in result`` for consumers that prefer bracket syntax.
* **Serialisation** — ``.to_dict()`` returns a plain ``dict[str, Any]``
  with all NumPy types converted to native Python.

Results are a snapshot of a completed fit and are immutable after
construction.  Bulky intermediate artifacts (population table, design
matrix, iteration history) live on the attached
:class:`~mlelr._context.FitContext` and are excluded from ``to_dict()``.

Parameter layout
~~~~~~~~~~~~~~~~
``beta`` has ``K · (J − 1)`` entries ordered by response function
first: entry ``j · K + k`` is the coefficient of design column ``k`` in
the log-odds of response level ``j`` against the reference (last)
level.  :meth:`LogisticRegressionResult.parameter_table` lists them
column by column, response level within column.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import TYPE_CHECKING, Any, ClassVar

import numpy as np
import pandas as pd

if TYPE_CHECKING:
    from ._context import FitContext
    from .design import DesignMatrix
    from .tabulate import PopulationTable

# ------------------------------------------------------------------ #
# Serialisation helper
# ------------------------------------------------------------------ #


def _numpy_to_python(obj: Any) -> Any:
    """Recursively convert NumPy scalars/arrays to Python-native types.

    Handles nested dicts, lists, np.ndarray, np.integer, and
    np.floating so that :meth:`to_dict` returns a fully
    JSON-serialisable structure.
    """
    if isinstance(obj, np.ndarray):
        return obj.tolist()
    if isinstance(obj, (np.integer, np.bool_)):
        return int(obj)
    if isinstance(obj, np.floating):
        return float(obj)
    if isinstance(obj, dict):
        return {k: _numpy_to_python(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        converted = [_numpy_to_python(item) for item in obj]
        return type(obj)(converted)
    return obj


# ------------------------------------------------------------------ #
# Dict-compatibility mixin
# ------------------------------------------------------------------ #


class _DictAccessMixin:
    """Dict-like access convenience for result dataclasses.

    Supports three access patterns:

    1. ``result["key"]``     — raises ``KeyError`` on miss
    2. ``result.get(key, d)`` — returns *d* on miss (default ``None``)
    3. ``"key" in result``   — membership test

    Subclasses may override ``_SERIALIZERS`` to register custom
    conversion functions for non-primitive fields.  Serializers compose
    with :func:`_numpy_to_python`.
    """

    _SERIALIZERS: ClassVar[dict[str, Any]] = {}

    # Fields to exclude from to_dict() serialisation.
    _EXCLUDE_FROM_DICT: ClassVar[frozenset[str]] = frozenset({"context"})

    def __getitem__(self, key: str) -> Any:
        """Attribute lookup via bracket syntax."""
        try:
            return getattr(self, key)
        except AttributeError:
            raise KeyError(key) from None

    def get(self, key: str, default: Any = None) -> Any:
        """Attribute lookup with a fallback default."""
        return getattr(self, key, default)

    def __contains__(self, key: object) -> bool:
        """Membership test: ``"key" in result``."""
        if not isinstance(key, str):
            return False
        return hasattr(self, key)

    def to_dict(self) -> dict[str, Any]:
        """Convert to a plain dictionary.

        Applies per-field serializers from ``_SERIALIZERS``, then runs
        :func:`_numpy_to_python` on every value so the returned dict
        is fully JSON-serialisable.
        """
        result: dict[str, Any] = {}
        for f in fields(self):  # type: ignore[arg-type]
            if f.name in self._EXCLUDE_FROM_DICT:
                continue
            val = getattr(self, f.name)
            if f.name in self._SERIALIZERS:
                val = self._SERIALIZERS[f.name](val)
            result[f.name] = _numpy_to_python(val)
        return result


# ------------------------------------------------------------------ #
# Chi-square tests
# ------------------------------------------------------------------ #


@dataclass(frozen=True)
class ChiSquareTest(_DictAccessMixin):
    """A chi-square statistic with its degrees of freedom and p-value."""

    statistic: float
    df: float
    p_value: float
    """Upper-tail probability; NaN when ``df ≤ 0``."""


@dataclass(frozen=True)
class ModelFitTests(_DictAccessMixin):
    """Whole-model tests, available only for converged fits."""

    intercept_only: ChiSquareTest
    """Fitted model vs. intercept-only model: ``2 · (ℓ − ℓ₀)``."""

    saturated: ChiSquareTest
    """Fitted model vs. saturated model: the deviance."""

    initial_loglike: float
    final_loglike: float
    deviance: float

    _SERIALIZERS: ClassVar[dict[str, Any]] = {
        "intercept_only": lambda t: t.to_dict(),
        "saturated": lambda t: t.to_dict(),
    }


# ------------------------------------------------------------------ #
# LogisticRegressionResult
# ------------------------------------------------------------------ #


@dataclass(frozen=True)
class LogisticRegressionResult(_DictAccessMixin):
    """Result of :func:`~mlelr.core.logistic_regression`.

    All fields are accessible both as attributes (``result.beta``) and
    via dict syntax (``result["beta"]``).
    """

    # ---- Model -----------------------------------------------------
    dependent: str
    """Name of the dependent variable."""

    effects: list[str]
    """Independent-variable effect names, in declared order."""

    interactions: list[str]
    """Interaction names (``"a*b"``), in declared order."""

    response_levels: np.ndarray
    """Distinct dependent-variable values ``(J,)``; the last is the reference."""

    labels: list[str]
    """Design-matrix column labels ``(K,)``."""

    coding: str
    """``"centerpoint"`` or ``"dummy"``."""

    # ---- Dimensions ------------------------------------------------
    n_populations: int
    n_columns: int
    n_response_levels: int
    total_weight: float

    # ---- Estimation ------------------------------------------------
    n_iter: int
    """Number of Newton-Raphson iterations run."""

    converged: bool

    beta: np.ndarray
    """Parameter estimates ``(K·(J−1),)``."""

    stderr: np.ndarray
    """Standard errors; NaN where unavailable or the fit did not converge."""

    wald: np.ndarray
    """Wald chi-square statistics ``(β / se)²``."""

    p_values: np.ndarray
    """Chi-square(1) upper-tail probabilities of :attr:`wald`."""

    available: np.ndarray
    """``True`` where the Wald test could be computed."""

    loglike: float
    """Log-likelihood at the start of the final iteration."""

    initial_loglike: float
    """Log-likelihood at iteration 0 (all-zero ``beta``)."""

    deviance: float

    model_fit: ModelFitTests | None
    """Whole-model tests; ``None`` if the fit did not converge."""

    context: FitContext | None = None
    """Computation artifacts (excluded from ``to_dict()``)."""

    _SERIALIZERS: ClassVar[dict[str, Any]] = {
        "model_fit": lambda m: None if m is None else m.to_dict(),
    }

    # ---- Derived views ---------------------------------------------

    @property
    def coefficients(self) -> np.ndarray:
        """``beta`` reshaped to ``(J − 1, K)``: one row per response function."""
        return self.beta.reshape(self.n_response_levels - 1, self.n_columns)

    @property
    def crosstab(self) -> PopulationTable | None:
        return None if self.context is None else self.context.xtab

    @property
    def design(self) -> DesignMatrix | None:
        return None if self.context is None else self.context.design

    def parameter_table(self) -> pd.DataFrame:
        """Per-parameter estimates as a DataFrame.

        One row per (design column, response level), ordered by column
        then response level, with columns ``Parameter``, ``DV``,
        ``Estimate``, ``Std Err``, ``Wald Chisq`` and ``Pr > Chisq``.
        """
        K = self.n_columns
        Jm1 = self.n_response_levels - 1
        rows = []
        for k in range(K):
            for j in range(Jm1):
                idx = j * K + k
                rows.append(
                    {
                        "Parameter": self.labels[k],
                        "DV": j,
                        "Estimate": self.beta[idx],
                        "Std Err": self.stderr[idx],
                        "Wald Chisq": self.wald[idx],
                        "Pr > Chisq": self.p_values[idx],
                    }
                )
        return pd.DataFrame(
            rows,
            columns=[
                "Parameter",
                "DV",
                "Estimate",
                "Std Err",
                "Wald Chisq",
                "Pr > Chisq",
            ],
        )


__all__ = ["ChiSquareTest", "LogisticRegressionResult", "ModelFitTests"]
