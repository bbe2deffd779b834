"""Design-matrix construction from a population table.

Given the sorted cross-tabulation and the per-variable level tables,
:func:`build_design` produces

* ``X`` — one row per population, ``K`` columns;
* ``Y`` — per-population weighted counts of the first ``J − 1``
  response levels;
* ``reference`` — per-population weighted count of the last response
  level, accumulated directly from the population table;
* ``n`` — total weight of each population.

Column layout
~~~~~~~~~~~~~
::

    | 0         | effect 1 | effect 2 | … | interaction 1 | … |
    | Intercept | block    | block    |   | block         |   |

A categorical effect with ``L`` levels occupies ``L − 1`` columns, one
per level in ascending order with the highest level as the reference.
A population at level ``l`` gets 1 in that level's column and 0
elsewhere; a population at the reference level gets −1 in every
column of the block under center-point coding, or 0 under dummy
coding.  A direct effect occupies one column holding the raw value.

An interaction's block width is the product of its terms' widths.  Its
columns run over the Cartesian product of the terms' columns — the last
term varying fastest — and each holds the elementwise product of the
corresponding term columns.

With ``E`` effects of widths ``w_e`` and interactions ``I`` the number
of columns is ``K = 1 + Σ w_e + Σ_I Π_{e ∈ I} w_e``.
"""

from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass

import numpy as np

from .errors import InputError
from .model import ModelSpec
from .tabulate import FrequencyTable, PopulationTable

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DesignMatrix:
    """Design matrix, response matrix and column metadata for one fit."""

    X: np.ndarray
    """Covariates ``(N, K)``."""

    Y: np.ndarray
    """Weighted counts of response levels ``0 … J−2``, shape ``(N, J−1)``."""

    n: np.ndarray
    """Total weight per population ``(N,)``."""

    reference: np.ndarray
    """Weighted count of the reference (last) response level ``(N,)``."""

    labels: list[str]
    """Column labels ``(K,)`` — for display only."""

    start_col: list[int]
    """First column of each effect's block."""

    col_span: list[int]
    """Width of each effect's block."""

    population_index: np.ndarray
    """Population of each row of the population table."""

    response_levels: np.ndarray
    """Distinct values of the dependent variable, ascending ``(J,)``."""

    @property
    def N(self) -> int:
        return int(self.X.shape[0])

    @property
    def K(self) -> int:
        return int(self.X.shape[1])

    @property
    def J(self) -> int:
        return int(self.response_levels.shape[0])

    @property
    def n_params(self) -> int:
        return self.K * (self.J - 1)

    @property
    def total_weight(self) -> float:
        return float(self.n.sum())

    def counts(self) -> np.ndarray:
        """All ``J`` response counts ``(N, J)``, reference level last."""
        return np.column_stack([self.Y, self.reference])


def effect_width(freq: FrequencyTable, direct: bool) -> int:
    """Columns occupied by one effect: 1 if direct, else levels − 1."""
    return 1 if direct else freq.n_levels - 1


def count_columns(model: ModelSpec, freqs: list[FrequencyTable]) -> int:
    """Closed-form column count ``K`` including the intercept."""
    widths = [
        effect_width(freqs[i], e.direct) for i, e in enumerate(model.effects)
    ]
    K = 1 + sum(widths)
    for inter in model.interactions:
        K += int(np.prod([widths[t] for t in inter.terms]))
    return K


def _code_effect(
    values: np.ndarray,
    freq: FrequencyTable,
    *,
    dummy: bool,
) -> np.ndarray:
    """Indicator block ``(N, L−1)`` for a categorical effect."""
    levels = freq.levels
    block = (values[:, None] == levels[None, :-1]).astype(float)
    if not dummy and levels.size:
        block[values == levels[-1]] = -1.0
    return block


def build_design(
    xtab: PopulationTable,
    freqs: list[FrequencyTable],
    model: ModelSpec,
    *,
    dummy: bool = False,
) -> DesignMatrix:
    """Assemble ``X``, ``Y`` and ``n`` from an aggregated table.

    Args:
        xtab: Sorted population table from :func:`~mlelr.tabulate.tabulate`.
        freqs: Level tables, one per effect, then the dependent variable.
        model: Effect and interaction declarations.
        dummy: Code reference levels as 0 instead of −1.

    Raises:
        InputError: If the dependent variable has fewer than two levels.
    """
    response = freqs[-1]
    J = response.n_levels
    if J < 2:
        raise InputError(
            f"Dependent variable '{model.dependent}' has {J} distinct "
            "value(s); at least 2 are required."
        )

    pop_index, N = xtab.population_index()
    K = count_columns(model, freqs)
    logger.debug("Design matrix: N=%d populations, K=%d columns, J=%d", N, K, J)

    # First row of each population carries its covariate values.
    first_rows = np.flatnonzero(np.diff(pop_index, prepend=-1))
    pop_keys = xtab.keys[first_rows]

    X = np.zeros((N, K))
    X[:, 0] = 1.0
    labels = ["Intercept"]
    start_col: list[int] = []
    col_span: list[int] = []

    xc = 1
    for i, effect in enumerate(model.effects):
        start_col.append(xc)
        if effect.direct:
            X[:, xc] = pop_keys[:, i]
            width = 1
        else:
            block = _code_effect(pop_keys[:, i], freqs[i], dummy=dummy)
            width = block.shape[1]
            X[:, xc : xc + width] = block
        col_span.append(width)
        labels.extend([effect.name] * width)
        xc += width

    for inter in model.interactions:
        ranges = [
            range(start_col[t], start_col[t] + col_span[t]) for t in inter.terms
        ]
        # itertools.product advances its last iterable fastest.
        for cols in itertools.product(*ranges):
            X[:, xc] = np.prod(X[:, list(cols)], axis=1)
            labels.append(inter.name)
            xc += 1

    Y = np.zeros((N, J - 1))
    n = np.zeros(N)
    reference = np.zeros(N)
    for row in range(xtab.n_rows):
        pop = pop_index[row]
        level = response.index_of(xtab.keys[row, -1])
        weight = xtab.weights[row]
        if level < J - 1:
            Y[pop, level] += weight
        else:
            reference[pop] += weight
        n[pop] += weight

    return DesignMatrix(
        X=X,
        Y=Y,
        n=n,
        reference=reference,
        labels=labels,
        start_col=start_col,
        col_span=col_span,
        population_index=pop_index,
        response_levels=response.levels.copy(),
    )


__all__ = ["DesignMatrix", "build_design", "count_columns", "effect_width"]
