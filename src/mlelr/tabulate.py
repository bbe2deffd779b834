"""Aggregation of weighted observations into populations.

The estimation engine never works on raw observations.  It works on a
cross-tabulation of the model variables — the equivalent of::

    SELECT iv1, iv2, …, dv, SUM(weight)
    FROM data
    GROUP BY iv1, iv2, …, dv
    ORDER BY iv1, iv2, …, dv

plus one univariate frequency table per model variable.  The frequency
tables double as the level dictionaries used to code categorical
effects, and the dependent variable's table defines the response
levels.

A *population* is a maximal run of cross-tabulation rows that share the
same independent-variable values; each population becomes one row of
the design matrix.

Observations with a weight ≤ 0 are skipped entirely.  Values are
matched by exact float equality, so the missing-value sentinel forms a
level of its own.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import numpy as np
import pandas as pd

from .dataset import Dataset, prefix_order
from .errors import InputError
from .model import ModelSpec

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FrequencyTable:
    """Distinct values of one variable with their accumulated weight.

    ``levels`` is ascending; ``weights[i]`` is the total weight of
    observations equal to ``levels[i]``.
    """

    name: str
    levels: np.ndarray
    weights: np.ndarray

    @property
    def n_levels(self) -> int:
        return int(self.levels.shape[0])

    @property
    def total(self) -> float:
        return float(self.weights.sum())

    def index_of(self, value: float) -> int:
        """Position of *value* in :attr:`levels`, or ``-1``."""
        hits = np.flatnonzero(self.levels == value)
        return int(hits[0]) if hits.size else -1

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame({"Value": self.levels, "Freq": self.weights})


@dataclass(frozen=True)
class PopulationTable:
    """Sorted cross-tabulation of all model variables.

    ``keys`` has one column per independent variable followed by the
    dependent variable; rows are unique and sorted ascending.
    """

    varnames: list[str]
    keys: np.ndarray
    weights: np.ndarray

    @property
    def n_rows(self) -> int:
        return int(self.keys.shape[0])

    @property
    def n_iv(self) -> int:
        return int(self.keys.shape[1]) - 1

    @property
    def total(self) -> float:
        """Total weight M over all retained observations."""
        return float(self.weights.sum())

    def population_index(self) -> tuple[np.ndarray, int]:
        """Map each row to its population.

        Returns:
            ``(index, N)`` where ``index[r]`` is the 0-based population
            of row ``r`` and ``N`` the number of populations.  A new
            population starts wherever the independent-variable prefix
            differs from the previous row.
        """
        if self.n_rows == 0:
            return np.zeros(0, dtype=int), 0
        prefix = self.keys[:, : self.n_iv]
        changed = np.any(prefix[1:] != prefix[:-1], axis=1)
        index = np.concatenate([[0], np.cumsum(changed)]).astype(int)
        return index, int(index[-1]) + 1

    def to_frame(self) -> pd.DataFrame:
        df = pd.DataFrame(self.keys, columns=self.varnames)
        df["_Count"] = self.weights
        return df


class _WeightedCounter:
    """Accumulate weight per distinct key, remembering first-seen order."""

    def __init__(self) -> None:
        self._slots: dict[tuple[float, ...], int] = {}
        self._weights: list[float] = []

    def add(self, key: tuple[float, ...], weight: float) -> None:
        slot = self._slots.get(key)
        if slot is None:
            self._slots[key] = len(self._weights)
            self._weights.append(weight)
        else:
            self._weights[slot] += weight

    def arrays(self, width: int) -> tuple[np.ndarray, np.ndarray]:
        keys = np.array(list(self._slots), dtype=float).reshape(-1, width)
        return keys, np.array(self._weights, dtype=float)


def _sorted_frequency(name: str, counter: _WeightedCounter) -> FrequencyTable:
    levels, weights = counter.arrays(1)
    order = prefix_order(levels, 1)
    return FrequencyTable(name, levels[order, 0], weights[order])


def frequency_table(dataset: Dataset, var: int | str) -> FrequencyTable:
    """Univariate weighted frequency table of one dataset variable."""
    idx = dataset.require_varname(var) if isinstance(var, str) else int(var)
    name = dataset.varnames[idx]
    logger.debug(
        "Building frequency table for variable '%s' in dataset '%s'",
        name,
        dataset.handle,
    )
    counter = _WeightedCounter()
    for value, weight in zip(dataset.column(idx), dataset.weights(), strict=True):
        counter.add((float(value),), float(weight))
    return _sorted_frequency(name, counter)


def tabulate(
    dataset: Dataset,
    model: ModelSpec,
    *,
    weight: int | str | None = None,
) -> tuple[PopulationTable, list[FrequencyTable]]:
    """Cross-tabulate the model variables of *dataset*.

    Args:
        dataset: Source observations (and optional weight variable).
        model: Supplies the independent-variable columns, in declared
            order, and the dependent-variable column.
        weight: Weight variable (index or name) for this tabulation
            only.  Defaults to the dataset's weight variable; the
            dataset itself is not modified.

    Returns:
        ``(xtab, freqs)``: the sorted population table, and one sorted
        frequency table per independent variable followed by the one
        for the dependent variable.

    Raises:
        InputError: If no observation has a positive weight.
    """
    if weight is None:
        weight = dataset.weight
    elif isinstance(weight, str):
        weight = dataset.require_varname(weight)
    model.validate(weight)
    logger.debug("Tabulating dataset '%s'", dataset.handle)

    columns = [*model.iv, model.dv]
    names = [*model.ivnames, model.dependent]
    width = len(columns)

    values = dataset.values[:, columns]
    weights = np.ones(dataset.n) if weight is None else dataset.column(weight)

    freq_counters = [_WeightedCounter() for _ in columns]
    xtab_counter = _WeightedCounter()

    kept = 0
    for row, w in zip(values, weights, strict=True):
        if not w > 0:
            continue
        kept += 1
        key = tuple(float(v) for v in row)
        for counter, value in zip(freq_counters, key, strict=True):
            counter.add((value,), float(w))
        xtab_counter.add(key, float(w))

    if kept == 0:
        raise InputError(
            f"Dataset '{dataset.handle}' has no observations with positive weight."
        )

    freqs = [
        _sorted_frequency(name, counter)
        for name, counter in zip(names, freq_counters, strict=True)
    ]

    keys, cell_weights = xtab_counter.arrays(width)
    order = prefix_order(keys, width)
    xtab = PopulationTable(names, keys[order], cell_weights[order])

    logger.debug(
        "Tabulation complete: %d of %d observations kept, %d cells",
        kept,
        dataset.n,
        xtab.n_rows,
    )
    return xtab, freqs


__all__ = ["FrequencyTable", "PopulationTable", "frequency_table", "tabulate"]
