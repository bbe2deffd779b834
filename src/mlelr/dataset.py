"""Weighted tabular dataset store.

A :class:`Dataset` holds observations as rows of float64 values, one
column per named variable, in a single 2-D buffer.  The buffer grows by
geometric doubling, so :meth:`Dataset.add_observation` is amortised
O(1); the number of live rows is tracked separately from the allocated
capacity and only ``buffer[:n]`` is ever exposed.

Missing values
~~~~~~~~~~~~~~
Fields that cannot be read as numbers are stored as :data:`SYSMIS`
("system missing", borrowed from SPSS): the most negative finite
float64.  The sentinel is an ordinary value as far as the estimation
engine is concerned; it is tabulated, sorted and coded like any other
level.  Only a non-positive *weight* excludes an observation from a fit.

Weights
~~~~~~~
Any variable can be designated the frequency weight of its dataset via
:meth:`Dataset.set_weight_variable`.  Without one, every observation
carries weight 1.
"""

from __future__ import annotations

import logging
import os
import sys
from collections.abc import Iterable, Sequence

import numpy as np
import pandas as pd

from ._compat import DataFrameLike, _ensure_pandas_df
from .errors import InputError

logger = logging.getLogger(__name__)

SYSMIS: float = -sys.float_info.max
"""Sentinel stored in place of unparsable or missing values."""


def prefix_order(rows: np.ndarray, n_cols: int) -> np.ndarray:
    """Permutation that sorts *rows* ascending by their first *n_cols* values.

    Rows are compared left to right, stopping at the first column that
    differs.  Rows equal on the whole prefix keep their relative order.
    Every sorted table in the package (datasets, frequency tables and
    population tables) is ordered with this function.
    """
    rows = np.asarray(rows, dtype=float)
    if rows.ndim == 1:
        rows = rows[:, None]
    if n_cols < 1 or rows.shape[0] < 2:
        return np.arange(rows.shape[0])
    # lexsort treats its *last* key as the primary one.
    return np.lexsort(rows[:, :n_cols].T[::-1])


class Dataset:
    """A growable, named collection of weighted numeric observations.

    Args:
        handle: Short label identifying the dataset.
        varnames: Variable (column) names, in storage order.
        capacity: Initial number of rows to allocate.
    """

    def __init__(
        self,
        handle: str,
        varnames: Sequence[str],
        *,
        capacity: int = 1,
    ) -> None:
        if len(varnames) < 1:
            raise InputError("A dataset needs at least one variable.")
        self.handle = handle
        self.varnames: list[str] = [str(v) for v in varnames]
        self.weight: int | None = None
        self._buffer = np.empty((max(int(capacity), 1), len(self.varnames)))
        self._n = 0

    # ---- Shape -----------------------------------------------------

    @property
    def n(self) -> int:
        """Number of observations stored."""
        return self._n

    @property
    def nvars(self) -> int:
        return len(self.varnames)

    @property
    def capacity(self) -> int:
        """Rows allocated in the underlying buffer."""
        return self._buffer.shape[0]

    def __len__(self) -> int:
        return self._n

    def __repr__(self) -> str:
        return (
            f"Dataset(handle={self.handle!r}, n={self._n}, "
            f"nvars={self.nvars}, weight={self.weight_name!r})"
        )

    @property
    def values(self) -> np.ndarray:
        """Read-only view of the live rows, shape ``(n, nvars)``."""
        view = self._buffer[: self._n]
        view.flags.writeable = False
        return view

    # ---- Mutation --------------------------------------------------

    def add_observation(self, obs: Iterable[float]) -> None:
        """Append one row, doubling the buffer when it is full."""
        row = np.asarray(list(obs), dtype=float)
        if row.shape != (self.nvars,):
            raise InputError(
                f"Observation for dataset '{self.handle}' has {row.size} "
                f"values; expected {self.nvars}."
            )
        if self._n >= self.capacity:
            grown = np.empty((2 * self.capacity, self.nvars))
            grown[: self._n] = self._buffer[: self._n]
            self._buffer = grown
            logger.debug(
                "Reallocated dataset '%s' with space for %d observations",
                self.handle,
                self.capacity,
            )
        self._buffer[self._n] = row
        self._n += 1

    def sort(self, n_cols: int) -> None:
        """Sort rows ascending by their first *n_cols* values.

        See :func:`prefix_order` for the ordering.
        """
        if self._n < 2:
            return
        live = self._buffer[: self._n]
        self._buffer[: self._n] = live[prefix_order(live, n_cols)]

    def set_weight_variable(self, var: int | str | None) -> int | None:
        """Designate *var* (index or name) as the frequency weight.

        ``None`` removes the weight variable.

        Raises:
            InputError: If *var* is not a variable of this dataset.
        """
        if var is None:
            self.weight = None
            return None
        idx = self.find_varname(var) if isinstance(var, str) else int(var)
        if not 0 <= idx < self.nvars:
            raise InputError(
                f"Weight variable {var!r} not found in dataset '{self.handle}'."
            )
        self.weight = idx
        logger.info(
            "Setting weight variable to: '%s' (%d)", self.varnames[idx], idx
        )
        return idx

    # ---- Lookup ----------------------------------------------------

    @property
    def weight_name(self) -> str | None:
        return None if self.weight is None else self.varnames[self.weight]

    def find_varname(self, varname: str) -> int:
        """Return the column index of *varname*, or ``-1`` if absent."""
        try:
            return self.varnames.index(varname)
        except ValueError:
            return -1

    def require_varname(self, varname: str) -> int:
        """Like :meth:`find_varname` but raise :class:`InputError` on a miss."""
        idx = self.find_varname(varname)
        if idx == -1:
            raise InputError(
                f"Variable '{varname}' not found in dataset '{self.handle}'."
            )
        return idx

    def find_observation(self, obs: Sequence[float], n_vars: int) -> int:
        """Index of the first row whose first *n_vars* values equal *obs*.

        Returns ``-1`` when no row matches.
        """
        if self._n == 0:
            return -1
        target = np.asarray(obs, dtype=float)[:n_vars]
        hits = np.flatnonzero(
            np.all(self._buffer[: self._n, :n_vars] == target, axis=1)
        )
        return int(hits[0]) if hits.size else -1

    def weight_of(self, i: int) -> float:
        """Weight of observation *i*; 1.0 without a weight variable."""
        if not 0 <= i < self._n:
            raise IndexError(f"Observation {i} out of range for {self._n} rows.")
        if self.weight is None:
            return 1.0
        return float(self._buffer[i, self.weight])

    def weights(self) -> np.ndarray:
        """Per-observation weights, ``(n,)``; all ones without a weight variable."""
        if self.weight is None:
            return np.ones(self._n)
        return self._buffer[: self._n, self.weight].copy()

    def column(self, var: int | str) -> np.ndarray:
        idx = self.require_varname(var) if isinstance(var, str) else int(var)
        return self._buffer[: self._n, idx].copy()

    # ---- Interchange -----------------------------------------------

    def to_frame(self) -> pd.DataFrame:
        """Copy the live rows into a :class:`pandas.DataFrame`."""
        return pd.DataFrame(self._buffer[: self._n].copy(), columns=self.varnames)

    @classmethod
    def from_frame(
        cls,
        frame: DataFrameLike,
        handle: str = "data",
        *,
        weight: str | None = None,
    ) -> Dataset:
        """Build a dataset from a pandas or Polars DataFrame.

        Every column is coerced to float; values that cannot be
        converted (and NaN) become :data:`SYSMIS`.
        """
        df = _ensure_pandas_df(frame, name="data")
        numeric = df.apply(pd.to_numeric, errors="coerce").astype(float)
        values = numeric.fillna(SYSMIS).to_numpy(dtype=float)

        ds = cls(handle, [str(c) for c in df.columns], capacity=max(len(values), 1))
        ds._buffer[: len(values)] = values
        ds._n = len(values)
        if weight is not None:
            ds.set_weight_variable(weight)
        return ds


def _parse_delimiter(delimiter: str) -> str:
    # A literal backslash-t means tab.
    if delimiter.startswith("\\t"):
        return "\t"
    if not delimiter:
        raise InputError("Delimiter must be a non-empty string.")
    return delimiter[0]


def read_delimited(
    path: str | os.PathLike[str],
    handle: str | None = None,
    delimiter: str = ",",
) -> Dataset:
    """Import a delimited text file with a header row of variable names.

    Args:
        path: File to read.
        handle: Label for the new dataset; defaults to the file stem.
        delimiter: Field separator.  The two-character string ``"\\t"``
            is accepted for tab.

    Returns:
        A new :class:`Dataset`.  Unparsable fields are stored as
        :data:`SYSMIS`.

    Raises:
        InputError: If the file cannot be opened, is empty, or a row
            has the wrong number of fields.
    """
    sep = _parse_delimiter(delimiter)
    if handle is None:
        handle = os.path.splitext(os.path.basename(os.fspath(path)))[0]

    logger.info("Importing dataset from file: %s", path)
    try:
        raw = pd.read_csv(
            path,
            sep=sep,
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=True,
            engine="python",
        )
    except FileNotFoundError as exc:
        raise InputError(f"Could not open file: {path}") from exc
    except pd.errors.EmptyDataError as exc:
        raise InputError(f"File is empty: {path}") from exc
    except pd.errors.ParserError as exc:
        raise InputError(f"Invalid field count in {path}: {exc}") from exc

    if raw.isna().to_numpy().any():
        # Short rows are padded with NaN by pandas.
        bad = int(np.flatnonzero(raw.isna().any(axis=1).to_numpy())[0])
        raise InputError(
            f"Invalid field count at row {bad + 2} of {path}. "
            f"Fields expected: {raw.shape[1]}."
        )

    ds = Dataset.from_frame(raw, handle)
    logger.info(
        "Read %d observations of %d variables: %s",
        ds.n,
        ds.nvars,
        " ".join(ds.varnames),
    )
    return ds


class Session:
    """Registry of datasets keyed by handle.

    A session owns the datasets imported through it.  Adding a dataset
    under a handle that is already taken replaces the earlier one.
    """

    def __init__(self) -> None:
        self._datasets: dict[str, Dataset] = {}

    def __len__(self) -> int:
        return len(self._datasets)

    def __contains__(self, handle: object) -> bool:
        return handle in self._datasets

    def __iter__(self):
        return iter(self._datasets.values())

    def __getitem__(self, handle: str) -> Dataset:
        ds = self.find_dataset(handle)
        if ds is None:
            raise InputError(f"Dataset not found: {handle}")
        return ds

    @property
    def handles(self) -> list[str]:
        return list(self._datasets)

    def add_dataset(self, dataset: Dataset) -> Dataset:
        if dataset.handle in self._datasets:
            logger.info("Replacing dataset '%s'", dataset.handle)
        self._datasets[dataset.handle] = dataset
        return dataset

    def find_dataset(self, handle: str) -> Dataset | None:
        """Return the dataset registered as *handle*, or ``None``."""
        return self._datasets.get(handle)

    def import_dataset(
        self,
        handle: str,
        path: str | os.PathLike[str],
        delimiter: str = ",",
    ) -> Dataset:
        """Read *path* with :func:`read_delimited` and register it as *handle*."""
        return self.add_dataset(read_delimited(path, handle, delimiter))

    def set_weight(self, handle: str, varname: str | None) -> int | None:
        """Set the weight variable of dataset *handle*."""
        return self[handle].set_weight_variable(varname)


__all__ = ["SYSMIS", "Dataset", "Session", "prefix_order", "read_delimited"]
