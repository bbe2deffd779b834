"""Frame conversion at the dataset boundary.

A :class:`~mlelr.dataset.Dataset` stores observations as one float
matrix built from a pandas frame.  Callers holding a Polars frame (eager
or lazy) of survey cells can hand it to ``Dataset.from_frame`` or to
``logistic_regression`` directly; it is turned into pandas here, before
any variable names or values are read.

Polars is an optional extra (``pip install mlelr[polars]``).  Without
it only pandas frames are recognised.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, TypeAlias

import pandas as pd

if TYPE_CHECKING:
    import polars as pl

    DataFrameLike: TypeAlias = pd.DataFrame | pl.DataFrame | pl.LazyFrame
else:
    DataFrameLike: TypeAlias = pd.DataFrame

try:
    import polars as pl
except ImportError:
    pl = None

_POLARS_FRAMES: tuple[type, ...] = () if pl is None else (pl.DataFrame, pl.LazyFrame)


def is_dataframe_like(obj: Any) -> bool:
    """Whether *obj* can be read into a dataset."""
    return isinstance(obj, (pd.DataFrame, *_POLARS_FRAMES))


def _ensure_pandas_df(obj: DataFrameLike, *, name: str = "input") -> pd.DataFrame:
    """Return the observations in *obj* as a pandas frame.

    A pandas frame is returned unchanged (no copy).  A Polars
    ``LazyFrame`` is collected first.

    Raises:
        TypeError: *obj* is neither a pandas nor a Polars frame.  The
            message names the argument as *name*.
    """
    if isinstance(obj, pd.DataFrame):
        return obj
    if pl is not None and isinstance(obj, _POLARS_FRAMES):
        frame = obj.collect() if isinstance(obj, pl.LazyFrame) else obj
        return frame.to_pandas()

    accepted = "a pandas DataFrame"
    if pl is not None:
        accepted += " or Polars DataFrame/LazyFrame"
    raise TypeError(f"'{name}' must be {accepted}, got {type(obj).__name__}.")
