"""Tests for aggregation into frequency and population tables."""

import numpy as np
import pytest

from mlelr.dataset import SYSMIS, Dataset
from mlelr.errors import InputError
from mlelr.model import parse_model
from mlelr.tabulate import frequency_table, tabulate


def _dataset(rows, varnames=("y", "a", "b", "w"), weight="w"):
    ds = Dataset("d", list(varnames))
    for row in rows:
        ds.add_observation(row)
    if weight is not None:
        ds.set_weight_variable(weight)
    return ds


class TestFrequencyTable:
    def test_sorted_levels_and_weights(self):
        ds = _dataset([[1, 3, 0, 2], [1, 1, 0, 1], [2, 3, 0, 5]])
        table = frequency_table(ds, "a")
        assert table.name == "a"
        assert table.levels.tolist() == [1, 3]
        assert table.weights.tolist() == [1, 7]
        assert table.total == 8
        assert table.index_of(3) == 1
        assert table.index_of(2) == -1

    def test_unweighted_counts(self):
        ds = _dataset([[1, 2, 0, 9], [1, 2, 0, 9]], weight=None)
        table = frequency_table(ds, 1)
        assert table.weights.tolist() == [2]

    def test_sysmis_is_its_own_level(self):
        ds = _dataset([[1, SYSMIS, 0, 1], [1, 4, 0, 1]])
        table = frequency_table(ds, "a")
        assert table.levels.tolist() == [SYSMIS, 4]

    def test_to_frame(self):
        ds = _dataset([[1, 2, 0, 1]])
        frame = frequency_table(ds, "y").to_frame()
        assert list(frame.columns) == ["Value", "Freq"]


class TestTabulate:
    def test_population_table_sorted_and_accumulated(self):
        ds = _dataset(
            [
                [2, 1, 1, 1],
                [1, 2, 0, 2],
                [1, 1, 1, 3],
                [2, 1, 1, 4],
            ]
        )
        xtab, freqs = tabulate(ds, parse_model(ds, "y = a b"))
        assert xtab.varnames == ["a", "b", "y"]
        assert xtab.keys.tolist() == [[1, 1, 1], [1, 1, 2], [2, 0, 1]]
        assert xtab.weights.tolist() == [3, 5, 2]
        assert xtab.total == 10
        assert [f.name for f in freqs] == ["a", "b", "y"]
        assert freqs[-1].levels.tolist() == [1, 2]
        assert freqs[-1].weights.tolist() == [5, 5]

    def test_non_positive_weights_dropped(self):
        ds = _dataset([[1, 1, 0, 0], [2, 1, 0, -1], [1, 2, 0, 1], [2, 2, 0, 1]])
        xtab, freqs = tabulate(ds, parse_model(ds, "y = a"))
        assert xtab.keys.tolist() == [[2, 1], [2, 2]]
        assert freqs[0].levels.tolist() == [2]

    def test_same_ivs_different_dv_is_one_population(self):
        ds = _dataset([[1, 5, 0, 1], [2, 5, 0, 1]])
        xtab, _ = tabulate(ds, parse_model(ds, "y = a"))
        assert xtab.n_rows == 2
        index, N = xtab.population_index()
        assert index.tolist() == [0, 0]
        assert N == 1

    def test_population_index(self):
        ds = _dataset(
            [[1, 1, 0, 1], [2, 1, 0, 1], [1, 2, 0, 1], [1, 3, 0, 1], [2, 3, 0, 1]]
        )
        xtab, _ = tabulate(ds, parse_model(ds, "y = a"))
        index, N = xtab.population_index()
        assert index.tolist() == [0, 0, 1, 2, 2]
        assert N == 3

    def test_intercept_only_has_one_population(self):
        ds = _dataset([[1, 1, 0, 1], [2, 2, 0, 1], [2, 3, 0, 1]])
        xtab, freqs = tabulate(ds, parse_model(ds, "y ="))
        assert xtab.n_iv == 0
        assert xtab.population_index()[1] == 1
        assert len(freqs) == 1

    def test_no_positive_weight(self):
        ds = _dataset([[1, 1, 0, 0], [2, 1, 0, 0]])
        with pytest.raises(InputError, match="positive weight"):
            tabulate(ds, parse_model(ds, "y = a"))

    def test_invalid_model_rejected(self):
        ds = _dataset([[1, 1, 0, 1]])
        with pytest.raises(InputError):
            tabulate(ds, parse_model(ds, "y = y"))

    def test_to_frame(self):
        ds = _dataset([[1, 1, 0, 2], [2, 1, 0, 3]])
        xtab, _ = tabulate(ds, parse_model(ds, "y = a"))
        frame = xtab.to_frame()
        assert list(frame.columns) == ["a", "y", "_Count"]
        assert np.array_equal(frame["_Count"].to_numpy(), [2.0, 3.0])

    def test_weight_override_leaves_dataset_untouched(self):
        ds = _dataset([[1, 1, 5, 2], [2, 1, 7, 3]], weight=None)
        xtab, _ = tabulate(ds, parse_model(ds, "y = a"), weight="w")
        assert xtab.weights.tolist() == [2, 3]
        assert ds.weight is None

    def test_weight_override_by_index(self):
        ds = _dataset([[1, 1, 5, 2], [2, 1, 7, 3]])
        xtab, _ = tabulate(ds, parse_model(ds, "y = a"), weight=2)
        assert xtab.weights.tolist() == [5, 7]
        assert ds.weight_name == "w"

    def test_weight_override_cannot_be_model_variable(self):
        ds = _dataset([[1, 1, 5, 2], [2, 1, 7, 3]])
        with pytest.raises(InputError, match="cannot be a model variable"):
            tabulate(ds, parse_model(ds, "y = a"), weight="a")
