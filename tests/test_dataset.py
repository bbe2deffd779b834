"""Tests for the dataset store, delimited import and the session registry."""

import numpy as np
import pandas as pd
import pytest

from mlelr.dataset import SYSMIS, Dataset, Session, prefix_order, read_delimited
from mlelr.errors import InputError


def _small_dataset():
    ds = Dataset("d", ["a", "b", "w"])
    for row in ([2, 1, 1], [1, 2, 3], [1, 1, 0], [2, 0, 2]):
        ds.add_observation(row)
    return ds


class TestGrowth:
    def test_capacity_doubles(self):
        ds = Dataset("d", ["x"], capacity=1)
        capacities = []
        for i in range(5):
            ds.add_observation([i])
            capacities.append(ds.capacity)
        assert capacities == [1, 2, 4, 4, 8]
        assert ds.n == len(ds) == 5
        assert ds.values[:, 0].tolist() == [0, 1, 2, 3, 4]

    def test_wrong_width_rejected(self):
        ds = Dataset("d", ["x", "y"])
        with pytest.raises(InputError, match="expected 2"):
            ds.add_observation([1.0])

    def test_values_read_only(self):
        ds = _small_dataset()
        with pytest.raises(ValueError):
            ds.values[0, 0] = 99.0

    def test_needs_a_variable(self):
        with pytest.raises(InputError):
            Dataset("d", [])


class TestSortAndSearch:
    def test_prefix_sort(self):
        ds = _small_dataset()
        ds.sort(2)
        assert ds.values[:, :2].tolist() == [[1, 1], [1, 2], [2, 0], [2, 1]]

    def test_sort_on_first_column_is_stable(self):
        ds = _small_dataset()
        ds.sort(1)
        # Ties on column 0 keep insertion order.
        assert ds.values[:, 1].tolist() == [2, 1, 1, 0]

    def test_prefix_order_lexicographic(self):
        rows = np.array([[3.0, 1.0], [1.0, 9.0], [1.0, 2.0]])
        assert prefix_order(rows, 2).tolist() == [2, 1, 0]

    def test_find_varname(self):
        ds = _small_dataset()
        assert ds.find_varname("b") == 1
        assert ds.find_varname("zzz") == -1
        with pytest.raises(InputError, match="zzz"):
            ds.require_varname("zzz")

    def test_find_observation(self):
        ds = _small_dataset()
        assert ds.find_observation([1, 1], 2) == 2
        assert ds.find_observation([2], 1) == 0
        assert ds.find_observation([5, 5], 2) == -1
        assert Dataset("e", ["x"]).find_observation([1], 1) == -1


class TestWeights:
    def test_unit_weights_without_weight_variable(self):
        ds = _small_dataset()
        assert ds.weights().tolist() == [1, 1, 1, 1]
        assert ds.weight_of(3) == 1.0

    def test_weight_variable_by_name(self):
        ds = _small_dataset()
        assert ds.set_weight_variable("w") == 2
        assert ds.weight_name == "w"
        assert ds.weights().tolist() == [1, 3, 0, 2]
        assert ds.weight_of(1) == 3.0

    def test_weight_variable_cleared(self):
        ds = _small_dataset()
        ds.set_weight_variable(2)
        ds.set_weight_variable(None)
        assert ds.weight is None
        assert ds.weight_of(1) == 1.0

    def test_unknown_weight_variable(self):
        with pytest.raises(InputError):
            _small_dataset().set_weight_variable("nope")

    def test_weight_of_out_of_range(self):
        with pytest.raises(IndexError):
            _small_dataset().weight_of(10)


class TestFrames:
    def test_from_frame_maps_unparsable_to_sysmis(self):
        df = pd.DataFrame({"x": ["1", "abc", None], "y": [1.5, np.nan, 2.0]})
        ds = Dataset.from_frame(df, "f")
        assert ds.values[:, 0].tolist() == [1.0, SYSMIS, SYSMIS]
        assert ds.values[:, 1].tolist() == [1.5, SYSMIS, 2.0]

    def test_from_frame_weight(self):
        df = pd.DataFrame({"x": [1, 2], "n": [5, 7]})
        ds = Dataset.from_frame(df, weight="n")
        assert ds.weight_name == "n"
        assert ds.weights().tolist() == [5, 7]

    def test_to_frame(self):
        frame = _small_dataset().to_frame()
        assert list(frame.columns) == ["a", "b", "w"]
        assert frame.shape == (4, 3)

    def test_sysmis_is_most_negative_float(self):
        assert SYSMIS < -1e300
        assert np.isfinite(SYSMIS)


class TestReadDelimited:
    def test_reads_header_and_rows(self, tmp_path):
        path = tmp_path / "cars.csv"
        path.write_text("mpg,cyl\n21,6\n22.8,4\n")
        ds = read_delimited(path)
        assert ds.handle == "cars"
        assert ds.varnames == ["mpg", "cyl"]
        assert ds.values.tolist() == [[21.0, 6.0], [22.8, 4.0]]

    def test_unparsable_fields_become_sysmis(self, tmp_path):
        path = tmp_path / "bad.csv"
        path.write_text("a,b\n1,x\n,2\n")
        ds = read_delimited(path, "bad")
        assert ds.values.tolist() == [[1.0, SYSMIS], [SYSMIS, 2.0]]

    def test_tab_delimiter(self, tmp_path):
        path = tmp_path / "t.txt"
        path.write_text("a\tb\n1\t2\n")
        ds = read_delimited(path, "t", delimiter="\\t")
        assert ds.values.tolist() == [[1.0, 2.0]]

    def test_short_row_rejected(self, tmp_path):
        path = tmp_path / "short.csv"
        path.write_text("a,b\n1,2\n3\n")
        with pytest.raises(InputError, match="Invalid field count"):
            read_delimited(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(InputError, match="Could not open"):
            read_delimited(tmp_path / "absent.csv")


class TestSession:
    def test_register_and_find(self):
        session = Session()
        ds = session.add_dataset(_small_dataset())
        assert session.find_dataset("d") is ds
        assert session["d"] is ds
        assert "d" in session
        assert session.handles == ["d"]
        assert session.find_dataset("other") is None

    def test_unknown_handle(self):
        with pytest.raises(InputError, match="Dataset not found"):
            Session()["missing"]

    def test_import_dataset(self, tmp_path):
        path = tmp_path / "data.csv"
        path.write_text("y,x,n\n1,1,4\n2,1,6\n")
        session = Session()
        session.import_dataset("survey", path)
        assert session["survey"].n == 2
        session.set_weight("survey", "n")
        assert session["survey"].weights().tolist() == [4, 6]

    def test_replace_dataset(self):
        session = Session()
        session.add_dataset(Dataset("d", ["x"]))
        replacement = session.add_dataset(Dataset("d", ["y"]))
        assert len(session) == 1
        assert session["d"] is replacement
