"""Tests for the display module."""

from dataclasses import replace

import numpy as np
import pandas as pd
import pytest

from mlelr import Dataset, FitOptions, frequency_table, logistic_regression
from mlelr.display import (
    _fmt,
    _truncate,
    print_dataset,
    print_frequency_table,
    print_model_fit,
    print_parameter_estimates,
    print_results,
)


def _frame():
    return pd.DataFrame(
        {
            "y": [1, 2, 1, 2, 1, 2, 2, 1, 1, 2],
            "a": [1, 1, 1, 1, 2, 2, 2, 2, 2, 1],
            "n": [4, 2, 3, 5, 6, 1, 2, 2, 3, 1],
        }
    )


class TestHelpers:
    def test_short_name_unchanged(self):
        assert _truncate("abc", 10) == "abc"

    def test_long_name_truncated(self):
        result = _truncate("abcdefghijk", 10)
        assert len(result) == 10
        assert result.endswith("...")

    def test_nan_formatted_as_na(self):
        assert _fmt(float("nan"), ".4f", 8) == "     N/A"
        assert _fmt(1.5, ".4f", 8) == "  1.5000"


class TestPrintResults:
    def test_full_report(self, capsys):
        result = logistic_regression(_frame(), "y = a", weight="n")
        print_results(result)
        out = capsys.readouterr().out
        sections = [
            "Maximum Likelihood Estimation of Logistic Regression Model",
            "Model Summary",
            "Frequency Table for Dependent Variable",
            "Crosstabulation of all Model Variables",
            "Design Matrix (all values rounded)",
            "Model Results",
            "Model Fit Results",
            "Maximum Likelihood Parameter Estimates",
        ]
        positions = [out.index(s) for s in sections]
        assert positions == sorted(positions)
        assert "Dependent variable: y" in out
        assert "Convergence: YES" in out
        assert "Test 2:  Fitted model vs. saturated model" in out
        assert "Intercept" in out

    def test_non_converged_report(self, capsys):
        with pytest.warns(UserWarning):
            result = logistic_regression(
                _frame(), "y = a", weight="n", options=FitOptions(max_iter=1)
            )
        print_results(result)
        out = capsys.readouterr().out
        assert "Convergence: NO" in out
        assert "Model Fit Results" not in out
        assert "Warning: Newton-Raphson did not converge" in out
        assert "N/A" in out

    def test_report_without_context(self, capsys):
        result = replace(
            logistic_regression(_frame(), "y = a", weight="n"), context=None
        )
        print_results(result)
        out = capsys.readouterr().out
        assert "Effect 1: a" in out
        assert "Design Matrix" not in out

    def test_parameter_rows(self, capsys):
        result = logistic_regression(_frame(), "y = a", weight="n")
        print_parameter_estimates(result)
        lines = capsys.readouterr().out.strip().splitlines()
        # Title, underline, header, then K·(J−1) rows.
        assert len(lines) == 3 + result.beta.size

    def test_model_fit_shows_chisq(self, capsys):
        result = logistic_regression(_frame(), "y = a", weight="n")
        print_model_fit(result)
        out = capsys.readouterr().out
        assert out.count("Chisq value:") == 2


class TestPrintTables:
    def test_dataset(self, capsys):
        ds = Dataset.from_frame(_frame(), "survey", weight="n")
        print_dataset(ds, 3)
        out = capsys.readouterr().out
        assert "Dataset: survey" in out
        assert "Weight variable: n" in out
        # Header block of four lines, variable names, three rows.
        assert len(out.strip().splitlines()) == 4 + 1 + 3

    def test_frequency_table(self, capsys):
        ds = Dataset.from_frame(_frame(), weight="n")
        print_frequency_table(frequency_table(ds, "a"), title="Table of a")
        out = capsys.readouterr().out
        assert "Table of a" in out
        assert "_Count" in out
        assert np.isclose(frequency_table(ds, "a").total, 29)
