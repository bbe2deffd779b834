"""Tests for the fit-options configuration system."""

import pytest

from mlelr._config import (
    DEFAULT_CODING,
    DEFAULT_EPSILON,
    DEFAULT_MAX_ITER,
    FitOptions,
)

_ENV_VARS = ("MLELR_PARAMS", "MLELR_MAX_ITER", "MLELR_EPSILON")


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for var in _ENV_VARS:
        monkeypatch.delenv(var, raising=False)


class TestDefaults:
    def test_builtin_defaults(self):
        opts = FitOptions()
        assert opts.coding == DEFAULT_CODING == "centerpoint"
        assert opts.max_iter == DEFAULT_MAX_ITER == 30
        assert opts.epsilon == DEFAULT_EPSILON == 1e-8
        assert opts.lr_df == "classic"
        assert not opts.dummy


class TestEnvironment:
    """Tests for environment-variable resolution."""

    def test_env_selects_dummy(self, monkeypatch):
        monkeypatch.setenv("MLELR_PARAMS", "dummy")
        assert FitOptions().coding == "dummy"
        assert FitOptions().dummy

    def test_env_case_insensitive(self, monkeypatch):
        monkeypatch.setenv("MLELR_PARAMS", "Dummy")
        assert FitOptions().coding == "dummy"

    def test_invalid_env_falls_back(self, monkeypatch):
        monkeypatch.setenv("MLELR_PARAMS", "effects")
        monkeypatch.setenv("MLELR_MAX_ITER", "-3")
        monkeypatch.setenv("MLELR_EPSILON", "tiny")
        opts = FitOptions()
        assert opts.coding == "centerpoint"
        assert opts.max_iter == 30
        assert opts.epsilon == 1e-8

    def test_env_iteration_settings(self, monkeypatch):
        monkeypatch.setenv("MLELR_MAX_ITER", "50")
        monkeypatch.setenv("MLELR_EPSILON", "1e-10")
        opts = FitOptions()
        assert opts.max_iter == 50
        assert opts.epsilon == 1e-10

    def test_explicit_argument_wins_over_env(self, monkeypatch):
        monkeypatch.setenv("MLELR_PARAMS", "dummy")
        assert FitOptions(coding="centerpoint").coding == "centerpoint"


class TestValidation:
    def test_coding_normalised(self):
        assert FitOptions(coding=" DUMMY ").coding == "dummy"

    def test_rejects_unknown_coding(self):
        with pytest.raises(ValueError, match="Unknown coding"):
            FitOptions(coding="helmert")

    def test_rejects_unknown_lr_df(self):
        with pytest.raises(ValueError, match="Unknown lr_df"):
            FitOptions(lr_df="approximate")

    def test_rejects_non_positive_max_iter(self):
        with pytest.raises(ValueError, match="max_iter"):
            FitOptions(max_iter=0)

    def test_rejects_non_positive_epsilon(self):
        with pytest.raises(ValueError, match="epsilon"):
            FitOptions(epsilon=0.0)

    def test_frozen(self):
        opts = FitOptions()
        with pytest.raises(AttributeError):
            opts.coding = "dummy"
