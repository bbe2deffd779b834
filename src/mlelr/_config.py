"""Fit configuration for the mlelr package.

Controls how categorical effects are coded in the design matrix and how
the Newton-Raphson iteration terminates.

Resolution order for each setting (first match wins):
    1. An explicit keyword passed to :class:`FitOptions`.
    2. The matching environment variable:

       * ``MLELR_PARAMS`` — ``"centerpoint"`` or ``"dummy"``
       * ``MLELR_MAX_ITER`` — positive integer
       * ``MLELR_EPSILON`` — positive float

    3. The built-in default.

Options are never held in module-level mutable state: a
:class:`FitOptions` instance is created per fit (or per session) and
passed explicitly.

Examples:
    Switch to dummy coding from the shell::

        export MLELR_PARAMS=dummy

    Or per call::

        from mlelr import FitOptions, logistic_regression
        logistic_regression(ds, "y = a b", options=FitOptions(coding="dummy"))
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field

_VALID_CODINGS = {"centerpoint", "dummy"}
_VALID_LR_DF = {"classic", "nested"}

DEFAULT_CODING = "centerpoint"
DEFAULT_MAX_ITER = 30
DEFAULT_EPSILON = 1e-8


def _env_coding() -> str:
    env = os.environ.get("MLELR_PARAMS", "").strip().lower()
    if env in _VALID_CODINGS:
        return env
    return DEFAULT_CODING


def _env_max_iter() -> int:
    env = os.environ.get("MLELR_MAX_ITER", "").strip()
    if env.isdigit() and int(env) > 0:
        return int(env)
    return DEFAULT_MAX_ITER


def _env_epsilon() -> float:
    env = os.environ.get("MLELR_EPSILON", "").strip()
    try:
        value = float(env)
    except ValueError:
        return DEFAULT_EPSILON
    return value if value > 0 else DEFAULT_EPSILON


@dataclass(frozen=True)
class FitOptions:
    """Settings for a single model fit.

    Attributes:
        coding: ``"centerpoint"`` (the reference level is coded −1 in
            every column of its effect) or ``"dummy"`` (coded 0).
        max_iter: Iteration cap for the Newton-Raphson loop.
        epsilon: Relative tolerance of the convergence test.
        lr_df: Degrees-of-freedom formula for the test against the
            intercept-only model.  ``"classic"`` uses
            ``K·(J−1) − J − 1``; ``"nested"`` uses ``K·(J−1) − (J−1)``.
    """

    coding: str = field(default_factory=_env_coding)
    max_iter: int = field(default_factory=_env_max_iter)
    epsilon: float = field(default_factory=_env_epsilon)
    lr_df: str = "classic"

    def __post_init__(self) -> None:
        coding = self.coding.strip().lower()
        if coding not in _VALID_CODINGS:
            raise ValueError(
                f"Unknown coding '{self.coding}'. Choose from: {sorted(_VALID_CODINGS)}"
            )
        object.__setattr__(self, "coding", coding)

        lr_df = self.lr_df.strip().lower()
        if lr_df not in _VALID_LR_DF:
            raise ValueError(
                f"Unknown lr_df '{self.lr_df}'. Choose from: {sorted(_VALID_LR_DF)}"
            )
        object.__setattr__(self, "lr_df", lr_df)

        if int(self.max_iter) < 1:
            raise ValueError(f"max_iter must be positive, got {self.max_iter}.")
        if not self.epsilon > 0:
            raise ValueError(f"epsilon must be positive, got {self.epsilon}.")

    @property
    def dummy(self) -> bool:
        """``True`` when the reference level is coded 0."""
        return self.coding == "dummy"
