"""Exception types raised by the estimation pipeline.

Two families of failure abort a fit:

* :class:`InputError` — the data or the model specification cannot be
  used (unknown variable, malformed formula, a response with fewer than
  two levels).  Raised before the solver runs.
* :class:`NumericFailure` — the information matrix could not be
  inverted at some iteration.  The concrete subclass and its ``code``
  identify the stage of the symmetric solve that failed:

  ===============================  ====  ==========================
  Exception                        code  stage
  ===============================  ====  ==========================
  :class:`NotPositiveDefiniteError`  11  Cholesky factorization
  :class:`SingularMatrixError`       12  back-substitution
  :class:`ReconstructionError`       13  inverse reconstruction
  ===============================  ====  ==========================

Reaching the iteration cap is *not* an error; it is reported through
``LogisticRegressionResult.converged``.
"""

from __future__ import annotations


class InputError(ValueError):
    """The dataset or model specification is unusable."""


class NumericFailure(ArithmeticError):
    """The symmetric positive-definite solve failed."""

    stage: str = "solve"
    code: int = 10

    def __init__(self, message: str, *, iteration: int | None = None) -> None:
        super().__init__(message)
        self.iteration = iteration

    def __str__(self) -> str:
        base = super().__str__()
        if self.iteration is None:
            return f"{base} [{self.stage}, code {self.code}]"
        return f"{base} [{self.stage}, code {self.code}, iteration {self.iteration}]"


class NotPositiveDefiniteError(NumericFailure):
    stage = "factorization"
    code = 11


class SingularMatrixError(NumericFailure):
    stage = "back-substitution"
    code = 12


class ReconstructionError(NumericFailure):
    stage = "reconstruction"
    code = 13


__all__ = [
    "InputError",
    "NumericFailure",
    "NotPositiveDefiniteError",
    "SingularMatrixError",
    "ReconstructionError",
]
