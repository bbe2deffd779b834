"""Symmetric positive-definite solve via Cholesky factorization.

The Newton-Raphson iteration needs both the solution of ``H · β = r``
and the full inverse ``H⁻¹`` (the latter gives the parameter standard
errors).  Both come from one three-stage operation:

1. **Factorization** — ``H = Uᵀ U`` with ``U`` upper triangular.  Row
   ``i`` of ``U`` uses the squares of the column entries above the
   diagonal; if their sum reaches the diagonal entry the matrix is not
   positive definite and :class:`~mlelr.errors.NotPositiveDefiniteError`
   is raised.
2. **Back-substitution** — ``U⁻¹``, built column by column.  A zero
   pivot raises :class:`~mlelr.errors.SingularMatrixError`.
3. **Reconstruction** — ``H⁻¹ = U⁻¹ U⁻ᵀ``.  A non-finite product
   raises :class:`~mlelr.errors.ReconstructionError`.

The input matrix is never modified.
"""

from __future__ import annotations

import math

import numpy as np

from .errors import (
    NotPositiveDefiniteError,
    ReconstructionError,
    SingularMatrixError,
)


def cholesky(a: np.ndarray) -> np.ndarray:
    """Upper-triangular factor ``U`` with ``Uᵀ U = a``.

    Only the upper triangle of *a* is read.

    Raises:
        NotPositiveDefiniteError: If a pivot is not strictly positive.
    """
    u = np.triu(np.array(a, dtype=float))
    order = u.shape[0]
    if u.shape != (order, order):
        raise ValueError(f"Expected a square matrix, got shape {u.shape}.")

    for i in range(order):
        above = u[:i, i]
        ssq = float(above @ above)
        # Written so that a NaN pivot also fails.
        if not ssq < u[i, i]:
            raise NotPositiveDefiniteError(
                f"Matrix is not positive definite at pivot {i}"
            )
        u[i, i] = math.sqrt(u[i, i] - ssq)
        if i + 1 < order:
            u[i, i + 1 :] = (u[i, i + 1 :] - above @ u[:i, i + 1 :]) / u[i, i]
    return u


def triangular_inverse(u: np.ndarray) -> np.ndarray:
    """Inverse of an upper-triangular matrix by back-substitution.

    Raises:
        SingularMatrixError: If a diagonal entry is zero.
    """
    inv = np.triu(np.array(u, dtype=float))
    for i in range(inv.shape[0]):
        if inv[i, i] == 0:
            raise SingularMatrixError(f"Zero pivot at position {i}")
        inv[i, i] = 1.0 / inv[i, i]
        if i:
            inv[:i, i] = -(inv[:i, :i] @ u[:i, i]) * inv[i, i]
    return inv


def cholesky_inverse(a: np.ndarray) -> np.ndarray:
    """Full inverse of a symmetric positive-definite matrix.

    Raises:
        NotPositiveDefiniteError: Factorization failed (code 11).
        SingularMatrixError: Back-substitution failed (code 12).
        ReconstructionError: The reconstructed inverse is not finite
            (code 13).
    """
    u_inv = triangular_inverse(cholesky(a))
    inverse = u_inv @ u_inv.T
    if not np.all(np.isfinite(inverse)):
        raise ReconstructionError("Reconstructed inverse is not finite")
    return inverse


def spd_solve(
    a: np.ndarray,
    b: np.ndarray,
) -> tuple[np.ndarray, np.ndarray]:
    """Solve ``a · x = b`` for symmetric positive-definite *a*.

    Returns:
        ``(x, a_inv)`` — the solution and the full inverse of *a*.
    """
    a_inv = cholesky_inverse(a)
    return a_inv @ np.asarray(b, dtype=float), a_inv


__all__ = ["cholesky", "cholesky_inverse", "spd_solve", "triangular_inverse"]
