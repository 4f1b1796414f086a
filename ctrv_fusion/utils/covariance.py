"""
Covariance health utilities.

Floating-point round-off slowly breaks the symmetry of a covariance matrix
and can push small eigenvalues below zero. These helpers restore both
properties after every predict/update and provide a matrix square root that
survives a nearly singular covariance.
"""

import warnings

import numpy as np

from ctrv_fusion.errors import FilterHealthError


# Negative eigenvalues smaller than this (in magnitude) are round-off
EIGENVALUE_TOLERANCE = 1e-9


def symmetrize(P: np.ndarray) -> np.ndarray:
    """Return the symmetric part (P + P^T) / 2 of a square matrix."""
    P = np.asarray(P, dtype=float)
    return 0.5 * (P + P.T)


def ensure_psd(P: np.ndarray, tol: float = EIGENVALUE_TOLERANCE) -> np.ndarray:
    """
    Symmetrize a covariance and clamp negative eigenvalues to zero.

    Args:
        P: Covariance matrix (n×n).
        tol: Magnitude of negative eigenvalue tolerated silently.

    Returns:
        Symmetric positive semi-definite matrix (n×n).

    Raises:
        FilterHealthError: If P contains NaN or infinite entries.
    """
    P = np.asarray(P, dtype=float)
    if not np.all(np.isfinite(P)):
        raise FilterHealthError("Covariance contains non-finite entries")

    P = symmetrize(P)
    eigenvalues, eigenvectors = np.linalg.eigh(P)
    min_eig = float(eigenvalues.min())
    if min_eig >= 0.0:
        return P

    if min_eig < -tol:
        warnings.warn(
            f"Covariance lost positive semi-definiteness (min eigenvalue {min_eig:.3e}). "
            "Clamping negative eigenvalues to zero.",
            RuntimeWarning,
        )
    clamped = np.maximum(eigenvalues, 0.0)
    return symmetrize(eigenvectors @ np.diag(clamped) @ eigenvectors.T)


def matrix_sqrt(A: np.ndarray) -> np.ndarray:
    """
    Matrix square root L with L L^T = A.

    Uses the Cholesky factor when A is positive definite. A singular or
    slightly indefinite A falls back to the eigen-decomposition root
    V sqrt(max(Λ, 0)).

    Args:
        A: Symmetric positive semi-definite matrix (n×n).

    Returns:
        Square-root matrix L (n×n).
    """
    try:
        return np.linalg.cholesky(A)
    except np.linalg.LinAlgError:
        warnings.warn(
            "Cholesky decomposition failed; using eigen-decomposition square root.",
            RuntimeWarning,
        )
        eigenvalues, eigenvectors = np.linalg.eigh(symmetrize(A))
        return eigenvectors @ np.diag(np.sqrt(np.maximum(eigenvalues, 0.0)))
