"""Chi-square statistics of the Normalized Innovation Squared (NIS).

For a consistent filter the NIS y^T S^{-1} y of each update follows a
chi-square distribution whose degrees of freedom equal the measurement
dimension: 2 for lidar, 3 for radar.
"""

from functools import lru_cache
from typing import Tuple

import numpy as np
from scipy.stats import chi2


def _check(dof: int, confidence: float) -> None:
    if dof < 1:
        raise ValueError(f"Degrees of freedom must be positive, got {dof}")
    if not (0 < confidence < 1):
        raise ValueError(f"Confidence must be in (0, 1), got {confidence}")


def normalized_innovation_squared(innovation: np.ndarray, S_inv: np.ndarray) -> float:
    """NIS = y^T S^{-1} y for an innovation y and inverse innovation covariance."""
    return float(innovation @ S_inv @ innovation)


@lru_cache(maxsize=None)
def chi_square_threshold(dof: int, confidence: float = 0.95) -> float:
    """Upper critical value χ²(dof) at the given confidence.

    Args:
        dof: Degrees of freedom (measurement dimension).
        confidence: Quantile of the threshold (default 0.95).

    Returns:
        Critical value; NIS above it counts as a violation.

    Example:
        >>> round(chi_square_threshold(2), 3)  # lidar
        5.991
        >>> round(chi_square_threshold(3), 3)  # radar
        7.815
    """
    _check(dof, confidence)
    return float(chi2.ppf(confidence, dof))


def chi_square_bounds(dof: int, confidence: float = 0.95) -> Tuple[float, float]:
    """Two-sided interval holding `confidence` of the χ²(dof) mass.

    Used to shade the expected NIS band in plots.
    """
    _check(dof, confidence)
    tail = 0.5 * (1.0 - confidence)
    return float(chi2.ppf(tail, dof)), float(chi2.ppf(1.0 - tail, dof))
