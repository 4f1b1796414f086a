"""
Evaluation metrics for the fusion filters.

This module scores filter output against ground truth: the RMSE of position
and Cartesian velocity, over a whole run or accumulated step by step.
"""

from typing import Optional, Union

import numpy as np


def compute_estimation_errors(
    truth: np.ndarray, estimated: np.ndarray
) -> np.ndarray:
    """
    Compute errors between true and estimated [px, py, vx, vy] rows.

    Args:
        truth: True values, shape (N, d)
        estimated: Estimated values, shape (N, d)

    Returns:
        errors: estimated - truth, shape (N, d)

    Raises:
        ValueError: If inputs have incompatible shapes
    """
    truth = np.asarray(truth, dtype=float)
    estimated = np.asarray(estimated, dtype=float)

    if truth.shape != estimated.shape:
        raise ValueError(
            f"Shape mismatch: truth {truth.shape} vs estimated {estimated.shape}"
        )

    return estimated - truth


def compute_rmse(errors: np.ndarray, axis: Optional[int] = None) -> Union[float, np.ndarray]:
    """
    Compute Root Mean Square Error (RMSE).

    Args:
        errors: Error vectors, shape (N, d) or (N,)
        axis: Axis along which to compute RMSE
              None: scalar RMSE across all dimensions
              0: per-dimension RMSE

    Returns:
        rmse: RMSE value(s)

    Example:
        >>> errors = np.array([[3.0, 0.0], [4.0, 0.0]])
        >>> compute_rmse(errors, axis=0)
        array([3.53553391, 0.        ])
    """
    errors = np.asarray(errors, dtype=float)
    if errors.size == 0:
        raise ValueError("Cannot compute RMSE of an empty error array")

    if axis is None:
        return float(np.sqrt(np.mean(errors**2)))
    return np.sqrt(np.mean(errors**2, axis=axis))


class RunningRMSE:
    """
    Incremental per-component RMSE over a run.

    Keeps the sum of squared errors so each update is O(d) instead of
    recomputing over the whole history.

    Example:
        >>> rmse = RunningRMSE(dim=4)
        >>> rmse.update(np.zeros(4), np.array([1.0, 0.0, 0.0, 0.0]))
        array([1., 0., 0., 0.])
    """

    def __init__(self, dim: int = 4):
        self.dim = dim
        self.count = 0
        self._sum_sq = np.zeros(dim)

    def update(self, truth: np.ndarray, estimated: np.ndarray) -> np.ndarray:
        """
        Add one sample and return the RMSE so far.

        Args:
            truth: True values (dim,)
            estimated: Estimated values (dim,)

        Returns:
            Current RMSE per component (dim,)
        """
        error = compute_estimation_errors(
            np.reshape(truth, (1, -1)), np.reshape(estimated, (1, -1))
        )[0]
        if error.shape != (self.dim,):
            raise ValueError(f"Expected {self.dim} components, got {error.shape}")

        self._sum_sq += error**2
        self.count += 1
        return self.value

    @property
    def value(self) -> np.ndarray:
        """Current RMSE per component (zeros before the first sample)."""
        if self.count == 0:
            return np.zeros(self.dim)
        return np.sqrt(self._sum_sq / self.count)
