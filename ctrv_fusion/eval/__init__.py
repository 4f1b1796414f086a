"""
Evaluation and Visualization Module.

Modules:
    metrics: RMSE of position and velocity against ground truth
    plots: Trajectory and NIS plots
"""

from .metrics import (
    RunningRMSE,
    compute_estimation_errors,
    compute_rmse,
)
from .plots import (
    measurement_positions,
    plot_nis,
    plot_trajectory_2d,
    save_figure,
)

__all__ = [
    # Metrics
    "compute_estimation_errors",
    "compute_rmse",
    "RunningRMSE",
    # Plots
    "measurement_positions",
    "plot_trajectory_2d",
    "plot_nis",
    "save_figure",
]
