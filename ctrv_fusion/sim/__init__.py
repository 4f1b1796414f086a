"""Synthetic data generation for lidar/radar fusion."""

from ctrv_fusion.sim.ctrv_trajectory import (
    ground_truth_from_state,
    simulate_ctrv_trajectory,
    simulate_measurements,
)

__all__ = [
    "simulate_ctrv_trajectory",
    "simulate_measurements",
    "ground_truth_from_state",
]
