"""
State estimation filters for CTRV lidar/radar fusion.

Available estimators:
    - CTRVExtendedKalmanFilter: Jacobian linearization ("ekf")
    - CTRVUnscentedKalmanFilter: augmented sigma points ("ukf")

Both implement FusionFilter, so callers pick one with create_filter() and
drive it through process_measurement().
"""

from typing import Optional

from ctrv_fusion.estimators.base import Correction, FusionFilter, Prediction
from ctrv_fusion.estimators.extended_kalman_filter import CTRVExtendedKalmanFilter
from ctrv_fusion.estimators.unscented_kalman_filter import CTRVUnscentedKalmanFilter
from ctrv_fusion.fusion.config import FilterConfig

FILTERS = {
    "ekf": CTRVExtendedKalmanFilter,
    "ukf": CTRVUnscentedKalmanFilter,
}


def create_filter(kind: str = "ukf", config: Optional[FilterConfig] = None) -> FusionFilter:
    """
    Create a fusion filter by name.

    Args:
        kind: 'ekf' or 'ukf' (case-insensitive).
        config: Filter configuration. Defaults to FilterConfig().

    Returns:
        Uninitialized filter instance.
    """
    try:
        cls = FILTERS[kind.lower()]
    except KeyError:
        raise ValueError(
            f"Unknown filter {kind!r}, expected one of {sorted(FILTERS)}"
        ) from None
    return cls(config)


__all__ = [
    "FusionFilter",
    "Prediction",
    "Correction",
    "CTRVExtendedKalmanFilter",
    "CTRVUnscentedKalmanFilter",
    "FILTERS",
    "create_filter",
]
