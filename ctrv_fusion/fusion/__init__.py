"""Measurement types, configuration and consistency checks.

This package provides:
- Sensor tags, time-stamped measurements, ground truth and estimate types
- FilterConfig, the single configuration value passed to the filters
- Chi-square statistics and the NIS consistency tracker
"""

from ctrv_fusion.fusion.config import FilterConfig, load_config, save_config
from ctrv_fusion.fusion.consistency import NISTracker
from ctrv_fusion.fusion.chi_square import (
    chi_square_bounds,
    chi_square_threshold,
    normalized_innovation_squared,
)
from ctrv_fusion.fusion.types import (
    AUGMENTED_DIM,
    STATE_DIM,
    Estimate,
    GroundTruth,
    Measurement,
    SensorType,
)

__all__ = [
    # Types
    "STATE_DIM",
    "AUGMENTED_DIM",
    "SensorType",
    "Measurement",
    "GroundTruth",
    "Estimate",
    # Configuration
    "FilterConfig",
    "load_config",
    "save_config",
    # Consistency
    "normalized_innovation_squared",
    "chi_square_threshold",
    "chi_square_bounds",
    "NISTracker",
]
