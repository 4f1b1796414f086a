"""
Motion and measurement models for the fusion engine.

This module provides the CTRV process model and the lidar/radar measurement
models shared by both filter variants.
"""

from .motion_models import CTRVModel, EPSILON_YAW_RATE

from .measurement_models import (
    EPSILON_RANGE,
    LidarMeasurementModel,
    RadarMeasurementModel,
    measurement_model_for,
)

__all__ = [
    # Motion model
    'CTRVModel',
    'EPSILON_YAW_RATE',

    # Measurement models
    'LidarMeasurementModel',
    'RadarMeasurementModel',
    'measurement_model_for',
    'EPSILON_RANGE',
]
