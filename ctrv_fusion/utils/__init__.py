"""
Utility functions for the fusion engine.

This module provides angle operations and covariance health helpers shared
by the models and both filter variants.
"""

from .angles import wrap_angle, wrap_angle_array, angle_diff, weighted_angle_mean
from .covariance import symmetrize, ensure_psd, matrix_sqrt

__all__ = [
    'wrap_angle',
    'wrap_angle_array',
    'angle_diff',
    'weighted_angle_mean',
    'symmetrize',
    'ensure_psd',
    'matrix_sqrt',
]
