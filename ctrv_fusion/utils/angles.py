"""
Angle wrapping and manipulation utilities.

Provides functions for handling angular quantities and keeping them within
the half-open interval (-π, π].

Critical for:
- Heading (yaw) in the CTRV state vector
- Bearing measurements from the radar
- Angular innovations and sigma-point averages in Kalman filters
"""

import numpy as np
from typing import Union


def wrap_angle(angle: float) -> float:
    """
    Wrap angle to the (-π, π] range.

    Without wrapping, headings near ±180° produce large incorrect
    innovations (e.g., -179° vs +179° = 358° error instead of 2° error),
    and accumulating turn rates make the heading grow without bound.

    Args:
        angle: Angle in radians (can be any value)

    Returns:
        Wrapped angle in range (-π, π]

    Example:
        >>> wrap_angle(3.5 * np.pi)  # 630° -> -90°
        -1.5707963267948966
        >>> wrap_angle(-np.pi)  # lower bound maps to +π
        3.141592653589793
    """
    wrapped = float(np.arctan2(np.sin(angle), np.cos(angle)))
    # atan2 returns [-π, π]; fold the closed lower end onto +π
    if wrapped <= -np.pi:
        wrapped += 2.0 * np.pi
    return wrapped


def wrap_angle_array(angles: np.ndarray) -> np.ndarray:
    """
    Wrap array of angles to the (-π, π] range.

    Vectorized version of wrap_angle().

    Args:
        angles: Array of angles in radians

    Returns:
        Array of wrapped angles in range (-π, π]

    Example:
        >>> wrap_angle_array(np.array([0, np.pi, -np.pi, 3 * np.pi]))
        array([0.        , 3.14159265, 3.14159265, 3.14159265])
    """
    wrapped = np.arctan2(np.sin(angles), np.cos(angles))
    return np.where(wrapped <= -np.pi, wrapped + 2.0 * np.pi, wrapped)


def angle_diff(angle1: Union[float, np.ndarray],
               angle2: Union[float, np.ndarray]) -> Union[float, np.ndarray]:
    """
    Compute the shortest angular difference between two angles.

    Returns angle1 - angle2, wrapped to (-π, π]. This is the innovation
    for bearing measurements and the yaw residual between sigma points.

    Args:
        angle1: First angle in radians (measured)
        angle2: Second angle in radians (predicted)

    Returns:
        Shortest signed difference angle1 - angle2 in (-π, π]

    Example:
        >>> angle_diff(np.pi - 0.1, -np.pi + 0.1)  # Nearly opposite
        -0.2
    """
    if isinstance(angle1, np.ndarray) or isinstance(angle2, np.ndarray):
        return wrap_angle_array(np.asarray(angle1) - np.asarray(angle2))
    else:
        return wrap_angle(angle1 - angle2)


def weighted_angle_mean(
    angles: np.ndarray,
    weights: np.ndarray,
    reference: float,
) -> float:
    """
    Weighted mean of angles that may straddle the ±π discontinuity.

    The angles are first expressed as wrapped offsets from a reference
    angle (normally the central sigma point), averaged there, and shifted
    back. A plain weighted sum of wrapped angles would average +179° and
    -179° to 0° instead of 180°.

    Args:
        angles: Angles in radians, shape (N,)
        weights: Weights, shape (N,); they should sum to one
        reference: Angle the offsets are taken from

    Returns:
        Wrapped weighted mean in (-π, π]
    """
    offsets = wrap_angle_array(np.asarray(angles, dtype=float) - reference)
    return wrap_angle(reference + float(np.dot(weights, offsets)))
