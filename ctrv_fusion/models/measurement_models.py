"""
Measurement models for the lidar and radar sensors.

Maps the CTRV state [px, py, v, yaw, yaw_rate] into sensor space:
- Lidar (linear): z = [px, py]
- Radar (nonlinear): z = [range, bearing, range_rate]

Each model also knows its noise covariance R, how to form a residual
(bearing residuals are wrapped), how to average sigma points in its own
space, and how to seed a state from a single first measurement.
"""

import warnings

import numpy as np

from ctrv_fusion.fusion.config import FilterConfig
from ctrv_fusion.fusion.types import STATE_DIM, SensorType
from ctrv_fusion.utils.angles import angle_diff, weighted_angle_mean, wrap_angle


# Below this range the polar Jacobian and range rate are singular (m)
EPSILON_RANGE = 1e-4


class LidarMeasurementModel:
    """
    Position measurement model.

    Measurement: z = H x + noise, H = [I_2 0]

    Example:
        >>> model = LidarMeasurementModel(FilterConfig())
        >>> model.h(np.array([1.0, 2.0, 3.0, 0.1, 0.0]))
        array([1., 2.])
    """

    sensor_type = SensorType.LIDAR
    dim = 2

    def __init__(self, config: FilterConfig):
        """
        Initialize lidar measurement model.

        Args:
            config: Filter configuration holding the lidar noise stds.
        """
        self.R = config.lidar_noise_covariance()
        self._H = np.zeros((self.dim, STATE_DIM))
        self._H[0, 0] = 1.0
        self._H[1, 1] = 1.0

    def h(self, x: np.ndarray) -> np.ndarray:
        """Predicted measurement [px, py]."""
        return np.array([x[0], x[1]])

    def H(self, x: np.ndarray) -> np.ndarray:
        """Measurement matrix (constant), shape (2, 5)."""
        return self._H.copy()

    def residual(self, z: np.ndarray, z_pred: np.ndarray) -> np.ndarray:
        """Innovation z - z_pred."""
        return np.asarray(z, dtype=float) - np.asarray(z_pred, dtype=float)

    def mean(self, Z: np.ndarray, weights: np.ndarray) -> np.ndarray:
        """Weighted mean of measurement sigma points Z (N, 2)."""
        return weights @ Z

    def initial_position(self, z: np.ndarray) -> np.ndarray:
        """Position [px, py] seeded from a first measurement."""
        return np.array([z[0], z[1]], dtype=float)

    def initial_position_variance(self, z: np.ndarray) -> np.ndarray:
        """Variances of the seeded position."""
        return np.diag(self.R).copy()


class RadarMeasurementModel:
    """
    Range, bearing and range-rate measurement model.

    Measurements (sensor at the origin):
        range:      rho = sqrt(px² + py²)
        bearing:    phi = atan2(py, px)
        range rate: rho_dot = v (px cos(yaw) + py sin(yaw)) / rho

    Close to the origin (rho < EPSILON_RANGE) the range rate is undefined
    and is predicted as zero; the Jacobian rows that divide by rho are
    replaced with zeros.

    Example:
        >>> model = RadarMeasurementModel(FilterConfig())
        >>> model.h(np.array([3.0, 4.0, 2.0, 0.0, 0.0]))
        array([5.        , 0.92729522, 1.2       ])
    """

    sensor_type = SensorType.RADAR
    dim = 3

    def __init__(self, config: FilterConfig):
        """
        Initialize radar measurement model.

        Args:
            config: Filter configuration holding the radar noise stds.
        """
        self.R = config.radar_noise_covariance()

    def h(self, x: np.ndarray) -> np.ndarray:
        """Predicted measurement [rho, phi, rho_dot]."""
        px, py, v, yaw = x[0], x[1], x[2], x[3]
        rho = np.hypot(px, py)
        phi = np.arctan2(py, px)
        if rho < EPSILON_RANGE:
            rho_dot = 0.0
        else:
            rho_dot = v * (px * np.cos(yaw) + py * np.sin(yaw)) / rho
        return np.array([rho, wrap_angle(phi), rho_dot])

    def H(self, x: np.ndarray) -> np.ndarray:
        """
        Measurement Jacobian dh/dx with singularity handling.

        Args:
            x: State vector (5,)

        Returns:
            Jacobian matrix, shape (3, 5). When rho < EPSILON_RANGE only the
            range row (the unit line-of-sight vector) is kept; the bearing and
            range-rate rows are zero, and so is the range row at rho = 0.
        """
        px, py, v, yaw = x[0], x[1], x[2], x[3]
        H = np.zeros((self.dim, STATE_DIM))

        rho_sq = px**2 + py**2
        rho = np.sqrt(rho_sq)
        if rho < EPSILON_RANGE:
            warnings.warn(
                f"Predicted range {rho:.2e} m below {EPSILON_RANGE} m. "
                "Setting bearing and range-rate Jacobian rows to zero.",
                RuntimeWarning
            )
            if rho > 0:
                H[0, 0] = px / rho
                H[0, 1] = py / rho
            return H

        c, s = np.cos(yaw), np.sin(yaw)
        radial = px * c + py * s
        rho_cubed = rho_sq * rho

        H[0, 0] = px / rho
        H[0, 1] = py / rho

        H[1, 0] = -py / rho_sq
        H[1, 1] = px / rho_sq

        H[2, 0] = v * c / rho - v * radial * px / rho_cubed
        H[2, 1] = v * s / rho - v * radial * py / rho_cubed
        H[2, 2] = radial / rho
        H[2, 3] = v * (py * c - px * s) / rho

        return H

    def residual(self, z: np.ndarray, z_pred: np.ndarray) -> np.ndarray:
        """Innovation z - z_pred with the bearing wrapped to (-π, π]."""
        y = np.asarray(z, dtype=float) - np.asarray(z_pred, dtype=float)
        y[1] = angle_diff(float(z[1]), float(z_pred[1]))
        return y

    def mean(self, Z: np.ndarray, weights: np.ndarray) -> np.ndarray:
        """
        Weighted mean of measurement sigma points Z (N, 3).

        The bearing is averaged around the first (central) sigma point.
        """
        z_mean = weights @ Z
        z_mean[1] = weighted_angle_mean(Z[:, 1], weights, Z[0, 1])
        return z_mean

    def initial_position(self, z: np.ndarray) -> np.ndarray:
        """Position [px, py] from polar coordinates [rho, phi]."""
        rho, phi = z[0], z[1]
        return np.array([rho * np.cos(phi), rho * np.sin(phi)])

    def initial_position_variance(self, z: np.ndarray) -> np.ndarray:
        """
        Variances of the seeded position.

        Range noise acts radially and bearing noise tangentially (rho
        std_phi); both axes get the larger of the two so the initial
        covariance stays diagonal.
        """
        std_r = np.sqrt(self.R[0, 0])
        std_tangential = z[0] * np.sqrt(self.R[1, 1])
        var = max(std_r, std_tangential) ** 2
        return np.array([var, var])


def measurement_model_for(sensor_type: SensorType, config: FilterConfig):
    """
    Create the measurement model matching a sensor type.

    Args:
        sensor_type: LIDAR or RADAR.
        config: Filter configuration with the sensor noise stds.

    Returns:
        LidarMeasurementModel or RadarMeasurementModel.
    """
    if sensor_type is SensorType.LIDAR:
        return LidarMeasurementModel(config)
    if sensor_type is SensorType.RADAR:
        return RadarMeasurementModel(config)
    raise ValueError(f"No measurement model for sensor type {sensor_type!r}")
