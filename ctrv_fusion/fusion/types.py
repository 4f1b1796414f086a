"""Data types for lidar/radar fusion.

This module defines the core data structures shared by the filters, the
measurement file reader and the run loop: sensor tags, time-stamped
measurements, ground truth records and estimate snapshots.

State Vector (CTRV):
    x = [px, py, v, yaw, yaw_rate]^T

    Where:
        px, py: Position in the tracking frame (m)
        v: Speed magnitude along the heading (m/s)
        yaw: Heading angle, always wrapped to (-π, π] (rad)
        yaw_rate: Turn rate (rad/s)

Time Base Convention:
    All timestamps are float seconds, non-decreasing across a stream.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

import numpy as np


STATE_DIM = 5
AUGMENTED_DIM = 7  # state + longitudinal and yaw acceleration noise

# Indices into the state vector
PX, PY, V, YAW, YAW_RATE = range(STATE_DIM)


class SensorType(Enum):
    """
    Sensor modalities understood by the engine.

    LIDAR is the position sensor (z = [px, py]); RADAR is the polar sensor
    (z = [range, bearing, range_rate]). The value is the one-letter tag used
    in measurement files.
    """

    LIDAR = "L"
    RADAR = "R"

    @property
    def measurement_dim(self) -> int:
        """Number of scalar values in one measurement of this type."""
        return 2 if self is SensorType.LIDAR else 3

    @classmethod
    def from_code(cls, code: str) -> "SensorType":
        """Look up a sensor type from its file tag ('L' or 'R')."""
        try:
            return cls(code.strip().upper())
        except ValueError:
            raise ValueError(
                f"Unknown sensor type code {code!r}, expected 'L' or 'R'"
            ) from None


@dataclass(frozen=True)
class Measurement:
    """Time-stamped measurement packet from one of the two sensors.

    Attributes:
        sensor_type: Which sensor produced the measurement.
        values: Raw measurement vector. [px, py] for LIDAR,
                [range, bearing, range_rate] for RADAR.
        timestamp: Timestamp in seconds.

    Example:
        >>> Measurement(SensorType.LIDAR, np.array([1.0, 1.0]), 0.0)
        >>> Measurement(SensorType.RADAR, np.array([5.0, 0.0, 0.0]), 0.05)
    """

    sensor_type: SensorType
    values: np.ndarray
    timestamp: float

    def __post_init__(self) -> None:
        """Validate the measurement structure."""
        if not isinstance(self.sensor_type, SensorType):
            raise TypeError(
                f"sensor_type must be a SensorType, got {type(self.sensor_type)}"
            )

        if isinstance(self.timestamp, bool) or not isinstance(
            self.timestamp, (float, int, np.floating, np.integer)
        ):
            raise TypeError(f"Timestamp must be numeric, got {type(self.timestamp)}")
        if not np.isfinite(self.timestamp) or self.timestamp < 0:
            raise ValueError(
                f"Timestamp must be finite and non-negative, got {self.timestamp}"
            )

        try:
            values = np.array(self.values, dtype=float)
        except (TypeError, ValueError) as e:
            raise TypeError(f"Measurement values must be numeric: {e}") from e
        if values.ndim != 1:
            raise ValueError(f"Measurement values must be 1D, got shape {values.shape}")

        expected = self.sensor_type.measurement_dim
        if len(values) != expected:
            raise ValueError(
                f"{self.sensor_type.name} measurement needs {expected} values, "
                f"got {len(values)}"
            )
        if not np.all(np.isfinite(values)):
            raise ValueError(f"Measurement values must be finite, got {values}")
        if self.sensor_type is SensorType.RADAR and values[0] < 0:
            raise ValueError(f"Radar range must be non-negative, got {values[0]}")

        # Frozen dataclass: store a read-only copy of the validated values
        values.setflags(write=False)
        object.__setattr__(self, "values", values)
        object.__setattr__(self, "timestamp", float(self.timestamp))


@dataclass(frozen=True)
class GroundTruth:
    """True object state attached to a measurement, used for scoring only.

    Attributes:
        px, py: True position (m).
        vx, vy: True Cartesian velocity (m/s).
        yaw: True heading (rad).
        yaw_rate: True turn rate (rad/s).
    """

    px: float
    py: float
    vx: float
    vy: float
    yaw: float = 0.0
    yaw_rate: float = 0.0

    def position_velocity(self) -> np.ndarray:
        """Return [px, py, vx, vy], the quantities the RMSE is computed on."""
        return np.array([self.px, self.py, self.vx, self.vy])

    def to_vector(self) -> np.ndarray:
        """Return all six values in file order."""
        return np.array([self.px, self.py, self.vx, self.vy, self.yaw, self.yaw_rate])


@dataclass(frozen=True)
class Estimate:
    """Snapshot of the filter output after one processed measurement.

    Attributes:
        state: CTRV state [px, py, v, yaw, yaw_rate] (5,).
        covariance: State covariance (5×5).
        timestamp: Timestamp of the last processed measurement (s).
        nis: NIS of the last update, None after initialization.
        sensor_type: Sensor of the last processed measurement.
    """

    state: np.ndarray
    covariance: np.ndarray
    timestamp: float
    nis: Optional[float] = None
    sensor_type: Optional[SensorType] = None

    @property
    def px(self) -> float:
        return float(self.state[PX])

    @property
    def py(self) -> float:
        return float(self.state[PY])

    @property
    def vx(self) -> float:
        return float(self.state[V] * np.cos(self.state[YAW]))

    @property
    def vy(self) -> float:
        return float(self.state[V] * np.sin(self.state[YAW]))

    def position_velocity(self) -> np.ndarray:
        """Return [px, py, vx, vy] for comparison with ground truth."""
        return np.array([self.px, self.py, self.vx, self.vy])
