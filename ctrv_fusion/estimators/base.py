"""
Base class for the lidar/radar fusion filters.

This module defines the interface shared by the Extended and Unscented
Kalman filter variants and implements the measurement-processing state
machine on top of it:

    Uninitialized --(first enabled measurement)--> Running

While Running every enabled measurement triggers predict(dt) followed by
update(). Both steps return new values instead of mutating the filter; the
filter state, timestamp and NIS counters are replaced only after the whole
step succeeded, so a failing measurement leaves the filter untouched.

Disabled sensors: a measurement from a sensor switched off in the
configuration is skipped entirely. It neither predicts nor updates and does
not advance the internal timestamp; the next enabled measurement predicts
across the full elapsed time.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np

from ctrv_fusion.errors import FilterUpdateError
from ctrv_fusion.fusion.chi_square import normalized_innovation_squared
from ctrv_fusion.fusion.config import FilterConfig
from ctrv_fusion.fusion.consistency import NISTracker
from ctrv_fusion.fusion.types import (
    STATE_DIM,
    YAW,
    Estimate,
    Measurement,
    SensorType,
)
from ctrv_fusion.models.measurement_models import measurement_model_for
from ctrv_fusion.utils.angles import wrap_angle
from ctrv_fusion.utils.covariance import ensure_psd


# Innovation covariances worse conditioned than this are treated as singular
MAX_CONDITION_NUMBER = 1e12


@dataclass
class Prediction:
    """
    Result of a time update.

    Attributes:
        state: Predicted state x̂_k^- (5,).
        covariance: Predicted covariance P_k^- (5×5).
        dt: Elapsed time of the prediction (s).
        sigma_points: Predicted sigma points (2n_aug+1, 5); UKF only. The
            update of the same step reuses them.
    """

    state: np.ndarray
    covariance: np.ndarray
    dt: float
    sigma_points: Optional[np.ndarray] = None


@dataclass
class Correction:
    """
    Result of a measurement update.

    Attributes:
        state: Updated state x̂_k (5,).
        covariance: Updated covariance P_k (5×5).
        innovation: Innovation y = z - ẑ (m,).
        innovation_covariance: Innovation covariance S (m×m).
        nis: Normalized innovation squared y^T S^{-1} y.
    """

    state: np.ndarray
    covariance: np.ndarray
    innovation: np.ndarray
    innovation_covariance: np.ndarray
    nis: float


class FusionFilter(ABC):
    """
    Abstract base class for CTRV lidar/radar fusion filters.

    Subclasses implement predict() and update(); callers only use
    process_measurement() and the accessors, so they do not need to know
    which estimator runs underneath.

    Attributes:
        config: Filter configuration.
        state: Current state estimate [px, py, v, yaw, yaw_rate], None
            until initialized.
        covariance: Current state covariance (5×5), None until initialized.
        previous_timestamp: Timestamp of the last processed measurement.
        nis_tracker: NIS consistency counters.
        last_nis: NIS of the most recent update.
        last_sensor: Sensor of the most recent processed measurement.
    """

    name = "filter"

    def __init__(self, config: Optional[FilterConfig] = None):
        """
        Initialize an uninitialized filter.

        Args:
            config: Filter configuration. Defaults to FilterConfig().
        """
        self.config = config if config is not None else FilterConfig()
        self.state_dim = STATE_DIM
        self.state: Optional[np.ndarray] = None
        self.covariance: Optional[np.ndarray] = None
        self.previous_timestamp: Optional[float] = None
        self.nis_tracker = NISTracker(self.config.nis_confidence)
        self.last_nis: Optional[float] = None
        self.last_sensor: Optional[SensorType] = None
        self.measurement_models = {
            sensor: measurement_model_for(sensor, self.config)
            for sensor in SensorType
        }

    @property
    def is_initialized(self) -> bool:
        """True once the first enabled measurement has seeded the state."""
        return self.state is not None

    def is_enabled(self, sensor_type: SensorType) -> bool:
        """Whether measurements of this sensor type are processed."""
        if sensor_type is SensorType.LIDAR:
            return self.config.use_lidar
        return self.config.use_radar

    def initialize(self, measurement: Measurement) -> None:
        """
        Seed state and covariance from a single measurement.

        Position comes from the measurement (polar to Cartesian for radar);
        speed, heading and turn rate cannot be observed from one measurement
        and start at zero with the configured variances.

        Args:
            measurement: First measurement of the run.
        """
        model = self.measurement_models[measurement.sensor_type]
        z = measurement.values

        x0 = np.zeros(self.state_dim)
        x0[:2] = model.initial_position(z)

        P0 = np.diag(np.concatenate([
            model.initial_position_variance(z),
            [
                self.config.initial_velocity_var,
                self.config.initial_yaw_var,
                self.config.initial_yaw_rate_var,
            ],
        ]))

        self.state = x0
        self.covariance = P0
        self.previous_timestamp = measurement.timestamp
        self.last_nis = None
        self.last_sensor = measurement.sensor_type

    @abstractmethod
    def predict(self, dt: float) -> Prediction:
        """
        Time update from the current state over dt seconds.

        Does not modify the filter.

        Args:
            dt: Elapsed time (s), dt >= 0.

        Returns:
            Prediction holding the predicted mean and covariance.
        """
        pass

    @abstractmethod
    def update(self, prediction: Prediction, measurement: Measurement) -> Correction:
        """
        Measurement update of a prediction.

        Does not modify the filter.

        Args:
            prediction: Output of predict() for the same step.
            measurement: Measurement to fuse.

        Returns:
            Correction holding the updated mean, covariance and NIS.

        Raises:
            FilterUpdateError: If the innovation covariance is singular or
                the update produces non-finite values.
        """
        pass

    def process_measurement(self, measurement: Measurement) -> bool:
        """
        Run one step of the filter for a measurement.

        Args:
            measurement: Next measurement of the stream, timestamps
                non-decreasing.

        Returns:
            True if the measurement initialized or updated the filter,
            False if its sensor is disabled.

        Raises:
            TypeError: If measurement is not a Measurement.
            ValueError: If the timestamp is earlier than the previous one.
            FilterUpdateError: If the update failed; the filter is unchanged.
        """
        if not isinstance(measurement, Measurement):
            raise TypeError(f"Expected a Measurement, got {type(measurement)}")

        sensor = measurement.sensor_type
        if not self.is_enabled(sensor):
            if self.config.verbose:
                print(f"[t={measurement.timestamp:.6f}s] {sensor.name} disabled, skipped")
            return False

        if not self.is_initialized:
            self.initialize(measurement)
            self.nis_tracker.step()
            if self.config.verbose:
                print(f"[t={measurement.timestamp:.6f}s] {self.name.upper()} "
                      f"initialized from {sensor.name}")
                self._print_state()
            return True

        dt = measurement.timestamp - self.previous_timestamp
        if dt < 0:
            raise ValueError(
                f"Measurement timestamp {measurement.timestamp} is earlier than "
                f"the previous timestamp {self.previous_timestamp}"
            )

        prediction = self.predict(dt)
        correction = self.update(prediction, measurement)

        self.state = correction.state
        self.covariance = correction.covariance
        self.previous_timestamp = measurement.timestamp
        self.last_nis = correction.nis
        self.last_sensor = sensor
        self.nis_tracker.step()
        exceeded = self.nis_tracker.record(sensor, correction.nis)

        if self.config.verbose:
            flag = " (above threshold)" if exceeded else ""
            print(f"[t={measurement.timestamp:.6f}s] {sensor.name} dt={dt:.4f}s "
                  f"NIS={correction.nis:.3f}{flag}")
            self._print_state()
        return True

    def get_state(self) -> Tuple[np.ndarray, np.ndarray]:
        """
        Get current state estimate and covariance.

        Returns:
            Tuple of (state_vector, covariance_matrix) copies.
        """
        if self.state is None or self.covariance is None:
            raise RuntimeError("Filter not initialized. Call process_measurement() first.")
        return self.state.copy(), self.covariance.copy()

    def get_estimate(self) -> Estimate:
        """Snapshot of the current output for scoring, display or logging."""
        x, P = self.get_state()
        return Estimate(
            state=x,
            covariance=P,
            timestamp=self.previous_timestamp,
            nis=self.last_nis,
            sensor_type=self.last_sensor,
        )

    def _require_state(self) -> Tuple[np.ndarray, np.ndarray]:
        if self.state is None or self.covariance is None:
            raise RuntimeError("State and covariance must be initialized")
        return self.state, self.covariance

    def _invert_innovation_covariance(
        self, S: np.ndarray, measurement: Measurement
    ) -> np.ndarray:
        """
        Invert the innovation covariance S, refusing near-singular cases.

        Raises:
            FilterUpdateError: If S is non-finite, singular or too badly
                conditioned to invert reliably.
        """
        if not np.all(np.isfinite(S)):
            raise FilterUpdateError(
                "Innovation covariance contains non-finite entries",
                measurement.sensor_type, measurement.timestamp,
            )
        cond = np.linalg.cond(S)
        if not np.isfinite(cond) or cond > MAX_CONDITION_NUMBER:
            raise FilterUpdateError(
                f"Innovation covariance is near-singular (condition number {cond:.3e})",
                measurement.sensor_type, measurement.timestamp,
            )
        try:
            return np.linalg.inv(S)
        except np.linalg.LinAlgError as e:
            raise FilterUpdateError(
                f"Innovation covariance could not be inverted: {e}",
                measurement.sensor_type, measurement.timestamp,
            ) from e

    def _finish_correction(
        self,
        x: np.ndarray,
        P: np.ndarray,
        innovation: np.ndarray,
        S: np.ndarray,
        S_inv: np.ndarray,
        measurement: Measurement,
    ) -> Correction:
        """Wrap yaw, repair P, compute the NIS and reject non-finite results."""
        nis = normalized_innovation_squared(innovation, S_inv)

        if not (np.all(np.isfinite(x)) and np.all(np.isfinite(P)) and np.isfinite(nis)):
            raise FilterUpdateError(
                "Update produced non-finite state or covariance",
                measurement.sensor_type, measurement.timestamp,
            )

        x = x.copy()
        x[YAW] = wrap_angle(x[YAW])

        return Correction(
            state=x,
            covariance=ensure_psd(P),
            innovation=innovation,
            innovation_covariance=S,
            nis=nis,
        )

    def _print_state(self) -> None:
        x, P = self.state, self.covariance
        print(f"    x = [{', '.join(f'{v:.4f}' for v in x)}]")
        print(f"    diag(P) = [{', '.join(f'{v:.4f}' for v in np.diag(P))}]")
