"""
Extended Kalman Filter for CTRV lidar/radar fusion.

Linearizes the CTRV process model and the radar measurement model around
the current estimate with their analytic Jacobians.

Implements:
    - Prediction
      x̂_k^- = f(x̂_{k-1}, dt)
      P_k^- = F_{k-1} P_{k-1} F_{k-1}^T + Q(dt)
    - Update (lidar: linear H; radar: H = ∂h/∂x at x̂_k^-)
      y = z - h(x̂_k^-)               (bearing wrapped to (-π, π])
      S = H P_k^- H^T + R
      K = P_k^- H^T S^{-1}
      x̂_k = x̂_k^- + K y              (yaw wrapped to (-π, π])
      P_k = (I - K H) P_k^-          (then symmetrized)
"""

from typing import Optional

import numpy as np

from ctrv_fusion.estimators.base import Correction, FusionFilter, Prediction
from ctrv_fusion.fusion.config import FilterConfig
from ctrv_fusion.fusion.types import Measurement
from ctrv_fusion.models.motion_models import CTRVModel
from ctrv_fusion.utils.covariance import ensure_psd


class CTRVExtendedKalmanFilter(FusionFilter):
    """
    Extended Kalman Filter with a CTRV process model.

    Process noise enters as Q = G diag(std_a², std_yawdd²) G^T, the
    linearized counterpart of the UKF's augmented noise sigma points.

    Example:
        >>> ekf = CTRVExtendedKalmanFilter(FilterConfig(std_a=0.6, std_yawdd=0.4))
        >>> ekf.process_measurement(Measurement(SensorType.LIDAR, np.array([1.0, 1.0]), 0.0))
        True
        >>> ekf.state
        array([1., 1., 0., 0., 0.])
    """

    name = "ekf"

    def __init__(self, config: Optional[FilterConfig] = None):
        """
        Initialize Extended Kalman Filter.

        Args:
            config: Filter configuration. Defaults to FilterConfig().
        """
        super().__init__(config)

    def predict(self, dt: float) -> Prediction:
        """
        Perform prediction step (time update).

        The Jacobian F_{k-1} is evaluated at the pre-prediction estimate.

        Args:
            dt: Time step (s).

        Returns:
            Prediction with the propagated mean and covariance.

        Raises:
            RuntimeError: If state or covariance not initialized.
        """
        x, P = self._require_state()

        F = CTRVModel.F(x, dt)
        x_pred = CTRVModel.f(x, dt)
        Q = CTRVModel.Q(x, dt, self.config.std_a, self.config.std_yawdd)

        P_pred = ensure_psd(F @ P @ F.T + Q)

        return Prediction(state=x_pred, covariance=P_pred, dt=dt)

    def update(self, prediction: Prediction, measurement: Measurement) -> Correction:
        """
        Perform measurement update (correction step).

        Lidar uses its constant measurement matrix; radar is linearized at
        the predicted state. With a predicted range near zero the radar
        Jacobian is all zeros and the update leaves the prediction
        unchanged.

        Args:
            prediction: Output of predict() for this step.
            measurement: Lidar or radar measurement.

        Returns:
            Correction with updated mean, covariance and NIS.
        """
        model = self.measurement_models[measurement.sensor_type]
        x = prediction.state
        P = prediction.covariance

        z_pred = model.h(x)
        H = model.H(x)

        # Innovation: y = z - ẑ (bearing wrapped for radar)
        y = model.residual(measurement.values, z_pred)

        # Innovation covariance: S = H P H^T + R
        S = H @ P @ H.T + model.R
        S_inv = self._invert_innovation_covariance(S, measurement)

        # Kalman gain: K = P H^T S^{-1}
        K = P @ H.T @ S_inv

        x_new = x + K @ y
        P_new = (np.eye(self.state_dim) - K @ H) @ P

        return self._finish_correction(x_new, P_new, y, S, S_inv, measurement)
