"""
Unscented Kalman Filter for CTRV lidar/radar fusion.

Instead of Jacobians, the UKF propagates a deterministic set of sigma points
through the true nonlinear process and measurement functions.

Implements:
    - Augmentation with the process noise [nu_a, nu_yawdd]:
      x_aug = [x, 0, 0],  P_aug = blockdiag(P, diag(std_a², std_yawdd²))
    - Sigma points (n = 7, 2n+1 = 15 points)
      χ₀ = x_aug,  χᵢ = x_aug + √(λ+n) Lᵢ,  χ_{i+n} = x_aug - √(λ+n) Lᵢ
      with L the Cholesky factor of P_aug
    - Weights: w₀ = λ/(λ+n), wᵢ = 1/(2(λ+n))
    - Prediction: χᵢ⁻ = f_aug(χᵢ, dt), mean and covariance by weighted sums
    - Update: Zᵢ = h(χᵢ⁻) on the same predicted sigma points, cross
      covariance T, gain K = T S^{-1}, P = P⁻ - K S K^T

Yaw (state space) and bearing (radar space) are averaged around the central
sigma point and every angular difference is wrapped to (-π, π].
"""

from typing import Optional

import numpy as np

from ctrv_fusion.estimators.base import Correction, FusionFilter, Prediction
from ctrv_fusion.fusion.config import FilterConfig
from ctrv_fusion.fusion.types import AUGMENTED_DIM, STATE_DIM, YAW, Measurement
from ctrv_fusion.models.motion_models import CTRVModel
from ctrv_fusion.utils.angles import weighted_angle_mean, wrap_angle_array
from ctrv_fusion.utils.covariance import ensure_psd, matrix_sqrt


class CTRVUnscentedKalmanFilter(FusionFilter):
    """
    Unscented Kalman Filter with an augmented CTRV process model.

    Attributes:
        n_aug: Augmented state dimension (7).
        lambda_: Sigma point spread parameter.
        weights: Sigma point weights (2 n_aug + 1,), used for both mean and
            covariance.
    """

    name = "ukf"

    def __init__(self, config: Optional[FilterConfig] = None):
        """
        Initialize Unscented Kalman Filter.

        Args:
            config: Filter configuration. config.sigma_spread sets λ; None
                uses λ = 3 - n_aug.
        """
        super().__init__(config)

        self.n_aug = AUGMENTED_DIM
        spread = self.config.sigma_spread
        self.lambda_ = float(3 - self.n_aug) if spread is None else float(spread)

        self._compute_weights()

    def _compute_weights(self) -> None:
        """Compute the sigma point weights from λ."""
        n = self.n_aug
        self.weights = np.full(2 * n + 1, 1.0 / (2 * (self.lambda_ + n)))
        self.weights[0] = self.lambda_ / (self.lambda_ + n)

    def generate_sigma_points(self, x: np.ndarray, P: np.ndarray) -> np.ndarray:
        """
        Generate augmented sigma points.

        Args:
            x: State mean (5,).
            P: State covariance (5×5).

        Returns:
            Sigma points matrix (2n_aug+1, n_aug), one point per row.
        """
        n = self.n_aug

        x_aug = np.zeros(n)
        x_aug[:STATE_DIM] = x

        P_aug = np.zeros((n, n))
        P_aug[:STATE_DIM, :STATE_DIM] = P
        P_aug[STATE_DIM, STATE_DIM] = self.config.std_a**2
        P_aug[STATE_DIM + 1, STATE_DIM + 1] = self.config.std_yawdd**2

        L = matrix_sqrt((self.lambda_ + n) * P_aug)

        sigma_points = np.zeros((2 * n + 1, n))
        sigma_points[0] = x_aug
        for i in range(n):
            sigma_points[i + 1] = x_aug + L[:, i]
            sigma_points[n + i + 1] = x_aug - L[:, i]

        return sigma_points

    def _state_differences(self, sigma_points: np.ndarray, x: np.ndarray) -> np.ndarray:
        """Sigma point offsets from the mean with wrapped yaw."""
        diff = sigma_points - x
        diff[:, YAW] = wrap_angle_array(diff[:, YAW])
        return diff

    def predict(self, dt: float) -> Prediction:
        """
        Perform prediction step using the Unscented Transform.

        Args:
            dt: Time step (s).

        Returns:
            Prediction with mean, covariance and the predicted sigma points.

        Raises:
            RuntimeError: If state or covariance not initialized.
        """
        x, P = self._require_state()

        sigma_points = self.generate_sigma_points(x, P)
        sigma_pred = np.array([
            CTRVModel.f_augmented(sp, dt) for sp in sigma_points
        ])

        x_pred = self.weights @ sigma_pred
        x_pred[YAW] = weighted_angle_mean(sigma_pred[:, YAW], self.weights, sigma_pred[0, YAW])

        diff = self._state_differences(sigma_pred, x_pred)
        P_pred = ensure_psd((self.weights[:, np.newaxis] * diff).T @ diff)

        return Prediction(
            state=x_pred,
            covariance=P_pred,
            dt=dt,
            sigma_points=sigma_pred,
        )

    def update(self, prediction: Prediction, measurement: Measurement) -> Correction:
        """
        Perform measurement update using the predicted sigma points.

        Args:
            prediction: Output of predict() for this step; must carry the
                predicted sigma points.
            measurement: Lidar or radar measurement.

        Returns:
            Correction with updated mean, covariance and NIS.

        Raises:
            ValueError: If the prediction has no sigma points.
        """
        if prediction.sigma_points is None:
            raise ValueError("UKF update requires the sigma points of its prediction")

        model = self.measurement_models[measurement.sensor_type]
        x = prediction.state
        P = prediction.covariance
        sigma_pred = prediction.sigma_points

        # Measurement sigma points and their mean
        Z = np.array([model.h(sp) for sp in sigma_pred])
        z_pred = model.mean(Z, self.weights)

        z_diff = np.array([model.residual(zi, z_pred) for zi in Z])
        x_diff = self._state_differences(sigma_pred, x)
        weighted_z_diff = self.weights[:, np.newaxis] * z_diff

        # Innovation covariance and state/measurement cross-covariance
        S = weighted_z_diff.T @ z_diff + model.R
        T = x_diff.T @ weighted_z_diff

        S_inv = self._invert_innovation_covariance(S, measurement)
        K = T @ S_inv

        y = model.residual(measurement.values, z_pred)
        x_new = x + K @ y
        P_new = P - K @ S @ K.T

        return self._finish_correction(x_new, P_new, y, S, S_inv, measurement)
