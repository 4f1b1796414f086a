"""
Constant Turn Rate and Velocity (CTRV) process model.

State: x = [px, py, v, yaw, yaw_rate]

The object moves with constant speed v along a circular arc with constant
turn rate. Over an interval dt:

    yaw_rate != 0:
        px' = px + v/yaw_rate * ( sin(yaw + yaw_rate*dt) - sin(yaw))
        py' = py + v/yaw_rate * (-cos(yaw + yaw_rate*dt) + cos(yaw))
    yaw_rate ~ 0 (straight line):
        px' = px + v*dt*cos(yaw)
        py' = py + v*dt*sin(yaw)
    yaw' = yaw + yaw_rate*dt,  v' = v,  yaw_rate' = yaw_rate

Process noise is a longitudinal acceleration nu_a and a yaw acceleration
nu_yawdd, both constant over dt. They enter the state through

    G = [[dt²/2 cos(yaw), 0      ],
         [dt²/2 sin(yaw), 0      ],
         [dt,             0      ],
         [0,              dt²/2  ],
         [0,              dt     ]]

either explicitly per sigma point (f_augmented, UKF) or as the additive
covariance Q = G diag(std_a², std_yawdd²) G^T (EKF).
"""

import numpy as np

from ctrv_fusion.fusion.types import AUGMENTED_DIM, STATE_DIM
from ctrv_fusion.utils.angles import wrap_angle


# Below this turn rate the straight-line equations are used (rad/s)
EPSILON_YAW_RATE = 1e-3


class CTRVModel:
    """
    CTRV motion model with its Jacobian and process noise.

    Example:
        >>> x = np.array([0.0, 0.0, 1.0, 0.0, 0.0])  # 1 m/s along +x
        >>> CTRVModel.f(x, dt=0.5)
        array([0.5, 0. , 1. , 0. , 0. ])
    """

    @staticmethod
    def f(x: np.ndarray, dt: float) -> np.ndarray:
        """
        Process model: x_{k+1} = f(x_k, dt), noise free.

        Args:
            x: State [px, py, v, yaw, yaw_rate]
            dt: Time step in seconds

        Returns:
            Predicted state with yaw wrapped to (-π, π]
        """
        if x.shape != (STATE_DIM,):
            raise ValueError(
                f"State must be 5D [px,py,v,yaw,yaw_rate], got shape {x.shape}"
            )

        px, py, v, yaw, yaw_rate = x

        if abs(yaw_rate) > EPSILON_YAW_RATE:
            yaw_end = yaw + yaw_rate * dt
            px_new = px + v / yaw_rate * (np.sin(yaw_end) - np.sin(yaw))
            py_new = py + v / yaw_rate * (np.cos(yaw) - np.cos(yaw_end))
        else:
            px_new = px + v * dt * np.cos(yaw)
            py_new = py + v * dt * np.sin(yaw)

        return np.array([
            px_new,
            py_new,
            v,
            wrap_angle(yaw + yaw_rate * dt),
            yaw_rate,
        ])

    @staticmethod
    def noise_gain(yaw: float, dt: float) -> np.ndarray:
        """
        Noise input matrix G mapping [nu_a, nu_yawdd] into the state.

        Args:
            yaw: Heading at the start of the interval
            dt: Time step in seconds

        Returns:
            5x2 matrix G
        """
        half_dt2 = 0.5 * dt**2
        return np.array([
            [half_dt2 * np.cos(yaw), 0.0],
            [half_dt2 * np.sin(yaw), 0.0],
            [dt, 0.0],
            [0.0, half_dt2],
            [0.0, dt],
        ])

    @staticmethod
    def f_augmented(x_aug: np.ndarray, dt: float) -> np.ndarray:
        """
        Process model for an augmented state [x, nu_a, nu_yawdd].

        Each sigma point carries its own noise sample, which is added to the
        deterministic CTRV prediction through G.

        Args:
            x_aug: Augmented state (7,)
            dt: Time step in seconds

        Returns:
            Predicted (non-augmented) state (5,), yaw wrapped
        """
        if x_aug.shape != (AUGMENTED_DIM,):
            raise ValueError(
                f"Augmented state must be 7D, got shape {x_aug.shape}"
            )

        x = x_aug[:STATE_DIM]
        nu = x_aug[STATE_DIM:]
        x_pred = CTRVModel.f(x, dt) + CTRVModel.noise_gain(x[3], dt) @ nu
        x_pred[3] = wrap_angle(x_pred[3])
        return x_pred

    @staticmethod
    def F(x: np.ndarray, dt: float) -> np.ndarray:
        """
        Jacobian of f with respect to the state, evaluated at x.

        Uses the same zero-turn-rate branch as f; in that branch the
        yaw-rate column holds the limit of the general expression.

        Args:
            x: State [px, py, v, yaw, yaw_rate]
            dt: Time step in seconds

        Returns:
            5x5 Jacobian matrix
        """
        _, _, v, yaw, yaw_rate = x
        F = np.eye(STATE_DIM)

        if abs(yaw_rate) > EPSILON_YAW_RATE:
            yaw_end = yaw + yaw_rate * dt
            sin_diff = np.sin(yaw_end) - np.sin(yaw)
            cos_diff = np.cos(yaw) - np.cos(yaw_end)

            F[0, 2] = sin_diff / yaw_rate
            F[0, 3] = v / yaw_rate * (np.cos(yaw_end) - np.cos(yaw))
            F[0, 4] = v * dt * np.cos(yaw_end) / yaw_rate - v * sin_diff / yaw_rate**2

            F[1, 2] = cos_diff / yaw_rate
            F[1, 3] = v / yaw_rate * sin_diff
            F[1, 4] = v * dt * np.sin(yaw_end) / yaw_rate - v * cos_diff / yaw_rate**2
        else:
            F[0, 2] = dt * np.cos(yaw)
            F[0, 3] = -v * dt * np.sin(yaw)
            F[0, 4] = -0.5 * v * dt**2 * np.sin(yaw)

            F[1, 2] = dt * np.sin(yaw)
            F[1, 3] = v * dt * np.cos(yaw)
            F[1, 4] = 0.5 * v * dt**2 * np.cos(yaw)

        F[3, 4] = dt
        return F

    @staticmethod
    def Q(x: np.ndarray, dt: float, std_a: float, std_yawdd: float) -> np.ndarray:
        """
        Process noise covariance Q = G diag(std_a², std_yawdd²) G^T.

        Q is zero for dt = 0, so a zero-length prediction leaves the
        covariance unchanged.

        Args:
            x: State the noise gain is evaluated at (only yaw is used)
            dt: Time step in seconds
            std_a: Longitudinal acceleration noise std (m/s²)
            std_yawdd: Yaw acceleration noise std (rad/s²)

        Returns:
            5x5 process noise covariance matrix
        """
        G = CTRVModel.noise_gain(x[3], dt)
        return G @ np.diag([std_a**2, std_yawdd**2]) @ G.T
