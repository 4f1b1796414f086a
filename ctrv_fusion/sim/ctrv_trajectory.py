"""Synthetic CTRV trajectories and lidar/radar measurements.

Ground truth is propagated with the same discrete CTRV model the filters
use, optionally driven by random longitudinal and yaw accelerations drawn
once per step. Measurements are generated from the true states with the
sensor noise of a FilterConfig, so a filter built with the same
configuration is correctly tuned for the data.
"""

from typing import List, Optional, Sequence, Tuple

import numpy as np

from ctrv_fusion.fusion.config import FilterConfig
from ctrv_fusion.fusion.types import (
    PX,
    PY,
    V,
    YAW,
    YAW_RATE,
    GroundTruth,
    Measurement,
    SensorType,
)
from ctrv_fusion.io.measurement_file import MeasurementRecord
from ctrv_fusion.models.measurement_models import RadarMeasurementModel
from ctrv_fusion.models.motion_models import CTRVModel
from ctrv_fusion.utils.angles import wrap_angle


def simulate_ctrv_trajectory(
    x0: np.ndarray,
    dt: float,
    n_steps: int,
    std_a: float = 0.0,
    std_yawdd: float = 0.0,
    rng: Optional[np.random.Generator] = None,
) -> Tuple[np.ndarray, np.ndarray]:
    """Generate a CTRV ground-truth trajectory.

    Args:
        x0: Initial state [px, py, v, yaw, yaw_rate].
        dt: Time step (seconds).
        n_steps: Number of steps after the initial state.
        std_a: Longitudinal acceleration noise std (m/s²); 0 for a noiseless
            trajectory.
        std_yawdd: Yaw acceleration noise std (rad/s²).
        rng: Random generator (default: np.random.default_rng()).

    Returns:
        Tuple of (t, states):
            t: timestamps (n_steps+1,) starting at 0
            states: true states (n_steps+1, 5)
    """
    if dt <= 0:
        raise ValueError(f"dt must be positive, got {dt}")
    if n_steps < 0:
        raise ValueError(f"n_steps must be non-negative, got {n_steps}")

    rng = rng if rng is not None else np.random.default_rng()

    states = np.zeros((n_steps + 1, 5))
    states[0] = np.asarray(x0, dtype=float)
    states[0, YAW] = wrap_angle(states[0, YAW])

    for k in range(n_steps):
        nu = np.array([
            rng.normal(0.0, std_a) if std_a > 0 else 0.0,
            rng.normal(0.0, std_yawdd) if std_yawdd > 0 else 0.0,
        ])
        states[k + 1] = CTRVModel.f_augmented(np.concatenate([states[k], nu]), dt)

    t = dt * np.arange(n_steps + 1)
    return t, states


def ground_truth_from_state(x: np.ndarray) -> GroundTruth:
    """Ground truth record (Cartesian velocity) for a CTRV state."""
    return GroundTruth(
        px=float(x[PX]),
        py=float(x[PY]),
        vx=float(x[V] * np.cos(x[YAW])),
        vy=float(x[V] * np.sin(x[YAW])),
        yaw=float(x[YAW]),
        yaw_rate=float(x[YAW_RATE]),
    )


def simulate_measurements(
    t: np.ndarray,
    states: np.ndarray,
    config: Optional[FilterConfig] = None,
    sensors: Sequence[SensorType] = (SensorType.LIDAR, SensorType.RADAR),
    add_noise: bool = True,
    rng: Optional[np.random.Generator] = None,
) -> List[MeasurementRecord]:
    """Generate one measurement per true state, cycling through sensors.

    Args:
        t: Timestamps (N,) in seconds.
        states: True states (N, 5).
        config: Source of the sensor noise stds (default FilterConfig()).
        sensors: Sensor order; measurement k comes from sensors[k % len].
        add_noise: Add zero-mean Gaussian sensor noise.
        rng: Random generator (default: np.random.default_rng()).

    Returns:
        List of MeasurementRecord with ground truth attached.
    """
    if len(t) != len(states):
        raise ValueError(f"t has {len(t)} entries but states has {len(states)}")
    if not sensors:
        raise ValueError("At least one sensor type is required")

    config = config if config is not None else FilterConfig()
    rng = rng if rng is not None else np.random.default_rng()
    radar = RadarMeasurementModel(config)

    lidar_std = np.array([config.std_lidar_px, config.std_lidar_py])
    radar_std = np.array([config.std_radar_r, config.std_radar_phi, config.std_radar_rd])

    records = []
    for k, (tk, x) in enumerate(zip(t, states)):
        sensor = sensors[k % len(sensors)]
        if sensor is SensorType.LIDAR:
            z = np.array([x[PX], x[PY]])
            if add_noise:
                z = z + rng.normal(0.0, lidar_std)
        else:
            z = radar.h(x)
            if add_noise:
                z = z + rng.normal(0.0, radar_std)
                z[0] = abs(z[0])
                z[1] = wrap_angle(z[1])

        records.append(MeasurementRecord(
            measurement=Measurement(sensor, z, float(tk)),
            ground_truth=ground_truth_from_state(x),
            line_number=k + 1,
        ))

    return records
