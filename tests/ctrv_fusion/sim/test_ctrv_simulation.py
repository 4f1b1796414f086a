"""
Unit tests for the synthetic CTRV data generator.

Tests cover:
    - Noiseless trajectories follow the CTRV model
    - Reproducibility with a seeded generator
    - Sensor cycling, noise-free measurements and ground truth
"""

import unittest

import numpy as np
from numpy.testing import assert_allclose

from ctrv_fusion.fusion.types import SensorType
from ctrv_fusion.models.motion_models import CTRVModel
from ctrv_fusion.sim.ctrv_trajectory import (
    ground_truth_from_state,
    simulate_ctrv_trajectory,
    simulate_measurements,
)


class TestTrajectory(unittest.TestCase):

    def test_noiseless_follows_model(self):
        x0 = np.array([1.0, 2.0, 3.0, 0.2, 0.1])
        t, states = simulate_ctrv_trajectory(x0, dt=0.1, n_steps=20)

        self.assertEqual(states.shape, (21, 5))
        assert_allclose(t, 0.1 * np.arange(21))
        assert_allclose(states[0], x0)
        for k in range(20):
            assert_allclose(states[k + 1], CTRVModel.f(states[k], 0.1), atol=1e-12)

    def test_seeded_noise_reproducible(self):
        x0 = np.array([0.0, 0.0, 5.0, 0.0, 0.0])
        _, a = simulate_ctrv_trajectory(x0, 0.05, 100, 0.6, 0.4, np.random.default_rng(5))
        _, b = simulate_ctrv_trajectory(x0, 0.05, 100, 0.6, 0.4, np.random.default_rng(5))
        assert_allclose(a, b)
        self.assertFalse(np.allclose(a[:, 2], 5.0))

    def test_invalid_arguments(self):
        with self.assertRaises(ValueError):
            simulate_ctrv_trajectory(np.zeros(5), dt=0.0, n_steps=10)
        with self.assertRaises(ValueError):
            simulate_ctrv_trajectory(np.zeros(5), dt=0.1, n_steps=-1)


class TestMeasurements(unittest.TestCase):

    def setUp(self):
        self.t, self.states = simulate_ctrv_trajectory(
            np.array([5.0, 1.0, 2.0, 0.3, 0.05]), dt=0.05, n_steps=9
        )

    def test_sensor_cycle_and_truth(self):
        records = simulate_measurements(self.t, self.states, add_noise=False)

        self.assertEqual(len(records), 10)
        sensors = [r.measurement.sensor_type for r in records]
        self.assertEqual(sensors[:4], [SensorType.LIDAR, SensorType.RADAR] * 2)

        lidar = records[0]
        assert_allclose(lidar.measurement.values, self.states[0, :2])
        assert_allclose(lidar.measurement.timestamp, 0.0)

        radar = records[1]
        x = self.states[1]
        assert_allclose(radar.measurement.values[0], np.hypot(x[0], x[1]))
        assert_allclose(radar.measurement.values[1], np.arctan2(x[1], x[0]))
        assert_allclose(radar.ground_truth.vx, x[2] * np.cos(x[3]))

    def test_radar_only(self):
        records = simulate_measurements(
            self.t, self.states, sensors=(SensorType.RADAR,), rng=np.random.default_rng(0)
        )
        for record in records:
            self.assertIs(record.measurement.sensor_type, SensorType.RADAR)
            self.assertGreaterEqual(record.measurement.values[0], 0.0)

    def test_length_mismatch(self):
        with self.assertRaises(ValueError):
            simulate_measurements(self.t[:-1], self.states)
        with self.assertRaises(ValueError):
            simulate_measurements(self.t, self.states, sensors=())

    def test_ground_truth_from_state(self):
        gt = ground_truth_from_state(np.array([1.0, 2.0, 2.0, np.pi / 2, 0.1]))
        assert_allclose(gt.position_velocity(), [1.0, 2.0, 0.0, 2.0], atol=1e-12)
        self.assertEqual(gt.yaw_rate, 0.1)


if __name__ == "__main__":
    unittest.main()
