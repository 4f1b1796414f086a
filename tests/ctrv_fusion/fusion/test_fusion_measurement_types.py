"""
Unit tests for fusion data types.

Tests cover:
    - SensorType tags and measurement dimensions
    - Measurement validation
    - GroundTruth and Estimate conversions
"""

import unittest

import numpy as np
from numpy.testing import assert_allclose

from ctrv_fusion.fusion.types import Estimate, GroundTruth, Measurement, SensorType


class TestSensorType(unittest.TestCase):
    """Test sensor tags."""

    def test_measurement_dim(self):
        self.assertEqual(SensorType.LIDAR.measurement_dim, 2)
        self.assertEqual(SensorType.RADAR.measurement_dim, 3)

    def test_from_code(self):
        self.assertIs(SensorType.from_code("L"), SensorType.LIDAR)
        self.assertIs(SensorType.from_code(" r "), SensorType.RADAR)
        with self.assertRaises(ValueError):
            SensorType.from_code("X")


class TestMeasurement(unittest.TestCase):
    """Test measurement construction and validation."""

    def test_valid_lidar(self):
        m = Measurement(SensorType.LIDAR, [1, 2], 3)
        self.assertIsInstance(m.values, np.ndarray)
        self.assertEqual(m.values.dtype, float)
        self.assertIsInstance(m.timestamp, float)
        assert_allclose(m.values, [1.0, 2.0])

    def test_valid_radar(self):
        m = Measurement(SensorType.RADAR, np.array([5.0, -0.3, 1.2]), 0.05)
        assert_allclose(m.values, [5.0, -0.3, 1.2])

    def test_wrong_value_count(self):
        with self.assertRaises(ValueError):
            Measurement(SensorType.LIDAR, np.array([1.0, 2.0, 3.0]), 0.0)
        with self.assertRaises(ValueError):
            Measurement(SensorType.RADAR, np.array([1.0, 2.0]), 0.0)

    def test_not_1d(self):
        with self.assertRaises(ValueError):
            Measurement(SensorType.LIDAR, np.array([[1.0, 2.0]]), 0.0)

    def test_non_finite_values(self):
        with self.assertRaises(ValueError):
            Measurement(SensorType.LIDAR, np.array([np.nan, 2.0]), 0.0)
        with self.assertRaises(ValueError):
            Measurement(SensorType.RADAR, np.array([1.0, np.inf, 0.0]), 0.0)

    def test_negative_radar_range(self):
        with self.assertRaises(ValueError):
            Measurement(SensorType.RADAR, np.array([-1.0, 0.0, 0.0]), 0.0)

    def test_bad_timestamp(self):
        with self.assertRaises(ValueError):
            Measurement(SensorType.LIDAR, np.array([1.0, 2.0]), -0.1)
        with self.assertRaises(ValueError):
            Measurement(SensorType.LIDAR, np.array([1.0, 2.0]), float("nan"))
        with self.assertRaises(TypeError):
            Measurement(SensorType.LIDAR, np.array([1.0, 2.0]), "0.0")

    def test_bad_sensor_type(self):
        with self.assertRaises(TypeError):
            Measurement("L", np.array([1.0, 2.0]), 0.0)

    def test_values_copied(self):
        values = np.array([1.0, 2.0])
        m = Measurement(SensorType.LIDAR, values, 0.0)
        values[0] = 99.0
        self.assertEqual(m.values[0], 1.0)

    def test_values_read_only(self):
        m = Measurement(SensorType.RADAR, np.array([5.0, 0.1, 1.0]), 0.0)
        self.assertFalse(m.values.flags.writeable)
        with self.assertRaises(ValueError):
            m.values[0] = 99.0
        assert_allclose(m.values, [5.0, 0.1, 1.0])


class TestGroundTruthAndEstimate(unittest.TestCase):
    """Test conversions used for scoring."""

    def test_ground_truth_vectors(self):
        gt = GroundTruth(1.0, 2.0, 3.0, 4.0, 0.5, 0.1)
        assert_allclose(gt.position_velocity(), [1.0, 2.0, 3.0, 4.0])
        assert_allclose(gt.to_vector(), [1.0, 2.0, 3.0, 4.0, 0.5, 0.1])

    def test_estimate_cartesian_velocity(self):
        estimate = Estimate(
            state=np.array([1.0, -1.0, 2.0, np.pi / 2, 0.0]),
            covariance=np.eye(5),
            timestamp=0.0,
        )
        self.assertEqual(estimate.px, 1.0)
        self.assertEqual(estimate.py, -1.0)
        assert_allclose(estimate.position_velocity(), [1.0, -1.0, 0.0, 2.0], atol=1e-12)


if __name__ == "__main__":
    unittest.main()
