"""
Unit tests for NIS statistics and consistency tracking.

Tests cover:
    - Chi-square thresholds for lidar (2 DOF) and radar (3 DOF)
    - NIS of an innovation
    - NISTracker counters, rates and summaries
"""

import unittest

import numpy as np

from ctrv_fusion.fusion.chi_square import (
    chi_square_bounds,
    chi_square_threshold,
    normalized_innovation_squared,
)
from ctrv_fusion.fusion.consistency import NISTracker
from ctrv_fusion.fusion.types import SensorType


class TestChiSquare(unittest.TestCase):
    """Test chi-square critical values."""

    def test_thresholds(self):
        self.assertAlmostEqual(chi_square_threshold(2, 0.95), 5.991, places=3)
        self.assertAlmostEqual(chi_square_threshold(3, 0.95), 7.815, places=3)

    def test_invalid_arguments(self):
        with self.assertRaises(ValueError):
            chi_square_threshold(0)
        with self.assertRaises(ValueError):
            chi_square_threshold(2, confidence=1.5)

    def test_bounds(self):
        lower, upper = chi_square_bounds(3, 0.95)
        self.assertLess(lower, 3.0)
        self.assertGreater(upper, chi_square_threshold(3, 0.95))

    def test_normalized_innovation_squared(self):
        self.assertAlmostEqual(
            normalized_innovation_squared(np.array([3.0, 4.0]), np.eye(2)), 25.0
        )
        S = np.diag([4.0, 0.25])
        self.assertAlmostEqual(
            normalized_innovation_squared(np.array([2.0, 0.5]), np.linalg.inv(S)), 2.0
        )


class TestNISTracker(unittest.TestCase):
    """Test per-sensor violation counting."""

    def setUp(self):
        self.tracker = NISTracker(confidence=0.95)

    def test_initial_state(self):
        self.assertEqual(self.tracker.steps, 0)
        for sensor in SensorType:
            self.assertEqual(self.tracker.updates[sensor], 0)
            self.assertEqual(self.tracker.violations[sensor], 0)
            self.assertIsNone(self.tracker.latest[sensor])
            self.assertEqual(self.tracker.violation_rate(sensor), 0.0)

    def test_record(self):
        self.assertFalse(self.tracker.record(SensorType.LIDAR, 1.0))
        self.assertTrue(self.tracker.record(SensorType.LIDAR, 7.0))
        # 7.0 is below the 3-DOF threshold
        self.assertFalse(self.tracker.record(SensorType.RADAR, 7.0))

        self.assertEqual(self.tracker.updates[SensorType.LIDAR], 2)
        self.assertEqual(self.tracker.violations[SensorType.LIDAR], 1)
        self.assertEqual(self.tracker.violations[SensorType.RADAR], 0)
        self.assertEqual(self.tracker.latest[SensorType.LIDAR], 7.0)
        self.assertEqual(self.tracker.history[SensorType.LIDAR], [1.0, 7.0])

    def test_violation_rate_denominators(self):
        for _ in range(4):
            self.tracker.step()
        self.tracker.record(SensorType.LIDAR, 10.0)
        self.tracker.record(SensorType.LIDAR, 0.5)

        self.assertAlmostEqual(self.tracker.violation_rate(SensorType.LIDAR), 0.5)
        self.assertAlmostEqual(
            self.tracker.violation_rate(SensorType.LIDAR, denominator="steps"), 0.25
        )
        with self.assertRaises(ValueError):
            self.tracker.violation_rate(SensorType.LIDAR, denominator="total")

    def test_invalid_nis(self):
        with self.assertRaises(ValueError):
            self.tracker.record(SensorType.LIDAR, -1.0)
        with self.assertRaises(ValueError):
            self.tracker.record(SensorType.RADAR, float("nan"))
        self.assertEqual(self.tracker.updates[SensorType.LIDAR], 0)

    def test_summary_lines(self):
        self.tracker.record(SensorType.RADAR, 9.0)
        lines = self.tracker.summary_lines()
        self.assertEqual(len(lines), 2)
        self.assertIn("lidar", lines[0])
        self.assertIn("radar", lines[1])
        self.assertIn("100.00%", lines[1])


if __name__ == "__main__":
    unittest.main()
