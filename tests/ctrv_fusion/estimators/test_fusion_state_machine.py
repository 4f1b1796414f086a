"""
Unit tests for the measurement-processing state machine shared by the filters.

Tests cover:
    - Initialization from lidar and radar
    - Disabled sensors
    - Timestamp ordering
    - Atomic commit when an update fails
    - Accessors and the filter factory
"""

import contextlib
import io
import unittest
import warnings

import numpy as np
from numpy.testing import assert_allclose

from ctrv_fusion.errors import FilterUpdateError
from ctrv_fusion.estimators import (
    CTRVExtendedKalmanFilter,
    CTRVUnscentedKalmanFilter,
    create_filter,
)
from ctrv_fusion.fusion.config import FilterConfig
from ctrv_fusion.fusion.types import Measurement, SensorType

FILTER_KINDS = ("ekf", "ukf")


def lidar(px, py, t):
    return Measurement(SensorType.LIDAR, np.array([px, py]), t)


def radar(rho, phi, rho_dot, t):
    return Measurement(SensorType.RADAR, np.array([rho, phi, rho_dot]), t)


class TestInitialization(unittest.TestCase):
    """Test the first measurement of a run."""

    def test_uninitialized(self):
        for kind in FILTER_KINDS:
            with self.subTest(kind=kind):
                f = create_filter(kind)
                self.assertFalse(f.is_initialized)
                with self.assertRaises(RuntimeError):
                    f.get_state()
                with self.assertRaises(RuntimeError):
                    f.predict(0.1)

    def test_lidar_first(self):
        for kind in FILTER_KINDS:
            with self.subTest(kind=kind):
                f = create_filter(kind)
                self.assertTrue(f.process_measurement(lidar(1.0, 1.0, 0.0)))

                x, P = f.get_state()
                assert_allclose(x, [1.0, 1.0, 0.0, 0.0, 0.0])
                assert_allclose(P, np.diag([0.0225, 0.0225, 1.0, 1.0, 1.0]))
                self.assertEqual(f.previous_timestamp, 0.0)
                self.assertEqual(f.nis_tracker.steps, 1)
                self.assertEqual(f.nis_tracker.updates[SensorType.LIDAR], 0)

    def test_radar_first(self):
        for kind in FILTER_KINDS:
            with self.subTest(kind=kind):
                f = create_filter(kind)
                self.assertTrue(f.process_measurement(radar(5.0, 0.0, 0.0, 2.5)))

                x, P = f.get_state()
                assert_allclose(x, [5.0, 0.0, 0.0, 0.0, 0.0], atol=1e-12)
                assert_allclose(np.diag(P), [0.09, 0.09, 1.0, 1.0, 1.0])
                self.assertEqual(f.previous_timestamp, 2.5)

    def test_get_state_returns_copies(self):
        f = create_filter("ekf")
        f.process_measurement(lidar(1.0, 1.0, 0.0))
        x, P = f.get_state()
        x[0] = 100.0
        P[0, 0] = 100.0
        self.assertEqual(f.state[0], 1.0)
        self.assertEqual(f.covariance[0, 0], 0.0225)

    def test_estimate_snapshot(self):
        f = create_filter("ukf")
        f.process_measurement(lidar(1.0, 2.0, 0.5))
        estimate = f.get_estimate()
        self.assertEqual(estimate.timestamp, 0.5)
        self.assertIsNone(estimate.nis)
        self.assertIs(estimate.sensor_type, SensorType.LIDAR)
        assert_allclose(estimate.position_velocity(), [1.0, 2.0, 0.0, 0.0])

    def test_rejects_non_measurement(self):
        f = create_filter("ekf")
        with self.assertRaises(TypeError):
            f.process_measurement((SensorType.LIDAR, [1.0, 1.0], 0.0))


class TestDisabledSensors(unittest.TestCase):
    """Measurements of a disabled sensor are skipped entirely."""

    def test_disabled_radar(self):
        for kind in FILTER_KINDS:
            with self.subTest(kind=kind):
                f = create_filter(kind, FilterConfig(use_radar=False))

                # Does not initialize
                self.assertFalse(f.process_measurement(radar(5.0, 0.0, 0.0, 0.0)))
                self.assertFalse(f.is_initialized)

                self.assertTrue(f.process_measurement(lidar(1.0, 1.0, 1.0)))
                state_before = f.state.copy()
                cov_before = f.covariance.copy()

                # Does not predict, update or advance the timestamp
                self.assertFalse(f.process_measurement(radar(1.5, 0.8, 0.0, 2.0)))
                assert_allclose(f.state, state_before)
                assert_allclose(f.covariance, cov_before)
                self.assertEqual(f.previous_timestamp, 1.0)
                self.assertEqual(f.nis_tracker.steps, 1)
                self.assertEqual(f.nis_tracker.updates[SensorType.RADAR], 0)

                self.assertTrue(f.process_measurement(lidar(1.0, 1.0, 3.0)))
                self.assertEqual(f.previous_timestamp, 3.0)
                self.assertEqual(f.nis_tracker.steps, 2)

    def test_disabled_lidar(self):
        f = create_filter("ukf", FilterConfig(use_lidar=False))
        self.assertFalse(f.process_measurement(lidar(1.0, 1.0, 0.0)))
        self.assertTrue(f.process_measurement(radar(5.0, 0.0, 0.0, 0.1)))
        assert_allclose(f.state[:2], [5.0, 0.0], atol=1e-12)


class TestTimestampOrdering(unittest.TestCase):
    """Test time handling between measurements."""

    def test_decreasing_timestamp_raises(self):
        for kind in FILTER_KINDS:
            with self.subTest(kind=kind):
                f = create_filter(kind)
                f.process_measurement(lidar(1.0, 1.0, 1.0))
                state_before = f.state.copy()

                with self.assertRaises(ValueError):
                    f.process_measurement(lidar(1.1, 1.0, 0.5))

                assert_allclose(f.state, state_before)
                self.assertEqual(f.previous_timestamp, 1.0)

    def test_zero_dt_prediction_is_noop(self):
        for kind in FILTER_KINDS:
            with self.subTest(kind=kind):
                f = create_filter(kind)
                f.process_measurement(lidar(1.0, 1.0, 0.0))
                f.process_measurement(lidar(1.2, 1.05, 0.1))
                x, P = f.get_state()

                prediction = f.predict(0.0)
                assert_allclose(prediction.state, x, atol=1e-9)
                assert_allclose(prediction.covariance, P, atol=1e-9)
                # predict() does not modify the filter
                assert_allclose(f.state, x)

    def test_equal_timestamps_accepted(self):
        f = create_filter("ekf")
        f.process_measurement(lidar(1.0, 1.0, 0.5))
        self.assertTrue(f.process_measurement(radar(1.4, 0.78, 0.0, 0.5)))
        self.assertEqual(f.nis_tracker.updates[SensorType.RADAR], 1)


class TestFailedUpdate(unittest.TestCase):
    """A singular innovation covariance leaves the filter untouched."""

    def _degenerate_filter(self, kind):
        f = create_filter(kind)
        f.process_measurement(lidar(1.0, 1.0, 0.0))
        f.process_measurement(lidar(1.1, 1.0, 0.1))
        f.covariance = np.zeros((5, 5))
        f.measurement_models[SensorType.LIDAR].R = np.zeros((2, 2))
        return f

    def test_singular_innovation_covariance(self):
        for kind in FILTER_KINDS:
            with self.subTest(kind=kind):
                f = self._degenerate_filter(kind)
                state_before = f.state.copy()
                steps_before = f.nis_tracker.steps
                nis_before = f.last_nis

                with warnings.catch_warnings():
                    warnings.simplefilter("ignore", RuntimeWarning)
                    with self.assertRaises(FilterUpdateError) as ctx:
                        f.process_measurement(lidar(1.3, 1.0, 0.1))

                self.assertIs(ctx.exception.sensor_type, SensorType.LIDAR)
                self.assertIn("sensor=LIDAR", str(ctx.exception))
                assert_allclose(f.state, state_before)
                assert_allclose(f.covariance, np.zeros((5, 5)))
                self.assertEqual(f.previous_timestamp, 0.1)
                self.assertEqual(f.nis_tracker.steps, steps_before)
                self.assertEqual(f.last_nis, nis_before)


class TestVerboseOutput(unittest.TestCase):

    def test_verbose_prints_steps(self):
        f = create_filter("ekf", FilterConfig(verbose=True))
        buffer = io.StringIO()
        with contextlib.redirect_stdout(buffer):
            f.process_measurement(lidar(1.0, 1.0, 0.0))
            f.process_measurement(radar(1.4, 0.78, 0.0, 0.05))

        output = buffer.getvalue()
        self.assertIn("EKF initialized from LIDAR", output)
        self.assertIn("RADAR dt=0.0500s", output)
        self.assertIn("NIS=", output)

    def test_quiet_by_default(self):
        f = create_filter("ukf")
        buffer = io.StringIO()
        with contextlib.redirect_stdout(buffer):
            f.process_measurement(lidar(1.0, 1.0, 0.0))
            f.process_measurement(lidar(1.1, 1.0, 0.05))
        self.assertEqual(buffer.getvalue(), "")


class TestFilterFactory(unittest.TestCase):

    def test_create_filter(self):
        self.assertIsInstance(create_filter("ekf"), CTRVExtendedKalmanFilter)
        self.assertIsInstance(create_filter("UKF"), CTRVUnscentedKalmanFilter)
        with self.assertRaises(ValueError):
            create_filter("pf")

    def test_config_passed_through(self):
        config = FilterConfig(std_a=2.0)
        self.assertIs(create_filter("ukf", config).config, config)


if __name__ == "__main__":
    unittest.main()
