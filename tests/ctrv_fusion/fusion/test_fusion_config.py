"""
Unit tests for FilterConfig.

Tests cover:
    - Default tuning and noise covariances
    - Parameter validation
    - JSON round trip and unknown keys
"""

import dataclasses
import json
import tempfile
import unittest
from pathlib import Path

import numpy as np
from numpy.testing import assert_allclose

from ctrv_fusion.fusion.config import FilterConfig, load_config, save_config


class TestFilterConfigDefaults(unittest.TestCase):
    """Test default values."""

    def test_defaults(self):
        config = FilterConfig()
        self.assertTrue(config.use_lidar)
        self.assertTrue(config.use_radar)
        self.assertFalse(config.verbose)
        self.assertEqual(config.std_a, 0.6)
        self.assertEqual(config.std_yawdd, 0.4)
        self.assertIsNone(config.sigma_spread)

    def test_noise_covariances(self):
        config = FilterConfig()
        assert_allclose(config.lidar_noise_covariance(), np.diag([0.0225, 0.0225]))
        assert_allclose(config.radar_noise_covariance(), np.diag([0.09, 0.0009, 0.09]))

    def test_immutable(self):
        config = FilterConfig()
        with self.assertRaises(dataclasses.FrozenInstanceError):
            config.std_a = 1.0


class TestFilterConfigValidation(unittest.TestCase):
    """Test rejection of invalid parameters."""

    def test_non_positive_noise(self):
        for name in ("std_a", "std_yawdd", "std_lidar_px", "std_radar_phi"):
            with self.subTest(name=name):
                with self.assertRaises(ValueError):
                    FilterConfig(**{name: 0.0})
                with self.assertRaises(ValueError):
                    FilterConfig(**{name: -1.0})

    def test_non_finite_noise(self):
        with self.assertRaises(ValueError):
            FilterConfig(std_a=float("nan"))
        with self.assertRaises(ValueError):
            FilterConfig(std_radar_r=float("inf"))

    def test_confidence_range(self):
        with self.assertRaises(ValueError):
            FilterConfig(nis_confidence=1.0)
        with self.assertRaises(ValueError):
            FilterConfig(nis_confidence=0.0)

    def test_sigma_spread_range(self):
        self.assertEqual(FilterConfig(sigma_spread=-6.5).sigma_spread, -6.5)
        for spread in (-7.0, -8.0, float("nan")):
            with self.subTest(spread=spread):
                with self.assertRaises(ValueError):
                    FilterConfig(sigma_spread=spread)

    def test_non_numeric_values(self):
        for name, value in (
            ("std_a", "0.6"),
            ("std_radar_rd", None),
            ("std_yawdd", True),
            ("nis_confidence", "0.95"),
            ("sigma_spread", "1"),
        ):
            with self.subTest(name=name):
                with self.assertRaises(ValueError):
                    FilterConfig(**{name: value})

    def test_non_boolean_flags(self):
        with self.assertRaises(ValueError):
            FilterConfig(use_lidar="no")
        with self.assertRaises(ValueError):
            FilterConfig(verbose=1)

    def test_invalid_value_in_file(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "config.json"
            path.write_text(json.dumps({"std_a": "0.6"}))
            with self.assertRaises(ValueError):
                load_config(path)


class TestFilterConfigSerialization(unittest.TestCase):
    """Test dictionary and JSON conversion."""

    def test_dict_round_trip(self):
        config = FilterConfig(use_radar=False, std_a=1.5, sigma_spread=-2.0)
        self.assertEqual(FilterConfig.from_dict(config.to_dict()), config)

    def test_unknown_key_rejected(self):
        with self.assertRaises(ValueError):
            FilterConfig.from_dict({"std_a": 1.0, "std_acc": 2.0})

    def test_file_round_trip(self):
        config = FilterConfig(use_lidar=False, std_yawdd=0.7, verbose=True)
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "config.json"
            save_config(config, path)
            self.assertEqual(load_config(path), config)

    def test_partial_file_uses_defaults(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "config.json"
            path.write_text(json.dumps({"std_a": 2.0}))
            config = load_config(path)

        self.assertEqual(config.std_a, 2.0)
        self.assertEqual(config.std_yawdd, 0.4)

    def test_non_object_file_rejected(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "config.json"
            path.write_text("[1, 2, 3]")
            with self.assertRaises(ValueError):
                load_config(path)


if __name__ == "__main__":
    unittest.main()
