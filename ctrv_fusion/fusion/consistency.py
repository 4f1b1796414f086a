"""NIS consistency tracking for the lidar/radar filters.

For every update the filter hands its NIS value to a NISTracker, which
counts how often it exceeds the chi-square critical value for that sensor's
measurement dimension (2 for lidar, 3 for radar). With correctly tuned
process noise about 5% of updates exceed the 95% threshold; a much higher
rate means the filter is overconfident, a much lower one that it is too
conservative.

The statistic is diagnostic only and never feeds back into the filter.
"""

from typing import Dict, List, Optional

import numpy as np

from ctrv_fusion.fusion.chi_square import chi_square_threshold
from ctrv_fusion.fusion.types import SensorType


class NISTracker:
    """Per-sensor NIS violation counters plus a shared step counter.

    Usage:
        >>> tracker = NISTracker(confidence=0.95)
        >>> tracker.step()
        >>> tracker.record(SensorType.LIDAR, 7.2)
        True
        >>> tracker.violations[SensorType.LIDAR]
        1

    Attributes:
        confidence: Chi-square quantile of the threshold.
        thresholds: Critical value per sensor type.
        steps: Number of measurements processed (shared by both sensors).
        updates: Number of updates per sensor type.
        violations: Number of updates above the threshold per sensor type.
        latest: Most recent NIS per sensor type (None before the first one).
        history: All recorded NIS values per sensor type.
    """

    def __init__(self, confidence: float = 0.95):
        """
        Initialize tracker.

        Args:
            confidence: Chi-square quantile (default 0.95).
        """
        self.confidence = confidence
        self.thresholds: Dict[SensorType, float] = {
            sensor: chi_square_threshold(sensor.measurement_dim, confidence)
            for sensor in SensorType
        }
        self.steps = 0
        self.updates: Dict[SensorType, int] = {sensor: 0 for sensor in SensorType}
        self.violations: Dict[SensorType, int] = {sensor: 0 for sensor in SensorType}
        self.latest: Dict[SensorType, Optional[float]] = {
            sensor: None for sensor in SensorType
        }
        self.history: Dict[SensorType, List[float]] = {
            sensor: [] for sensor in SensorType
        }

    def step(self) -> None:
        """Count one processed measurement."""
        self.steps += 1

    def record(self, sensor_type: SensorType, nis: float) -> bool:
        """
        Record the NIS of one update.

        Args:
            sensor_type: Sensor whose measurement was used in the update.
            nis: Normalized innovation squared of the update.

        Returns:
            True if the NIS exceeded the sensor's threshold.
        """
        nis = float(nis)
        if not np.isfinite(nis) or nis < 0:
            raise ValueError(f"NIS must be finite and non-negative, got {nis}")

        self.updates[sensor_type] += 1
        self.latest[sensor_type] = nis
        self.history[sensor_type].append(nis)

        exceeded = nis > self.thresholds[sensor_type]
        if exceeded:
            self.violations[sensor_type] += 1
        return exceeded

    def violation_rate(
        self,
        sensor_type: SensorType,
        denominator: str = "updates",
    ) -> float:
        """
        Fraction of NIS values above the threshold.

        Args:
            sensor_type: Sensor to report.
            denominator: 'updates' divides by the updates of that sensor;
                'steps' divides by all processed measurements.

        Returns:
            Violation rate in [0, 1], 0.0 when nothing was recorded.
        """
        if denominator == "updates":
            total = self.updates[sensor_type]
        elif denominator == "steps":
            total = self.steps
        else:
            raise ValueError(
                f"denominator must be 'updates' or 'steps', got {denominator!r}"
            )
        if total == 0:
            return 0.0
        return self.violations[sensor_type] / total

    def summary_lines(self) -> List[str]:
        """Human-readable end-of-run report, one line per sensor."""
        lines = []
        for sensor in SensorType:
            rate = 100.0 * self.violation_rate(sensor)
            lines.append(
                f"Final NIS({sensor.name.lower()}): {rate:.2f}% "
                f"({self.violations[sensor]} of {self.updates[sensor]} updates) "
                f"above the {100 * self.confidence:.0f}% threshold "
                f"{self.thresholds[sensor]:.3f}"
            )
        return lines
