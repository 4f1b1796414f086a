"""
Run loop feeding a measurement stream through a fusion filter.

The filter itself only consumes measurements; this module adds the
bookkeeping around it: per-step estimate rows in the output-file layout,
running RMSE against ground truth and collection of failed updates.
"""

from dataclasses import dataclass, field
from typing import Iterable, List, Optional

import numpy as np

from ctrv_fusion.errors import FilterUpdateError
from ctrv_fusion.estimators.base import FusionFilter
from ctrv_fusion.eval.metrics import RunningRMSE, compute_estimation_errors, compute_rmse
from ctrv_fusion.fusion.consistency import NISTracker
from ctrv_fusion.fusion.types import SensorType
from ctrv_fusion.io.measurement_file import ESTIMATE_COLUMNS, MeasurementRecord


@dataclass
class RunResult:
    """
    Output of run_filter().

    Attributes:
        timestamps: Timestamp of each output row (N,).
        states: Filter state after each row's measurement (N, 5).
        estimates: [px, py, vx, vy] of each row (N, 4).
        truth: Ground truth [px, py, vx, vy] per row, NaN where missing (N, 4).
        rows: Output-file rows, columns ESTIMATE_COLUMNS (N, 17).
        nis_tracker: NIS counters of the filter at the end of the run.
        failures: Updates that failed and were skipped.
        skipped: Number of measurements ignored because their sensor was
            disabled.
    """

    timestamps: np.ndarray
    states: np.ndarray
    estimates: np.ndarray
    truth: np.ndarray
    rows: np.ndarray
    nis_tracker: NISTracker
    failures: List[FilterUpdateError] = field(default_factory=list)
    skipped: int = 0

    @property
    def rmse(self) -> np.ndarray:
        """RMSE of [px, py, vx, vy] over rows with ground truth."""
        mask = ~np.any(np.isnan(self.truth), axis=1)
        if not np.any(mask):
            return np.full(4, np.nan)
        errors = compute_estimation_errors(self.truth[mask], self.estimates[mask])
        return compute_rmse(errors, axis=0)


def run_filter(
    fusion_filter: FusionFilter,
    records: Iterable[MeasurementRecord],
    skip_failed_updates: bool = False,
) -> RunResult:
    """
    Process a sequence of measurement records.

    One output row is produced for every record once the filter is
    initialized, including records of a disabled sensor (the row then
    repeats the previous estimate).

    Args:
        fusion_filter: Filter to drive (EKF or UKF).
        records: Measurement records in non-decreasing timestamp order.
        skip_failed_updates: If True, a FilterUpdateError is recorded in
            RunResult.failures and the measurement skipped; otherwise it
            propagates.

    Returns:
        RunResult with per-step estimates, RMSE and NIS counters.
    """
    running_rmse = RunningRMSE(dim=4)
    failures: List[FilterUpdateError] = []
    skipped = 0

    timestamps, states, estimates, truths, rows = [], [], [], [], []

    for record in records:
        try:
            processed = fusion_filter.process_measurement(record.measurement)
        except FilterUpdateError as e:
            if not skip_failed_updates:
                raise
            failures.append(e)
            continue

        if not processed:
            skipped += 1
        if not fusion_filter.is_initialized:
            continue

        estimate = fusion_filter.get_estimate()
        est_pv = estimate.position_velocity()

        if record.ground_truth is not None:
            truth_pv = record.ground_truth.position_velocity()
            truth_row = record.ground_truth.to_vector()
            rmse = running_rmse.update(truth_pv, est_pv)
        else:
            truth_pv = np.full(4, np.nan)
            truth_row = np.full(6, np.nan)
            rmse = running_rmse.value if running_rmse.count else np.full(4, np.nan)

        latest = fusion_filter.nis_tracker.latest
        nis_row = [
            _nan_if_none(latest[SensorType.LIDAR]),
            _nan_if_none(latest[SensorType.RADAR]),
        ]

        timestamps.append(record.measurement.timestamp)
        states.append(estimate.state)
        estimates.append(est_pv)
        truths.append(truth_pv)
        rows.append(np.concatenate([estimate.state, nis_row, truth_row, rmse]))

    n_cols = len(ESTIMATE_COLUMNS)
    return RunResult(
        timestamps=np.array(timestamps, dtype=float),
        states=np.array(states, dtype=float).reshape(-1, 5),
        estimates=np.array(estimates, dtype=float).reshape(-1, 4),
        truth=np.array(truths, dtype=float).reshape(-1, 4),
        rows=np.array(rows, dtype=float).reshape(-1, n_cols),
        nis_tracker=fusion_filter.nis_tracker,
        failures=failures,
        skipped=skipped,
    )


def _nan_if_none(value: Optional[float]) -> float:
    return np.nan if value is None else value
