"""
Reading and writing lidar/radar measurement files.

Input format: one measurement per line, whitespace separated, the sensor tag
first and the timestamp in integer microseconds after the raw values,
optionally followed by six ground-truth values:

    L  px   py              timestamp_us  [x y vx vy yaw yaw_rate]
    R  rho  phi  rho_dot    timestamp_us  [x y vx vy yaw yaw_rate]

Blank lines and lines starting with '#' are ignored.

Output format: comma-separated estimates, one row per processed
measurement, with the columns listed in ESTIMATE_COLUMNS.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Iterator, List, Optional, Union

import numpy as np

from ctrv_fusion.fusion.types import GroundTruth, Measurement, SensorType


MICROSECONDS_PER_SECOND = 1e6
GROUND_TRUTH_FIELDS = 6

ESTIMATE_COLUMNS = [
    "px", "py", "v", "yaw", "yaw_rate",
    "nis_lidar", "nis_radar",
    "px_true", "py_true", "vx_true", "vy_true", "yaw_true", "yaw_rate_true",
    "rmse_px", "rmse_py", "rmse_vx", "rmse_vy",
]


@dataclass(frozen=True)
class MeasurementRecord:
    """One line of a measurement file.

    Attributes:
        measurement: The sensor measurement.
        ground_truth: Ground truth at the measurement time, if recorded.
        line_number: 1-based line number in the source file (0 if unknown).
    """

    measurement: Measurement
    ground_truth: Optional[GroundTruth] = None
    line_number: int = 0


def parse_measurement_line(line: str, line_number: int = 0) -> MeasurementRecord:
    """
    Parse one line of a measurement file.

    Args:
        line: Text line, e.g. 'L 0.31 0.58 1477010443000000 0.6 0.6 5.2 0 0 0.006'.
        line_number: Line number used in error messages.

    Returns:
        MeasurementRecord with the measurement and optional ground truth.

    Raises:
        ValueError: If the tag is unknown or the field count or a value is
            malformed.
    """
    fields = line.split()
    where = f" on line {line_number}" if line_number else ""
    if not fields:
        raise ValueError(f"Empty measurement line{where}")

    try:
        sensor_type = SensorType.from_code(fields[0])
    except ValueError as e:
        raise ValueError(f"{e}{where}") from e
    n_values = sensor_type.measurement_dim
    n_required = 1 + n_values + 1
    n_with_truth = n_required + GROUND_TRUTH_FIELDS

    if len(fields) not in (n_required, n_with_truth):
        raise ValueError(
            f"{sensor_type.name} line needs {n_required} or {n_with_truth} fields, "
            f"got {len(fields)}{where}"
        )

    try:
        values = np.array([float(v) for v in fields[1:1 + n_values]])
        timestamp_us = int(fields[1 + n_values])
        truth_values = [float(v) for v in fields[n_required:]]
    except ValueError as e:
        raise ValueError(f"Malformed number{where}: {e}") from e

    try:
        measurement = Measurement(
            sensor_type=sensor_type,
            values=values,
            timestamp=timestamp_us / MICROSECONDS_PER_SECOND,
        )
    except ValueError as e:
        raise ValueError(f"{e}{where}") from e
    ground_truth = GroundTruth(*truth_values) if truth_values else None

    return MeasurementRecord(measurement, ground_truth, line_number)


def iter_measurement_file(path: Union[str, Path]) -> Iterator[MeasurementRecord]:
    """
    Lazily parse a measurement file.

    Args:
        path: Path to the measurement file.

    Yields:
        MeasurementRecord per non-empty, non-comment line.
    """
    with open(path) as f:
        for line_number, line in enumerate(f, start=1):
            stripped = line.strip()
            if not stripped or stripped.startswith("#"):
                continue
            yield parse_measurement_line(stripped, line_number)


def read_measurement_file(path: Union[str, Path]) -> List[MeasurementRecord]:
    """Parse a whole measurement file into a list of records."""
    return list(iter_measurement_file(path))


def format_measurement_line(record: MeasurementRecord) -> str:
    """
    Format a record as a measurement-file line (tab separated).

    Args:
        record: Measurement and optional ground truth.

    Returns:
        Line without trailing newline.
    """
    m = record.measurement
    timestamp_us = int(round(m.timestamp * MICROSECONDS_PER_SECOND))
    fields = [m.sensor_type.value]
    fields += [f"{v:.6f}" for v in m.values]
    fields.append(str(timestamp_us))
    if record.ground_truth is not None:
        fields += [f"{v:.6f}" for v in record.ground_truth.to_vector()]
    return "\t".join(fields)


def write_measurement_file(
    records: Iterable[MeasurementRecord], path: Union[str, Path]
) -> None:
    """Write records in the measurement-file format."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        for record in records:
            f.write(format_measurement_line(record) + "\n")


def write_estimates_csv(rows: np.ndarray, path: Union[str, Path]) -> None:
    """
    Write per-step estimates as CSV with a commented header.

    Args:
        rows: Array of shape (N, len(ESTIMATE_COLUMNS)). Missing values
            (e.g. NIS before the first update of a sensor) are NaN.
        path: Output file path.
    """
    rows = np.asarray(rows, dtype=float)
    if rows.ndim != 2 or rows.shape[1] != len(ESTIMATE_COLUMNS):
        raise ValueError(
            f"Estimate rows must have shape (N, {len(ESTIMATE_COLUMNS)}), got {rows.shape}"
        )

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    np.savetxt(
        path,
        rows,
        delimiter=", ",
        fmt="%.6f",
        header=", ".join(ESTIMATE_COLUMNS),
        comments="# ",
    )
