"""Measurement file input and estimate output."""

from ctrv_fusion.io.measurement_file import (
    ESTIMATE_COLUMNS,
    MeasurementRecord,
    format_measurement_line,
    iter_measurement_file,
    parse_measurement_line,
    read_measurement_file,
    write_estimates_csv,
    write_measurement_file,
)

__all__ = [
    "ESTIMATE_COLUMNS",
    "MeasurementRecord",
    "parse_measurement_line",
    "iter_measurement_file",
    "read_measurement_file",
    "format_measurement_line",
    "write_measurement_file",
    "write_estimates_csv",
]
