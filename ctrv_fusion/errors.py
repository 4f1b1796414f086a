"""
Exceptions raised by the fusion engine.

Input validation problems are reported with the built-in ValueError and
TypeError; the classes here cover failures of the numerical recursion
itself, where the caller needs to know which measurement caused them.
"""

from typing import Optional


class FilterUpdateError(RuntimeError):
    """
    A predict/update step could not be completed.

    Raised when the innovation covariance cannot be inverted or the step
    would produce non-finite numbers. The filter state is left as it was
    before the measurement, so the caller can log the failure and skip the
    measurement or abort the run.

    Attributes:
        sensor_type: Sensor that produced the failing measurement.
        timestamp: Timestamp of the failing measurement (seconds).
    """

    def __init__(
        self,
        message: str,
        sensor_type: Optional[object] = None,
        timestamp: Optional[float] = None,
    ):
        self.sensor_type = sensor_type
        self.timestamp = timestamp
        context = []
        if sensor_type is not None:
            context.append(f"sensor={getattr(sensor_type, 'name', sensor_type)}")
        if timestamp is not None:
            context.append(f"t={timestamp:.6f}s")
        if context:
            message = f"{message} ({', '.join(context)})"
        super().__init__(message)


class FilterHealthError(RuntimeError):
    """Covariance drift that cannot be corrected (non-finite entries)."""
