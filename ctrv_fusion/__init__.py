"""CTRV sensor fusion for single-object tracking.

This package contains the state estimation engine used to fuse lidar
(position) and radar (range, bearing, range-rate) measurements:
- models: CTRV process model and the two sensor measurement models
- estimators: Extended and Unscented Kalman filters behind one interface
- fusion: Measurement types, configuration, NIS consistency tracking
- io, eval, sim: Measurement files, accuracy metrics, synthetic data
"""

__version__ = "0.1.0"
