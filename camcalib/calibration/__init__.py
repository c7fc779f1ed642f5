"""
Calibration records, storage and orchestration for camcalib.

Contains the immutable calibration data model, the thread-safe calibration
store and the engine that runs calibrations on a worker pool.
"""

from .types import (
    Vector3,
    Matrix3,
    PatternType,
    CalibrationMode,
    CalibrationPattern,
    IntrinsicParameters,
    DistortionCoefficients,
    ColorCalibrationData,
    CameraCalibration,
    ExtrinsicParameters,
    StereoCalibration,
    CalibrationSnapshot
)
from .store import CalibrationStore, stereo_key
from .engine import CalibrationEngine

__all__ = [
    "Vector3",
    "Matrix3",
    "PatternType",
    "CalibrationMode",
    "CalibrationPattern",
    "IntrinsicParameters",
    "DistortionCoefficients",
    "ColorCalibrationData",
    "CameraCalibration",
    "ExtrinsicParameters",
    "StereoCalibration",
    "CalibrationSnapshot",
    "CalibrationStore",
    "stereo_key",
    "CalibrationEngine"
]
