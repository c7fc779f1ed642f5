"""
camcalib: Multi-Camera Geometric and Photometric Calibration
============================================================

Calibrates individual cameras and camera pairs from images of a known
target, keeps the results per camera and per camera pair, and applies them
to new images.

Modules:
    calibration: Calibration records, the record store and the engine
    core: Pattern detection, estimation, stereo geometry and correction
    config: Default configuration and YAML loading
    data: Calibration image loading and snapshot persistence
    utils: Visualization

Example:
    >>> from camcalib import CalibrationEngine
    >>> from camcalib.data import load_images
    >>>
    >>> with CalibrationEngine() as engine:
    ...     calib = engine.calibrate_single_camera("cam0", load_images("calib/cam0"))
    ...     corrected = engine.undistort(frame, "cam0")
"""

__version__ = "0.1.0"

from .calibration.engine import CalibrationEngine
from .calibration.store import CalibrationStore
from .calibration.types import (
    CalibrationMode,
    CalibrationSnapshot,
    CameraCalibration,
    PatternType,
    StereoCalibration,
)
from .exceptions import CalibrationError, ValidationError, ProcessingError

__all__ = [
    "CalibrationEngine",
    "CalibrationStore",
    "CalibrationMode",
    "CalibrationSnapshot",
    "CameraCalibration",
    "PatternType",
    "StereoCalibration",
    "CalibrationError",
    "ValidationError",
    "ProcessingError",
    "__version__",
]
