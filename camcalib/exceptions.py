"""
Exception types for camcalib.

Calibration internals raise these; the public engine operations catch them,
log the cause and return ``None`` so callers only ever see a single
success/failure outcome.
"""


class CalibrationError(Exception):
    """Base class for all calibration failures."""


class ValidationError(CalibrationError):
    """
    Input rejected before any estimation ran.

    Raised for insufficient frame counts, mismatched left/right image set
    sizes and mismatched counts of frames with a detected pattern.

    Attributes:
        reason: Short description of the rejected condition
        actual: Observed value (frame count, detection count, ...)
        required: Value that was required
    """

    def __init__(self, reason: str, actual: int = 0, required: int = 0):
        self.reason = reason
        self.actual = actual
        self.required = required
        super().__init__(f"{reason} (actual: {actual}, required: {required})")


class ProcessingError(CalibrationError):
    """
    Unexpected fault while estimating parameters or transforming an image.

    Attributes:
        stage: Pipeline stage that failed (e.g. "stereo", "undistort")
    """

    def __init__(self, message: str, stage: str = "unknown"):
        self.stage = stage
        super().__init__(f"[{stage}] {message}")


class CalibrationCancelled(CalibrationError):
    """Work was invalidated by ``cleanup()`` before it could publish."""
