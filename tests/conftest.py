"""
Pytest configuration and shared fixtures.
"""

import pytest
import numpy as np
import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))


def make_saddle_image(size: int = 200, pattern_size: int = 9, color: bool = True) -> np.ndarray:
    """
    Synthetic target whose candidate grid points are all saddle points.

    I(x, y) = 128 + 100 * sin(pi x / b) * sin(pi y / b), b = size // (N + 1),
    so every grid intersection sits on a zero crossing with alternating
    diagonal neighbours.
    """
    block = size // (pattern_size + 1)
    ys, xs = np.mgrid[0:size, 0:size].astype(np.float64)
    values = 128 + 100 * np.sin(np.pi * xs / block) * np.sin(np.pi * ys / block)
    gray = np.clip(np.round(values), 0, 255).astype(np.uint8)
    if not color:
        return gray
    return np.dstack([gray, gray, gray])


@pytest.fixture
def saddle_image():
    """200x200 BGR image with 81 detectable corners."""
    return make_saddle_image()


@pytest.fixture
def blank_image():
    """Uniform gray image with no detectable corners."""
    return np.full((200, 200, 3), 128, dtype=np.uint8)


@pytest.fixture
def calibration_images():
    """Twelve detectable calibration frames (972 points in total)."""
    return [make_saddle_image() for _ in range(12)]


@pytest.fixture
def intrinsics():
    """Reference intrinsics for a 200x200 image."""
    from camcalib.core.estimation import estimate_intrinsics
    return estimate_intrinsics([[(20, 20)]], 200, 200)


@pytest.fixture
def camera_calibration(intrinsics):
    """A complete camera calibration record for 'cam0'."""
    from camcalib.calibration.types import CameraCalibration
    from camcalib.core.color import default_color_calibration
    from camcalib.core.estimation import REFERENCE_DISTORTION

    return CameraCalibration(
        camera_id="cam0",
        intrinsics=intrinsics,
        distortion=REFERENCE_DISTORTION,
        color=default_color_calibration(),
        quality=0.95,
        timestamp=1700000000.0
    )


@pytest.fixture
def engine():
    """Calibration engine with default components; shut down after the test."""
    from camcalib.calibration.engine import CalibrationEngine

    engine = CalibrationEngine()
    yield engine
    engine.shutdown()
