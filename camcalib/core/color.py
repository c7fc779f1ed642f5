"""
Color Calibration

Derives white-balance, color-matrix and gamma parameters for a camera.

Two estimators share the (images, camera_id) -> ColorCalibrationData
contract:
    - reference: fixed identity response (unit multipliers, identity matrix,
      gamma 2.2, 5500 K, no tint), independent of image content
    - gray_world: white balance from the gray-world assumption, i.e. the
      average scene color is neutral, so each channel is scaled to the mean
      of the green channel
Chart-based calibration would need color checker detection, which is not
available.
"""

import numpy as np
from typing import Callable, Dict, Any, Optional, Sequence
import logging

from ..calibration.types import ColorCalibrationData, Matrix3, Vector3
from ..exceptions import ProcessingError

logger = logging.getLogger(__name__)

WHITE_BALANCE_REFERENCE_TEMP = 5500.0
DEFAULT_GAMMA = 2.2


def default_color_calibration(
    color_temperature: float = WHITE_BALANCE_REFERENCE_TEMP,
    gamma: float = DEFAULT_GAMMA
) -> ColorCalibrationData:
    """Neutral color response used when color calibration is skipped."""
    return ColorCalibrationData(
        white_balance=Vector3(1.0, 1.0, 1.0),
        color_matrix=Matrix3.identity(),
        gamma=gamma,
        color_temperature=color_temperature,
        tint=0.0
    )


def calibrate_color_reference(
    images: Sequence[np.ndarray],
    camera_id: str
) -> ColorCalibrationData:
    """Reference color calibration; ignores image content."""
    return default_color_calibration()


def calibrate_color_gray_world(
    images: Sequence[np.ndarray],
    camera_id: str
) -> ColorCalibrationData:
    """
    Gray-world white balance.

    Args:
        images: BGR images; grayscale frames are ignored
        camera_id: Camera identifier (for diagnostics)

    Returns:
        ColorCalibrationData with R, G, B multipliers mean_G / mean_c

    Raises:
        ProcessingError: If no color image is available or a channel is black
    """
    channel_means = [
        image.reshape(-1, image.shape[2])[:, :3].astype(np.float64).mean(axis=0)
        for image in images
        if image.ndim == 3 and image.shape[2] >= 3
    ]
    if not channel_means:
        raise ProcessingError(f"No color images for camera {camera_id}", stage="color")

    mean_b, mean_g, mean_r = np.mean(channel_means, axis=0)
    if min(mean_b, mean_g, mean_r) <= 0:
        raise ProcessingError(f"Empty color channel for camera {camera_id}", stage="color")

    multipliers = Vector3(mean_g / mean_r, 1.0, mean_g / mean_b)
    logger.debug(f"Gray-world multipliers for {camera_id}: "
                 f"R={multipliers.x:.3f}, G={multipliers.y:.3f}, B={multipliers.z:.3f}")

    return ColorCalibrationData(
        white_balance=multipliers,
        color_matrix=Matrix3.identity(),
        gamma=DEFAULT_GAMMA,
        color_temperature=WHITE_BALANCE_REFERENCE_TEMP,
        tint=0.0
    )


COLOR_METHODS: Dict[str, Callable[[Sequence[np.ndarray], str], ColorCalibrationData]] = {
    "reference": calibrate_color_reference,
    "gray_world": calibrate_color_gray_world,
}


class ColorCalibrator:
    """
    Color response estimator with a selectable method.

    Example:
        >>> calibrator = ColorCalibrator(method="gray_world")
        >>> color = calibrator(images, "cam0")
    """

    def __init__(self, method: str = "reference"):
        if method not in COLOR_METHODS:
            raise ValueError(f"Unknown color calibration method: {method}. "
                             f"Use one of {sorted(COLOR_METHODS)}")
        self.method = method
        self._estimate = COLOR_METHODS[method]

    def __call__(self, images: Sequence[np.ndarray], camera_id: str) -> ColorCalibrationData:
        return self._estimate(images, camera_id)

    @classmethod
    def from_config(cls, config: Optional[Dict[str, Any]] = None) -> "ColorCalibrator":
        color_config = (config or {}).get("color", {})
        return cls(method=color_config.get("method", "reference"))
