"""
Image Correction Module

Applies a stored camera calibration to new images.

Undistortion is a forward radial remap that uses only k1:
    for every output pixel (x, y) with offset (dx, dy) from the principal point
        r^2    = dx^2 + dy^2
        factor = 1 + k1 * r^2
        out(x, y) = src(int(cx + dx * factor), int(cy + dy * factor))
    with source coordinates truncated toward zero and clamped to the image.

Color correction multiplies each channel by its white-balance multiplier and
clamps to [0, 255].

Both always work on a new array; the input image is never modified.
"""

import numpy as np
from typing import Optional
import logging

from ..calibration.store import CalibrationStore
from ..calibration.types import ColorCalibrationData, DistortionCoefficients, IntrinsicParameters

logger = logging.getLogger(__name__)


def undistort_image(
    image: np.ndarray,
    intrinsics: IntrinsicParameters,
    distortion: DistortionCoefficients
) -> np.ndarray:
    """
    Single-coefficient radial remap.

    Args:
        image: Source image (H, W) or (H, W, C)
        intrinsics: Provides the principal point
        distortion: Provides k1

    Returns:
        New image of the same shape and dtype
    """
    height, width = image.shape[:2]
    center_x = intrinsics.cx
    center_y = intrinsics.cy

    ys, xs = np.mgrid[0:height, 0:width]
    dx = xs - center_x
    dy = ys - center_y
    factor = 1 + distortion.k1 * (dx * dx + dy * dy)

    src_x = np.clip((center_x + dx * factor).astype(np.int64), 0, width - 1)
    src_y = np.clip((center_y + dy * factor).astype(np.int64), 0, height - 1)

    # Fancy indexing reads from the untouched source and returns a copy
    return image[src_y, src_x]


def apply_white_balance(image: np.ndarray, color: ColorCalibrationData) -> np.ndarray:
    """
    Scale channels by the white-balance multipliers.

    Args:
        image: BGR(A) or grayscale uint8 image
        color: Color calibration with R, G, B multipliers

    Returns:
        New uint8 image; alpha is copied unchanged, grayscale uses the G multiplier
    """
    r_mult, g_mult, b_mult = color.white_balance.as_tuple()
    result = image.copy()

    if image.ndim == 2:
        scaled = image.astype(np.float64) * g_mult
        result[:] = np.clip(scaled, 0, 255).astype(np.uint8)
        return result

    gains = np.array([b_mult, g_mult, r_mult], dtype=np.float64)
    scaled = image[..., :3].astype(np.float64) * gains
    result[..., :3] = np.clip(scaled, 0, 255).astype(np.uint8)
    return result


class ImageCorrector:
    """
    Corrects images with calibrations held in a CalibrationStore.

    A camera without a stored calibration is not an error: both operations
    return None and the caller keeps the original image.

    Example:
        >>> corrector = ImageCorrector(store)
        >>> corrected = corrector.undistort(frame, "cam0")
        >>> frame = corrected if corrected is not None else frame
    """

    def __init__(self, store: CalibrationStore):
        self.store = store

    def undistort(self, image: np.ndarray, camera_id: str) -> Optional[np.ndarray]:
        """
        Remove lens distortion using the camera's stored calibration.

        Returns:
            Corrected copy, or None if the camera is uncalibrated or correction failed
        """
        calibration = self.store.get_camera(camera_id)
        if calibration is None:
            logger.debug(f"No calibration for {camera_id}, undistort skipped")
            return None

        try:
            result = undistort_image(image, calibration.intrinsics, calibration.distortion)
            logger.info(f"Image undistortion applied for {camera_id}")
            return result
        except Exception as e:
            logger.error(f"Image undistortion failed for {camera_id}: {e}")
            return None

    def color_correct(self, image: np.ndarray, camera_id: str) -> Optional[np.ndarray]:
        """
        Apply the camera's white balance.

        Returns:
            Corrected copy, or None if the camera is uncalibrated or correction failed
        """
        calibration = self.store.get_camera(camera_id)
        if calibration is None:
            logger.debug(f"No calibration for {camera_id}, color correction skipped")
            return None

        try:
            result = apply_white_balance(image, calibration.color)
            logger.info(f"Color calibration applied for {camera_id}")
            return result
        except Exception as e:
            logger.error(f"Color calibration failed for {camera_id}: {e}")
            return None
