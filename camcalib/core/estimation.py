"""
Intrinsic and Distortion Estimation

Per-camera geometric parameters derived from detected pattern points.

Both estimators are coarse reference implementations:
    - Intrinsics use a shared focal length of (width + height) / 2 and the
      image centre as principal point. Good enough for coarse alignment
      between camera feeds, not for metrology.
    - Distortion returns a fixed barrel-distortion coefficient set that does
      not depend on the input.

Each is a pure function of (point sets, ...) so a full solver (Zhang's
method, least-squares distortion fitting) can replace it without touching
orchestration, storage or correction code.
"""

import math
from typing import List, Sequence
import logging

from ..calibration.types import DistortionCoefficients, IntrinsicParameters, Point
from ..exceptions import ValidationError

logger = logging.getLogger(__name__)

# Reference distortion set (typical mild barrel distortion)
REFERENCE_DISTORTION = DistortionCoefficients(
    k1=-0.1,
    k2=0.05,
    p1=0.001,
    p2=0.001,
    k3=-0.01
)


def field_of_view(dimension: float, focal_length: float) -> float:
    """
    Field of view along one axis.

    Args:
        dimension: Image extent in pixels
        focal_length: Focal length in pixels

    Returns:
        Angle in degrees: 2 * atan(dimension / (2 * f))
    """
    return 2 * math.atan(dimension / (2 * focal_length)) * 180 / math.pi


def estimate_intrinsics(
    point_sets: Sequence[List[Point]],
    image_width: int,
    image_height: int
) -> IntrinsicParameters:
    """
    Estimate projection parameters for one camera.

    Args:
        point_sets: Non-empty per-image point sets (unused by the reference model)
        image_width: Image width in pixels
        image_height: Image height in pixels

    Returns:
        IntrinsicParameters

    Raises:
        ValidationError: If the image dimensions are not positive
    """
    if image_width <= 0 or image_height <= 0:
        raise ValidationError("Invalid image dimensions", actual=min(image_width, image_height), required=1)

    focal_length = (image_width + image_height) / 2.0

    return IntrinsicParameters(
        fx=focal_length,
        fy=focal_length,
        cx=image_width / 2.0,
        cy=image_height / 2.0,
        image_width=image_width,
        image_height=image_height,
        fov_horizontal_deg=field_of_view(image_width, focal_length),
        fov_vertical_deg=field_of_view(image_height, focal_length)
    )


def estimate_distortion(
    point_sets: Sequence[List[Point]],
    intrinsics: IntrinsicParameters
) -> DistortionCoefficients:
    """
    Estimate lens distortion for one camera.

    Returns the fixed reference coefficients regardless of input.
    """
    return REFERENCE_DISTORTION
