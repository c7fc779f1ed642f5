"""
Calibration Pattern Detection

Extracts calibration-target feature points from captured images.

Chessboard detection uses a coarse saddle-point test on a fixed grid:
    1. Convert to luminance (0.299 R + 0.587 G + 0.114 B), truncated
    2. Place N x N candidate intersections on a regular grid whose block
       size is width / (N + 1)
    3. At each candidate, walk the 8-neighbour ring in cyclic order and count
       sign changes of (neighbour > centre)
    4. Accept the candidate when there are at least 4 sign changes

Circle grids and color checkers are declared but not implemented; their
detectors always report no points.
"""

import numpy as np
from typing import List, Optional, Dict, Any, Sequence
import logging

from ..calibration.types import CalibrationPattern, PatternType, Point

logger = logging.getLogger(__name__)

# Ring order: TL, T, TR, R, BR, B, BL, L
NEIGHBOR_RING = (
    (-1, -1), (0, -1), (1, -1),
    (1, 0),
    (1, 1), (0, 1), (-1, 1),
    (-1, 0),
)

MIN_SIGN_CHANGES = 4


def to_grayscale(image: np.ndarray) -> np.ndarray:
    """
    Convert a BGR(A) image to integer luminance; 2-D images are returned unchanged.

    Luminance is truncated, not rounded, so a centre pixel at 100.5 compares
    as 100 against its neighbours.
    """
    if image.ndim == 2:
        return image
    bgr = image[..., :3].astype(np.float64)
    luminance = 0.299 * bgr[..., 2] + 0.587 * bgr[..., 1] + 0.114 * bgr[..., 0]
    return luminance.astype(np.int32)


def is_corner_point(gray: np.ndarray, x: int, y: int) -> bool:
    """
    Saddle-point test at a single pixel.

    Args:
        gray: Grayscale image (H, W)
        x: Candidate column
        y: Candidate row

    Returns:
        True if the neighbour ring changes sign at least MIN_SIGN_CHANGES times
    """
    height, width = gray.shape[:2]
    if x <= 1 or x >= width - 2 or y <= 1 or y >= height - 2:
        return False

    center = int(gray[y, x])
    brighter = [int(gray[y + dy, x + dx]) > center for dx, dy in NEIGHBOR_RING]

    changes = 0
    for i, value in enumerate(brighter):
        if value != brighter[(i + 1) % len(brighter)]:
            changes += 1

    return changes >= MIN_SIGN_CHANGES


def detect_chessboard_corners(image: np.ndarray, pattern_size: int = 9) -> List[Point]:
    """
    Detect chessboard corners on the fixed candidate grid.

    Args:
        image: BGR or grayscale image
        pattern_size: Interior intersections per side (N)

    Returns:
        Accepted corners in row-major order, possibly empty
    """
    gray = to_grayscale(image)
    width = gray.shape[1]

    # Block size follows the image width on both axes
    block_size = width // (pattern_size + 1)
    if block_size <= 0:
        return []

    corners = []
    for row in range(1, pattern_size + 1):
        for col in range(1, pattern_size + 1):
            x = col * block_size
            y = row * block_size
            if is_corner_point(gray, x, y):
                corners.append((x, y))

    return corners


def detect_circles_grid(image: np.ndarray, pattern_size: int = 9) -> List[Point]:
    """Circles-grid detection is not implemented; always returns no points."""
    return []


def detect_asymmetric_circles(image: np.ndarray, pattern_size: int = 9) -> List[Point]:
    """Asymmetric circles detection is not implemented; always returns no points."""
    return []


def detect_color_checker(image: np.ndarray, pattern_size: int = 9) -> List[Point]:
    """Color checker detection is not implemented; always returns no points."""
    return []


_DETECTORS = {
    PatternType.CHESSBOARD: detect_chessboard_corners,
    PatternType.CIRCLES_GRID: detect_circles_grid,
    PatternType.ASYMMETRIC_CIRCLES: detect_asymmetric_circles,
    PatternType.COLOR_CHECKER: detect_color_checker,
}


class PatternDetector:
    """
    Calibration target detector.

    Attributes:
        pattern_size: Interior intersections per side
        square_size: Physical square size in millimetres

    Example:
        >>> detector = PatternDetector(pattern_size=9)
        >>> pattern = detector.detect(image, PatternType.CHESSBOARD)
        >>> print(f"{len(pattern.points)} corners")
    """

    def __init__(self, pattern_size: int = 9, square_size: float = 20.0):
        self.pattern_size = pattern_size
        self.square_size = square_size

    def detect(
        self,
        image: np.ndarray,
        pattern_type: PatternType = PatternType.CHESSBOARD
    ) -> CalibrationPattern:
        """
        Detect a calibration target in one image.

        Args:
            image: BGR or grayscale image
            pattern_type: Target type to search for

        Returns:
            CalibrationPattern; ``points`` is empty when nothing was found
        """
        detector = _DETECTORS[pattern_type]
        if pattern_type is not PatternType.CHESSBOARD:
            logger.debug(f"{pattern_type.value} detection is not implemented")

        points = detector(image, self.pattern_size)

        return CalibrationPattern(
            pattern_type=pattern_type,
            grid_size=self.pattern_size,
            square_size=self.square_size,
            points=tuple(points)
        )

    def extract(
        self,
        images: Sequence[np.ndarray],
        pattern_type: PatternType = PatternType.CHESSBOARD
    ) -> List[List[Point]]:
        """
        Detect the target in every image, keeping only frames where it was found.

        Args:
            images: Captured images
            pattern_type: Target type to search for

        Returns:
            One point list per frame with a detection, in input order
        """
        point_sets = []
        for index, image in enumerate(images):
            pattern = self.detect(image, pattern_type)
            if pattern.detected:
                point_sets.append(list(pattern.points))
            else:
                logger.debug(f"No {pattern_type.value} pattern in frame {index}")

        return point_sets

    @classmethod
    def from_config(cls, config: Optional[Dict[str, Any]] = None) -> "PatternDetector":
        """
        Create a detector from a configuration dictionary.

        Args:
            config: Configuration with a 'calibration' section
        """
        calib_config = (config or {}).get("calibration", {})
        return cls(
            pattern_size=calib_config.get("pattern_size", 9),
            square_size=calib_config.get("square_size_mm", 20.0)
        )


def extract_pattern_points(
    images: Sequence[np.ndarray],
    pattern_type: PatternType = PatternType.CHESSBOARD,
    pattern_size: int = 9
) -> List[List[Point]]:
    """Functional shortcut for ``PatternDetector(pattern_size).extract(...)``."""
    return PatternDetector(pattern_size=pattern_size).extract(images, pattern_type)
