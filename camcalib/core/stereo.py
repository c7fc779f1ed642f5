"""
Stereo Geometry Module

Relative pose and epipolar geometry between two calibrated cameras.

Two solvers share the contract
    (left point sets, right point sets, left K, right K) -> StereoSolution

reference:
    Fixed values: identity rotation, 50 mm baseline along x, zero
    convergence, identity fundamental and essential matrices, rectification
    quality 0.90 and epipolar error 0.5 px. Not a solved pose.

eight_point:
    F from the normalised 8-point algorithm on index-paired frames,
    E = K_r^T F K_l, pose from the cheirality-checked decomposition of E.
    Translation is recovered only up to scale and is reported with the
    nominal baseline length.
"""

import cv2
import numpy as np
from scipy.spatial.transform import Rotation
from typing import Tuple, List, Optional, Dict, Any, Sequence
from dataclasses import dataclass
import logging

from ..calibration.types import (
    ExtrinsicParameters,
    IntrinsicParameters,
    Matrix3,
    Point,
    Vector3,
)
from ..exceptions import ProcessingError, ValidationError

logger = logging.getLogger(__name__)

MIN_CALIBRATION_FRAMES = 10
MIN_CORRESPONDENCES = 8
NOMINAL_BASELINE_MM = 50.0
EPIPOLAR_ERROR_THRESHOLD = 1.0  # pixels

REFERENCE_RECTIFICATION_QUALITY = 0.90
REFERENCE_EPIPOLAR_ERROR = 0.5


@dataclass(frozen=True)
class StereoSolution:
    """Result of a stereo solve (everything but the per-camera records)."""
    extrinsics: ExtrinsicParameters
    fundamental_matrix: Matrix3
    essential_matrix: Matrix3
    rectification_quality: float
    epipolar_error: float


def solve_stereo_reference(
    left_sets: Sequence[List[Point]],
    right_sets: Sequence[List[Point]],
    left_intrinsics: IntrinsicParameters,
    right_intrinsics: IntrinsicParameters,
    nominal_baseline: float = NOMINAL_BASELINE_MM
) -> StereoSolution:
    """Reference stereo solution with fixed placeholder geometry."""
    extrinsics = ExtrinsicParameters(
        rotation=Matrix3.identity(),
        translation=Vector3(nominal_baseline, 0.0, 0.0),
        baseline=nominal_baseline,
        convergence_angle=0.0
    )

    return StereoSolution(
        extrinsics=extrinsics,
        fundamental_matrix=Matrix3.identity(),
        essential_matrix=Matrix3.identity(),
        rectification_quality=REFERENCE_RECTIFICATION_QUALITY,
        epipolar_error=REFERENCE_EPIPOLAR_ERROR
    )


def pair_correspondences(
    left_sets: Sequence[Sequence[Tuple[float, float]]],
    right_sets: Sequence[Sequence[Tuple[float, float]]]
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Build point correspondences from index-paired frames.

    A frame pair contributes only when both sides hold the same number of
    points; points are then matched in order.

    Returns:
        (left_points, right_points), each (N, 2) float64
    """
    left_points = []
    right_points = []
    for left, right in zip(left_sets, right_sets):
        if len(left) != len(right) or not left:
            continue
        left_points.extend(left)
        right_points.extend(right)

    return (
        np.asarray(left_points, dtype=np.float64).reshape(-1, 2),
        np.asarray(right_points, dtype=np.float64).reshape(-1, 2)
    )


def essential_from_fundamental(
    fundamental: np.ndarray,
    left_k: np.ndarray,
    right_k: np.ndarray
) -> np.ndarray:
    """E = K_r^T F K_l"""
    return right_k.T @ fundamental @ left_k


def epipolar_distances(
    fundamental: np.ndarray,
    left_points: np.ndarray,
    right_points: np.ndarray
) -> np.ndarray:
    """
    Symmetric point-to-epipolar-line distance per correspondence.

    Args:
        fundamental: F with x_r^T F x_l = 0
        left_points: (N, 2) pixel coordinates in the left image
        right_points: (N, 2) pixel coordinates in the right image

    Returns:
        (N,) mean of the left and right line distances in pixels
    """
    ones = np.ones((len(left_points), 1))
    x_l = np.hstack([left_points, ones])
    x_r = np.hstack([right_points, ones])

    lines_r = x_l @ fundamental.T   # epipolar lines in the right image
    lines_l = x_r @ fundamental     # epipolar lines in the left image

    residual = np.abs(np.sum(x_r * lines_r, axis=1))
    d_r = residual / np.maximum(np.hypot(lines_r[:, 0], lines_r[:, 1]), 1e-12)
    d_l = residual / np.maximum(np.hypot(lines_l[:, 0], lines_l[:, 1]), 1e-12)

    return (d_l + d_r) / 2.0


def _normalize(points: np.ndarray, k: np.ndarray) -> np.ndarray:
    """Pixel coordinates to normalised image coordinates."""
    return np.column_stack([
        (points[:, 0] - k[0, 2]) / k[0, 0],
        (points[:, 1] - k[1, 2]) / k[1, 1],
    ])


def solve_stereo_eight_point(
    left_sets: Sequence[List[Point]],
    right_sets: Sequence[List[Point]],
    left_intrinsics: IntrinsicParameters,
    right_intrinsics: IntrinsicParameters,
    nominal_baseline: float = NOMINAL_BASELINE_MM,
    epipolar_threshold: float = EPIPOLAR_ERROR_THRESHOLD
) -> StereoSolution:
    """
    Stereo solution from point correspondences.

    Raises:
        ProcessingError: Too few correspondences or a degenerate configuration
    """
    left_points, right_points = pair_correspondences(left_sets, right_sets)
    if len(left_points) < MIN_CORRESPONDENCES:
        raise ProcessingError(
            f"Insufficient correspondences: {len(left_points)} < {MIN_CORRESPONDENCES}",
            stage="stereo"
        )

    fundamental, _ = cv2.findFundamentalMat(left_points, right_points, cv2.FM_8POINT)
    if fundamental is None or fundamental.shape[0] < 3:
        raise ProcessingError("Fundamental matrix estimation failed", stage="stereo")
    fundamental = fundamental[:3, :3]

    left_k = left_intrinsics.camera_matrix.as_array()
    right_k = right_intrinsics.camera_matrix.as_array()
    essential = essential_from_fundamental(fundamental, left_k, right_k)

    _, rotation, translation, _ = cv2.recoverPose(
        essential,
        _normalize(left_points, left_k),
        _normalize(right_points, right_k)
    )

    direction = translation.reshape(3)
    direction = direction / max(np.linalg.norm(direction), 1e-12)

    # Toe-in is the rotation about the vertical axis
    convergence = float(Rotation.from_matrix(rotation).as_euler('yxz', degrees=True)[0])

    distances = epipolar_distances(fundamental, left_points, right_points)
    epipolar_error = float(np.mean(distances))
    rectification_quality = float(np.mean(distances < epipolar_threshold))

    logger.debug(f"Eight-point stereo: {len(left_points)} correspondences, "
                 f"epipolar error {epipolar_error:.4f}px")

    return StereoSolution(
        extrinsics=ExtrinsicParameters(
            rotation=Matrix3.from_array(rotation),
            translation=Vector3.from_array(direction * nominal_baseline),
            baseline=nominal_baseline,
            convergence_angle=convergence
        ),
        fundamental_matrix=Matrix3.from_array(fundamental),
        essential_matrix=Matrix3.from_array(essential),
        rectification_quality=rectification_quality,
        epipolar_error=epipolar_error
    )


class StereoSolver:
    """
    Stereo calibration solver with input validation.

    Attributes:
        method: "reference" or "eight_point"
        nominal_baseline: Baseline length reported for the translation (mm)
        epipolar_threshold: Inlier distance for rectification quality (px)
        min_frames: Minimum images per side
    """

    METHODS = ("reference", "eight_point")

    def __init__(
        self,
        method: str = "reference",
        nominal_baseline: float = NOMINAL_BASELINE_MM,
        epipolar_threshold: float = EPIPOLAR_ERROR_THRESHOLD,
        min_frames: int = MIN_CALIBRATION_FRAMES
    ):
        if method not in self.METHODS:
            raise ValueError(f"Unknown stereo method: {method}. Use one of {self.METHODS}")
        self.method = method
        self.nominal_baseline = nominal_baseline
        self.epipolar_threshold = epipolar_threshold
        self.min_frames = min_frames

    def validate(self, left_images: Sequence[Any], right_images: Sequence[Any]) -> None:
        """
        Check the stereo image sets before any detection runs.

        Raises:
            ValidationError: Unequal set sizes or fewer than min_frames images
        """
        if len(left_images) != len(right_images):
            raise ValidationError(
                "Mismatched stereo image sets",
                actual=len(right_images),
                required=len(left_images)
            )
        if len(left_images) < self.min_frames:
            raise ValidationError(
                "Insufficient stereo calibration frames",
                actual=len(left_images),
                required=self.min_frames
            )

    def validate_detections(
        self,
        left_sets: Sequence[List[Point]],
        right_sets: Sequence[List[Point]]
    ) -> None:
        """
        Check that both sides detected the pattern in the same number of frames.

        Raises:
            ValidationError: Detection counts differ
        """
        if len(left_sets) != len(right_sets):
            raise ValidationError(
                "Mismatched stereo pattern detection",
                actual=len(right_sets),
                required=len(left_sets)
            )

    def solve(
        self,
        left_sets: Sequence[List[Point]],
        right_sets: Sequence[List[Point]],
        left_intrinsics: IntrinsicParameters,
        right_intrinsics: IntrinsicParameters
    ) -> StereoSolution:
        """Run the configured solver."""
        if self.method == "eight_point":
            return solve_stereo_eight_point(
                left_sets, right_sets, left_intrinsics, right_intrinsics,
                nominal_baseline=self.nominal_baseline,
                epipolar_threshold=self.epipolar_threshold
            )
        return solve_stereo_reference(
            left_sets, right_sets, left_intrinsics, right_intrinsics,
            nominal_baseline=self.nominal_baseline
        )

    @classmethod
    def from_config(cls, config: Optional[Dict[str, Any]] = None) -> "StereoSolver":
        """
        Create a solver from a configuration dictionary.

        Args:
            config: Configuration with 'stereo' and 'calibration' sections
        """
        config = config or {}
        stereo_config = config.get("stereo", {})
        calib_config = config.get("calibration", {})

        return cls(
            method=stereo_config.get("method", "reference"),
            nominal_baseline=stereo_config.get("nominal_baseline_mm", NOMINAL_BASELINE_MM),
            epipolar_threshold=stereo_config.get("epipolar_error_threshold", EPIPOLAR_ERROR_THRESHOLD),
            min_frames=calib_config.get("min_frames", MIN_CALIBRATION_FRAMES)
        )
