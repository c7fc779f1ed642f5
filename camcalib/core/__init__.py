"""
Core algorithms for camcalib.

This module contains the estimation and correction components:
    - PatternDetector: Calibration target feature points
    - estimate_intrinsics / estimate_distortion: Per-camera geometry
    - ColorCalibrator: White balance and color response
    - assess_calibration_quality: Quality score from point volume
    - StereoSolver: Relative pose and epipolar geometry
    - ImageCorrector: Undistortion and color correction
"""

from .pattern import PatternDetector, extract_pattern_points
from .estimation import estimate_intrinsics, estimate_distortion
from .color import ColorCalibrator, default_color_calibration
from .quality import assess_calibration_quality, quality_from_point_count
from .stereo import StereoSolver, StereoSolution
from .correction import ImageCorrector, undistort_image, apply_white_balance

__all__ = [
    "PatternDetector",
    "extract_pattern_points",
    "estimate_intrinsics",
    "estimate_distortion",
    "ColorCalibrator",
    "default_color_calibration",
    "assess_calibration_quality",
    "quality_from_point_count",
    "StereoSolver",
    "StereoSolution",
    "ImageCorrector",
    "undistort_image",
    "apply_white_balance"
]
