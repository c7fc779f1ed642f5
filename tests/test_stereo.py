"""
Unit tests for stereo geometry.
"""

import pytest
import numpy as np
import sys
from pathlib import Path
from scipy.spatial.transform import Rotation

sys.path.insert(0, str(Path(__file__).parent.parent))

from camcalib.calibration.types import IntrinsicParameters, Matrix3, Vector3
from camcalib.core.stereo import (
    StereoSolver,
    epipolar_distances,
    pair_correspondences,
    solve_stereo_eight_point,
    solve_stereo_reference,
)
from camcalib.exceptions import ProcessingError, ValidationError


@pytest.fixture
def stereo_intrinsics():
    """640x480 camera with f = 700 px."""
    return IntrinsicParameters(
        fx=700.0, fy=700.0, cx=320.0, cy=240.0,
        image_width=640, image_height=480,
        fov_horizontal_deg=49.1, fov_vertical_deg=37.8
    )


@pytest.fixture
def synthetic_rig(stereo_intrinsics):
    """
    Noise-free correspondences for a rig with a 5 degree toe-in.

    Returns (left_sets, right_sets, R, t) with X_r = R X_l + t.
    """
    rng = np.random.default_rng(7)
    k = stereo_intrinsics.camera_matrix.as_array()
    rotation = Rotation.from_euler('y', 5.0, degrees=True).as_matrix()
    translation = np.array([-1.0, 0.0, 0.0])

    def project(points):
        uvw = points @ k.T
        return [tuple(p) for p in uvw[:, :2] / uvw[:, 2:]]

    left_sets, right_sets = [], []
    for _ in range(4):
        points = np.column_stack([
            rng.uniform(-2.0, 2.0, 10),
            rng.uniform(-1.5, 1.5, 10),
            rng.uniform(4.0, 8.0, 10),
        ])
        left_sets.append(project(points))
        right_sets.append(project(points @ rotation.T + translation))

    return left_sets, right_sets, rotation, translation


class TestReferenceSolver:
    """Test the fixed placeholder geometry."""

    def test_reference_values(self, intrinsics):
        """Test the fixed reference geometry."""
        solution = solve_stereo_reference([], [], intrinsics, intrinsics)

        assert solution.extrinsics.rotation == Matrix3.identity()
        assert solution.extrinsics.translation == Vector3(50.0, 0.0, 0.0)
        assert solution.extrinsics.baseline == 50.0
        assert solution.extrinsics.convergence_angle == 0.0
        assert solution.fundamental_matrix == Matrix3.identity()
        assert solution.essential_matrix == Matrix3.identity()
        assert solution.rectification_quality == 0.90
        assert solution.epipolar_error == 0.5

    def test_nominal_baseline(self, intrinsics):
        """The reported baseline follows the configured length."""
        solution = solve_stereo_reference([], [], intrinsics, intrinsics, nominal_baseline=120.0)

        assert solution.extrinsics.translation == Vector3(120.0, 0.0, 0.0)


class TestCorrespondences:
    """Test frame pairing."""

    def test_equal_frames_paired(self):
        """Test that equal-sized frames are paired point by point."""
        left = [[(0, 0), (1, 1)], [(2, 2)]]
        right = [[(5, 5), (6, 6)], [(7, 7)]]

        l, r = pair_correspondences(left, right)

        assert l.shape == r.shape == (3, 2)
        np.testing.assert_array_equal(r[2], [7, 7])

    def test_unequal_frames_skipped(self):
        """Frames with different point counts do not contribute."""
        l, r = pair_correspondences([[(0, 0), (1, 1)], [(2, 2)]], [[(5, 5)], [(7, 7)]])

        assert l.shape == (1, 2)
        np.testing.assert_array_equal(l[0], [2, 2])

    def test_empty(self):
        """Test pairing with no frames."""
        l, r = pair_correspondences([], [])

        assert l.shape == (0, 2)


class TestEightPoint:
    """Test the eight-point solver on synthetic data."""

    def test_recovers_pose(self, synthetic_rig, stereo_intrinsics):
        """Rotation, translation direction and toe-in are recovered."""
        left_sets, right_sets, rotation, translation = synthetic_rig

        solution = solve_stereo_eight_point(
            left_sets, right_sets, stereo_intrinsics, stereo_intrinsics, nominal_baseline=50.0
        )
        extr = solution.extrinsics

        np.testing.assert_allclose(extr.rotation.as_array(), rotation, atol=1e-2)
        np.testing.assert_allclose(extr.translation.as_array(), translation * 50.0, atol=1.0)
        assert extr.baseline == 50.0
        assert extr.convergence_angle == pytest.approx(5.0, abs=0.5)

    def test_epipolar_fit(self, synthetic_rig, stereo_intrinsics):
        """Noise-free correspondences lie on their epipolar lines."""
        left_sets, right_sets, _, _ = synthetic_rig

        solution = solve_stereo_eight_point(
            left_sets, right_sets, stereo_intrinsics, stereo_intrinsics
        )

        assert solution.epipolar_error < 1e-2
        assert solution.rectification_quality == 1.0

        l, r = pair_correspondences(left_sets, right_sets)
        distances = epipolar_distances(solution.fundamental_matrix.as_array(), l, r)
        assert distances.shape == (40,)

    def test_too_few_correspondences(self, stereo_intrinsics):
        """Test that fewer than eight correspondences fail."""
        left = [[(10.0 * i, 5.0 * i) for i in range(5)]]
        right = [[(10.0 * i + 3, 5.0 * i) for i in range(5)]]

        with pytest.raises(ProcessingError):
            solve_stereo_eight_point(left, right, stereo_intrinsics, stereo_intrinsics)


class TestStereoSolver:
    """Test validation and method selection."""

    def test_mismatched_sets(self):
        """Test that unequal image set sizes are rejected."""
        solver = StereoSolver(min_frames=10)
        images = [None] * 12

        with pytest.raises(ValidationError) as excinfo:
            solver.validate(images, images[:11])

        assert excinfo.value.actual == 11
        assert excinfo.value.required == 12

    def test_too_few_frames(self):
        """Test that too few frames are rejected."""
        solver = StereoSolver(min_frames=10)

        with pytest.raises(ValidationError) as excinfo:
            solver.validate([None] * 5, [None] * 5)

        assert excinfo.value.actual == 5
        assert excinfo.value.required == 10

    def test_enough_frames(self):
        """Test that exactly min_frames images pass."""
        StereoSolver(min_frames=10).validate([None] * 10, [None] * 10)

    def test_mismatched_detections(self):
        """Test that unequal detection counts are rejected."""
        with pytest.raises(ValidationError):
            StereoSolver().validate_detections([[(1, 1)]] * 12, [[(1, 1)]] * 6)

    def test_unknown_method(self):
        """Test that an unknown method is rejected."""
        with pytest.raises(ValueError):
            StereoSolver(method="bundle_adjustment")

    def test_from_config(self, synthetic_rig, stereo_intrinsics):
        """The configured method is used by solve()."""
        solver = StereoSolver.from_config({
            'stereo': {'method': 'eight_point', 'nominal_baseline_mm': 60.0},
            'calibration': {'min_frames': 4},
        })
        left_sets, right_sets, _, _ = synthetic_rig

        solution = solver.solve(left_sets, right_sets, stereo_intrinsics, stereo_intrinsics)

        assert solver.min_frames == 4
        assert solution.extrinsics.baseline == 60.0
        assert solution.epipolar_error < 1e-2
