"""
Unit tests for intrinsic/distortion estimation and quality assessment.
"""

import math
import pytest
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from camcalib.core.estimation import (
    REFERENCE_DISTORTION,
    estimate_distortion,
    estimate_intrinsics,
    field_of_view,
)
from camcalib.core.quality import assess_calibration_quality, quality_from_point_count
from camcalib.exceptions import ValidationError


class TestIntrinsics:
    """Test the reference intrinsics model."""

    def test_focal_and_center(self):
        """f = (w + h) / 2 and the principal point is the image centre."""
        intr = estimate_intrinsics([[(1, 1)]], 640, 480)

        assert intr.fx == intr.fy == 560.0
        assert (intr.cx, intr.cy) == (320.0, 240.0)
        assert intr.image_size == (640, 480)

    def test_field_of_view(self):
        """FOV = 2 atan(dim / 2f) in degrees."""
        intr = estimate_intrinsics([[(1, 1)]], 640, 480)

        expected_h = 2 * math.degrees(math.atan(640 / (2 * 560.0)))
        expected_v = 2 * math.degrees(math.atan(480 / (2 * 560.0)))

        assert intr.fov_horizontal_deg == pytest.approx(expected_h)
        assert intr.fov_vertical_deg == pytest.approx(expected_v)

    def test_square_image_fov(self):
        """For a square image f equals the side, so FOV is 2 atan(1/2)."""
        assert field_of_view(200, 200) == pytest.approx(53.1301, abs=1e-3)

    def test_invalid_dimensions(self):
        """Zero or negative dimensions are rejected."""
        with pytest.raises(ValidationError):
            estimate_intrinsics([[(1, 1)]], 0, 480)


class TestDistortion:
    """Test the reference distortion model."""

    def test_fixed_coefficients(self, intrinsics):
        """The reference set is returned for any input."""
        dist = estimate_distortion([[(1, 1)]], intrinsics)

        assert dist == REFERENCE_DISTORTION
        assert (dist.k1, dist.k2, dist.p1, dist.p2, dist.k3) == (-0.1, 0.05, 0.001, 0.001, -0.01)
        assert list(dist.as_array()) == [-0.1, 0.05, 0.001, 0.001, -0.01]


class TestQuality:
    """Test the point-volume quality tiers."""

    @pytest.mark.parametrize("total, expected", [
        (600, 0.95),
        (501, 0.95),
        (500, 0.85),
        (400, 0.85),
        (300, 0.75),
        (200, 0.75),
        (150, 0.60),
        (50, 0.60),
        (0, 0.60),
    ])
    def test_tiers(self, total, expected):
        """Tier bounds are exclusive."""
        assert quality_from_point_count(total) == expected

    def test_assess(self):
        """The score uses the total over every frame."""
        point_sets = [[(0, 0)] * 81 for _ in range(12)]

        assert assess_calibration_quality(point_sets) == 0.95
        assert assess_calibration_quality(point_sets[:2]) == 0.75
