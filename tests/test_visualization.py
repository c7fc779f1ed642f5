"""
Unit tests for visualization utilities.
"""

import pytest
import numpy as np
import sys
from pathlib import Path

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt

sys.path.insert(0, str(Path(__file__).parent.parent))

from camcalib.calibration.types import DistortionCoefficients
from camcalib.core.estimation import REFERENCE_DISTORTION
from camcalib.utils.visualization import (
    distortion_displacement,
    plot_detected_corners,
    plot_distortion_field,
)


class TestDistortionDisplacement:
    """Test the distortion field computation."""

    def test_zero_distortion(self, intrinsics):
        """Without distortion nothing moves."""
        zero = DistortionCoefficients(0.0, 0.0, 0.0, 0.0, 0.0)

        xs, ys, u, v = distortion_displacement(intrinsics, zero, step=40)

        assert xs.shape == (5, 5)
        np.testing.assert_allclose(u, 0.0, atol=1e-9)
        np.testing.assert_allclose(v, 0.0, atol=1e-9)

    def test_barrel_points_inward(self, intrinsics):
        """Negative k1 pulls the image corners towards the centre."""
        radial = DistortionCoefficients(-0.1, 0.0, 0.0, 0.0, 0.0)

        xs, ys, u, v = distortion_displacement(intrinsics, radial, step=40)

        assert u[0, 0] > 0 and v[0, 0] > 0
        assert u[-1, -1] < 0 and v[-1, -1] < 0


class TestPlots:
    """Test that plots draw onto the given axes."""

    def teardown_method(self):
        plt.close('all')

    def test_plot_corners(self, saddle_image):
        """Test the corner overlay on given axes."""
        fig, ax = plt.subplots()

        result = plot_detected_corners(saddle_image, [(20, 20), (40, 20)], ax=ax)

        assert result is ax
        assert len(ax.collections) == 1
        assert ax.get_title() == '2 detected points'

    def test_plot_no_corners(self, blank_image):
        """Test the overlay with no points on a grayscale image."""
        ax = plot_detected_corners(blank_image[..., 0], [])

        assert len(ax.collections) == 0

    def test_plot_distortion(self, intrinsics):
        """Test the distortion field plot."""
        ax = plot_distortion_field(intrinsics, REFERENCE_DISTORTION)

        assert ax.get_title() == 'Lens Distortion Field'
        assert ax.get_xlim() == (0.0, 200.0)
