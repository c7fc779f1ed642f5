"""
Utility modules for camcalib.

Contains visualization utilities.
"""

from .visualization import (
    plot_detected_corners,
    plot_distortion_field,
    distortion_displacement
)

__all__ = [
    "plot_detected_corners",
    "plot_distortion_field",
    "distortion_displacement"
]
