"""
Visualization Utilities for camcalib

Functions for plotting detected calibration points and lens distortion.
"""

import numpy as np
from typing import Sequence, Tuple, Optional
import matplotlib.pyplot as plt
import logging

from ..calibration.types import DistortionCoefficients, IntrinsicParameters

logger = logging.getLogger(__name__)


def plot_detected_corners(
    image: np.ndarray,
    points: Sequence[Tuple[float, float]],
    ax: Optional[plt.Axes] = None,
    color: str = 'red',
    marker: str = '+',
    size: int = 80,
    title: Optional[str] = None,
    **kwargs
) -> plt.Axes:
    """
    Overlay detected pattern points on an image.

    Args:
        image: BGR or grayscale image
        points: Detected (x, y) pixel positions
        ax: Matplotlib axes (created if None)
        color: Marker color
        marker: Marker style
        size: Marker size
        title: Optional plot title
        **kwargs: Additional scatter plot arguments

    Returns:
        Matplotlib axes
    """
    if ax is None:
        fig, ax = plt.subplots(figsize=(10, 8))

    if image.ndim == 3:
        ax.imshow(image[..., 2::-1])  # BGR -> RGB
    else:
        ax.imshow(image, cmap='gray')

    if len(points) > 0:
        xy = np.asarray(points, dtype=np.float64)
        ax.scatter(xy[:, 0], xy[:, 1], c=color, marker=marker, s=size, **kwargs)

    ax.set_title(title or f'{len(points)} detected points')
    ax.set_axis_off()

    return ax


def distortion_displacement(
    intrinsics: IntrinsicParameters,
    distortion: DistortionCoefficients,
    step: int = 40
) -> Tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
    """
    Pixel displacement of the Brown-Conrady lens model on a regular grid.

    Args:
        intrinsics: Camera intrinsics
        distortion: Distortion coefficients (k1, k2, p1, p2, k3)
        step: Grid spacing in pixels

    Returns:
        (x, y, u, v) grid positions and displacement components
    """
    xs, ys = np.meshgrid(
        np.arange(0, intrinsics.image_width, step, dtype=np.float64),
        np.arange(0, intrinsics.image_height, step, dtype=np.float64)
    )

    xn = (xs - intrinsics.cx) / intrinsics.fx
    yn = (ys - intrinsics.cy) / intrinsics.fy
    r2 = xn ** 2 + yn ** 2

    radial = 1 + distortion.k1 * r2 + distortion.k2 * r2 ** 2 + distortion.k3 * r2 ** 3
    xd = xn * radial + 2 * distortion.p1 * xn * yn + distortion.p2 * (r2 + 2 * xn ** 2)
    yd = yn * radial + distortion.p1 * (r2 + 2 * yn ** 2) + 2 * distortion.p2 * xn * yn

    u = xd * intrinsics.fx + intrinsics.cx - xs
    v = yd * intrinsics.fy + intrinsics.cy - ys

    return xs, ys, u, v


def plot_distortion_field(
    intrinsics: IntrinsicParameters,
    distortion: DistortionCoefficients,
    ax: Optional[plt.Axes] = None,
    step: int = 40,
    color: str = 'blue',
    title: str = 'Lens Distortion Field',
    **kwargs
) -> plt.Axes:
    """
    Quiver plot of the lens distortion displacement.

    Args:
        intrinsics: Camera intrinsics
        distortion: Distortion coefficients
        ax: Matplotlib axes (created if None)
        step: Grid spacing in pixels
        color: Arrow color
        title: Plot title
        **kwargs: Additional quiver arguments

    Returns:
        Matplotlib axes
    """
    if ax is None:
        fig, ax = plt.subplots(figsize=(10, 8))

    xs, ys, u, v = distortion_displacement(intrinsics, distortion, step)

    ax.quiver(xs, ys, u, v, color=color, angles='xy', **kwargs)
    ax.scatter([intrinsics.cx], [intrinsics.cy], c='red', marker='x', s=100,
               label='Principal point', zorder=5)

    ax.set_xlim(0, intrinsics.image_width)
    ax.set_ylim(intrinsics.image_height, 0)
    ax.set_xlabel('x (px)')
    ax.set_ylabel('y (px)')
    ax.set_title(title)
    ax.legend()
    ax.set_aspect('equal')

    return ax
