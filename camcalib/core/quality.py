"""
Calibration quality assessment from accumulated feature-point volume.
"""

from typing import List, Sequence

from ..calibration.types import Point, point_count

# (exclusive lower bound on total points, score), checked in order
QUALITY_TIERS = (
    (500, 0.95),
    (300, 0.85),
    (150, 0.75),
)
BASE_QUALITY = 0.60


def quality_from_point_count(total_points: int) -> float:
    """Map a total detected point count to a quality score."""
    for threshold, score in QUALITY_TIERS:
        if total_points > threshold:
            return score
    return BASE_QUALITY


def assess_calibration_quality(point_sets: Sequence[List[Point]]) -> float:
    """
    Score a calibration run.

    Args:
        point_sets: Point sets of every frame used in the run

    Returns:
        Quality score in [0, 1]
    """
    return quality_from_point_count(point_count(point_sets))
