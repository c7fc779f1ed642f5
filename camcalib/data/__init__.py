"""
Data handling module for camcalib.

Contains calibration image loading and snapshot persistence.
"""

from .images import list_images, load_images
from .snapshot_io import save_snapshot, load_snapshot

__all__ = [
    "list_images",
    "load_images",
    "save_snapshot",
    "load_snapshot"
]
