"""
Calibration image loading.
"""

from pathlib import Path
from typing import List, Union
import logging

import cv2
import numpy as np

logger = logging.getLogger(__name__)

IMAGE_SUFFIXES = ('.png', '.jpg', '.jpeg', '.bmp', '.tif', '.tiff')


def list_images(directory: Union[str, Path]) -> List[Path]:
    """Image files in a directory, sorted by name."""
    directory = Path(directory)
    if not directory.is_dir():
        raise FileNotFoundError(f"Image directory not found: {directory}")

    return sorted(p for p in directory.iterdir() if p.suffix.lower() in IMAGE_SUFFIXES)


def load_images(directory: Union[str, Path]) -> List[np.ndarray]:
    """
    Load every image in a directory as BGR arrays.

    Unreadable files are skipped with a warning.

    Args:
        directory: Directory of calibration images

    Returns:
        Images in file-name order
    """
    images = []
    for path in list_images(directory):
        image = cv2.imread(str(path))
        if image is None:
            logger.warning(f"Could not load image: {path}")
            continue
        images.append(image)

    logger.info(f"Loaded {len(images)} images from {directory}")
    return images
