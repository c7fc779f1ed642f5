"""
Snapshot Persistence

Saves and loads exported calibration snapshots. The encoding follows the
file suffix: ``.json`` for JSON, anything else for YAML.
"""

import json
from pathlib import Path
from typing import Union
import logging

import yaml

from ..calibration.types import CalibrationSnapshot

logger = logging.getLogger(__name__)


def save_snapshot(snapshot: CalibrationSnapshot, path: Union[str, Path]) -> None:
    """
    Save a calibration snapshot to file.

    Args:
        snapshot: Snapshot from ``CalibrationEngine.export_calibration_data()``
        path: Output file path (.json or .yaml)
    """
    data = snapshot.to_dict()

    path = Path(path)
    if path.suffix == '.json':
        with open(path, 'w') as f:
            json.dump(data, f, indent=2)
    else:
        with open(path, 'w') as f:
            yaml.safe_dump(data, f)

    logger.info(f"Calibration snapshot saved to {path}")


def load_snapshot(path: Union[str, Path]) -> CalibrationSnapshot:
    """
    Load a calibration snapshot from file.

    Args:
        path: Input file path (.json or .yaml)

    Returns:
        CalibrationSnapshot
    """
    path = Path(path)

    if path.suffix == '.json':
        with open(path, 'r') as f:
            data = json.load(f)
    else:
        with open(path, 'r') as f:
            data = yaml.safe_load(f)

    snapshot = CalibrationSnapshot.from_dict(data or {})
    logger.info(f"Loaded {len(snapshot.cameras)} camera and {len(snapshot.stereo)} "
                f"stereo calibrations from {path}")
    return snapshot
