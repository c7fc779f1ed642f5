"""
Calibration Store

Keeps the last calibration per camera id and per unordered camera-id pair.
All access goes through one re-entrant lock, so readers only ever observe
complete records and never a half-cleared or half-published store.
"""

import threading
from typing import Tuple, Optional, Dict, List, Iterable
import logging

from .types import CalibrationSnapshot, CameraCalibration, StereoCalibration

logger = logging.getLogger(__name__)


def stereo_key(camera_a: str, camera_b: str) -> Tuple[str, str]:
    """Canonical (sorted) key for an unordered camera pair."""
    return tuple(sorted((camera_a, camera_b)))


class CalibrationStore:
    """
    Thread-safe mapping of camera ids and camera pairs to calibrations.

    The store carries a generation counter that ``clear()`` increments. Work
    started under an older generation is rejected by ``publish()``, so a
    calibration that was cancelled by a cleanup can never land afterwards.

    Example:
        >>> store = CalibrationStore()
        >>> store.put_camera(calibration)
        >>> store.get_camera("cam0") == calibration
        True
    """

    def __init__(self):
        self._lock = threading.RLock()
        self._cameras: Dict[str, CameraCalibration] = {}
        self._stereo: Dict[Tuple[str, str], StereoCalibration] = {}
        self._generation = 0

    @property
    def generation(self) -> int:
        with self._lock:
            return self._generation

    def get_camera(self, camera_id: str) -> Optional[CameraCalibration]:
        """Get the calibration for a camera, or None."""
        with self._lock:
            return self._cameras.get(camera_id)

    def put_camera(self, calibration: CameraCalibration) -> None:
        """Store a camera calibration, replacing any previous one."""
        with self._lock:
            self._cameras[calibration.camera_id] = calibration

    def get_stereo(self, camera_a: str, camera_b: str) -> Optional[StereoCalibration]:
        """Get the stereo calibration for a pair, in either order."""
        with self._lock:
            return self._stereo.get(stereo_key(camera_a, camera_b))

    def put_stereo(self, calibration: StereoCalibration) -> None:
        """Store a stereo calibration under its canonical pair key."""
        with self._lock:
            self._stereo[stereo_key(*calibration.camera_ids)] = calibration

    def publish(
        self,
        cameras: Iterable[CameraCalibration] = (),
        stereo: Iterable[StereoCalibration] = (),
        generation: Optional[int] = None
    ) -> bool:
        """
        Store several records in one step.

        Args:
            cameras: Camera calibrations to store
            stereo: Stereo calibrations to store
            generation: Generation the work started under; the publish is
                rejected if the store has been cleared since

        Returns:
            True if the records were stored
        """
        cameras = list(cameras)
        stereo = list(stereo)
        with self._lock:
            if generation is not None and generation != self._generation:
                logger.warning(f"Discarding calibration from generation {generation} "
                               f"(store is at {self._generation})")
                return False
            for calibration in cameras:
                self._cameras[calibration.camera_id] = calibration
            for calibration in stereo:
                self._stereo[stereo_key(*calibration.camera_ids)] = calibration
            return True

    def clear(self) -> int:
        """
        Remove every record and invalidate in-flight work.

        Returns:
            The new generation
        """
        with self._lock:
            self._cameras.clear()
            self._stereo.clear()
            self._generation += 1
            return self._generation

    def snapshot(self) -> CalibrationSnapshot:
        """Consistent copy of both mappings."""
        with self._lock:
            return CalibrationSnapshot(
                cameras=dict(self._cameras),
                stereo=dict(self._stereo)
            )

    def replace(
        self,
        cameras: Dict[str, CameraCalibration],
        stereo: Iterable[StereoCalibration]
    ) -> None:
        """Swap in new contents for both mappings at once."""
        new_stereo = {stereo_key(*calib.camera_ids): calib for calib in stereo}
        with self._lock:
            self._cameras = dict(cameras)
            self._stereo = new_stereo

    def camera_ids(self) -> List[str]:
        with self._lock:
            return sorted(self._cameras)

    def stereo_pairs(self) -> List[Tuple[str, str]]:
        with self._lock:
            return sorted(self._stereo)

    def __len__(self) -> int:
        with self._lock:
            return len(self._cameras) + len(self._stereo)

    def __contains__(self, camera_id: str) -> bool:
        with self._lock:
            return camera_id in self._cameras
