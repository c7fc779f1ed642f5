"""
Unit tests for the calibration store.
"""

import pytest
import threading
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from camcalib.calibration.store import CalibrationStore, stereo_key
from camcalib.calibration.types import (
    CameraCalibration,
    ExtrinsicParameters,
    Matrix3,
    StereoCalibration,
    Vector3,
)


@pytest.fixture
def stereo_calibration(camera_calibration):
    right = CameraCalibration.from_dict({**camera_calibration.to_dict(), 'camera_id': 'cam1'})
    return StereoCalibration(
        left=camera_calibration,
        right=right,
        extrinsics=ExtrinsicParameters(Matrix3.identity(), Vector3(50, 0, 0), 50.0, 0.0),
        fundamental_matrix=Matrix3.identity(),
        essential_matrix=Matrix3.identity(),
        rectification_quality=0.9,
        epipolar_error=0.5
    )


class TestStereoKey:
    """Test canonical pair keys."""

    def test_order_independent(self):
        """Test that both id orders give the sorted key."""
        assert stereo_key("camR", "camL") == stereo_key("camL", "camR") == ("camL", "camR")


class TestCalibrationStore:
    """Test record storage."""

    def test_missing_camera(self):
        """Unknown cameras read as None."""
        store = CalibrationStore()

        assert store.get_camera("cam0") is None
        assert store.get_stereo("cam0", "cam1") is None
        assert len(store) == 0

    def test_put_replaces(self, camera_calibration):
        """A second record for the same camera replaces the first."""
        store = CalibrationStore()
        store.put_camera(camera_calibration)
        newer = CameraCalibration.from_dict({**camera_calibration.to_dict(), 'quality': 0.6})
        store.put_camera(newer)

        assert store.get_camera("cam0") == newer
        assert store.camera_ids() == ["cam0"]
        assert "cam0" in store

    def test_stereo_lookup_symmetric(self, stereo_calibration):
        """Stereo records are found with the ids in either order."""
        store = CalibrationStore()
        store.put_stereo(stereo_calibration)

        assert store.get_stereo("cam0", "cam1") is stereo_calibration
        assert store.get_stereo("cam1", "cam0") is stereo_calibration
        assert store.stereo_pairs() == [("cam0", "cam1")]

    def test_publish_stores_everything(self, stereo_calibration):
        """Publish stores camera and stereo records together."""
        store = CalibrationStore()
        ok = store.publish(
            cameras=[stereo_calibration.left, stereo_calibration.right],
            stereo=[stereo_calibration],
            generation=store.generation
        )

        assert ok
        assert store.camera_ids() == ["cam0", "cam1"]
        assert store.get_stereo("cam1", "cam0") is stereo_calibration

    def test_publish_after_clear_rejected(self, stereo_calibration):
        """Work started before a clear cannot publish afterwards."""
        store = CalibrationStore()
        generation = store.generation
        store.clear()

        ok = store.publish(
            cameras=[stereo_calibration.left],
            stereo=[stereo_calibration],
            generation=generation
        )

        assert not ok
        assert len(store) == 0

    def test_clear(self, stereo_calibration):
        """Clear empties both mappings and bumps the generation."""
        store = CalibrationStore()
        store.publish(cameras=[stereo_calibration.left], stereo=[stereo_calibration])
        before = store.generation

        after = store.clear()

        assert after == before + 1
        assert store.get_camera("cam0") is None
        assert store.get_stereo("cam0", "cam1") is None

    def test_snapshot_is_a_copy(self, camera_calibration):
        """Later writes do not change an existing snapshot."""
        store = CalibrationStore()
        store.put_camera(camera_calibration)
        snapshot = store.snapshot()
        store.clear()

        assert snapshot.cameras == {"cam0": camera_calibration}

    def test_replace(self, camera_calibration, stereo_calibration):
        """Replace swaps both mappings."""
        store = CalibrationStore()
        store.put_camera(CameraCalibration.from_dict({**camera_calibration.to_dict(), 'camera_id': 'old'}))

        store.replace({"cam0": camera_calibration}, [stereo_calibration])

        assert store.camera_ids() == ["cam0"]
        assert store.get_stereo("cam1", "cam0") is stereo_calibration

    def test_concurrent_writers(self, camera_calibration):
        """Concurrent writers leave one complete record per camera."""
        store = CalibrationStore()
        base = camera_calibration.to_dict()

        def writer(index):
            for _ in range(50):
                store.put_camera(CameraCalibration.from_dict({**base, 'camera_id': f"cam{index}"}))

        threads = [threading.Thread(target=writer, args=(i,)) for i in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert store.camera_ids() == [f"cam{i}" for i in range(8)]
