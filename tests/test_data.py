"""
Unit tests for snapshot persistence and image loading.
"""

import pytest
import numpy as np
import cv2
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from camcalib.calibration.types import (
    CalibrationSnapshot,
    CameraCalibration,
    ExtrinsicParameters,
    Matrix3,
    StereoCalibration,
    Vector3,
)
from camcalib.data import list_images, load_images, load_snapshot, save_snapshot


@pytest.fixture
def snapshot(camera_calibration):
    right = CameraCalibration.from_dict({**camera_calibration.to_dict(), 'camera_id': 'cam1'})
    stereo = StereoCalibration(
        left=camera_calibration,
        right=right,
        extrinsics=ExtrinsicParameters(Matrix3.identity(), Vector3(50, 0, 0), 50.0, 0.0),
        fundamental_matrix=Matrix3.identity(),
        essential_matrix=Matrix3.identity(),
        rectification_quality=0.9,
        epipolar_error=0.5
    )
    return CalibrationSnapshot(
        cameras={"cam0": camera_calibration, "cam1": right},
        stereo={("cam0", "cam1"): stereo},
        export_timestamp=1700000100.0
    )


class TestSnapshotIO:
    """Test saving and loading snapshots."""

    @pytest.mark.parametrize("filename", ["calib.yaml", "calib.json"])
    def test_save_load(self, tmp_path, snapshot, filename):
        """Test that a snapshot survives save and load."""
        path = tmp_path / filename

        save_snapshot(snapshot, path)
        loaded = load_snapshot(path)

        assert loaded == snapshot

    def test_empty_file(self, tmp_path):
        """An empty YAML file loads as an empty snapshot."""
        path = tmp_path / "empty.yaml"
        path.write_text("")

        loaded = load_snapshot(path)

        assert loaded.cameras == {}
        assert loaded.stereo == {}


class TestImageLoading:
    """Test calibration image loading."""

    def test_load_sorted(self, tmp_path, saddle_image, blank_image):
        """Test that only images are loaded, in name order."""
        cv2.imwrite(str(tmp_path / "b.png"), blank_image)
        cv2.imwrite(str(tmp_path / "a.png"), saddle_image)
        (tmp_path / "notes.txt").write_text("not an image")

        images = load_images(tmp_path)

        assert [p.name for p in list_images(tmp_path)] == ["a.png", "b.png"]
        assert len(images) == 2
        np.testing.assert_array_equal(images[0], saddle_image)

    def test_unreadable_skipped(self, tmp_path):
        """Test that unreadable files are skipped."""
        (tmp_path / "broken.png").write_bytes(b"not a png")

        assert load_images(tmp_path) == []

    def test_missing_directory(self, tmp_path):
        """Test that a missing directory raises."""
        with pytest.raises(FileNotFoundError):
            load_images(tmp_path / "missing")
