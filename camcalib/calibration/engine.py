"""
Calibration Engine

Orchestrates single-camera and stereo calibration runs, stores their
results and serves image corrections.

Pipeline (single camera):
    images -> pattern detection -> {intrinsics, distortion, color}
           -> quality score -> CameraCalibration -> store

Pipeline (stereo):
    left/right images -> validation -> detection on both sides
           -> left calibration, then right calibration
           -> detection-count check -> stereo solve
           -> left, right and stereo records published together

Every run is a one-shot task on the engine's worker pool. ``cleanup()``
cancels queued tasks and clears the store; tasks that are already running
notice the cleared generation and drop their results instead of publishing.
"""

import time
from concurrent.futures import CancelledError, Future, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
import threading
import numpy as np
from typing import Any, Callable, Dict, List, Optional, Sequence, Set, Union
import logging

from .store import CalibrationStore
from .types import (
    CalibrationMode,
    CalibrationSnapshot,
    CameraCalibration,
    ColorCalibrationData,
    DistortionCoefficients,
    IntrinsicParameters,
    PatternType,
    Point,
    StereoCalibration,
)
from ..core.color import ColorCalibrator, default_color_calibration
from ..core.correction import ImageCorrector
from ..core.estimation import estimate_distortion, estimate_intrinsics
from ..core.pattern import PatternDetector
from ..core.quality import assess_calibration_quality
from ..core.stereo import MIN_CALIBRATION_FRAMES, StereoSolver
from ..exceptions import CalibrationCancelled, ValidationError

logger = logging.getLogger(__name__)

IntrinsicEstimator = Callable[[Sequence[List[Point]], int, int], IntrinsicParameters]
DistortionEstimator = Callable[[Sequence[List[Point]], IntrinsicParameters], DistortionCoefficients]
ColorEstimator = Callable[[Sequence[np.ndarray], str], ColorCalibrationData]
QualityAssessor = Callable[[Sequence[List[Point]]], float]


class CalibrationEngine:
    """
    Multi-camera calibration engine.

    Attributes:
        store: Calibration records keyed by camera id and camera pair
        detector: Calibration pattern detector
        corrector: Applies stored calibrations to images
        min_frames: Minimum images per calibration run

    Example:
        >>> with CalibrationEngine() as engine:
        ...     calib = engine.calibrate_single_camera("cam0", images)
        ...     if calib is not None:
        ...         print(f"quality={calib.quality:.2f}")
        ...     frame = engine.undistort(frame, "cam0")
    """

    def __init__(
        self,
        store: Optional[CalibrationStore] = None,
        detector: Optional[PatternDetector] = None,
        color_calibrator: Optional[ColorEstimator] = None,
        stereo_solver: Optional[StereoSolver] = None,
        intrinsic_estimator: IntrinsicEstimator = estimate_intrinsics,
        distortion_estimator: DistortionEstimator = estimate_distortion,
        quality_assessor: QualityAssessor = assess_calibration_quality,
        min_frames: int = MIN_CALIBRATION_FRAMES,
        max_workers: int = 4
    ):
        """
        Initialize the calibration engine.

        Args:
            store: Record store (a new empty store if None)
            detector: Pattern detector (9x9 chessboard if None)
            color_calibrator: Callable (images, camera_id) -> ColorCalibrationData
            stereo_solver: Stereo solver (reference method if None)
            intrinsic_estimator: Callable (point_sets, width, height) -> IntrinsicParameters
            distortion_estimator: Callable (point_sets, intrinsics) -> DistortionCoefficients
            quality_assessor: Callable (point_sets) -> quality score
            min_frames: Minimum images per single-camera or per-side stereo run
            max_workers: Worker pool size
        """
        self.store = store if store is not None else CalibrationStore()
        self.detector = detector if detector is not None else PatternDetector()
        self.color_calibrator = color_calibrator if color_calibrator is not None else ColorCalibrator()
        self.stereo_solver = stereo_solver if stereo_solver is not None else StereoSolver(min_frames=min_frames)
        self.intrinsic_estimator = intrinsic_estimator
        self.distortion_estimator = distortion_estimator
        self.quality_assessor = quality_assessor
        self.min_frames = min_frames
        self.corrector = ImageCorrector(self.store)

        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="calibration")
        self._futures: Set[Future] = set()
        self._futures_lock = threading.Lock()

        logger.info(f"CalibrationEngine initialized: min_frames={min_frames}, workers={max_workers}")

    @classmethod
    def from_config(cls, config: Optional[Dict[str, Any]] = None, **kwargs) -> "CalibrationEngine":
        """
        Create an engine from a configuration dictionary.

        Args:
            config: Configuration with 'calibration', 'color', 'stereo' and
                'engine' sections (see camcalib/config/default.yaml)
            **kwargs: Overrides passed straight to the constructor
        """
        config = config or {}
        calib_config = config.get("calibration", {})
        engine_config = config.get("engine", {})

        params = dict(
            detector=PatternDetector.from_config(config),
            color_calibrator=ColorCalibrator.from_config(config),
            stereo_solver=StereoSolver.from_config(config),
            min_frames=calib_config.get("min_frames", MIN_CALIBRATION_FRAMES),
            max_workers=engine_config.get("max_workers", 4),
        )
        params.update(kwargs)
        return cls(**params)

    def initialize(self) -> None:
        """Lifecycle hook for the capture subsystem."""
        logger.info("Camera calibration system initialized")

    # ------------------------------------------------------------------
    # Task management
    # ------------------------------------------------------------------

    def _submit(self, fn: Callable[..., Any], *args) -> Future:
        try:
            future = self._executor.submit(fn, *args)
        except RuntimeError as e:
            logger.error(f"Calibration engine is shut down: {e}")
            future = Future()
            future.set_result(None)
            return future

        with self._futures_lock:
            self._futures.add(future)
        future.add_done_callback(self._forget)
        return future

    def _forget(self, future: Future) -> None:
        with self._futures_lock:
            self._futures.discard(future)

    @staticmethod
    def _wait(future: Future, timeout: Optional[float] = None) -> Any:
        try:
            return future.result(timeout=timeout)
        except CancelledError:
            logger.info("Calibration task cancelled before it ran")
            return None
        except FutureTimeoutError:
            future.cancel()
            logger.warning(f"Calibration task did not finish within {timeout}s")
            return None

    def _check_cancelled(self, generation: int) -> None:
        if self.store.generation != generation:
            raise CalibrationCancelled("Calibration cancelled by cleanup")

    @property
    def pending_tasks(self) -> int:
        """Number of submitted tasks that have not finished."""
        with self._futures_lock:
            return len(self._futures)

    # ------------------------------------------------------------------
    # Calibration steps
    # ------------------------------------------------------------------

    def _validate_frame_count(self, images: Sequence[np.ndarray]) -> None:
        if len(images) < self.min_frames:
            raise ValidationError(
                "Insufficient calibration frames",
                actual=len(images),
                required=self.min_frames
            )

    def _build_camera_calibration(
        self,
        camera_id: str,
        images: Sequence[np.ndarray],
        point_sets: List[List[Point]],
        mode: CalibrationMode
    ) -> CameraCalibration:
        """Estimate every per-camera parameter from detected points."""
        if not point_sets:
            raise ValidationError("No calibration patterns detected in images", actual=0, required=1)

        height, width = images[0].shape[:2]
        intrinsics = self.intrinsic_estimator(point_sets, width, height)
        distortion = self.distortion_estimator(point_sets, intrinsics)

        if mode is CalibrationMode.GEOMETRIC_ONLY:
            color = default_color_calibration()
        else:
            color = self.color_calibrator(images, camera_id)

        quality = self.quality_assessor(point_sets)

        return CameraCalibration(
            camera_id=camera_id,
            intrinsics=intrinsics,
            distortion=distortion,
            color=color,
            quality=quality,
            timestamp=time.time()
        )

    def _single_camera_task(
        self,
        generation: int,
        camera_id: str,
        images: List[np.ndarray],
        pattern_type: PatternType,
        mode: CalibrationMode
    ) -> Optional[CameraCalibration]:
        start_time = time.perf_counter()

        try:
            self._validate_frame_count(images)
            point_sets = self.detector.extract(images, pattern_type)
            self._check_cancelled(generation)

            calibration = self._build_camera_calibration(camera_id, images, point_sets, mode)

            if not self.store.publish(cameras=[calibration], generation=generation):
                raise CalibrationCancelled("Calibration cancelled by cleanup")

        except ValidationError as e:
            logger.warning(f"Single camera calibration rejected for {camera_id}: {e}")
            return None
        except CalibrationCancelled:
            logger.info(f"Single camera calibration cancelled for {camera_id}")
            return None
        except Exception as e:
            logger.error(f"Single camera calibration failed for {camera_id}: {e}")
            return None

        elapsed_ms = (time.perf_counter() - start_time) * 1000
        logger.info(f"Single camera calibration complete: camera={camera_id}, "
                    f"time={elapsed_ms:.1f}ms, quality={calibration.quality:.2f}, "
                    f"frames={len(point_sets)}")
        return calibration

    def _stereo_task(
        self,
        generation: int,
        left_camera_id: str,
        right_camera_id: str,
        left_images: List[np.ndarray],
        right_images: List[np.ndarray],
        pattern_type: PatternType
    ) -> Optional[StereoCalibration]:
        start_time = time.perf_counter()

        try:
            self.stereo_solver.validate(left_images, right_images)

            left_sets = self.detector.extract(left_images, pattern_type)
            right_sets = self.detector.extract(right_images, pattern_type)
            self._check_cancelled(generation)

            # Left fully, then right
            left_calib = self._build_camera_calibration(
                left_camera_id, left_images, left_sets, CalibrationMode.SINGLE_CAMERA
            )
            right_calib = self._build_camera_calibration(
                right_camera_id, right_images, right_sets, CalibrationMode.SINGLE_CAMERA
            )

            self.stereo_solver.validate_detections(left_sets, right_sets)
            solution = self.stereo_solver.solve(
                left_sets, right_sets, left_calib.intrinsics, right_calib.intrinsics
            )

            stereo = StereoCalibration(
                left=left_calib,
                right=right_calib,
                extrinsics=solution.extrinsics,
                fundamental_matrix=solution.fundamental_matrix,
                essential_matrix=solution.essential_matrix,
                rectification_quality=solution.rectification_quality,
                epipolar_error=solution.epipolar_error
            )

            published = self.store.publish(
                cameras=[left_calib, right_calib],
                stereo=[stereo],
                generation=generation
            )
            if not published:
                raise CalibrationCancelled("Calibration cancelled by cleanup")

        except ValidationError as e:
            logger.warning(f"Stereo calibration rejected for "
                           f"({left_camera_id}, {right_camera_id}): {e}")
            return None
        except CalibrationCancelled:
            logger.info(f"Stereo calibration cancelled for ({left_camera_id}, {right_camera_id})")
            return None
        except Exception as e:
            logger.error(f"Stereo calibration failed for "
                         f"({left_camera_id}, {right_camera_id}): {e}")
            return None

        elapsed_ms = (time.perf_counter() - start_time) * 1000
        logger.info(f"Stereo calibration complete: left={left_camera_id}, right={right_camera_id}, "
                    f"time={elapsed_ms:.1f}ms, rectification={stereo.rectification_quality:.2f}, "
                    f"epipolar_error={stereo.epipolar_error:.3f}px")
        return stereo

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    def submit_single_camera(
        self,
        camera_id: str,
        images: Sequence[np.ndarray],
        pattern_type: PatternType = PatternType.CHESSBOARD,
        mode: CalibrationMode = CalibrationMode.SINGLE_CAMERA
    ) -> Future:
        """Queue a single-camera calibration; the future yields a record or None."""
        return self._submit(
            self._single_camera_task,
            self.store.generation, camera_id, list(images), pattern_type, mode
        )

    def calibrate_single_camera(
        self,
        camera_id: str,
        images: Sequence[np.ndarray],
        pattern_type: PatternType = PatternType.CHESSBOARD,
        mode: CalibrationMode = CalibrationMode.SINGLE_CAMERA,
        timeout: Optional[float] = None
    ) -> Optional[CameraCalibration]:
        """
        Calibrate one camera from a set of captured images.

        Args:
            camera_id: Camera identifier
            images: At least ``min_frames`` BGR or grayscale images
            pattern_type: Calibration target in the images
            mode: GEOMETRIC_ONLY skips color calibration
            timeout: Seconds to wait for the result (None waits indefinitely)

        Returns:
            The stored CameraCalibration, or None on any failure
        """
        return self._wait(self.submit_single_camera(camera_id, images, pattern_type, mode), timeout)

    def submit_stereo_camera(
        self,
        left_camera_id: str,
        right_camera_id: str,
        left_images: Sequence[np.ndarray],
        right_images: Sequence[np.ndarray],
        pattern_type: PatternType = PatternType.CHESSBOARD
    ) -> Future:
        """Queue a stereo calibration; the future yields a record or None."""
        return self._submit(
            self._stereo_task,
            self.store.generation, left_camera_id, right_camera_id,
            list(left_images), list(right_images), pattern_type
        )

    def calibrate_stereo_camera(
        self,
        left_camera_id: str,
        right_camera_id: str,
        left_images: Sequence[np.ndarray],
        right_images: Sequence[np.ndarray],
        pattern_type: PatternType = PatternType.CHESSBOARD,
        timeout: Optional[float] = None
    ) -> Optional[StereoCalibration]:
        """
        Calibrate a camera pair.

        Both cameras are calibrated individually first. The per-camera and
        stereo records are stored together, or not at all.

        Args:
            left_camera_id: Left camera identifier
            right_camera_id: Right camera identifier
            left_images: Left images (same count as right, at least ``min_frames``)
            right_images: Right images
            pattern_type: Calibration target in the images
            timeout: Seconds to wait for the result (None waits indefinitely)

        Returns:
            The stored StereoCalibration, or None on any failure
        """
        return self._wait(self.submit_stereo_camera(
            left_camera_id, right_camera_id, left_images, right_images, pattern_type
        ), timeout)

    def submit_undistort(self, image: np.ndarray, camera_id: str) -> Future:
        return self._submit(self.corrector.undistort, image, camera_id)

    def undistort(
        self,
        image: np.ndarray,
        camera_id: str,
        timeout: Optional[float] = None
    ) -> Optional[np.ndarray]:
        """Undistorted copy of ``image``, or None if ``camera_id`` is uncalibrated."""
        return self._wait(self.submit_undistort(image, camera_id), timeout)

    def submit_color_correct(self, image: np.ndarray, camera_id: str) -> Future:
        return self._submit(self.corrector.color_correct, image, camera_id)

    def color_correct(
        self,
        image: np.ndarray,
        camera_id: str,
        timeout: Optional[float] = None
    ) -> Optional[np.ndarray]:
        """White-balanced copy of ``image``, or None if ``camera_id`` is uncalibrated."""
        return self._wait(self.submit_color_correct(image, camera_id), timeout)

    def get_calibration_data(self, camera_id: str) -> Optional[CameraCalibration]:
        """Get the stored calibration for a camera."""
        return self.store.get_camera(camera_id)

    def get_stereo_calibration_data(
        self,
        camera_a: str,
        camera_b: str
    ) -> Optional[StereoCalibration]:
        """Get the stored stereo calibration for a pair, in either order."""
        return self.store.get_stereo(camera_a, camera_b)

    def export_calibration_data(self) -> CalibrationSnapshot:
        """Snapshot of every stored record with an export timestamp."""
        snapshot = self.store.snapshot()
        logger.info(f"Exported {len(snapshot.cameras)} camera and "
                    f"{len(snapshot.stereo)} stereo calibrations")
        return snapshot

    def import_calibration_data(
        self,
        snapshot: Union[CalibrationSnapshot, Dict[str, Any]]
    ) -> bool:
        """
        Restore a previously exported snapshot, replacing the store contents.

        Args:
            snapshot: CalibrationSnapshot or its ``to_dict()`` form

        Returns:
            True if the snapshot was restored
        """
        try:
            if not isinstance(snapshot, CalibrationSnapshot):
                snapshot = CalibrationSnapshot.from_dict(snapshot)
            self.store.replace(snapshot.cameras, snapshot.stereo.values())
        except Exception as e:
            logger.error(f"Calibration data import failed: {e}")
            return False

        logger.info(f"Calibration data imported: {len(snapshot.cameras)} cameras, "
                    f"{len(snapshot.stereo)} stereo pairs")
        return True

    def cleanup(self) -> None:
        """Cancel outstanding calibration work and clear every stored record."""
        with self._futures_lock:
            futures = list(self._futures)

        self.store.clear()
        cancelled = sum(1 for future in futures if future.cancel())

        logger.info(f"CalibrationEngine cleanup complete ({cancelled} queued tasks cancelled)")

    def shutdown(self, wait: bool = True) -> None:
        """Stop the worker pool."""
        self._executor.shutdown(wait=wait, cancel_futures=True)

    def __enter__(self) -> "CalibrationEngine":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.shutdown()
