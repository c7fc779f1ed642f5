"""
Calibration Data Model

Immutable value types for camera calibration records. Matrices and vectors
are fixed-size tuples so that equality and hashing compare content, never
identity; records built from them are frozen dataclasses and can be shared
between threads without copying.
"""

import numpy as np
from typing import Tuple, Dict, Any, List, Sequence
from dataclasses import dataclass, field
from enum import Enum
import math
import time

Point = Tuple[int, int]


class PatternType(Enum):
    """Calibration target types."""
    CHESSBOARD = "chessboard"
    CIRCLES_GRID = "circles_grid"
    ASYMMETRIC_CIRCLES = "asymmetric_circles"
    COLOR_CHECKER = "color_checker"


class CalibrationMode(Enum):
    """
    Calibration run modes.

    Only GEOMETRIC_ONLY changes the pipeline: the color step is skipped and
    the default color calibration is recorded instead.
    """
    SINGLE_CAMERA = "single_camera"
    STEREO_CAMERAS = "stereo_cameras"
    MULTI_CAMERA_ARRAY = "multi_camera_array"
    COLOR_ONLY = "color_only"
    GEOMETRIC_ONLY = "geometric_only"


@dataclass(frozen=True)
class Vector3:
    """Length-3 float vector with component-wise equality and hashing."""
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    def __post_init__(self):
        object.__setattr__(self, "x", float(self.x))
        object.__setattr__(self, "y", float(self.y))
        object.__setattr__(self, "z", float(self.z))

    @classmethod
    def zeros(cls) -> "Vector3":
        return cls(0.0, 0.0, 0.0)

    @classmethod
    def from_array(cls, values: Sequence[float]) -> "Vector3":
        """Build from any 3-element sequence or array (column vectors are flattened)."""
        flat = np.asarray(values, dtype=np.float64).reshape(-1)
        if flat.shape != (3,):
            raise ValueError(f"Vector3 requires exactly 3 values, got {flat.size}")
        return cls(flat[0], flat[1], flat[2])

    def as_array(self) -> np.ndarray:
        return np.array([self.x, self.y, self.z], dtype=np.float64)

    def as_tuple(self) -> Tuple[float, float, float]:
        return (self.x, self.y, self.z)

    def norm(self) -> float:
        """Euclidean length."""
        return math.sqrt(self.x ** 2 + self.y ** 2 + self.z ** 2)

    def __iter__(self):
        return iter(self.as_tuple())

    def __getitem__(self, index: int) -> float:
        return self.as_tuple()[index]


@dataclass(frozen=True)
class Matrix3:
    """
    3x3 float matrix stored as three row tuples.

    Equality and hashing are component-wise, so two matrices with the same
    entries are interchangeable as record fields and dictionary keys.
    """
    rows: Tuple[Tuple[float, float, float], ...]

    def __post_init__(self):
        rows = tuple(tuple(float(v) for v in row) for row in self.rows)
        if len(rows) != 3 or any(len(row) != 3 for row in rows):
            raise ValueError("Matrix3 requires exactly 3 rows of 3 values")
        object.__setattr__(self, "rows", rows)

    @classmethod
    def identity(cls) -> "Matrix3":
        return cls(((1.0, 0.0, 0.0), (0.0, 1.0, 0.0), (0.0, 0.0, 1.0)))

    @classmethod
    def from_array(cls, array: Any) -> "Matrix3":
        """Build from a 3x3 array-like."""
        arr = np.asarray(array, dtype=np.float64)
        if arr.shape != (3, 3):
            raise ValueError(f"Matrix3 requires a 3x3 array, got shape {arr.shape}")
        return cls(tuple(tuple(row) for row in arr.tolist()))

    def as_array(self) -> np.ndarray:
        return np.array(self.rows, dtype=np.float64)

    def transpose(self) -> "Matrix3":
        return Matrix3(tuple(zip(*self.rows)))

    def __matmul__(self, other: "Matrix3") -> "Matrix3":
        if not isinstance(other, Matrix3):
            return NotImplemented
        return Matrix3.from_array(self.as_array() @ other.as_array())

    def __getitem__(self, index: Tuple[int, int]) -> float:
        row, col = index
        return self.rows[row][col]

    def to_list(self) -> List[List[float]]:
        return [list(row) for row in self.rows]


@dataclass(frozen=True)
class CalibrationPattern:
    """
    Calibration target detected in a single image.

    Attributes:
        pattern_type: Target type that was searched for
        grid_size: Number of interior intersections per side
        square_size: Physical square edge length in millimetres
        points: Detected pixel positions, row-major; empty if not found
    """
    pattern_type: PatternType
    grid_size: int
    square_size: float
    points: Tuple[Point, ...] = ()

    @property
    def detected(self) -> bool:
        return len(self.points) > 0


@dataclass(frozen=True)
class IntrinsicParameters:
    """
    Pinhole projection parameters of a single camera.

    Attributes:
        fx, fy: Focal lengths in pixels
        cx, cy: Principal point in pixels
        image_width, image_height: Image dimensions the parameters refer to
        fov_horizontal_deg, fov_vertical_deg: Field of view in degrees
    """
    fx: float
    fy: float
    cx: float
    cy: float
    image_width: int
    image_height: int
    fov_horizontal_deg: float
    fov_vertical_deg: float

    @property
    def camera_matrix(self) -> Matrix3:
        """3x3 intrinsic matrix K."""
        return Matrix3((
            (self.fx, 0.0, self.cx),
            (0.0, self.fy, self.cy),
            (0.0, 0.0, 1.0),
        ))

    @property
    def image_size(self) -> Tuple[int, int]:
        """Image dimensions (width, height)."""
        return (self.image_width, self.image_height)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'fx': self.fx,
            'fy': self.fy,
            'cx': self.cx,
            'cy': self.cy,
            'image_width': self.image_width,
            'image_height': self.image_height,
            'fov_horizontal_deg': self.fov_horizontal_deg,
            'fov_vertical_deg': self.fov_vertical_deg,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "IntrinsicParameters":
        return cls(
            fx=float(data['fx']),
            fy=float(data['fy']),
            cx=float(data['cx']),
            cy=float(data['cy']),
            image_width=int(data['image_width']),
            image_height=int(data['image_height']),
            fov_horizontal_deg=float(data['fov_horizontal_deg']),
            fov_vertical_deg=float(data['fov_vertical_deg']),
        )


@dataclass(frozen=True)
class DistortionCoefficients:
    """Radial (k1, k2, k3) and tangential (p1, p2) lens distortion terms."""
    k1: float
    k2: float
    p1: float
    p2: float
    k3: float

    def as_array(self) -> np.ndarray:
        """Coefficients in OpenCV order (k1, k2, p1, p2, k3)."""
        return np.array([self.k1, self.k2, self.p1, self.p2, self.k3], dtype=np.float64)

    def to_dict(self) -> Dict[str, Any]:
        return {'k1': self.k1, 'k2': self.k2, 'p1': self.p1, 'p2': self.p2, 'k3': self.k3}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DistortionCoefficients":
        return cls(**{key: float(data[key]) for key in ('k1', 'k2', 'p1', 'p2', 'k3')})


@dataclass(frozen=True)
class ColorCalibrationData:
    """
    Photometric response of a single camera.

    Attributes:
        white_balance: R, G, B channel multipliers
        color_matrix: 3x3 color correction matrix
        gamma: Gamma correction value
        color_temperature: Reference color temperature in Kelvin
        tint: Green/magenta balance
    """
    white_balance: Vector3
    color_matrix: Matrix3
    gamma: float
    color_temperature: float
    tint: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            'white_balance': list(self.white_balance.as_tuple()),
            'color_matrix': self.color_matrix.to_list(),
            'gamma': self.gamma,
            'color_temperature': self.color_temperature,
            'tint': self.tint,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ColorCalibrationData":
        return cls(
            white_balance=Vector3.from_array(data['white_balance']),
            color_matrix=Matrix3.from_array(data['color_matrix']),
            gamma=float(data['gamma']),
            color_temperature=float(data['color_temperature']),
            tint=float(data['tint']),
        )


@dataclass(frozen=True)
class CameraCalibration:
    """
    Complete calibration record for one camera.

    Attributes:
        camera_id: Camera identifier supplied by the capture subsystem
        intrinsics: Projection parameters
        distortion: Lens distortion coefficients
        color: Photometric calibration
        quality: Calibration quality score in [0, 1]
        timestamp: Creation time, seconds since the epoch
    """
    camera_id: str
    intrinsics: IntrinsicParameters
    distortion: DistortionCoefficients
    color: ColorCalibrationData
    quality: float
    timestamp: float = field(default_factory=time.time)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'camera_id': self.camera_id,
            'intrinsics': self.intrinsics.to_dict(),
            'distortion': self.distortion.to_dict(),
            'color': self.color.to_dict(),
            'quality': self.quality,
            'timestamp': self.timestamp,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CameraCalibration":
        return cls(
            camera_id=str(data['camera_id']),
            intrinsics=IntrinsicParameters.from_dict(data['intrinsics']),
            distortion=DistortionCoefficients.from_dict(data['distortion']),
            color=ColorCalibrationData.from_dict(data['color']),
            quality=float(data['quality']),
            timestamp=float(data.get('timestamp', 0.0)),
        )


@dataclass(frozen=True)
class ExtrinsicParameters:
    """
    Rigid transform from the left camera frame to the right camera frame.

    Attributes:
        rotation: 3x3 rotation matrix
        translation: Translation vector in millimetres
        baseline: Distance between the camera centres in millimetres
        convergence_angle: Toe-in angle in degrees
    """
    rotation: Matrix3
    translation: Vector3
    baseline: float
    convergence_angle: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            'rotation': self.rotation.to_list(),
            'translation': list(self.translation.as_tuple()),
            'baseline': self.baseline,
            'convergence_angle': self.convergence_angle,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ExtrinsicParameters":
        return cls(
            rotation=Matrix3.from_array(data['rotation']),
            translation=Vector3.from_array(data['translation']),
            baseline=float(data['baseline']),
            convergence_angle=float(data['convergence_angle']),
        )


@dataclass(frozen=True)
class StereoCalibration:
    """
    Calibration record for a camera pair.

    Attributes:
        left: Left camera calibration
        right: Right camera calibration
        extrinsics: Relative pose between the cameras
        fundamental_matrix: 3x3 fundamental matrix F
        essential_matrix: 3x3 essential matrix E
        rectification_quality: Rectification score in [0, 1]
        epipolar_error: Mean epipolar residual in pixels
    """
    left: CameraCalibration
    right: CameraCalibration
    extrinsics: ExtrinsicParameters
    fundamental_matrix: Matrix3
    essential_matrix: Matrix3
    rectification_quality: float
    epipolar_error: float

    @property
    def camera_ids(self) -> Tuple[str, str]:
        return (self.left.camera_id, self.right.camera_id)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'left': self.left.to_dict(),
            'right': self.right.to_dict(),
            'extrinsics': self.extrinsics.to_dict(),
            'fundamental_matrix': self.fundamental_matrix.to_list(),
            'essential_matrix': self.essential_matrix.to_list(),
            'rectification_quality': self.rectification_quality,
            'epipolar_error': self.epipolar_error,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StereoCalibration":
        return cls(
            left=CameraCalibration.from_dict(data['left']),
            right=CameraCalibration.from_dict(data['right']),
            extrinsics=ExtrinsicParameters.from_dict(data['extrinsics']),
            fundamental_matrix=Matrix3.from_array(data['fundamental_matrix']),
            essential_matrix=Matrix3.from_array(data['essential_matrix']),
            rectification_quality=float(data['rectification_quality']),
            epipolar_error=float(data['epipolar_error']),
        )


@dataclass(frozen=True)
class CalibrationSnapshot:
    """
    Point-in-time copy of every stored calibration.

    Attributes:
        cameras: Camera id -> calibration
        stereo: Canonical (sorted) camera id pair -> stereo calibration
        export_timestamp: Snapshot time, seconds since the epoch
    """
    cameras: Dict[str, CameraCalibration] = field(default_factory=dict)
    stereo: Dict[Tuple[str, str], StereoCalibration] = field(default_factory=dict)
    export_timestamp: float = field(default_factory=time.time)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'cameras': {cid: calib.to_dict() for cid, calib in self.cameras.items()},
            'stereo': [calib.to_dict() for calib in self.stereo.values()],
            'export_timestamp': self.export_timestamp,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CalibrationSnapshot":
        cameras = {
            str(cid): CameraCalibration.from_dict(cdata)
            for cid, cdata in (data.get('cameras') or {}).items()
        }
        stereo = {}
        for sdata in data.get('stereo') or []:
            calib = StereoCalibration.from_dict(sdata)
            stereo[tuple(sorted(calib.camera_ids))] = calib
        return cls(
            cameras=cameras,
            stereo=stereo,
            export_timestamp=float(data.get('export_timestamp', 0.0)),
        )


def point_count(point_sets: Sequence[Sequence[Point]]) -> int:
    """Total number of points across all frames."""
    return sum(len(points) for points in point_sets)
