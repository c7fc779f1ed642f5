"""
camcalib command line interface.

Usage:
    camcalib single --camera-id ID --images DIR [--output FILE]
    camcalib stereo --left-id A --right-id B --left DIR --right DIR [--output FILE]
    camcalib undistort --calibration FILE --camera-id ID --input IMG --output IMG
    camcalib plot --images DIR --output PNG

Examples:
    # Calibrate one camera and save the result
    camcalib single --camera-id cam0 --images ./calib/cam0 --output calib.yaml

    # Calibrate a stereo pair with the eight-point solver
    camcalib stereo --left-id camL --right-id camR --left ./L --right ./R \\
        --config stereo.yaml --output stereo.yaml

    # Correct an image with a saved calibration
    camcalib undistort --calibration calib.yaml --camera-id cam0 \\
        --input frame.png --output frame_corrected.png --color
"""

import argparse
import logging
import sys
from typing import List, Optional

import cv2

from .calibration.engine import CalibrationEngine
from .calibration.types import PatternType
from .config import load_config
from .data.images import load_images
from .data.snapshot_io import load_snapshot, save_snapshot

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False):
    """Configure logging."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )


def _pattern_type(value: str) -> PatternType:
    try:
        return PatternType(value)
    except ValueError:
        raise argparse.ArgumentTypeError(
            f"Unknown pattern: {value}. Use one of {[p.value for p in PatternType]}"
        )


def run_single(args, engine: CalibrationEngine) -> int:
    """Calibrate a single camera."""
    images = load_images(args.images)
    calibration = engine.calibrate_single_camera(args.camera_id, images, args.pattern)
    if calibration is None:
        print(f"Calibration failed for {args.camera_id}")
        return 1

    intr = calibration.intrinsics
    print(f"Camera {calibration.camera_id}: quality={calibration.quality:.2f}")
    print(f"  fx={intr.fx:.1f} fy={intr.fy:.1f} cx={intr.cx:.1f} cy={intr.cy:.1f}")
    print(f"  FOV: {intr.fov_horizontal_deg:.1f} x {intr.fov_vertical_deg:.1f} deg")

    if args.output:
        save_snapshot(engine.export_calibration_data(), args.output)
    return 0


def run_stereo(args, engine: CalibrationEngine) -> int:
    """Calibrate a stereo camera pair."""
    left_images = load_images(args.left)
    right_images = load_images(args.right)

    stereo = engine.calibrate_stereo_camera(
        args.left_id, args.right_id, left_images, right_images, args.pattern
    )
    if stereo is None:
        print(f"Stereo calibration failed for ({args.left_id}, {args.right_id})")
        return 1

    print(f"Stereo {args.left_id} / {args.right_id}:")
    print(f"  baseline={stereo.extrinsics.baseline:.2f}mm "
          f"convergence={stereo.extrinsics.convergence_angle:.2f}deg")
    print(f"  rectification={stereo.rectification_quality:.2f} "
          f"epipolar_error={stereo.epipolar_error:.3f}px")

    if args.output:
        save_snapshot(engine.export_calibration_data(), args.output)
    return 0


def run_undistort(args, engine: CalibrationEngine) -> int:
    """Correct one image with a saved calibration."""
    if not engine.import_calibration_data(load_snapshot(args.calibration)):
        return 1

    image = cv2.imread(args.input)
    if image is None:
        print(f"Could not load image: {args.input}")
        return 1

    corrected = engine.undistort(image, args.camera_id)
    if corrected is None:
        print(f"No calibration for {args.camera_id}")
        return 1

    if args.color:
        balanced = engine.color_correct(corrected, args.camera_id)
        if balanced is not None:
            corrected = balanced

    cv2.imwrite(args.output, corrected)
    print(f"Corrected image written to {args.output}")
    return 0


def run_plot(args, engine: CalibrationEngine) -> int:
    """Plot detected corners and the distortion model for a set of images."""
    import matplotlib
    matplotlib.use("Agg")
    import matplotlib.pyplot as plt

    from .utils.visualization import plot_detected_corners, plot_distortion_field

    images = load_images(args.images)
    if args.index >= len(images):
        print(f"Image index {args.index} out of range ({len(images)} images)")
        return 1

    image = images[args.index]
    pattern = engine.detector.detect(image, args.pattern)
    point_sets = [list(pattern.points)] if pattern.detected else []

    height, width = image.shape[:2]
    intrinsics = engine.intrinsic_estimator(point_sets, width, height)
    distortion = engine.distortion_estimator(point_sets, intrinsics)

    fig, (ax_points, ax_field) = plt.subplots(1, 2, figsize=(16, 6))
    plot_detected_corners(image, pattern.points, ax=ax_points)
    plot_distortion_field(intrinsics, distortion, ax=ax_field)
    fig.tight_layout()
    fig.savefig(args.output)
    plt.close(fig)

    print(f"Plot written to {args.output}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description='Multi-camera geometric and photometric calibration',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__
    )
    parser.add_argument('--config', type=str, default=None, help='Path to YAML config file')
    parser.add_argument('--verbose', '-v', action='store_true', help='Verbose output')

    subparsers = parser.add_subparsers(dest='command', required=True)

    single = subparsers.add_parser('single', help='Calibrate a single camera')
    single.add_argument('--camera-id', required=True)
    single.add_argument('--images', required=True, help='Directory of calibration images')
    single.add_argument('--pattern', type=_pattern_type, default=PatternType.CHESSBOARD)
    single.add_argument('--output', type=str, default=None, help='Snapshot file (.yaml/.json)')

    stereo = subparsers.add_parser('stereo', help='Calibrate a stereo camera pair')
    stereo.add_argument('--left-id', required=True)
    stereo.add_argument('--right-id', required=True)
    stereo.add_argument('--left', required=True, help='Directory of left images')
    stereo.add_argument('--right', required=True, help='Directory of right images')
    stereo.add_argument('--pattern', type=_pattern_type, default=PatternType.CHESSBOARD)
    stereo.add_argument('--output', type=str, default=None, help='Snapshot file (.yaml/.json)')

    undistort = subparsers.add_parser('undistort', help='Correct an image')
    undistort.add_argument('--calibration', required=True, help='Snapshot file')
    undistort.add_argument('--camera-id', required=True)
    undistort.add_argument('--input', required=True)
    undistort.add_argument('--output', required=True)
    undistort.add_argument('--color', action='store_true', help='Also apply white balance')

    plot = subparsers.add_parser('plot', help='Plot detected corners and distortion')
    plot.add_argument('--images', required=True)
    plot.add_argument('--output', required=True, help='Output PNG')
    plot.add_argument('--index', type=int, default=0, help='Image to plot')
    plot.add_argument('--pattern', type=_pattern_type, default=PatternType.CHESSBOARD)

    return parser


COMMANDS = {
    'single': run_single,
    'stereo': run_stereo,
    'undistort': run_undistort,
    'plot': run_plot,
}


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(args.verbose)
    config = load_config(args.config)

    with CalibrationEngine.from_config(config) as engine:
        engine.initialize()
        return COMMANDS[args.command](args, engine)


if __name__ == '__main__':
    sys.exit(main())
