import argparse
import logging
import sys

from .config import RunConfig, load_config
from .facade import MarkerPoseFacade
from .factory import StrategyFactory
from .logging_utils import add_file_handler, setup_logger
from .strategies.detect_aruco import DICTIONARY_NAMES
from .world_positions import StdinPositionReader, parse_entry, parse_position

ABOUT = "Detect ArUco markers and print the camera pose in the world frame"


def _dictionary_help() -> str:
    return ", ".join(f"{name}={i}" for i, name in enumerate(DICTIONARY_NAMES))


def _build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="detect-marker", description=ABOUT)
    ap.add_argument("--config", help="Path to JSON/YAML run config")

    ap.add_argument("-d", "--dictionary", help=f"dictionary: {_dictionary_help()} (default 8)")
    ap.add_argument("-v", "--video", help="Custom video source, otherwise '0'")
    ap.add_argument("--calib", help="Calibration file (default calibration_params.yml)")
    ap.add_argument("--marker-length-m", type=float)
    ap.add_argument("--wait-ms", type=int, help="Key poll timeout per frame")
    ap.add_argument("--target-ids", nargs="+", type=int)
    ap.add_argument("--max-frames", type=int)
    ap.add_argument("--duration", type=float)

    # World positions
    ap.add_argument("--world-pos", help="Default marker world position 'x y z'")
    ap.add_argument(
        "--marker-pos",
        action="append",
        default=[],
        metavar="ID:X,Y,Z",
        help="World position for one marker, e.g. '3: 1.0 0 0.5' (repeatable)",
    )
    ap.add_argument(
        "--interactive",
        action="store_true",
        help="Read 'x y z' or 'id: x y z' lines from stdin while running",
    )

    ap.add_argument("--no-display", action="store_true")
    ap.add_argument("--quiet", action="store_true", help="Do not print transforms to stdout")
    ap.add_argument("--log-level", choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    ap.add_argument("--log-file")

    return ap


def _apply_args(cfg: RunConfig, args: argparse.Namespace) -> RunConfig:
    video = args.video
    if isinstance(video, str) and video.isdigit():
        video = int(video)

    world_positions = dict(cfg.world_positions or {})
    for entry in args.marker_pos:
        marker_id, pos = parse_entry(entry)
        if marker_id is None:
            raise ValueError(f"--marker-pos needs a marker id: {entry!r}")
        world_positions[marker_id] = pos.tolist()

    default_pos = None
    if args.world_pos is not None:
        default_pos = parse_position(args.world_pos).tolist()

    cfg.apply_overrides(
        video_source=video,
        dictionary=args.dictionary,
        calibration_path=args.calib,
        marker_length_m=args.marker_length_m,
        wait_ms=args.wait_ms,
        display=False if args.no_display else None,
        interactive=True if args.interactive else None,
        print_transforms=False if args.quiet else None,
        max_frames=args.max_frames,
        duration_sec=args.duration,
        target_ids=args.target_ids,
        world_positions=world_positions or None,
        default_world_position=default_pos,
        log_level=args.log_level,
    )
    return cfg


def main(argv=None) -> int:
    ap = _build_parser()
    args = ap.parse_args(argv)

    logger = setup_logger(str(args.video or "cam0"), args.log_level or "INFO")
    try:
        cfg = load_config(args.config) if args.config else RunConfig()
        cfg = _apply_args(cfg, args)
        logger.setLevel(cfg.log_level.upper())
        if args.log_file:
            add_file_handler(logger, str(cfg.video_source), args.log_file)

        positions = StrategyFactory.positions_from_config(cfg)
        cap, det, loc, composer, display = StrategyFactory.from_config(cfg, positions)
    except (FileNotFoundError, ValueError, RuntimeError) as e:
        logger.error("%s", e)
        return 1

    reader = None
    if cfg.interactive:
        reader = StdinPositionReader(positions)
        reader.start()
        logger.info("reading world positions from stdin ('x y z' or 'id: x y z')")

    facade = MarkerPoseFacade(
        cap, det, loc, composer, display,
        logger=logging.getLogger("detect_marker.facade"),
        target_ids=cfg.target_ids,
    )

    try:
        summary = facade.run(cfg)
    except RuntimeError as e:
        logger.error("%s", e)
        return 1
    except KeyboardInterrupt:
        logger.info("interrupted")
        return 0
    finally:
        if reader is not None:
            reader.stop()

    print(summary)
    return 0


if __name__ == "__main__":
    sys.exit(main())
