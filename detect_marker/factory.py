from .composer import PoseComposer
from .output import ConsoleOutput, NullOutput
from .services.calib import load_calib
from .strategies.capture_video import VideoCapture
from .strategies.detect_aruco import ArucoDetect
from .strategies.display import NullDisplay, PreviewWindow
from .strategies.localize_pnp import PnPLocalize
from .world_positions import WorldPositionRegistry


class StrategyFactory:
    @staticmethod
    def positions_from_config(config) -> WorldPositionRegistry:
        return WorldPositionRegistry(
            config.world_positions or {},
            default=config.default_world_position,
        )

    @staticmethod
    def from_config(config, positions=None):
        cap = VideoCapture(config.video_source)

        # Detection and localization
        intrinsics = load_calib(config.calibration_path)
        det = ArucoDetect(config.dictionary)
        loc = PnPLocalize(intrinsics, config.marker_length_m)

        if positions is None:
            positions = StrategyFactory.positions_from_config(config)
        sink = ConsoleOutput() if config.print_transforms else NullOutput()
        composer = PoseComposer(positions, [sink])

        display = PreviewWindow(wait_ms=config.wait_ms) if config.display else NullDisplay()

        return cap, det, loc, composer, display
