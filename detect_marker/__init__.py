"""ArUco marker detection and camera-to-world pose composition."""

from .composer import PoseComposer
from .config import RunConfig, RunSummary
from .facade import MarkerPoseFacade
from .transforms import (
    DegenerateTransformError,
    build_object_to_camera,
    compose_camera_to_world,
    invert_transform,
    translation_transform,
)
from .world_positions import WorldPositionRegistry

__all__ = [
    "PoseComposer",
    "RunConfig",
    "RunSummary",
    "MarkerPoseFacade",
    "DegenerateTransformError",
    "build_object_to_camera",
    "compose_camera_to_world",
    "invert_transform",
    "translation_transform",
    "WorldPositionRegistry",
]
