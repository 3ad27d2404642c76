from __future__ import annotations

import logging
from typing import Optional

import numpy as np

from .dm_types import MarkerPose, PoseComposition
from .output import ConsoleOutput, TransformSink
from .transforms import (
    build_object_to_camera,
    compose_camera_to_world,
    invert_transform,
    matrix_to_rvec_tvec,
    translation_transform,
)
from .world_positions import WorldPositionRegistry

LOGGER = logging.getLogger(__name__)


class PoseComposer:
    """
    Turn one marker pose into the camera's pose in the world frame.

    object_to_camera comes straight from the pose estimate, camera_to_object
    is its inverse, and camera_to_world = object_to_world @ camera_to_object
    where object_to_world places the marker at its registered world position.
    Without a registered position only the first two are produced.
    """

    def __init__(
        self,
        positions: Optional[WorldPositionRegistry] = None,
        outputs: Optional[list[TransformSink]] = None,
    ):
        self.positions = positions if positions is not None else WorldPositionRegistry()
        self.outputs = outputs if outputs is not None else [ConsoleOutput()]
        self._missing_reported: set[int] = set()

    def _emit(self, label: str, marker_id: int, matrix) -> None:
        for out in self.outputs:
            out.write_transform(label, marker_id, matrix)

    def compose(self, pose: MarkerPose) -> PoseComposition:
        object_to_camera = build_object_to_camera(pose.rvec, pose.tvec)
        self._emit("object_to_camera", pose.marker_id, object_to_camera)

        camera_to_object = invert_transform(object_to_camera)
        self._emit("camera_to_object", pose.marker_id, camera_to_object)

        result = PoseComposition(pose.marker_id, object_to_camera, camera_to_object)

        position = self.positions.get(pose.marker_id)
        if position is None:
            if pose.marker_id not in self._missing_reported:
                LOGGER.info("no world position for marker %d; camera_to_world skipped", pose.marker_id)
                self._missing_reported.add(pose.marker_id)
            return result
        self._missing_reported.discard(pose.marker_id)

        result.object_to_world = translation_transform(position)
        self._emit("object_to_world", pose.marker_id, result.object_to_world)

        result.camera_to_world = compose_camera_to_world(result.object_to_world, camera_to_object)
        self._emit("camera_to_world", pose.marker_id, result.camera_to_world)

        rvec, tvec = matrix_to_rvec_tvec(result.camera_to_world)
        LOGGER.info(
            "marker %d: camera in world at %s rvec %s",
            pose.marker_id,
            np.round(tvec.reshape(3), 4).tolist(),
            np.round(rvec.reshape(3), 4).tolist(),
        )
        return result

    def close(self) -> None:
        for out in self.outputs:
            try:
                out.close()
            except Exception as e:
                LOGGER.warning("Closing output failed: %s", e)
