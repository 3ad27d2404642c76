import logging
from typing import Optional

import cv2
import numpy as np

from ..dm_types import CameraIntrinsics, MarkerObservation, MarkerPose

LOGGER = logging.getLogger(__name__)

ESC_KEY = 27
NO_KEY = -1


def annotate(
    image,
    observations: list[MarkerObservation],
    poses: list[Optional[MarkerPose]],
    intrinsics: CameraIntrinsics,
    marker_length_m: float,
):
    """Draw marker outlines and pose axes on a copy of the image."""
    draw = image.copy()
    if not observations:
        return draw

    ids = np.array([o.marker_id for o in observations], dtype=np.int32).reshape(-1, 1)
    corners = [np.asarray(o.corners, dtype=np.float32).reshape(1, 4, 2) for o in observations]
    try:
        cv2.aruco.drawDetectedMarkers(draw, corners, ids)
    except cv2.error as e:
        LOGGER.debug("drawDetectedMarkers failed: %s", e)

    if not intrinsics.is_valid:
        return draw
    for pose in poses:
        if pose is None:
            continue
        try:
            cv2.drawFrameAxes(
                draw,
                intrinsics.camera_matrix,
                intrinsics.dist_coeffs,
                np.asarray(pose.rvec, dtype=np.float64).reshape(3, 1),
                np.asarray(pose.tvec, dtype=np.float64).reshape(3, 1),
                max(0.01, marker_length_m * 0.5),
            )
        except cv2.error as e:
            LOGGER.debug("drawFrameAxes failed for marker %d: %s", pose.marker_id, e)
    return draw


class PreviewWindow:
    def __init__(self, title: str = "Detected markers", wait_ms: int = 10):
        self.title = title
        self.wait_ms = max(1, int(wait_ms))
        self._opened = False

    def show(self, image) -> int:
        cv2.imshow(self.title, image)
        self._opened = True
        key = cv2.waitKey(self.wait_ms)
        return NO_KEY if key < 0 else key & 0xFF

    def close(self) -> None:
        if self._opened:
            cv2.destroyWindow(self.title)
            self._opened = False


class NullDisplay:
    def show(self, image) -> int:
        return NO_KEY

    def close(self) -> None:
        return None
