import logging
from typing import Optional

import cv2
import numpy as np

from ..dm_types import CameraIntrinsics, MarkerObservation, MarkerPose

LOGGER = logging.getLogger(__name__)


def marker_object_points(marker_length: float) -> np.ndarray:
    """Corner model of a square marker centred on its origin, in detector corner order."""
    h = marker_length / 2.0
    return np.array(
        [[-h, h, 0.0], [h, h, 0.0], [h, -h, 0.0], [-h, -h, 0.0]],
        dtype=np.float32,
    )


class PnPLocalize:
    def __init__(self, intrinsics: CameraIntrinsics, marker_length_m: float):
        self.intrinsics = intrinsics
        self.L = marker_length_m
        self._warned = False

    @property
    def K(self):
        return self.intrinsics.camera_matrix

    @property
    def dist(self):
        return self.intrinsics.dist_coeffs

    @property
    def enabled(self) -> bool:
        return self.L > 0 and self.intrinsics.is_valid

    def _solve_single(self, corners) -> tuple[np.ndarray, np.ndarray] | None:
        if hasattr(cv2.aruco, "estimatePoseSingleMarkers"):
            rvecs, tvecs, _ = cv2.aruco.estimatePoseSingleMarkers(
                [corners], self.L, self.K, self.dist
            )
            return np.asarray(rvecs[0]).reshape(3), np.asarray(tvecs[0]).reshape(3)

        # removed from the Python bindings in OpenCV 4.7+
        img_points = np.asarray(corners, dtype=np.float32).reshape(4, 2)
        ok, rvec, tvec = cv2.solvePnP(
            marker_object_points(self.L),
            img_points,
            self.K,
            self.dist,
            flags=cv2.SOLVEPNP_IPPE_SQUARE,
        )
        if not ok:
            return None
        return rvec.reshape(3), tvec.reshape(3)

    def estimate(self, observations: list[MarkerObservation]) -> list[Optional[MarkerPose]]:
        """One entry per observation, in order; None where the solver fails."""
        poses: list[Optional[MarkerPose]] = []
        if not observations:
            return poses
        if not self.enabled:
            if not self._warned:
                LOGGER.warning(
                    "pose estimation disabled (marker length %.4f, calibrated=%s)",
                    self.L, self.intrinsics.is_valid,
                )
                self._warned = True
            return poses

        for obs in observations:
            solved = self._solve_single(obs.corners)
            if solved is None:
                LOGGER.debug("solvePnP failed for marker %d", obs.marker_id)
                poses.append(None)
                continue
            rvec, tvec = solved
            poses.append(MarkerPose(obs.marker_id, rvec, tvec))
        return poses
