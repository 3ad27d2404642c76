from dataclasses import dataclass, field
from typing import Any, Optional

import numpy as np


@dataclass
class Frame:
    idx: int
    ts_iso: str
    image: Any  # numpy array


@dataclass
class MarkerObservation:
    marker_id: int
    corners: Any  # (1,4,2) float32, as returned by the detector


@dataclass
class MarkerPose:
    marker_id: int
    rvec: Any  # Rodrigues vector, camera frame
    tvec: Any


@dataclass(frozen=True)
class CameraIntrinsics:
    """Calibration loaded once at startup. Empty arrays mean "not calibrated"."""

    camera_matrix: np.ndarray = field(default_factory=lambda: np.empty((0, 0)))
    dist_coeffs: np.ndarray = field(default_factory=lambda: np.empty((0, 0)))

    @property
    def is_valid(self) -> bool:
        return self.camera_matrix is not None and self.camera_matrix.shape == (3, 3)


@dataclass
class PoseComposition:
    marker_id: int
    object_to_camera: np.ndarray
    camera_to_object: np.ndarray
    object_to_world: Optional[np.ndarray] = None
    camera_to_world: Optional[np.ndarray] = None

    @property
    def has_world(self) -> bool:
        return self.camera_to_world is not None
