import cv2
import numpy as np
import pytest

from detect_marker.dm_types import CameraIntrinsics, Frame, MarkerObservation
from detect_marker.strategies.detect_aruco import get_dict

MARKER_PX = 200
BORDER_PX = 60


def render_marker(marker_id: int, dictionary=8, size: int = MARKER_PX) -> np.ndarray:
    """BGR image of a single marker on a white background."""
    d = get_dict(dictionary)
    if hasattr(cv2.aruco, "generateImageMarker"):
        marker = cv2.aruco.generateImageMarker(d, marker_id, size)
    else:
        marker = cv2.aruco.drawMarker(d, marker_id, size)
    padded = np.pad(marker, BORDER_PX, mode="constant", constant_values=255)
    return cv2.cvtColor(padded, cv2.COLOR_GRAY2BGR)


def make_intrinsics(width: int, height: int, focal: float = 800.0) -> CameraIntrinsics:
    K = np.array(
        [[focal, 0.0, width / 2.0], [0.0, focal, height / 2.0], [0.0, 0.0, 1.0]],
        dtype=np.float64,
    )
    return CameraIntrinsics(K, np.zeros((5, 1)))


class FakeCapture:
    def __init__(self, frames):
        """Queue frames; None once depleted, like a finished video file."""
        self.frames = list(frames)
        self.started = False
        self.stopped = False

    def start(self):
        self.started = True

    def next_frame(self):
        if self.frames:
            return self.frames.pop(0)
        return None

    def stop(self):
        self.stopped = True


class RecordingSink:
    def __init__(self):
        self.records = []
        self.closed = False

    def write_transform(self, label, marker_id, matrix):
        self.records.append((label, marker_id, np.array(matrix)))

    def close(self):
        self.closed = True

    def labels(self):
        return [r[0] for r in self.records]

    def last(self, label):
        for rec in reversed(self.records):
            if rec[0] == label:
                return rec[2]
        raise KeyError(label)


@pytest.fixture
def marker_image():
    return render_marker(3)


@pytest.fixture
def synthetic_observation():
    """Fixed observation used for bench testing without a printed marker."""
    corners = np.array([[[1.5, 1.0], [3.0, 1.0], [4.5, 3.0], [0.0, 3.0]]], dtype=np.float32)
    return MarkerObservation(0, corners)


@pytest.fixture
def blank_frames():
    def _make(n, shape=(16, 16, 3)):
        return [Frame(i + 1, f"ts{i + 1}", np.zeros(shape, dtype=np.uint8)) for i in range(n)]
    return _make


@pytest.fixture
def calib_file(tmp_path):
    """Write a FileStorage calibration with the standard node names."""
    def _write(K=None, dist=None, dist_key="distortion_coefficients", name="calibration_params.yml"):
        path = tmp_path / name
        fs = cv2.FileStorage(str(path), cv2.FILE_STORAGE_WRITE)
        if K is not None:
            fs.write("camera_matrix", np.asarray(K, dtype=np.float64))
        if dist is not None:
            fs.write(dist_key, np.asarray(dist, dtype=np.float64))
        fs.release()
        return path
    return _write
