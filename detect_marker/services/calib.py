import logging
from pathlib import Path
from typing import Optional

import cv2
import numpy as np

from ..dm_types import CameraIntrinsics

LOGGER = logging.getLogger(__name__)

# first node found wins
CAMERA_MATRIX_KEYS = ("camera_matrix",)
DIST_COEFFS_KEYS = ("distortion_coefficients", "dist_coeffs")


def _read_mat(fs, keys) -> Optional[np.ndarray]:
    for key in keys:
        node = fs.getNode(key)
        if node is None or node.empty():
            continue
        mat = node.mat()
        if mat is not None:
            return mat
    return None


def load_calib(path: str) -> CameraIntrinsics:
    """
    Read camera_matrix and distortion_coefficients from an OpenCV FileStorage file.

    A missing file or node gives empty matrices; callers check
    CameraIntrinsics.is_valid before estimating poses.
    """
    if not Path(path).is_file():
        LOGGER.warning("calibration file not found: %s", path)
        return CameraIntrinsics()

    fs = cv2.FileStorage(str(path), cv2.FILE_STORAGE_READ)
    try:
        if not fs.isOpened():
            LOGGER.warning("could not open calibration file: %s", path)
            return CameraIntrinsics()
        K = _read_mat(fs, CAMERA_MATRIX_KEYS)
        dist = _read_mat(fs, DIST_COEFFS_KEYS)
    finally:
        fs.release()

    if K is None:
        LOGGER.warning("calibration %s has no %s node", path, CAMERA_MATRIX_KEYS[0])
        K = np.empty((0, 0))
    if dist is None:
        LOGGER.warning("calibration %s has no %s node", path, DIST_COEFFS_KEYS[0])
        dist = np.empty((0, 0))

    intrinsics = CameraIntrinsics(np.asarray(K, dtype=np.float64), np.asarray(dist, dtype=np.float64))
    LOGGER.info("camera_matrix\n%s", intrinsics.camera_matrix)
    LOGGER.info("dist coeffs\n%s", intrinsics.dist_coeffs)
    return intrinsics
