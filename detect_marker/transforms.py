"""SE(3) helpers for turning a marker pose into a camera-to-world transform."""

import numpy as np
import cv2
from typing import Tuple

# Tolerance for the rigid-transform check done before inversion.
RIGID_ATOL = 1e-6


class DegenerateTransformError(ValueError):
    """Raised when a 4x4 matrix is not a proper rigid transform."""


def build_object_to_camera(rvec: np.ndarray, tvec: np.ndarray) -> np.ndarray:
    """
    Convert a marker's rotation vector and translation vector to the 4x4
    object-to-camera transform.

    Args:
        rvec: Rodrigues rotation vector (3,), (3,1) or (1,3)
        tvec: Translation vector, same shapes accepted

    Returns:
        4x4 homogeneous transformation matrix
    """
    rvec = np.asarray(rvec, dtype=np.float64).reshape(3)
    tvec = np.asarray(tvec, dtype=np.float64).reshape(3)

    R, _ = cv2.Rodrigues(rvec)

    T = np.eye(4)
    T[:3, :3] = R
    T[:3, 3] = tvec

    return T


def matrix_to_rvec_tvec(T: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """
    Convert 4x4 transformation matrix to rotation vector and translation vector.

    Returns:
        (rvec, tvec) where rvec is (3,1) and tvec is (3,1)
    """
    R = np.ascontiguousarray(T[:3, :3], dtype=np.float64)
    tvec = T[:3, 3].reshape(3, 1)

    rvec, _ = cv2.Rodrigues(R)

    return rvec, tvec


def check_rigid(T: np.ndarray, atol: float = RIGID_ATOL) -> None:
    """Raise DegenerateTransformError unless T is a 4x4 rigid transform."""
    T = np.asarray(T)
    if T.shape != (4, 4):
        raise DegenerateTransformError(f"expected a 4x4 matrix, got shape {T.shape}")
    if not np.all(np.isfinite(T)):
        raise DegenerateTransformError("transform contains non-finite values")
    if not np.allclose(T[3, :], [0.0, 0.0, 0.0, 1.0], atol=atol):
        raise DegenerateTransformError(f"bottom row must be [0, 0, 0, 1], got {T[3, :]}")

    R = T[:3, :3]
    if not np.allclose(R @ R.T, np.eye(3), atol=atol):
        raise DegenerateTransformError("rotation block is not orthonormal")
    det = np.linalg.det(R)
    if not np.isclose(det, 1.0, atol=atol):
        raise DegenerateTransformError(f"rotation block has determinant {det:.6g}, expected 1")


def invert_transform(T: np.ndarray) -> np.ndarray:
    """
    Invert a 4x4 homogeneous transformation matrix.

    For SE(3): T^-1 = [R^T, -R^T * t; 0, 1]

    The closed form is only valid for rigid transforms, so the input is
    checked first. A singular or non-orthonormal rotation block raises
    DegenerateTransformError.
    """
    check_rigid(T)

    T_inv = np.eye(4)
    R = T[:3, :3]
    t = T[:3, 3]

    R_T = R.T
    T_inv[:3, :3] = R_T
    T_inv[:3, 3] = -R_T @ t

    return T_inv


def translation_transform(position: np.ndarray) -> np.ndarray:
    """Object-to-world transform for a marker sitting at a known world position."""
    T = np.eye(4)
    T[:3, 3] = np.asarray(position, dtype=np.float64).reshape(3)
    return T


def compose_camera_to_world(object_to_world: np.ndarray, camera_to_object: np.ndarray) -> np.ndarray:
    """
    Chain the marker's world placement with the camera's pose in the marker frame.

        T_world_cam = T_world_obj @ T_obj_cam
    """
    return np.asarray(object_to_world, dtype=np.float64) @ np.asarray(camera_to_object, dtype=np.float64)
