import numpy as np
import pytest

from detect_marker.transforms import (
    DegenerateTransformError,
    build_object_to_camera,
    compose_camera_to_world,
    invert_transform,
    matrix_to_rvec_tvec,
    translation_transform,
)

POSES = [
    (np.array([0.1, 0.2, 0.3]), np.array([1.0, 2.0, 3.0])),
    (np.array([-1.2, 0.4, 2.5]), np.array([0.05, -0.3, 0.8])),
    (np.array([0.0, np.pi, 0.0]), np.array([0.0, 0.0, 0.2])),
]


def test_build_object_to_camera_layout():
    """Rotation block, translation column and bottom row land where expected."""
    rvec = np.array([0.1, 0.2, 0.3])
    tvec = np.array([1.0, 2.0, 3.0])

    T = build_object_to_camera(rvec, tvec)

    assert T.shape == (4, 4)
    assert np.array_equal(T[3, :], [0, 0, 0, 1])
    assert np.allclose(T[:3, 3], tvec)


@pytest.mark.parametrize("rvec,tvec", POSES)
def test_rotation_block_is_orthonormal(rvec, tvec):
    R = build_object_to_camera(rvec, tvec)[:3, :3]
    assert np.allclose(R @ R.T, np.eye(3), atol=1e-9)
    assert np.isclose(np.linalg.det(R), 1.0, atol=1e-9)


@pytest.mark.parametrize("rvec,tvec", POSES)
def test_inverse_composes_to_identity(rvec, tvec):
    T = build_object_to_camera(rvec, tvec)
    T_inv = invert_transform(T)

    assert np.allclose(T_inv @ T, np.eye(4), atol=1e-9)
    assert np.allclose(T @ T_inv, np.eye(4), atol=1e-9)


def test_zero_pose_is_exact_identity():
    T = build_object_to_camera(np.zeros(3), np.zeros(3))
    assert np.array_equal(T, np.eye(4))


def test_accepts_opencv_vector_shapes():
    """(3,1) and (1,3) vectors straight from the pose solver are accepted."""
    a = build_object_to_camera(np.array([[0.1], [0.2], [0.3]]), np.array([[1.0, 2.0, 3.0]]))
    b = build_object_to_camera([0.1, 0.2, 0.3], [1.0, 2.0, 3.0])
    assert np.allclose(a, b)


def test_quarter_turn_about_z_maps_unit_x():
    T = build_object_to_camera(np.array([0.0, 0.0, np.pi / 2]), np.array([1.0, 0.0, 0.0]))

    p_cam = T @ np.array([1.0, 0.0, 0.0, 1.0])

    assert np.allclose(p_cam[:3], [1.0, 1.0, 0.0], atol=1e-9)


def test_invert_rejects_non_orthonormal_block():
    T = np.eye(4)
    T[:3, :3] = [[1.0, 0.5, 0.0], [0.0, 1.0, 0.0], [0.0, 0.0, 1.0]]
    with pytest.raises(DegenerateTransformError):
        invert_transform(T)


def test_invert_rejects_singular_block():
    T = np.eye(4)
    T[:3, :3] = 0.0
    T[:3, 3] = [1.0, 2.0, 3.0]
    with pytest.raises(DegenerateTransformError):
        invert_transform(T)


def test_invert_rejects_reflection():
    T = np.diag([1.0, 1.0, -1.0, 1.0])
    with pytest.raises(DegenerateTransformError, match="determinant"):
        invert_transform(T)


def test_invert_rejects_bad_shape_and_bottom_row():
    with pytest.raises(DegenerateTransformError):
        invert_transform(np.eye(3))
    T = np.eye(4)
    T[3, 0] = 0.5
    with pytest.raises(DegenerateTransformError):
        invert_transform(T)


def test_degenerate_error_is_a_value_error():
    assert issubclass(DegenerateTransformError, ValueError)


def test_translation_only_composition():
    object_to_world = translation_transform([2.0, 3.0, 4.0])

    T = compose_camera_to_world(object_to_world, np.eye(4))

    assert np.array_equal(T[:3, 3], [2.0, 3.0, 4.0])
    assert np.array_equal(T[:3, :3], np.eye(3))


def test_camera_to_world_places_camera_behind_marker():
    """Marker 1 m straight ahead of the camera, marker at world (2, 3, 4)."""
    object_to_camera = build_object_to_camera(np.zeros(3), np.array([0.0, 0.0, 1.0]))
    camera_to_object = invert_transform(object_to_camera)

    T = compose_camera_to_world(translation_transform([2.0, 3.0, 4.0]), camera_to_object)

    assert np.allclose(T[:3, 3], [2.0, 3.0, 3.0])


def test_matrix_to_rvec_tvec_roundtrip():
    rvec = np.array([0.1, 0.2, 0.3])
    tvec = np.array([1.0, 2.0, 3.0])

    rvec_back, tvec_back = matrix_to_rvec_tvec(build_object_to_camera(rvec, tvec))

    assert rvec_back.shape == (3, 1)
    assert tvec_back.shape == (3, 1)
    assert np.allclose(rvec_back.flatten(), rvec, atol=1e-6)
    assert np.allclose(tvec_back.flatten(), tvec, atol=1e-9)
