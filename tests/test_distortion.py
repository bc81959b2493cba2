import numpy as np
import pytest

from app.core.exceptions import GeometryInputError
from app.schemas.calibration import CameraIntrinsics, DistortionCoefficients
from app.services.distortion_service import distort, undistort

INTRINSICS = CameraIntrinsics(fx=600.0, fy=610.0, cx=320.0, cy=240.0)
COEFFS_5 = DistortionCoefficients(coefficients=(0.1, -0.05, 0.001, 0.002, 0.01))
COEFFS_8 = DistortionCoefficients(coefficients=(0.1, -0.05, 0.001, 0.002, 0.01, 0.02, -0.01, 0.005))
COEFFS_12 = DistortionCoefficients(
    coefficients=(0.1, -0.05, 0.001, 0.002, 0.01, 0.02, -0.01, 0.005, 0.001, -0.0005, 0.002, 0.0004)
)

POINTS = np.array(
    [[100.0, 100.0], [320.0, 240.0], [500.0, 400.0], [50.0, 430.0], [600.0, 20.0]]
)


def _reference_distort(points, intrinsics, coeffs):
    k1, k2, p1, p2, k3 = coeffs
    x = (points[:, 0] - intrinsics.cx) / intrinsics.fx
    y = (points[:, 1] - intrinsics.cy) / intrinsics.fy
    r2 = x * x + y * y
    radial = 1 + k1 * r2 + k2 * r2 ** 2 + k3 * r2 ** 3
    xd = x * radial + 2 * p1 * x * y + p2 * (r2 + 2 * x * x)
    yd = y * radial + p1 * (r2 + 2 * y * y) + 2 * p2 * x * y
    return np.column_stack((xd * intrinsics.fx + intrinsics.cx, yd * intrinsics.fy + intrinsics.cy))


def test_distort_matches_brown_conrady_model():
    distorted = distort(POINTS, INTRINSICS, COEFFS_5)
    expected = _reference_distort(POINTS, INTRINSICS, COEFFS_5.coefficients)
    assert np.allclose(distorted, expected, atol=1e-8)


def test_principal_point_is_fixed():
    assert np.allclose(distort([(320.0, 240.0)], INTRINSICS, COEFFS_5), [[320.0, 240.0]])


@pytest.mark.parametrize("coeffs", [COEFFS_5, COEFFS_8, COEFFS_12])
def test_undistort_inverts_distort(coeffs):
    restored = undistort(distort(POINTS, INTRINSICS, coeffs), INTRINSICS, coeffs)
    assert np.allclose(restored, POINTS, atol=1e-6)


def test_accepts_camera_matrix_and_plain_coefficients():
    matrix = INTRINSICS.to_matrix()
    from_models = distort(POINTS, INTRINSICS, COEFFS_5)
    from_arrays = distort(POINTS.tolist(), matrix, list(COEFFS_5.coefficients))
    assert np.allclose(from_models, from_arrays)


def test_empty_input_returns_empty_output():
    assert distort([], INTRINSICS, COEFFS_5).shape == (0, 2)
    assert undistort(np.empty((0, 2)), INTRINSICS, COEFFS_5).shape == (0, 2)


def test_order_is_preserved():
    forward = distort(POINTS, INTRINSICS, COEFFS_5)
    backward = distort(POINTS[::-1], INTRINSICS, COEFFS_5)
    assert np.allclose(forward[::-1], backward)


def test_input_is_not_mutated():
    points = POINTS.copy()
    distort(points, INTRINSICS, COEFFS_5)
    undistort(points, INTRINSICS, COEFFS_5)
    assert np.array_equal(points, POINTS)


def test_rejects_non_point_input():
    with pytest.raises(GeometryInputError):
        distort([[1.0, 2.0, 3.0]], INTRINSICS, COEFFS_5)


def test_undistort_converges_at_frame_corners_with_strong_barrel_distortion():
    coeffs = DistortionCoefficients(coefficients=(-0.35, 0.12, 0.0005, -0.0004, -0.02))
    corners = np.array([[0.0, 0.0], [639.0, 0.0], [0.0, 479.0], [639.0, 479.0]])

    restored = undistort(distort(corners, INTRINSICS, coeffs), INTRINSICS, coeffs)

    assert np.allclose(restored, corners, atol=1e-6)
