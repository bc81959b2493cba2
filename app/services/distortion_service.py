"""
핀홀 + 방사/접선 왜곡 모델에 따른 점 단위 왜곡/역왜곡 함수입니다.

두 함수 모두 공유 상태가 없는 순수 함수이며 입력을 변경하지 않습니다.
입력 순서를 보존하고 길이 0의 입력도 허용합니다.
"""
from typing import Any, Optional

import cv2
import numpy as np

from app.core.config import settings
from app.schemas.calibration import CalibrationFrame, CameraIntrinsics, DistortionCoefficients
from app.schemas.points import as_point_array


def _as_matrix(intrinsics: Any) -> np.ndarray:
    if isinstance(intrinsics, CameraIntrinsics):
        return intrinsics.to_matrix()
    return np.asarray(intrinsics, dtype=np.float64).reshape(3, 3)


def _as_coeffs(coeffs: Any) -> np.ndarray:
    if isinstance(coeffs, DistortionCoefficients):
        return coeffs.as_array()
    return np.asarray(coeffs, dtype=np.float64).ravel()


def distort(points: Any, intrinsics: Any, coeffs: Any) -> np.ndarray:
    """
    이상적인(무왜곡) 픽셀 좌표를 실제 센서의 왜곡된 픽셀 좌표로 변환합니다.

    Args:
        points: (x, y) 픽셀 좌표 시퀀스
        intrinsics: CameraIntrinsics 또는 3x3 카메라 행렬
        coeffs: DistortionCoefficients 또는 OpenCV 순서의 계수 배열

    Returns:
        (N, 2) float64 배열
    """
    pts = as_point_array(points)
    if len(pts) == 0:
        return pts

    camera_matrix = _as_matrix(intrinsics)
    dist_coeffs = _as_coeffs(coeffs)
    fx, fy = camera_matrix[0, 0], camera_matrix[1, 1]
    cx, cy = camera_matrix[0, 2], camera_matrix[1, 2]

    # 정규화 좌표로 옮긴 뒤 z=1 평면의 3D 점으로 올려 projectPoints로 다시 투영합니다.
    object_points = np.column_stack(
        ((pts[:, 0] - cx) / fx, (pts[:, 1] - cy) / fy, np.ones(len(pts)))
    ).reshape(-1, 1, 3)
    zero = np.zeros(3, dtype=np.float64)
    projected, _ = cv2.projectPoints(object_points, zero, zero, camera_matrix, dist_coeffs)
    return projected.reshape(-1, 2)


def undistort(
    points: Any,
    intrinsics: Any,
    coeffs: Any,
    max_iterations: Optional[int] = None,
    epsilon_px: Optional[float] = None,
) -> np.ndarray:
    """
    distort의 좌역함수. 왜곡된 센서 픽셀 좌표를 이상적인 픽셀 좌표로 되돌립니다.
    닫힌 해가 없으므로 종료 조건(criteria)을 준 cv2.undistortPoints로 반복해서 풉니다.
    """
    pts = as_point_array(points)
    if len(pts) == 0:
        return pts

    camera_matrix = _as_matrix(intrinsics)
    dist_coeffs = _as_coeffs(coeffs)
    criteria = (
        cv2.TERM_CRITERIA_COUNT | cv2.TERM_CRITERIA_EPS,
        max_iterations or settings.UNDISTORT_MAX_ITERATIONS,
        epsilon_px or settings.UNDISTORT_EPSILON_PX,
    )
    undistorted = cv2.undistortPoints(
        pts.reshape(-1, 1, 2), camera_matrix, dist_coeffs, R=np.eye(3), P=camera_matrix, criteria=criteria
    )
    return undistorted.reshape(-1, 2)


def distort_with(points: Any, calibration: CalibrationFrame) -> np.ndarray:
    return distort(points, calibration.intrinsics, calibration.distortion)


def undistort_with(points: Any, calibration: CalibrationFrame) -> np.ndarray:
    return undistort(points, calibration.intrinsics, calibration.distortion)
