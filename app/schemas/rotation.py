"""
90° 배수 이미지 회전 모드를 정의합니다.

값은 반시계 방향 회전 각도(도)이므로 설정 파일과 HTTP 요청에서 0/90/180/270으로 지정할 수 있습니다.
"""
from enum import Enum
from typing import Sequence, Tuple

import cv2
import numpy as np

from app.core.exceptions import GeometryInputError
from app.schemas.points import as_point_array


class RotationMode(Enum):
    IDENTITY = 0
    ROT_90_CCW = 90
    ROT_180 = 180
    ROT_270_CCW = 270

    @classmethod
    def from_degrees(cls, degrees: int) -> "RotationMode":
        """임의의 90° 배수 각도를 0/90/180/270 중 하나로 정규화합니다."""
        if degrees % 90 != 0:
            raise GeometryInputError(f"Rotation must be a multiple of 90 degrees, got {degrees}.")
        return cls(degrees % 360)

    @property
    def swaps_axes(self) -> bool:
        return self in (RotationMode.ROT_90_CCW, RotationMode.ROT_270_CCW)

    def inverse(self) -> "RotationMode":
        return RotationMode((360 - self.value) % 360)

    def compose(self, other: "RotationMode") -> "RotationMode":
        """`self`를 적용한 뒤 `other`를 적용한 것과 같은 회전을 반환합니다."""
        return RotationMode((self.value + other.value) % 360)

    def transform_extent(self, width: float, height: float) -> Tuple[float, float]:
        if self.swaps_axes:
            return height, width
        return width, height

    def transform_point(self, point: Sequence[float], frame_width: float, frame_height: float) -> Tuple[float, float]:
        """
        회전 전 프레임(frame_width x frame_height)의 픽셀 좌표를 회전 후 프레임의 좌표로 변환합니다.

        Args:
            point: (x, y) 픽셀 좌표
            frame_width: 회전 전 프레임의 너비
            frame_height: 회전 전 프레임의 높이
        """
        x, y = float(point[0]), float(point[1])
        if self is RotationMode.ROT_90_CCW:
            return y, frame_width - x
        if self is RotationMode.ROT_180:
            return frame_width - x, frame_height - y
        if self is RotationMode.ROT_270_CCW:
            return frame_height - y, x
        return x, y

    def transform_points(self, points, frame_width: float, frame_height: float) -> np.ndarray:
        """transform_point의 벡터화 버전. 입력 배열은 변경하지 않고 (N, 2) 배열을 반환합니다."""
        pts = as_point_array(points)
        x, y = pts[:, 0], pts[:, 1]
        if self is RotationMode.ROT_90_CCW:
            return np.column_stack((y, frame_width - x))
        if self is RotationMode.ROT_180:
            return np.column_stack((frame_width - x, frame_height - y))
        if self is RotationMode.ROT_270_CCW:
            return np.column_stack((frame_height - y, x))
        return pts.copy()

    def rotate_image(self, image: np.ndarray) -> np.ndarray:
        """이미지 배열에 같은 회전을 적용합니다. IDENTITY는 입력을 그대로 반환합니다."""
        if self is RotationMode.ROT_90_CCW:
            return cv2.rotate(image, cv2.ROTATE_90_COUNTERCLOCKWISE)
        if self is RotationMode.ROT_180:
            return cv2.rotate(image, cv2.ROTATE_180)
        if self is RotationMode.ROT_270_CCW:
            return cv2.rotate(image, cv2.ROTATE_90_CLOCKWISE)
        return image
