"""
카메라 캘리브레이션(해상도, 내부 파라미터, 왜곡 계수) 모델을 정의합니다.

모든 모델은 frozen(불변)이며, 회전된 캘리브레이션은 항상 새 인스턴스로 만들어집니다.
왜곡 계수 순서는 OpenCV와 동일합니다:
    (k1, k2, p1, p2[, k3[, k4, k5, k6[, s1, s2, s3, s4[, tauX, tauY]]]])
"""
import math
from typing import Any, Optional, Tuple

import numpy as np
from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.core.exceptions import GeometryInputError
from app.schemas.rotation import RotationMode

VALID_COEFFICIENT_COUNTS = (4, 5, 8, 12, 14)


class Resolution(BaseModel):
    model_config = ConfigDict(frozen=True)

    width: int = Field(..., gt=0)
    height: int = Field(..., gt=0)

    def as_tuple(self) -> Tuple[int, int]:
        return self.width, self.height


class CameraIntrinsics(BaseModel):
    """Pinhole intrinsics. Always tied to the resolution of the CalibrationFrame that owns them."""
    model_config = ConfigDict(frozen=True)

    fx: float = Field(..., gt=0.0)
    fy: float = Field(..., gt=0.0)
    cx: float
    cy: float

    @field_validator("cx", "cy")
    @classmethod
    def _validate_principal_point(cls, value: float) -> float:
        if not math.isfinite(value):
            raise ValueError("principal point must be finite.")
        return value

    def to_matrix(self) -> np.ndarray:
        return np.array(
            [
                [self.fx, 0.0, self.cx],
                [0.0, self.fy, self.cy],
                [0.0, 0.0, 1.0],
            ],
            dtype=np.float64,
        )

    @classmethod
    def from_matrix(cls, matrix: Any) -> "CameraIntrinsics":
        mat = np.asarray(matrix, dtype=np.float64)
        if mat.size != 9:
            raise GeometryInputError(f"Camera matrix must have 9 elements, got {mat.size}.")
        mat = mat.reshape(3, 3)
        return cls(fx=mat[0, 0], fy=mat[1, 1], cx=mat[0, 2], cy=mat[1, 2])


class DistortionCoefficients(BaseModel):
    model_config = ConfigDict(frozen=True)

    coefficients: Tuple[float, ...]

    @field_validator("coefficients")
    @classmethod
    def _validate_coefficients(cls, value: Tuple[float, ...]) -> Tuple[float, ...]:
        if len(value) not in VALID_COEFFICIENT_COUNTS:
            raise ValueError(
                f"distortion coefficients must have one of {VALID_COEFFICIENT_COUNTS} entries, got {len(value)}."
            )
        if not all(math.isfinite(v) for v in value):
            raise ValueError("distortion coefficients must be finite.")
        return value

    @property
    def radial(self) -> Tuple[float, ...]:
        c = self.coefficients
        return (c[0], c[1]) + tuple(c[4:8])

    @property
    def tangential(self) -> Tuple[float, float]:
        return self.coefficients[2], self.coefficients[3]

    @property
    def thin_prism(self) -> Tuple[float, ...]:
        return tuple(self.coefficients[8:12])

    @property
    def tilt(self) -> Tuple[float, ...]:
        return tuple(self.coefficients[12:14])

    def as_array(self) -> np.ndarray:
        return np.array(self.coefficients, dtype=np.float64)

    def rotate(self, mode: RotationMode) -> "DistortionCoefficients":
        """
        회전된 픽셀 좌표계에서 같은 렌즈 왜곡을 표현하도록 계수를 변환합니다.

        방사 계수(k1..k6)는 방향에 무관하므로 그대로 유지됩니다.
        접선 계수와 thin prism 계수는 정규화 좌표의 축 변환을 따라갑니다:
            90° CCW:  (x', y') = ( y, -x)  ->  (p1, p2) = (-p2,  p1)
            180°:     (x', y') = (-x, -y)  ->  (p1, p2) = (-p1, -p2)
            270° CCW: (x', y') = (-y,  x)  ->  (p1, p2) = ( p2, -p1)
        """
        if mode is RotationMode.IDENTITY:
            return self

        c = list(self.coefficients)
        if any(t != 0.0 for t in c[12:14]):
            raise GeometryInputError("Rotation of a tilted-sensor distortion model (tauX, tauY != 0) is not supported.")

        p1, p2 = c[2], c[3]
        s = c[8:12]
        if mode is RotationMode.ROT_90_CCW:
            c[2], c[3] = -p2, p1
            if s:
                c[8:12] = [s[2], s[3], -s[0], -s[1]]
        elif mode is RotationMode.ROT_180:
            c[2], c[3] = -p1, -p2
            if s:
                c[8:12] = [-v for v in s]
        elif mode is RotationMode.ROT_270_CCW:
            c[2], c[3] = p2, -p1
            if s:
                c[8:12] = [-s[2], -s[3], s[0], s[1]]

        return DistortionCoefficients(coefficients=tuple(c))


class CalibrationFrame(BaseModel):
    """One physical calibration record: resolution, intrinsics and distortion for the same frame."""
    model_config = ConfigDict(frozen=True)

    resolution: Resolution
    intrinsics: CameraIntrinsics
    distortion: DistortionCoefficients
    sensor_size_mm: Optional[Tuple[float, float]] = Field(default=None, description="물리 센서 크기 (mm, 너비/높이)")
    reprojection_error_px: Optional[float] = Field(default=None, ge=0.0)

    @field_validator("intrinsics", mode="before")
    @classmethod
    def _accept_camera_matrix(cls, value: Any) -> Any:
        # 저장된 레코드는 3x3 (또는 길이 9) 카메라 행렬을 그대로 담고 있을 수 있습니다.
        if isinstance(value, (list, tuple, np.ndarray)):
            return CameraIntrinsics.from_matrix(value)
        return value

    @field_validator("distortion", mode="before")
    @classmethod
    def _accept_coefficient_list(cls, value: Any) -> Any:
        if isinstance(value, (list, tuple, np.ndarray)):
            return {"coefficients": tuple(float(v) for v in np.ravel(value))}
        return value

    @property
    def width(self) -> int:
        return self.resolution.width

    @property
    def height(self) -> int:
        return self.resolution.height

    def camera_matrix(self) -> np.ndarray:
        return self.intrinsics.to_matrix()

    def dist_coeffs(self) -> np.ndarray:
        return self.distortion.as_array()

    def rotate(self, mode: RotationMode) -> "CalibrationFrame":
        """
        회전된 프레임에서 유효한 캘리브레이션을 계산합니다. 원본은 변경하지 않습니다.

        주점(cx, cy)은 회전 전 해상도를 기준으로 RotationMode.transform_point를 적용하고,
        90°/270° 회전에서는 해상도와 fx/fy를 교환합니다.
        """
        if mode is RotationMode.IDENTITY:
            return self

        width, height = self.resolution.width, self.resolution.height
        cx, cy = mode.transform_point((self.intrinsics.cx, self.intrinsics.cy), width, height)
        new_width, new_height = mode.transform_extent(width, height)

        if mode.swaps_axes:
            fx, fy = self.intrinsics.fy, self.intrinsics.fx
            sensor_size = (self.sensor_size_mm[1], self.sensor_size_mm[0]) if self.sensor_size_mm else None
        else:
            fx, fy = self.intrinsics.fx, self.intrinsics.fy
            sensor_size = self.sensor_size_mm

        return CalibrationFrame(
            resolution=Resolution(width=new_width, height=new_height),
            intrinsics=CameraIntrinsics(fx=fx, fy=fy, cx=cx, cy=cy),
            distortion=self.distortion.rotate(mode),
            sensor_size_mm=sensor_size,
            reprojection_error_px=self.reprojection_error_px,
        )
