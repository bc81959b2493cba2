"""
활성 카메라 설정(해상도, 대각 FOV, 캘리브레이션)에 대한 프레임 지오메트리 모델입니다.
"""
import math
from typing import List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, computed_field, model_validator

from app.schemas.calibration import CalibrationFrame
from app.schemas.rotation import RotationMode


class FrameGeometry(BaseModel):
    model_config = ConfigDict(frozen=True)

    width: int = Field(..., gt=0)
    height: int = Field(..., gt=0)
    diagonal_fov_deg: float = Field(..., gt=0.0, lt=180.0, description="센서 대각 방향 화각 (회전 불변)")
    calibration: Optional[CalibrationFrame] = None

    @model_validator(mode="after")
    def _check_calibration_resolution(self) -> "FrameGeometry":
        if self.calibration is not None and self.calibration.resolution.as_tuple() != (self.width, self.height):
            raise ValueError(
                f"calibration resolution {self.calibration.resolution.as_tuple()} "
                f"does not match frame {(self.width, self.height)}."
            )
        return self

    def _half_diagonal_tan(self) -> float:
        return math.tan(math.radians(self.diagonal_fov_deg) / 2.0)

    @computed_field(return_type=float)
    @property
    def horizontal_fov_deg(self) -> float:
        """대각 FOV와 종횡비로부터 수평 FOV를 계산합니다."""
        diagonal = math.hypot(self.width, self.height)
        return math.degrees(2.0 * math.atan(self._half_diagonal_tan() * self.width / diagonal))

    @computed_field(return_type=float)
    @property
    def vertical_fov_deg(self) -> float:
        """대각 FOV와 종횡비로부터 수직 FOV를 계산합니다."""
        diagonal = math.hypot(self.width, self.height)
        return math.degrees(2.0 * math.atan(self._half_diagonal_tan() * self.height / diagonal))

    @computed_field(return_type=float)
    @property
    def center_x(self) -> float:
        if self.calibration is not None:
            return self.calibration.intrinsics.cx
        return self.width / 2.0 - 0.5

    @computed_field(return_type=float)
    @property
    def center_y(self) -> float:
        if self.calibration is not None:
            return self.calibration.intrinsics.cy
        return self.height / 2.0 - 0.5

    @computed_field(return_type=float)
    @property
    def horizontal_focal_length(self) -> float:
        if self.calibration is not None:
            return self.calibration.intrinsics.fx
        return self.width / (2.0 * math.tan(math.radians(self.horizontal_fov_deg) / 2.0))

    @computed_field(return_type=float)
    @property
    def vertical_focal_length(self) -> float:
        if self.calibration is not None:
            return self.calibration.intrinsics.fy
        return self.height / (2.0 * math.tan(math.radians(self.vertical_fov_deg) / 2.0))

    @computed_field(return_type=int)
    @property
    def image_area(self) -> int:
        return self.width * self.height

    def rotate(self, mode: RotationMode) -> "FrameGeometry":
        """해상도와 캘리브레이션을 회전합니다. 대각 FOV는 그대로 복사됩니다."""
        if mode is RotationMode.IDENTITY:
            return self
        width, height = mode.transform_extent(self.width, self.height)
        return FrameGeometry(
            width=width,
            height=height,
            diagonal_fov_deg=self.diagonal_fov_deg,
            calibration=self.calibration.rotate(mode) if self.calibration is not None else None,
        )


# --- /geometry 요청/응답 모델 ---

class PointsRequest(BaseModel):
    points: List[Tuple[float, float]] = Field(..., description="(x, y) 픽셀 좌표 목록")


class RotatePointsRequest(PointsRequest):
    mode: RotationMode
    frame_width: float = Field(..., gt=0)
    frame_height: float = Field(..., gt=0)


class RotationRequest(BaseModel):
    mode: RotationMode = Field(..., description="반시계 방향 회전 각도 (0, 90, 180, 270)")


class PointsResponse(BaseModel):
    points: List[Tuple[float, float]]
