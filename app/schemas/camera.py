"""
카메라 장치/설정을 위한 DTO(Data Transfer Objects)를 정의합니다.
Pydantic의 BaseModel을 사용하여 설정 로드 시점에 데이터의 유효성을 검사합니다.
"""
import sys
from enum import Enum
from typing import List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from app.core.config import settings
from app.schemas.calibration import CalibrationFrame
from app.schemas.quirks import CameraQuirk, QuirkyCamera
from app.schemas.rotation import RotationMode


# --- 비디오 모드 ---

class PixelFormat(str, Enum):
    UNKNOWN = "UNKNOWN"
    MJPEG = "MJPEG"
    YUYV = "YUYV"
    RGB565 = "RGB565"
    BGR = "BGR"
    GRAY = "GRAY"
    Y16 = "Y16"
    UYVY = "UYVY"

    @property
    def is_usable(self) -> bool:
        """그레이스케일 또는 알 수 없는 포맷은 파이프라인에서 사용할 수 없습니다."""
        return self not in (PixelFormat.UNKNOWN, PixelFormat.GRAY, PixelFormat.Y16)


class VideoMode(BaseModel):
    """장치가 보고한 캡처 구성. 열거된 이후에는 변경되지 않습니다."""
    model_config = ConfigDict(frozen=True)

    width: int = Field(..., gt=0)
    height: int = Field(..., gt=0)
    pixel_format: PixelFormat
    fps: float = Field(..., gt=0)

    def as_tuple(self) -> Tuple[int, int, PixelFormat, float]:
        return self.width, self.height, self.pixel_format, self.fps


# --- /device/status 응답 모델 ---

class DeviceInfo(BaseModel):
    name: str
    path: str
    usb_vid: int = -1
    usb_pid: int = -1


class CameraStatus(BaseModel):
    device_info: DeviceInfo
    connected: bool
    supported: bool
    quirks: List[CameraQuirk] = Field(default_factory=list)
    active_video_mode: Optional[VideoMode] = None
    last_update: float


# --- 하드웨어 프로필 ---

class HardwareProfile(BaseModel):
    blacklisted_res_indices: List[int] = Field(
        default_factory=list,
        description="정렬된 비디오 모드 목록에서 제외할 인덱스 (정렬 직후 목록 기준, 한 번에 적용)",
    )
    preset_fov_deg: Optional[float] = Field(default=None, gt=0.0, lt=180.0, description="벤더 카메라의 고정 대각 FOV")
    camera_quirks: List[CameraQuirk] = Field(default_factory=list, description="장치 quirk에 추가로 병합할 quirk")

    def has_preset_fov(self) -> bool:
        return self.preset_fov_deg is not None


# --- 카메라 설정 레코드 ---

class CameraConfiguration(BaseModel):
    base_name: str = ""
    unique_name: str = ""
    nickname: str = ""
    path: str = ""
    other_paths: List[str] = Field(default_factory=list)
    usb_vid: int = -1
    usb_pid: int = -1
    camera_quirks: Optional[QuirkyCamera] = None
    fov_deg: float = Field(default_factory=lambda: settings.DEFAULT_DIAGONAL_FOV_DEG, gt=0.0, lt=180.0, description="대각 FOV (도)")
    calibrations: List[CalibrationFrame] = Field(default_factory=list)
    rotation_mode: RotationMode = RotationMode.IDENTITY

    def get_usb_path(self) -> Optional[str]:
        """
        카메라가 꽂힌 USB 포트를 나타내는 고유 경로를 반환합니다.
        /dev/videoN 번호는 재연결 시 바뀔 수 있으므로 by-path 경로를 우선 사용합니다.
        """
        if sys.platform == "win32":
            return self.path
        return next((p for p in self.other_paths if "/by-path/" in p), None)

    def get_calibration(self, width: int, height: int) -> Optional[CalibrationFrame]:
        return next(
            (c for c in self.calibrations if c.resolution.as_tuple() == (width, height)),
            None,
        )


# --- /device/settables 응답 모델 ---

class Range(BaseModel):
    min: int
    max: int


class SettablesSnapshot(BaseModel):
    exposure: Range
    brightness: Range
    gain: Range
    last_exposure: int
    last_brightness: int
    auto_exposure: Optional[bool]
    supports_gain: bool
    current_video_mode: Optional[VideoMode]


# --- /device 요청 모델 ---

class SettableValueRequest(BaseModel):
    value: int = Field(..., description="노출/밝기/게인 값. 노출에서 음수는 변경 없음으로 처리됩니다.")


class AutoExposureRequest(BaseModel):
    enabled: bool


class VideoModeRequest(BaseModel):
    index: int = Field(..., description="GET /device/video-modes가 반환한 인덱스")
