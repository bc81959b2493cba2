from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, computed_field
from pathlib import Path
from typing import Literal, Optional
import sys

env_path = Path("app") / "config" / ".env"

class AppSettings(BaseSettings):
    """
    pydantic-settings를 사용하여 환경 변수 및 .env 파일로부터 설정을 관리합니다.
    """
    # --- General ---
    LOG_LEVEL: str = Field(
        "INFO",
        description="전체 애플리케이션 로그 레벨 (예: DEBUG, INFO, WARNING)",
    )
    LOG_FILE_PATH: Optional[str] = Field(None, description="설정 시 로그를 파일에도 기록 (예: logs/camera.log)")
    LOG_FILE_ROTATION: str = Field("10 MB", description="로그 파일 회전 기준 (loguru rotation 문법)")

    # --- Camera Source Settings ---
    CAMERA_CONFIG_PATH: str = Field(
        "app/config/camera_config.json",
        description="카메라 설정(닉네임, 경로, FOV, 캘리브레이션) JSON 파일 경로",
    )
    HARDWARE_PROFILE_PATH: str = Field(
        "app/config/hardware_profile.json",
        description="하드웨어 프로필(블랙리스트 해상도 인덱스, 프리셋 FOV, 추가 quirk) JSON 파일 경로",
    )
    CAMERA_DEVICE_PATH: str = Field("0", description="OpenCV로 열 장치 경로 또는 인덱스 (예: /dev/video0, 0)")
    CAMERA_BACKEND: Literal["auto", "v4l2", "default"] = Field(
        "auto",
        description="VideoCapture 백엔드 선택 (auto: Linux에서는 V4L2 우선)",
    )

    # --- Settables Defaults ---
    DEFAULT_EXPOSURE: int = Field(20, ge=0, description="수동 노출로 전환될 때 복원할 초기 노출 값")
    DEFAULT_BRIGHTNESS: int = Field(50, ge=0, description="초기 밝기 값")
    MANUAL_WHITE_BALANCE_KELVIN: int = Field(
        4000,
        gt=0,
        description="자동 노출 해제 시 고정할 화이트 밸런스 색온도 (K)",
    )

    # --- Geometry Settings ---
    DEFAULT_DIAGONAL_FOV_DEG: float = Field(70.0, gt=0.0, lt=180.0, description="설정 파일에 FOV가 없을 때 사용할 대각 FOV (도)")
    UNDISTORT_MAX_ITERATIONS: int = Field(100, gt=0, description="undistort 반복 해법의 최대 반복 횟수")
    UNDISTORT_EPSILON_PX: float = Field(1e-10, gt=0.0, description="undistort 반복 해법의 수렴 기준 (픽셀)")
    GEOMETRY_CACHE_SIZE: int = Field(16, gt=0, description="회전된 FrameGeometry 캐시 크기")

    @computed_field(return_type=bool)
    @property
    def prefer_v4l2(self) -> bool:
        """선택된 백엔드 설정에 따라 V4L2를 우선 사용할지 반환합니다."""
        if self.CAMERA_BACKEND == "v4l2":
            return True
        if self.CAMERA_BACKEND == "default":
            return False
        # auto
        return sys.platform.startswith("linux")


    # pydantic-settings 설정
    model_config = SettingsConfigDict(env_file=env_path, env_file_encoding='utf-8')

settings = AppSettings()
