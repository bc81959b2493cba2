"""
카메라 서브시스템 전반에서 사용하는 예외 계층입니다.

- 장치 I/O 오류는 CameraCapability 경계에서 흡수(로그 후 이전 상태 유지)됩니다.
- 지오메트리/캘리브레이션 입력 오류는 설정 로드 시점에 즉시 실패합니다.
"""
from typing import Optional


class CameraError(Exception):
    """Base class for all camera subsystem errors."""


class ConfigurationError(CameraError):
    """A requested configuration (e.g. a video mode) is null or not supported by the device."""


class DeviceIOError(CameraError):
    """A property read/write against the physical device failed."""

    def __init__(self, message: str, property_name: Optional[str] = None):
        super().__init__(message)
        self.property_name = property_name


class UnsupportedCapability(CameraError):
    """The device's quirk set says the requested feature does not exist on this hardware."""


class GeometryInputError(CameraError, ValueError):
    """Calibration or geometry input is malformed; raised before it can reach the pipeline."""
