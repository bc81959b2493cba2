"""
물리 카메라 장치에 대한 원시(raw) 접근 계층입니다.

CameraDevice는 이름 기반 속성 읽기/쓰기, 속성 종류/범위 조회, 비디오 모드 열거 등
CameraCapability가 소비하는 최소 인터페이스를 정의합니다. 모든 장치 I/O 실패는
DeviceIOError로 정규화되어 올라갑니다.
"""
import re
from abc import ABC, abstractmethod
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import cv2

from app.core.config import settings
from app.core.exceptions import DeviceIOError
from app.core.logging import logger
from app.schemas.camera import DeviceInfo, PixelFormat, VideoMode


class PropertyKind(Enum):
    NONE = "none"
    BOOLEAN = "boolean"
    INTEGER = "integer"
    STRING = "string"
    ENUM = "enum"


class CameraDevice(ABC):
    """Raw property access to one physical camera. Owned by exactly one CameraSourceService."""

    @property
    @abstractmethod
    def info(self) -> DeviceInfo: ...

    @abstractmethod
    def is_connected(self) -> bool: ...

    @abstractmethod
    def enumerate_video_modes(self) -> List[VideoMode]: ...

    @abstractmethod
    def get_video_mode(self) -> Optional[VideoMode]: ...

    @abstractmethod
    def set_video_mode(self, mode: VideoMode) -> None: ...

    @abstractmethod
    def property_kind(self, name: str) -> PropertyKind: ...

    @abstractmethod
    def get_property(self, name: str) -> int: ...

    @abstractmethod
    def set_property(self, name: str, value: int) -> None: ...

    @abstractmethod
    def property_range(self, name: str) -> Tuple[int, int]: ...

    # --- 범용(generic) 호출: 세밀한 속성이 없는 장치를 위한 경로 ---

    @abstractmethod
    def set_white_balance_manual(self, kelvin: int) -> None: ...

    @abstractmethod
    def set_white_balance_auto(self) -> None: ...

    @abstractmethod
    def set_exposure_manual(self, value: int) -> None: ...

    @abstractmethod
    def set_exposure_auto(self) -> None: ...

    @abstractmethod
    def set_brightness(self, value: int) -> None: ...

    def has_property(self, name: str) -> bool:
        return self.property_kind(name) is not PropertyKind.NONE

    def release(self) -> None:
        return None


# V4L2 컨트롤 이름 -> OpenCV 속성 ID
OPENCV_PROPERTY_IDS: Dict[str, int] = {
    "brightness": cv2.CAP_PROP_BRIGHTNESS,
    "gain": cv2.CAP_PROP_GAIN,
    "auto_exposure": cv2.CAP_PROP_AUTO_EXPOSURE,
    "exposure_time_absolute": cv2.CAP_PROP_EXPOSURE,
    "raw_exposure_time_absolute": cv2.CAP_PROP_EXPOSURE,
    "white_balance_automatic": cv2.CAP_PROP_AUTO_WB,
    "white_balance_temperature": cv2.CAP_PROP_WB_TEMPERATURE,
    "focus_auto": cv2.CAP_PROP_AUTOFOCUS,
    "focus_absolute": cv2.CAP_PROP_FOCUS,
}

BOOLEAN_PROPERTIES = {"white_balance_automatic", "focus_auto"}

# V4L2 auto_exposure 메뉴 값
V4L2_EXPOSURE_MANUAL = 1
V4L2_EXPOSURE_APERTURE_PRIORITY = 3

FOURCC_FORMATS: Dict[str, PixelFormat] = {
    "MJPG": PixelFormat.MJPEG,
    "YUYV": PixelFormat.YUYV,
    "YUY2": PixelFormat.YUYV,
    "UYVY": PixelFormat.UYVY,
    "RGBP": PixelFormat.RGB565,
    "BGR3": PixelFormat.BGR,
    "GREY": PixelFormat.GRAY,
    "Y16 ": PixelFormat.Y16,
}

PROBE_RESOLUTIONS: List[Tuple[int, int]] = [
    (320, 240), (640, 480), (800, 600), (1280, 720), (1280, 800), (1600, 1200), (1920, 1080),
]
PROBE_FOURCCS: List[str] = ["MJPG", "YUYV"]
PROBE_FPS: List[float] = [30.0, 60.0, 100.0, 120.0]


def _decode_fourcc(value: float) -> str:
    code = int(value)
    return "".join(chr((code >> (8 * i)) & 0xFF) for i in range(4))


def _fourcc_of(pixel_format: PixelFormat) -> Optional[str]:
    return next((fourcc for fourcc, fmt in FOURCC_FORMATS.items() if fmt is pixel_format), None)


class OpenCVCameraDevice(CameraDevice):
    """
    cv2.VideoCapture 기반 UVC 카메라 장치.

    OpenCV는 속성 범위나 지원 모드 목록을 직접 제공하지 않으므로,
    범위는 생성자에 전달된 값(없으면 DeviceIOError)을 사용하고
    비디오 모드는 후보 목록을 설정해 보고 드라이버가 받아들인 값을 읽어 구성합니다.
    """

    def __init__(self, dev_path: str, property_ranges: Optional[Dict[str, Tuple[int, int]]] = None):
        self.dev_path = dev_path
        self._property_ranges = dict(property_ranges or {})
        self._cap = self._open_capture()
        self._info = self._read_device_info()

    def _open_capture(self):
        """Linux에서는 V4L2 백엔드를 우선 사용하고, 실패하면 OpenCV 기본 백엔드로 재시도합니다."""
        device_id = int(self.dev_path) if self.dev_path.isdigit() else self.dev_path
        backends: List[Optional[int]] = []
        if settings.prefer_v4l2 and hasattr(cv2, "CAP_V4L2"):
            backends.append(cv2.CAP_V4L2)
        backends.append(None)

        for backend in backends:
            cap = cv2.VideoCapture(device_id, backend) if backend is not None else cv2.VideoCapture(device_id)
            if cap is not None and cap.isOpened():
                return cap
            if cap is not None:
                cap.release()

        raise DeviceIOError(f"Unable to open camera device {self.dev_path}")

    def _sysfs_dir(self) -> Optional[Path]:
        match = re.search(r"(\d+)$", self.dev_path)
        if not match:
            return None
        path = Path(f"/sys/class/video4linux/video{match.group(1)}")
        return path if path.exists() else None

    def _read_device_info(self) -> DeviceInfo:
        name = f"USB Camera ({self.dev_path})"
        usb_vid = usb_pid = -1
        sysfs = self._sysfs_dir()
        if sysfs is not None:
            try:
                name = (sysfs / "name").read_text(encoding="utf-8").strip() or name
                usb_dir = (sysfs / "device").resolve().parent
                usb_vid = int((usb_dir / "idVendor").read_text().strip(), 16)
                usb_pid = int((usb_dir / "idProduct").read_text().strip(), 16)
            except (OSError, ValueError) as e:
                logger.debug(f"Could not read USB identity for {self.dev_path} from sysfs: {e}")
        return DeviceInfo(name=name, path=self.dev_path, usb_vid=usb_vid, usb_pid=usb_pid)

    def _prop_id(self, name: str) -> int:
        prop_id = OPENCV_PROPERTY_IDS.get(name)
        if prop_id is None:
            raise DeviceIOError(f"Property '{name}' is not available on {self.dev_path}", property_name=name)
        return prop_id

    def _get(self, prop_id: int, name: str) -> float:
        try:
            return self._cap.get(prop_id)
        except cv2.error as e:
            raise DeviceIOError(f"Failed to read '{name}': {e}", property_name=name) from e

    def _set(self, prop_id: int, value: float, name: str) -> None:
        try:
            ok = self._cap.set(prop_id, value)
        except cv2.error as e:
            raise DeviceIOError(f"Failed to write '{name}'={value}: {e}", property_name=name) from e
        if not ok:
            raise DeviceIOError(f"Device rejected '{name}'={value}", property_name=name)

    @property
    def info(self) -> DeviceInfo:
        return self._info

    def is_connected(self) -> bool:
        return self._cap is not None and self._cap.isOpened()

    def enumerate_video_modes(self) -> List[VideoMode]:
        if not self.is_connected():
            raise DeviceIOError(f"Camera {self.dev_path} is not connected")

        original = self.get_video_mode()
        modes: List[VideoMode] = []
        for fourcc in PROBE_FOURCCS:
            for width, height in PROBE_RESOLUTIONS:
                for fps in PROBE_FPS:
                    self._cap.set(cv2.CAP_PROP_FOURCC, cv2.VideoWriter_fourcc(*fourcc))
                    self._cap.set(cv2.CAP_PROP_FRAME_WIDTH, width)
                    self._cap.set(cv2.CAP_PROP_FRAME_HEIGHT, height)
                    self._cap.set(cv2.CAP_PROP_FPS, fps)
                    actual = self.get_video_mode()
                    if actual is not None and (actual.width, actual.height) == (width, height):
                        modes.append(actual)
        if original is not None:
            try:
                self.set_video_mode(original)
            except DeviceIOError as e:
                logger.warning(f"Could not restore video mode after probing {self.dev_path}: {e}")
        return modes

    def get_video_mode(self) -> Optional[VideoMode]:
        if not self.is_connected():
            return None
        width = int(self._get(cv2.CAP_PROP_FRAME_WIDTH, "width"))
        height = int(self._get(cv2.CAP_PROP_FRAME_HEIGHT, "height"))
        fps = self._get(cv2.CAP_PROP_FPS, "fps")
        if width <= 0 or height <= 0 or fps <= 0:
            return None
        pixel_format = FOURCC_FORMATS.get(_decode_fourcc(self._get(cv2.CAP_PROP_FOURCC, "fourcc")), PixelFormat.UNKNOWN)
        return VideoMode(width=width, height=height, pixel_format=pixel_format, fps=fps)

    def set_video_mode(self, mode: VideoMode) -> None:
        fourcc = _fourcc_of(mode.pixel_format)
        if fourcc is not None:
            self._set(cv2.CAP_PROP_FOURCC, cv2.VideoWriter_fourcc(*fourcc), "fourcc")
        self._set(cv2.CAP_PROP_FRAME_WIDTH, mode.width, "width")
        self._set(cv2.CAP_PROP_FRAME_HEIGHT, mode.height, "height")
        self._set(cv2.CAP_PROP_FPS, mode.fps, "fps")

    def property_kind(self, name: str) -> PropertyKind:
        prop_id = OPENCV_PROPERTY_IDS.get(name)
        if prop_id is None or not self.is_connected():
            return PropertyKind.NONE
        try:
            value = self._cap.get(prop_id)
        except cv2.error:
            return PropertyKind.NONE
        # 지원하지 않는 속성은 -1을 돌려줍니다.
        if value == -1:
            return PropertyKind.NONE
        return PropertyKind.BOOLEAN if name in BOOLEAN_PROPERTIES else PropertyKind.INTEGER

    def get_property(self, name: str) -> int:
        return int(self._get(self._prop_id(name), name))

    def set_property(self, name: str, value: int) -> None:
        self._set(self._prop_id(name), value, name)

    def property_range(self, name: str) -> Tuple[int, int]:
        if name not in self._property_ranges:
            raise DeviceIOError(f"Range of '{name}' is not reported by the OpenCV backend", property_name=name)
        return self._property_ranges[name]

    def set_white_balance_manual(self, kelvin: int) -> None:
        self._set(cv2.CAP_PROP_AUTO_WB, 0, "white_balance_automatic")
        self._set(cv2.CAP_PROP_WB_TEMPERATURE, kelvin, "white_balance_temperature")

    def set_white_balance_auto(self) -> None:
        self._set(cv2.CAP_PROP_AUTO_WB, 1, "white_balance_automatic")

    def set_exposure_manual(self, value: int) -> None:
        self._set(cv2.CAP_PROP_AUTO_EXPOSURE, V4L2_EXPOSURE_MANUAL, "auto_exposure")
        self._set(cv2.CAP_PROP_EXPOSURE, value, "exposure")

    def set_exposure_auto(self) -> None:
        self._set(cv2.CAP_PROP_AUTO_EXPOSURE, V4L2_EXPOSURE_APERTURE_PRIORITY, "auto_exposure")

    def set_brightness(self, value: int) -> None:
        self._set(cv2.CAP_PROP_BRIGHTNESS, value, "brightness")

    def release(self) -> None:
        if self._cap is not None:
            self._cap.release()
            logger.info(f"Released camera device {self.dev_path}")
