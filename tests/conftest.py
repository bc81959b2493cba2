from typing import Dict, Iterable, List, Optional, Tuple

import pytest

from app.core.exceptions import DeviceIOError
from app.schemas.camera import DeviceInfo, PixelFormat, VideoMode
from app.services.camera_device import CameraDevice, PropertyKind


class FakeCameraDevice(CameraDevice):
    """
    In-memory CameraDevice that records every write as (name, value).
    Generic calls are recorded under their method name.
    """

    def __init__(
        self,
        name: str = "Fake Camera",
        path: str = "/dev/video0",
        usb_vid: int = -1,
        usb_pid: int = -1,
        modes: Optional[Iterable[VideoMode]] = None,
        properties: Iterable[str] = (),
        ranges: Optional[Dict[str, Tuple[int, int]]] = None,
        failing: Iterable[str] = (),
        connected: bool = True,
        fail_enumerate: bool = False,
    ):
        self._info = DeviceInfo(name=name, path=path, usb_vid=usb_vid, usb_pid=usb_pid)
        self._modes: List[VideoMode] = list(modes or [])
        self.properties = set(properties)
        self.ranges = dict(ranges or {})
        self.failing = set(failing)
        self.connected = connected
        self.fail_enumerate = fail_enumerate
        self.current_mode: Optional[VideoMode] = None
        self.values: Dict[str, int] = {}
        self.writes: List[Tuple[str, object]] = []
        self.enumerate_calls = 0
        self.released = False

    def _write(self, name: str, value: object = None):
        if name in self.failing:
            raise DeviceIOError(f"write to '{name}' failed", property_name=name)
        self.writes.append((name, value))

    @property
    def info(self) -> DeviceInfo:
        return self._info

    def is_connected(self) -> bool:
        return self.connected

    def enumerate_video_modes(self) -> List[VideoMode]:
        self.enumerate_calls += 1
        if self.fail_enumerate:
            raise DeviceIOError("enumeration failed")
        return list(self._modes)

    def get_video_mode(self) -> Optional[VideoMode]:
        return self.current_mode

    def set_video_mode(self, mode: VideoMode) -> None:
        self._write("video_mode", mode)
        self.current_mode = mode

    def property_kind(self, name: str) -> PropertyKind:
        return PropertyKind.INTEGER if name in self.properties else PropertyKind.NONE

    def get_property(self, name: str) -> int:
        if name not in self.values:
            raise DeviceIOError(f"'{name}' has no value", property_name=name)
        return self.values[name]

    def set_property(self, name: str, value: int) -> None:
        self._write(name, value)
        self.values[name] = value

    def property_range(self, name: str) -> Tuple[int, int]:
        if name not in self.ranges:
            raise DeviceIOError(f"no range for '{name}'", property_name=name)
        return self.ranges[name]

    def set_white_balance_manual(self, kelvin: int) -> None:
        self._write("set_white_balance_manual", kelvin)

    def set_white_balance_auto(self) -> None:
        self._write("set_white_balance_auto")

    def set_exposure_manual(self, value: int) -> None:
        self._write("set_exposure_manual", value)

    def set_exposure_auto(self) -> None:
        self._write("set_exposure_auto")

    def set_brightness(self, value: int) -> None:
        self._write("set_brightness", value)

    def release(self) -> None:
        self.released = True


def video_mode(width: int, height: int, pixel_format: str = "MJPEG", fps: float = 30.0) -> VideoMode:
    return VideoMode(width=width, height=height, pixel_format=PixelFormat(pixel_format), fps=fps)


@pytest.fixture
def make_device():
    return FakeCameraDevice


@pytest.fixture
def make_mode():
    return video_mode
