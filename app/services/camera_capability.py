"""
다양한(그리고 제각각 이상한) 카메라 하드웨어를 하나의 settables 인터페이스로 정규화합니다.

- 비디오 모드 열거/캐시, 노출/게인/밝기 get/set, 자동 노출 전환과 상태 기억을 담당합니다.
- 모든 장치 I/O 실패(DeviceIOError)는 이 경계에서 잡아 로그만 남기고, 메모리 상태는 이전 값을 유지합니다.
- 내부 동기화는 하지 않습니다. 장치를 소유한 서비스가 한 번에 하나의 호출만 들어오도록 보장해야 합니다.
"""
from typing import Any, Callable, Dict, List, Optional, Tuple

from pydantic import BaseModel

from app.core.config import settings
from app.core.exceptions import ConfigurationError, DeviceIOError
from app.core.logging import logger
from app.schemas.camera import HardwareProfile, VideoMode
from app.schemas.quirks import QuirkyCamera
from app.services.camera_device import (
    CameraDevice,
    V4L2_EXPOSURE_APERTURE_PRIORITY,
    V4L2_EXPOSURE_MANUAL,
)

DEFAULT_EXPOSURE_RANGE: Tuple[int, int] = (1, 100)
DEFAULT_GAIN_RANGE: Tuple[int, int] = (0, 100)
DEFAULT_BRIGHTNESS_RANGE: Tuple[int, int] = (0, 100)


class CameraCapabilityState(BaseModel):
    """Snapshot of the per-device state remembered by CameraCapability."""
    last_exposure: int
    last_brightness: int
    auto_exposure: Optional[bool]
    video_modes: Dict[int, VideoMode]


class CameraCapability:
    def __init__(
        self,
        device: CameraDevice,
        quirks: QuirkyCamera,
        hardware_profile: Optional[HardwareProfile] = None,
    ):
        self.device = device
        self.quirks = quirks
        self.profile = quirks.profile()
        self._blacklisted_indices: List[int] = list(hardware_profile.blacklisted_res_indices) if hardware_profile else []

        self._video_modes: Optional[Dict[int, VideoMode]] = None
        # 자동 노출에서 빠져나올 때 복원하기 위해 마지막 수동 값을 기억합니다.
        self._last_exposure: int = settings.DEFAULT_EXPOSURE
        self._last_brightness: int = settings.DEFAULT_BRIGHTNESS
        self._auto_exposure: Optional[bool] = None

        # 초기 비디오 모드를 고르기 전에 초점을 고정합니다.
        self.disable_auto_focus()
        modes = self.get_all_video_modes()
        # StickyFPS 장치는 초기 모드를 강제로 설정하면 FPS가 두 번 적용되어 고정됩니다.
        if not self.profile.sticky_fps and modes:
            self.set_video_mode(modes[0])

    # --- 내부 헬퍼 ---

    def _try(self, action: str, fn: Callable[..., Any], *args: Any) -> bool:
        """장치 쓰기 한 건을 수행합니다. 실패는 로그로만 남기고 False를 반환합니다."""
        try:
            fn(*args)
            return True
        except DeviceIOError as e:
            logger.error(f"Failed to {action} on '{self.device.info.name}': {e}")
            return False

    def _has(self, name: str) -> bool:
        try:
            return self.device.has_property(name)
        except DeviceIOError as e:
            logger.warning(f"Could not query property '{name}': {e}")
            return False

    def _read_range(self, name: str) -> Optional[Tuple[int, int]]:
        try:
            low, high = self.device.property_range(name)
            return int(low), int(high)
        except DeviceIOError as e:
            logger.debug(f"Range of '{name}' unavailable, using defaults: {e}")
            return None

    # --- 비디오 모드 ---

    def get_all_video_modes(self) -> Dict[int, VideoMode]:
        """
        장치의 비디오 모드를 한 번만 열거하고 결과를 캐시합니다.

        1. 그레이스케일/알 수 없는 포맷 제거
        2. quirk의 FPS 상한 적용
        3. (width, height, format, fps)가 같은 중복 제거
        4. (width + height) 내림차순 정렬 (동률은 열거 순서 유지)
        5. 블랙리스트 인덱스 제거 - 인덱스는 4번에서 정렬된 목록 기준이며 한 번에 적용됩니다
        6. 0부터 다시 번호 매김
        """
        if self._video_modes is not None:
            return dict(self._video_modes)

        try:
            raw_modes = list(self.device.enumerate_video_modes())
        except DeviceIOError as e:
            logger.error(f"Exception while enumerating video modes: {e}")
            raw_modes = []

        fps_cap = self.profile.fps_cap
        usable = [
            mode for mode in raw_modes
            if mode.pixel_format.is_usable and (fps_cap is None or mode.fps <= fps_cap)
        ]
        unique = list(dict.fromkeys(usable))
        sorted_modes = sorted(unique, key=lambda m: m.width + m.height, reverse=True)

        blacklist = set()
        for index in self._blacklisted_indices:
            if 0 <= index < len(sorted_modes):
                blacklist.add(index)
            else:
                logger.warning(f"Blacklisted video mode index {index} is out of range (0..{len(sorted_modes) - 1}); ignoring.")
        kept = [mode for i, mode in enumerate(sorted_modes) if i not in blacklist]

        self._video_modes = {i: mode for i, mode in enumerate(kept)}
        logger.info(
            f"Enumerated {len(self._video_modes)} video modes for '{self.device.info.name}' "
            f"({len(raw_modes)} reported, {len(blacklist)} blacklisted)"
        )
        return dict(self._video_modes)

    def get_current_video_mode(self) -> Optional[VideoMode]:
        try:
            return self.device.get_video_mode() if self.device.is_connected() else None
        except DeviceIOError as e:
            logger.error(f"Failed to read current video mode: {e}")
            return None

    def _validate_video_mode(self, mode: Optional[VideoMode]) -> VideoMode:
        if mode is None:
            raise ConfigurationError("Got a null video mode!")
        if mode not in self.get_all_video_modes().values():
            raise ConfigurationError(f"Video mode {mode.as_tuple()} is not supported by this camera.")
        return mode

    def set_video_mode(self, mode: Optional[VideoMode]) -> bool:
        try:
            mode = self._validate_video_mode(mode)
        except ConfigurationError as e:
            logger.error(f"{e} Doing nothing...")
            return False
        logger.debug(f"Setting video mode to {mode.width}x{mode.height} {mode.pixel_format.value} @ {mode.fps} FPS")
        return self._try("set video mode", self.device.set_video_mode, mode)

    def set_video_mode_index(self, index: int) -> bool:
        return self.set_video_mode(self.get_all_video_modes().get(index))

    # --- 노출 / 화이트 밸런스 ---

    def set_auto_exposure(self, enabled: bool) -> None:
        logger.debug(f"Setting auto exposure to {enabled}")
        kelvin = settings.MANUAL_WHITE_BALANCE_KELVIN

        if not enabled:
            # 비전 처리용: 화이트 밸런스를 고정하고 마지막 수동 노출을 복원합니다.
            if self.profile.white_balance_controllable:
                if self._has("white_balance_automatic"):
                    self._try("disable automatic white balance", self.device.set_property, "white_balance_automatic", 0)
                    self._try("set white balance temperature", self.device.set_property, "white_balance_temperature", kelvin)
                else:
                    self._try("set manual white balance", self.device.set_white_balance_manual, kelvin)
            self._auto_exposure = False
            # 대부분의 카메라는 AE 알고리즘의 마지막 값에 머물러 있으므로 슬라이더 값으로 되돌립니다.
            self.set_exposure(self._last_exposure)
        else:
            if self.profile.white_balance_controllable:
                if self._has("white_balance_automatic"):
                    self._try("enable automatic white balance", self.device.set_property, "white_balance_automatic", 1)
                else:
                    self._try("set automatic white balance", self.device.set_white_balance_auto)
            if self._has("auto_exposure"):
                self._try("enable auto exposure", self.device.set_property, "auto_exposure", V4L2_EXPOSURE_APERTURE_PRIORITY)
            else:
                self._try("enable auto exposure", self.device.set_exposure_auto)
            self._auto_exposure = True

    def set_exposure(self, exposure: int) -> None:
        # 음수는 "변경 없음"으로 취급합니다.
        if exposure < 0:
            return
        exposure = int(exposure)
        logger.debug(f"Setting camera exposure to {exposure}")
        if self._has("exposure_time_absolute") and self._has("auto_exposure"):
            self._try("switch to manual exposure", self.device.set_property, "auto_exposure", V4L2_EXPOSURE_MANUAL)
            self._try("set camera exposure", self.device.set_property, "raw_exposure_time_absolute", exposure)
        else:
            self._try("set camera exposure", self.device.set_exposure_manual, exposure)
        self._last_exposure = exposure

    def get_min_exposure(self) -> int:
        if self.profile.exposure_range is not None:
            return self.profile.exposure_range[0]
        if self._has("auto_exposure"):
            reported = self._read_range("raw_exposure_time_absolute")
            if reported is not None:
                return reported[0]
        return DEFAULT_EXPOSURE_RANGE[0]

    def get_max_exposure(self) -> int:
        if self.profile.exposure_range is not None:
            return self.profile.exposure_range[1]
        if self._has("auto_exposure"):
            reported = self._read_range("raw_exposure_time_absolute")
            if reported is not None:
                return reported[1]
        return DEFAULT_EXPOSURE_RANGE[1]

    # --- 밝기 ---

    def set_brightness(self, brightness: int) -> None:
        brightness = int(brightness)
        logger.debug(f"Setting camera brightness to {brightness}")
        self._try("set camera brightness", self.device.set_brightness, brightness)
        self._last_brightness = brightness

    def get_min_brightness(self) -> int:
        return DEFAULT_BRIGHTNESS_RANGE[0]

    def get_max_brightness(self) -> int:
        return DEFAULT_BRIGHTNESS_RANGE[1]

    # --- 게인 ---

    def set_gain(self, gain: int) -> None:
        if not self.profile.supports_gain:
            logger.trace(f"Gain control not supported on '{self.device.info.name}'; ignoring gain={gain}")
            return
        self._try("disable automatic gain", self.device.set_property, "gain_automatic", 0)
        self._try("set camera gain", self.device.set_property, "gain", int(gain))

    def get_min_gain(self) -> int:
        if self.profile.supports_gain:
            reported = self._read_range("gain")
            if reported is not None:
                return reported[0]
        return DEFAULT_GAIN_RANGE[0]

    def get_max_gain(self) -> int:
        if self.profile.supports_gain:
            reported = self._read_range("gain")
            if reported is not None:
                return reported[1]
        return DEFAULT_GAIN_RANGE[1]

    # --- 기타 ---

    def disable_auto_focus(self) -> None:
        if not self.profile.adjustable_focus:
            return
        self._try("disable autofocus", self.device.set_property, "focus_auto", 0)
        # 무한대 초점
        self._try("set absolute focus", self.device.set_property, "focus_absolute", 0)

    @property
    def last_exposure(self) -> int:
        return self._last_exposure

    @property
    def last_brightness(self) -> int:
        return self._last_brightness

    def get_state(self) -> CameraCapabilityState:
        return CameraCapabilityState(
            last_exposure=self._last_exposure,
            last_brightness=self._last_brightness,
            auto_exposure=self._auto_exposure,
            video_modes=self.get_all_video_modes(),
        )
