import threading
import time
from typing import Callable, Optional

from app.stores.application_store import ApplicationStore
from app.core.config import settings
from app.core.event_bus import EventBus
from app.core.event_type import EventType
from app.core.exceptions import ConfigurationError, DeviceIOError, UnsupportedCapability
from app.core.logging import logger
from app.schemas.calibration import CalibrationFrame
from app.schemas.camera import CameraConfiguration, HardwareProfile, Range, SettablesSnapshot, VideoMode
from app.schemas.events import (
    CameraSettingsChangedPayload,
    FrameGeometryUpdatedPayload,
    VideoModeChangedPayload,
)
from app.schemas.frame import FrameGeometry
from app.schemas.quirks import QuirkyCamera, lookup_quirky_camera
from app.schemas.rotation import RotationMode
from app.services.camera_capability import CameraCapability
from app.services.camera_device import CameraDevice, OpenCVCameraDevice

DeviceFactory = Callable[[str], CameraDevice]


class CameraSourceService:
    """
    카메라 장치 핸들의 유일한 소유자입니다.

    CameraCapability(settables)와 활성 FrameGeometry를 함께 관리하며,
    설정 스레드와 요청 핸들러에서 들어오는 장치 변경은 하나의 락으로 직렬화합니다.
    """
    def __init__(
        self,
        store: ApplicationStore,
        event_bus: EventBus,
        config: CameraConfiguration,
        hardware_profile: HardwareProfile,
        device_factory: Optional[DeviceFactory] = None,
    ):
        self.store = store
        self.event_bus = event_bus
        self.config = config
        self.hardware_profile = hardware_profile
        self._device_factory: DeviceFactory = device_factory or OpenCVCameraDevice
        self._lock = threading.RLock()
        self.device: Optional[CameraDevice] = None
        self.capability: Optional[CameraCapability] = None
        self.quirks: Optional[QuirkyCamera] = None

        self.store.calibration.set_all(config.calibrations)
        self.store.geometry.set_rotation_mode(config.rotation_mode)

    async def start(self) -> bool:
        device_path = self.config.get_usb_path() or self.config.path or settings.CAMERA_DEVICE_PATH
        try:
            device = self._device_factory(device_path)
        except DeviceIOError as e:
            logger.error(f"Failed to open camera at {device_path}: {e}. Aborting service start.")
            return False

        self.attach_device(device)
        logger.info(f"Camera source started for '{self.config.nickname or self.config.base_name}' at {device_path}")
        await self._publish_geometry()
        return True

    def attach_device(self, device: CameraDevice):
        with self._lock:
            self.device = device
            info = device.info

            # 이후 매칭을 위해 vid/pid/이름이 비어 있으면 채워 둡니다.
            if self.config.usb_vid <= 0:
                self.config.usb_vid = info.usb_vid
            if self.config.usb_pid <= 0:
                self.config.usb_pid = info.usb_pid
            if not self.config.base_name:
                self.config.base_name = info.name

            if self.config.camera_quirks is None:
                self.config.camera_quirks = lookup_quirky_camera(
                    self.config.usb_vid, self.config.usb_pid, self.config.base_name
                )
            self.quirks = self.config.camera_quirks.with_quirks(self.hardware_profile.camera_quirks)
            if self.quirks.has_quirks():
                logger.info(
                    f"Quirky camera detected: {self.quirks.base_name} "
                    f"({', '.join(sorted(q.value for q in self.quirks.quirks))})"
                )

            if self.quirks.profile().unsupported:
                logger.info(f"Camera {self.quirks.base_name} is not supported; no settables will be exposed.")
                self.capability = None
            else:
                capability = CameraCapability(device, self.quirks, self.hardware_profile)
                if not capability.get_all_video_modes():
                    logger.info(f"Camera {info.path} has no video modes usable by the pipeline")
                self.capability = capability

            self.store.device.update_from_device(
                device_info=info,
                connected=device.is_connected(),
                supported=self.capability is not None,
                quirks=list(self.quirks.quirks),
                active_video_mode=self._current_mode(),
            )
            self._refresh_base_geometry()

    def _current_mode(self) -> Optional[VideoMode]:
        if self.capability is None:
            return None
        mode = self.capability.get_current_video_mode()
        if mode is None:
            mode = self.capability.get_all_video_modes().get(0)
        return mode

    def _refresh_base_geometry(self):
        mode = self._current_mode()
        if mode is None:
            self.store.geometry.set_base_geometry(None)
            self.store.device.set_active_video_mode(None)
            return

        fov = self.hardware_profile.preset_fov_deg if self.hardware_profile.has_preset_fov() else self.config.fov_deg
        calibration = self.store.calibration.get_calibration(mode.width, mode.height)
        if calibration is None:
            logger.warning(f"No calibration for {mode.width}x{mode.height}; geometry will use FOV-derived intrinsics.")
        geometry = FrameGeometry(
            width=mode.width,
            height=mode.height,
            diagonal_fov_deg=fov,
            calibration=calibration,
        )
        self.store.geometry.set_base_geometry(geometry)
        self.store.device.set_active_video_mode(mode)

    # --- 조회 ---

    def get_capability(self) -> CameraCapability:
        if self.capability is None:
            name = self.quirks.base_name if self.quirks else self.config.base_name
            raise UnsupportedCapability(f"Camera '{name}' has no settables (unsupported or not started).")
        return self.capability

    def is_vendor_camera(self) -> bool:
        return self.hardware_profile.has_preset_fov()

    def get_frame_geometry(self) -> Optional[FrameGeometry]:
        return self.store.geometry.get_active_geometry()

    def get_active_calibration(self) -> CalibrationFrame:
        geometry = self.get_frame_geometry()
        if geometry is None or geometry.calibration is None:
            raise ConfigurationError("No calibration is available for the active video mode.")
        return geometry.calibration

    def get_settables(self) -> SettablesSnapshot:
        with self._lock:
            capability = self.get_capability()
            state = capability.get_state()
            return SettablesSnapshot(
                exposure=Range(min=capability.get_min_exposure(), max=capability.get_max_exposure()),
                brightness=Range(min=capability.get_min_brightness(), max=capability.get_max_brightness()),
                gain=Range(min=capability.get_min_gain(), max=capability.get_max_gain()),
                last_exposure=state.last_exposure,
                last_brightness=state.last_brightness,
                auto_exposure=state.auto_exposure,
                supports_gain=capability.profile.supports_gain,
                current_video_mode=capability.get_current_video_mode(),
            )

    # --- 변경 ---

    async def set_rotation_mode(self, mode: RotationMode) -> Optional[FrameGeometry]:
        with self._lock:
            # 회전할 수 없는 캘리브레이션이면 GeometryInputError가 나고 이전 회전 모드가 유지됩니다.
            base = self.store.geometry.get_base_geometry()
            if base is not None:
                self.store.geometry.get_rotated(base, mode)
            self.store.geometry.set_rotation_mode(mode)
            self.config.rotation_mode = mode
        logger.info(f"Rotation mode set to {mode.value} degrees CCW")
        return await self._publish_geometry()

    async def set_video_mode_index(self, index: int) -> bool:
        with self._lock:
            capability = self.get_capability()
            mode = capability.get_all_video_modes().get(index)
            applied = capability.set_video_mode_index(index)
            if applied:
                self._refresh_base_geometry()
        await self.event_bus.publish(
            EventType.VIDEO_MODE_CHANGED.value,
            VideoModeChangedPayload(timestamp=time.time(), index=index, video_mode=mode, applied=applied),
        )
        if applied:
            await self._publish_geometry()
        return applied

    async def set_exposure(self, exposure: int):
        with self._lock:
            self.get_capability().set_exposure(exposure)
        await self._publish_setting("exposure", value=exposure)

    async def set_auto_exposure(self, enabled: bool):
        with self._lock:
            self.get_capability().set_auto_exposure(enabled)
        await self._publish_setting("auto_exposure", auto_exposure=enabled)

    async def set_brightness(self, brightness: int):
        with self._lock:
            self.get_capability().set_brightness(brightness)
        await self._publish_setting("brightness", value=brightness)

    async def set_gain(self, gain: int):
        with self._lock:
            self.get_capability().set_gain(gain)
        await self._publish_setting("gain", value=gain)

    async def _publish_setting(self, setting: str, value: Optional[int] = None, auto_exposure: Optional[bool] = None):
        payload = CameraSettingsChangedPayload(
            timestamp=time.time(), setting=setting, value=value, auto_exposure=auto_exposure
        )
        await self.event_bus.publish(EventType.CAMERA_SETTINGS_CHANGED.value, payload)

    async def _publish_geometry(self) -> Optional[FrameGeometry]:
        geometry = self.get_frame_geometry()
        payload = FrameGeometryUpdatedPayload(
            timestamp=time.time(),
            rotation_mode=self.store.geometry.get_rotation_mode(),
            geometry=geometry,
        )
        await self.event_bus.publish(EventType.FRAME_GEOMETRY_UPDATED.value, payload)
        return geometry

    async def stop(self):
        with self._lock:
            if self.device is not None:
                self.device.release()
            self.device = None
            self.capability = None
        logger.info("CameraSourceService stopping...")
