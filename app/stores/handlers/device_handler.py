import threading
import time
from typing import List, Optional

from app.schemas.camera import CameraStatus, DeviceInfo, VideoMode
from app.schemas.quirks import CameraQuirk


class DeviceHandler:
    """Holds the latest status snapshot of the camera device owned by CameraSourceService."""

    def __init__(self):
        self._lock = threading.RLock()
        self._status: Optional[CameraStatus] = None

    def update_status(self, status_data: CameraStatus):
        with self._lock:
            self._status = status_data

    def update_from_device(
        self,
        device_info: DeviceInfo,
        connected: bool,
        supported: bool,
        quirks: List[CameraQuirk],
        active_video_mode: Optional[VideoMode],
    ) -> CameraStatus:
        status = CameraStatus(
            device_info=device_info,
            connected=connected,
            supported=supported,
            quirks=sorted(quirks, key=lambda q: q.value),
            active_video_mode=active_video_mode,
            last_update=time.time(),
        )
        self.update_status(status)
        return status

    def set_active_video_mode(self, mode: Optional[VideoMode]):
        with self._lock:
            if self._status is not None:
                self._status = self._status.model_copy(
                    update={"active_video_mode": mode, "last_update": time.time()}
                )

    def get_active_video_mode(self) -> Optional[VideoMode]:
        with self._lock:
            return self._status.active_video_mode if self._status else None

    def get_full_status(self) -> Optional[CameraStatus]:
        with self._lock:
            return self._status
