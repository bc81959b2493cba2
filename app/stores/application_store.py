from typing import Any, Dict

from app.core.logging import logger
from app.stores.handlers.device_handler import DeviceHandler
from app.stores.handlers.calibration_handler import CalibrationHandler
from app.stores.handlers.geometry_handler import GeometryHandler
from app.stores.handlers.event_handler import EventHandler

class ApplicationStore:
    """
    The main store for the application. It acts as a container for the state
    handlers, each responsible for one domain of camera state and its own locking.
    """
    def __init__(self):
        self.device = DeviceHandler()            # Device identity, quirks, active video mode
        self.calibration = CalibrationHandler()  # Calibration records per resolution
        self.geometry = GeometryHandler()        # Rotation mode + cached rotated FrameGeometry
        self.events = EventHandler()
        logger.info("ApplicationStore initialized with all handlers.")

    def get_status(self) -> Dict[str, Any]:
        """
        Aggregates status from all handlers to provide a comprehensive
        snapshot of the camera state.
        """
        device_status = self.device.get_full_status()
        return {
            "device_status": device_status.model_dump() if device_status else None,
            "calibration_data": self.calibration.get_data_with_timestamp(),
            "geometry_status": self.geometry.get_status(),
            "event_status": self.events.get_status(),
        }
