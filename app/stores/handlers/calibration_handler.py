import threading
from typing import Any, Dict, Iterable, List, Optional, Tuple
from datetime import datetime, timezone

from app.core.logging import logger
from app.schemas.calibration import CalibrationFrame


class CalibrationHandler:
    """해상도별 캘리브레이션 레코드를 보관합니다. 같은 해상도의 레코드는 교체됩니다."""

    def __init__(self):
        self._lock = threading.RLock()
        self._calibrations: Dict[Tuple[int, int], CalibrationFrame] = {}
        self._last_updated: Optional[datetime] = None

    def set_all(self, calibrations: Iterable[CalibrationFrame]):
        with self._lock:
            self._calibrations = {}
            for calibration in calibrations:
                self.add_calibration(calibration)

    def add_calibration(self, calibration: CalibrationFrame):
        key = calibration.resolution.as_tuple()
        with self._lock:
            if key in self._calibrations:
                logger.info(f"Replacing calibration for {key[0]}x{key[1]}")
            else:
                logger.info(f"Adding calibration for {key[0]}x{key[1]}")
            self._calibrations[key] = calibration
            self._last_updated = datetime.now(timezone.utc)

    def get_calibration(self, width: int, height: int) -> Optional[CalibrationFrame]:
        with self._lock:
            return self._calibrations.get((width, height))

    def list_calibrations(self) -> List[CalibrationFrame]:
        with self._lock:
            return list(self._calibrations.values())

    def get_data_with_timestamp(self) -> Dict[str, Any]:
        with self._lock:
            return {
                "last_updated_utc": self._last_updated,
                "resolutions": [f"{w}x{h}" for (w, h) in self._calibrations],
            }
