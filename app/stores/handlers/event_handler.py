import threading
import time
from typing import Dict, Any, Deque
from collections import deque, defaultdict
from datetime import datetime


class EventHandler:
    """
    Tracks event publications for monitoring: last publication time, total count
    and a short history window used to estimate the publication rate.
    """
    def __init__(self, window_size: int = 20):
        self._lock = threading.RLock()
        self._history: Dict[str, Deque[float]] = defaultdict(lambda: deque(maxlen=window_size))
        self._counts: Dict[str, int] = defaultdict(int)

    def update_event_timestamp(self, event_name: str):
        with self._lock:
            self._history[event_name].append(time.time())
            self._counts[event_name] += 1

    def _rate(self, event_name: str) -> float:
        # 설정 변경 이벤트는 드물게 발생하므로 분당 횟수로 보고합니다.
        window = self._history[event_name]
        if len(window) < 2 or window[-1] <= window[0]:
            return 0.0
        return round((len(window) - 1) * 60.0 / (window[-1] - window[0]), 2)

    def get_count(self, event_name: str) -> int:
        with self._lock:
            return self._counts.get(event_name, 0)

    def get_status(self) -> Dict[str, Any]:
        with self._lock:
            return {
                event_name: {
                    "last_timestamp": datetime.fromtimestamp(window[-1]).isoformat(),
                    "total_count": self._counts[event_name],
                    "per_minute": self._rate(event_name),
                }
                for event_name, window in self._history.items()
                if window
            }
