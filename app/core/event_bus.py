import asyncio
import time
from typing import Any, Awaitable, Callable, Dict, List, Optional

from collections import defaultdict
from loguru import logger

# EventHandler는 순환 참조를 피하기 위해 TYPE_CHECKING에서만 임포트합니다.
from typing import TYPE_CHECKING
if TYPE_CHECKING:
    from app.stores.handlers.event_handler import EventHandler

Callback = Callable[[str, Any], Awaitable[None]]


class EventBus:
    """
    프레임 지오메트리/장치 설정 변경을 구독자에게 알리는 비동기 이벤트 버스입니다.
    발행 시각은 EventHandler에 기록됩니다.
    """
    def __init__(self, event_handler: Optional['EventHandler'] = None):
        self._subscribers: Dict[str, List[Callback]] = defaultdict(list)
        self._lock = asyncio.Lock()
        self._event_handler = event_handler
        self._published = 0
        self._failed_callbacks = 0
        self._started_at = time.time()

    def set_event_handler(self, event_handler: 'EventHandler'):
        """의존성 주입을 위해 EventHandler를 설정합니다."""
        self._event_handler = event_handler

    async def subscribe(self, event_name: str, callback: Callback):
        if not asyncio.iscoroutinefunction(callback):
            raise ValueError(f"Event callbacks must be async functions: {callback}")
        async with self._lock:
            self._subscribers[event_name].append(callback)
        logger.debug(f"Subscribed to '{event_name}' ({len(self._subscribers[event_name])} subscribers)")

    async def unsubscribe(self, event_name: str, callback: Callback):
        async with self._lock:
            callbacks = self._subscribers.get(event_name, [])
            if callback in callbacks:
                callbacks.remove(callback)
            else:
                logger.warning(f"Callback was not subscribed to '{event_name}'")

    async def publish(self, event_name: str, data: Any = None):
        if self._event_handler:
            self._event_handler.update_event_timestamp(event_name)
        self._published += 1

        async with self._lock:
            subscribers = list(self._subscribers.get(event_name, []))
        if not subscribers:
            logger.trace(f"No subscribers for '{event_name}'")
            return

        logger.debug(f"Publishing '{event_name}' to {len(subscribers)} subscribers")
        await asyncio.gather(*(self._execute_callback(cb, event_name, data) for cb in subscribers))

    async def _execute_callback(self, callback: Callback, event_name: str, data: Any):
        # 구독자 하나의 실패가 다른 구독자나 발행자에게 전파되지 않도록 합니다.
        try:
            await callback(event_name, data)
        except Exception as e:
            self._failed_callbacks += 1
            logger.opt(exception=e).error(f"Callback failed while handling '{event_name}': {e}")

    def get_metrics(self) -> Dict[str, Any]:
        return {
            "events_published": self._published,
            "failed_callbacks": self._failed_callbacks,
            "uptime_seconds": round(time.time() - self._started_at, 1),
        }
