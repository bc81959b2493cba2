import threading
from typing import Any, Dict, Optional, Tuple

from cachetools import LRUCache

from app.core.config import settings
from app.schemas.frame import FrameGeometry
from app.schemas.rotation import RotationMode


class GeometryHandler:
    """
    Holds the active rotation mode and the unrotated geometry of the current video mode.
    Rotated FrameGeometry variants are derived on demand and kept in an LRU cache,
    keyed by the (immutable) base geometry and the rotation mode.
    """
    def __init__(self, cache_size: Optional[int] = None):
        self._lock = threading.RLock()
        self._rotation_mode = RotationMode.IDENTITY
        self._base_geometry: Optional[FrameGeometry] = None
        self._rotated_cache: LRUCache[Tuple[FrameGeometry, RotationMode], FrameGeometry] = LRUCache(
            maxsize=cache_size or settings.GEOMETRY_CACHE_SIZE
        )
        self._cache_hits = 0
        self._cache_misses = 0

    def set_rotation_mode(self, mode: RotationMode):
        with self._lock:
            self._rotation_mode = mode

    def get_rotation_mode(self) -> RotationMode:
        with self._lock:
            return self._rotation_mode

    def set_base_geometry(self, geometry: Optional[FrameGeometry]):
        with self._lock:
            self._base_geometry = geometry

    def get_base_geometry(self) -> Optional[FrameGeometry]:
        with self._lock:
            return self._base_geometry

    def get_rotated(self, geometry: FrameGeometry, mode: RotationMode) -> FrameGeometry:
        key = (geometry, mode)
        with self._lock:
            cached = self._rotated_cache.get(key)
            if cached is not None:
                self._cache_hits += 1
                return cached
            self._cache_misses += 1
            rotated = geometry.rotate(mode)
            self._rotated_cache[key] = rotated
            return rotated

    def get_active_geometry(self) -> Optional[FrameGeometry]:
        """Returns the base geometry rotated by the active rotation mode."""
        with self._lock:
            if self._base_geometry is None:
                return None
            return self.get_rotated(self._base_geometry, self._rotation_mode)

    def get_status(self) -> Dict[str, Any]:
        with self._lock:
            active = None
            if self._base_geometry is not None:
                # 상태 조회는 캐시 적중 통계에 포함하지 않습니다.
                active = self._rotated_cache.get((self._base_geometry, self._rotation_mode))
            return {
                "rotation_mode": self._rotation_mode.value,
                "active_geometry": active.model_dump() if active else None,
                "cache": {
                    "size": len(self._rotated_cache),
                    "hits": self._cache_hits,
                    "misses": self._cache_misses,
                },
            }
