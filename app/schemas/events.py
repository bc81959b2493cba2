"""
This module defines the Pydantic models for the event payloads published on the
application's event bus. Payloads carry the new state so that subscribers do not
need to query the store.
"""
from pydantic import BaseModel, Field
from typing import Optional

from app.schemas.camera import VideoMode
from app.schemas.frame import FrameGeometry
from app.schemas.rotation import RotationMode


class EventPayload(BaseModel):
    """Base model for all event payloads."""
    timestamp: float = Field(..., description="The unix timestamp when the event was generated.")


class FrameGeometryUpdatedPayload(EventPayload):
    """Payload for FRAME_GEOMETRY_UPDATED: the geometry valid for the active rotation."""
    rotation_mode: RotationMode
    geometry: Optional[FrameGeometry]


class VideoModeChangedPayload(EventPayload):
    """Payload for VIDEO_MODE_CHANGED."""
    index: int
    video_mode: Optional[VideoMode]
    applied: bool


class CameraSettingsChangedPayload(EventPayload):
    """Payload for CAMERA_SETTINGS_CHANGED. `value` is None for auto-exposure toggles."""
    setting: str
    value: Optional[int] = None
    auto_exposure: Optional[bool] = None
