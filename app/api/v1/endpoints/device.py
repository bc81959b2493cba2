from fastapi import APIRouter, Depends, HTTPException
from typing import Dict

from app.dependencies import get_camera_source_service
from app.schemas.camera import (
    AutoExposureRequest,
    CameraStatus,
    SettablesSnapshot,
    SettableValueRequest,
    VideoMode,
    VideoModeRequest,
)
from app.services.camera_service import CameraSourceService

router = APIRouter()


@router.get(
    "/status",
    summary="Get current device status",
    description="Returns device identity, resolved quirks and the active video mode.",
    response_model=CameraStatus,
)
def get_device_status(service: CameraSourceService = Depends(get_camera_source_service)):
    device_status = service.store.device.get_full_status()
    if device_status is None:
        raise HTTPException(
            status_code=404,
            detail="Device status not available. The camera may not have been opened yet.",
        )
    return device_status


@router.get(
    "/video-modes",
    summary="List usable video modes",
    description="Filtered, deduplicated and sorted video modes, keyed by index.",
    response_model=Dict[int, VideoMode],
)
def get_video_modes(service: CameraSourceService = Depends(get_camera_source_service)):
    return service.get_capability().get_all_video_modes()


@router.put("/video-mode", summary="Select a video mode by index")
async def set_video_mode(
    request: VideoModeRequest,
    service: CameraSourceService = Depends(get_camera_source_service),
):
    """
    지원하지 않는 인덱스는 로그만 남기고 이전 모드를 유지합니다 (applied=false).
    """
    applied = await service.set_video_mode_index(request.index)
    return {"applied": applied, "active_video_mode": service.store.device.get_active_video_mode()}


@router.get("/settables", summary="Get exposure/brightness/gain ranges and remembered values", response_model=SettablesSnapshot)
def get_settables(service: CameraSourceService = Depends(get_camera_source_service)):
    return service.get_settables()


@router.put("/exposure", summary="Set manual exposure", response_model=SettablesSnapshot)
async def set_exposure(
    request: SettableValueRequest,
    service: CameraSourceService = Depends(get_camera_source_service),
):
    await service.set_exposure(request.value)
    return service.get_settables()


@router.put("/auto-exposure", summary="Enable or disable automatic exposure", response_model=SettablesSnapshot)
async def set_auto_exposure(
    request: AutoExposureRequest,
    service: CameraSourceService = Depends(get_camera_source_service),
):
    await service.set_auto_exposure(request.enabled)
    return service.get_settables()


@router.put("/brightness", summary="Set brightness", response_model=SettablesSnapshot)
async def set_brightness(
    request: SettableValueRequest,
    service: CameraSourceService = Depends(get_camera_source_service),
):
    await service.set_brightness(request.value)
    return service.get_settables()


@router.put("/gain", summary="Set gain (no-op on cameras without gain control)", response_model=SettablesSnapshot)
async def set_gain(
    request: SettableValueRequest,
    service: CameraSourceService = Depends(get_camera_source_service),
):
    await service.set_gain(request.value)
    return service.get_settables()
