from fastapi import APIRouter, Depends, HTTPException

from app.core.exceptions import ConfigurationError
from app.dependencies import get_camera_source_service
from app.schemas.frame import (
    FrameGeometry,
    PointsRequest,
    PointsResponse,
    RotatePointsRequest,
    RotationRequest,
)
from app.services.camera_service import CameraSourceService
from app.services.distortion_service import distort_with, undistort_with

router = APIRouter()


def _active_calibration(service: CameraSourceService):
    try:
        return service.get_active_calibration()
    except ConfigurationError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc


@router.get(
    "",
    summary="Get the frame geometry for the active rotation",
    response_model=FrameGeometry,
)
def get_frame_geometry(service: CameraSourceService = Depends(get_camera_source_service)):
    geometry = service.get_frame_geometry()
    if geometry is None:
        raise HTTPException(status_code=404, detail="No active video mode; frame geometry is not available.")
    return geometry


@router.put("/rotation", summary="Set the display rotation mode")
async def set_rotation(
    request: RotationRequest,
    service: CameraSourceService = Depends(get_camera_source_service),
):
    geometry = await service.set_rotation_mode(request.mode)
    return {"rotation_mode": request.mode.value, "geometry": geometry}


@router.post(
    "/distort",
    summary="Map ideal pixel points to distorted sensor pixels",
    response_model=PointsResponse,
)
def distort_points(
    request: PointsRequest,
    service: CameraSourceService = Depends(get_camera_source_service),
):
    """
    활성 회전 모드의 캘리브레이션으로 이상적인 픽셀 좌표를 센서 좌표로 변환합니다.
    """
    calibration = _active_calibration(service)
    return PointsResponse(points=distort_with(request.points, calibration).tolist())


@router.post(
    "/undistort",
    summary="Map distorted sensor pixels back to ideal pixel points",
    response_model=PointsResponse,
)
def undistort_points(
    request: PointsRequest,
    service: CameraSourceService = Depends(get_camera_source_service),
):
    calibration = _active_calibration(service)
    return PointsResponse(points=undistort_with(request.points, calibration).tolist())


@router.post(
    "/rotate-points",
    summary="Rotate pixel points between frames",
    response_model=PointsResponse,
)
def rotate_points(request: RotatePointsRequest):
    rotated = request.mode.transform_points(request.points, request.frame_width, request.frame_height)
    return PointsResponse(points=rotated.tolist())
