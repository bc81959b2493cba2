from fastapi import APIRouter, Depends

from app.dependencies import get_camera_source_service
from app.services.camera_service import CameraSourceService

router = APIRouter()

@router.get(
    "/",
    summary="Simple health check"
)
def health_check(service: CameraSourceService = Depends(get_camera_source_service)):
    """
    서버가 살아있는지와 카메라 장치가 연결되어 있는지 확인합니다.
    장치가 없어도 서버 자체는 "ok"를 반환합니다.
    """
    device = service.device
    return {
        "status": "ok",
        "camera_connected": bool(device is not None and device.is_connected()),
        "settables_available": service.capability is not None,
    }
