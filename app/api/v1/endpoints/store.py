from fastapi import APIRouter, Depends, HTTPException
from typing import List

from app.stores.application_store import ApplicationStore
from app.dependencies import get_event_bus, get_store
from app.core.event_bus import EventBus
from app.schemas.calibration import CalibrationFrame

router = APIRouter()

@router.get("/status", summary="Get the combined status of all stores")
def get_store_status(store: ApplicationStore = Depends(get_store)):
    """
    장치 상태, 캘리브레이션, 활성 지오메트리, 이벤트 상태를 한 번에 조회합니다.
    """
    return store.get_status()

@router.get("/events/status", summary="Get the status of all event publications")
def get_event_status(
    store: ApplicationStore = Depends(get_store),
    event_bus: EventBus = Depends(get_event_bus),
):
    """
    각 이벤트의 마지막 발행 시간, 총 발행 횟수, 분당 발행 횟수와 이벤트 버스 지표를 반환합니다.
    """
    return {"events": store.events.get_status(), "bus": event_bus.get_metrics()}


@router.get(
    "/calibrations",
    summary="List calibration records held in the store",
    response_model=List[CalibrationFrame],
)
def get_calibrations(store: ApplicationStore = Depends(get_store)):
    """
    Store에 저장된 해상도별 캘리브레이션 레코드를 반환합니다.
    """
    calibrations = store.calibration.list_calibrations()
    if not calibrations:
        raise HTTPException(status_code=404, detail="No calibration data loaded.")
    return calibrations
