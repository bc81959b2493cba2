from enum import Enum

class EventType(Enum):
    """
    애플리케이션 전체에서 사용되는 이벤트 타입들입니다.

    카테고리별 구분:
    - GEOMETRY: 회전/캘리브레이션에 따른 프레임 지오메트리 변경
    - DEVICE: 카메라 장치 설정(settables) 변경
    """

    # --- GEOMETRY EVENTS ---
    FRAME_GEOMETRY_UPDATED      = "FRAME_GEOMETRY_UPDATED"      # 활성 회전 모드 또는 해상도 변경으로 FrameGeometry 재계산 완료

    # --- DEVICE EVENTS ---
    VIDEO_MODE_CHANGED          = "VIDEO_MODE_CHANGED"          # 비디오 모드 변경 요청 처리 완료
    CAMERA_SETTINGS_CHANGED     = "CAMERA_SETTINGS_CHANGED"     # 노출/밝기/게인/자동 노출 변경 요청 처리 완료
