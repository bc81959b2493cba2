"""
애플리케이션의 의존성(dependency)을 생성하고 관리합니다.
"""
from app.core.config import settings
from app.core.event_bus import EventBus
from app.stores.application_store import ApplicationStore
from app.services.camera_service import CameraSourceService
from app.services.config_loader import load_camera_configuration, load_hardware_profile


# --- 설정 파일 로드 ---
# 캘리브레이션이 잘못된 설정은 여기서 GeometryInputError로 즉시 실패합니다.
_camera_config = load_camera_configuration(settings.CAMERA_CONFIG_PATH)
_hardware_profile = load_hardware_profile(settings.HARDWARE_PROFILE_PATH)

# --- 단일 인스턴스 생성 (의존성 순서에 주의) ---

# 1. 의존성이 없는 기본 서비스들
_store = ApplicationStore()
_event_bus = EventBus()

# 의존성 연결: EventBus가 Store의 EventHandler를 사용하도록 설정
_event_bus.set_event_handler(_store.events)

# 2. 기본 서비스에 의존하는 서비스들
# 장치는 lifespan의 start()에서 열립니다. 임포트 시점에는 하드웨어에 접근하지 않습니다.
_camera_source_service = CameraSourceService(
    store=_store,
    event_bus=_event_bus,
    config=_camera_config,
    hardware_profile=_hardware_profile,
)


# --- 의존성 공급자(Provider) 함수 ---
def get_store() -> ApplicationStore: return _store
def get_event_bus() -> EventBus: return _event_bus
def get_camera_source_service() -> CameraSourceService: return _camera_source_service
