import asyncio

import pytest

from app.core.event_bus import EventBus
from app.core.event_type import EventType
from app.core.exceptions import ConfigurationError, DeviceIOError, GeometryInputError, UnsupportedCapability
from app.schemas.camera import CameraConfiguration, HardwareProfile
from app.schemas.quirks import CameraQuirk
from app.schemas.rotation import RotationMode
from app.services.camera_service import CameraSourceService
from app.stores.application_store import ApplicationStore

CALIBRATION = {
    "resolution": {"width": 640, "height": 480},
    "intrinsics": {"fx": 600.0, "fy": 600.0, "cx": 320.0, "cy": 240.0},
    "distortion": [0.1, -0.05, 0.001, 0.002, 0.01],
}


def _make_service(device, hardware_profile=None, **config) -> CameraSourceService:
    store = ApplicationStore()
    event_bus = EventBus()
    event_bus.set_event_handler(store.events)
    config.setdefault("calibrations", [CALIBRATION])
    return CameraSourceService(
        store=store,
        event_bus=event_bus,
        config=CameraConfiguration.model_validate(config),
        hardware_profile=hardware_profile or HardwareProfile(),
        device_factory=lambda path: device,
    )


def _device(make_device, make_mode, **kwargs):
    kwargs.setdefault("modes", [make_mode(640, 480), make_mode(320, 240)])
    return make_device(**kwargs)


def test_start_builds_geometry_for_first_video_mode(make_device, make_mode):
    service = _make_service(_device(make_device, make_mode))

    assert asyncio.run(service.start()) is True

    geometry = service.get_frame_geometry()
    assert (geometry.width, geometry.height) == (640, 480)
    assert geometry.calibration is not None
    assert service.store.events.get_count(EventType.FRAME_GEOMETRY_UPDATED.value) == 1


def test_start_fails_softly_when_device_cannot_open():
    def _fail(path):
        raise DeviceIOError(f"cannot open {path}")

    service = _make_service(None)
    service._device_factory = _fail

    assert asyncio.run(service.start()) is False
    assert service.get_frame_geometry() is None
    with pytest.raises(UnsupportedCapability):
        service.get_capability()


def test_rotation_mode_rotates_active_geometry(make_device, make_mode):
    service = _make_service(_device(make_device, make_mode))
    asyncio.run(service.start())

    geometry = asyncio.run(service.set_rotation_mode(RotationMode.ROT_90_CCW))

    assert (geometry.width, geometry.height) == (480, 640)
    assert service.get_active_calibration().resolution.as_tuple() == (480, 640)
    assert service.config.rotation_mode is RotationMode.ROT_90_CCW


def test_configured_rotation_is_applied_on_start(make_device, make_mode):
    service = _make_service(_device(make_device, make_mode), rotation_mode=180)
    asyncio.run(service.start())

    calibration = service.get_active_calibration()
    assert calibration.distortion.tangential == (-0.001, -0.002)


def test_video_mode_change_refreshes_geometry(make_device, make_mode):
    service = _make_service(_device(make_device, make_mode))
    asyncio.run(service.start())

    assert asyncio.run(service.set_video_mode_index(1)) is True

    geometry = service.get_frame_geometry()
    assert (geometry.width, geometry.height) == (320, 240)
    assert geometry.calibration is None
    assert service.store.device.get_active_video_mode() == make_mode(320, 240)
    with pytest.raises(ConfigurationError):
        service.get_active_calibration()


def test_rejected_video_mode_keeps_geometry(make_device, make_mode):
    service = _make_service(_device(make_device, make_mode))
    asyncio.run(service.start())

    assert asyncio.run(service.set_video_mode_index(9)) is False
    assert service.get_frame_geometry().width == 640
    assert service.store.events.get_count(EventType.VIDEO_MODE_CHANGED.value) == 1


def test_preset_fov_overrides_configuration(make_device, make_mode):
    profile = HardwareProfile(preset_fov_deg=90.0)
    service = _make_service(_device(make_device, make_mode), hardware_profile=profile, fov_deg=60.0)
    asyncio.run(service.start())

    assert service.is_vendor_camera()
    assert service.get_frame_geometry().diagonal_fov_deg == 90.0


def test_quirks_are_resolved_from_device_identity(make_device, make_mode):
    device = _device(make_device, make_mode, usb_vid=0x2000, usb_pid=0x1415, name="USB Camera-B4.09.24.1")
    service = _make_service(device, hardware_profile=HardwareProfile(camera_quirks=[CameraQuirk.STICKY_FPS]))
    asyncio.run(service.start())

    assert service.config.usb_vid == 0x2000
    assert service.get_settables().supports_gain is True
    assert service.store.device.get_full_status().quirks == [
        CameraQuirk.FPS_CAP_100,
        CameraQuirk.GAIN,
        CameraQuirk.STICKY_FPS,
    ]


def test_unsupported_camera_exposes_no_settables(make_device, make_mode):
    service = _make_service(_device(make_device, make_mode, name="Snap Camera"))
    asyncio.run(service.start())

    assert service.capability is None
    assert service.store.device.get_full_status().supported is False
    with pytest.raises(UnsupportedCapability):
        service.get_settables()


def test_settables_publish_events(make_device, make_mode):
    device = _device(make_device, make_mode)
    service = _make_service(device)
    asyncio.run(service.start())

    asyncio.run(service.set_exposure(33))
    asyncio.run(service.set_brightness(60))

    snapshot = service.get_settables()
    assert snapshot.last_exposure == 33
    assert snapshot.last_brightness == 60
    assert (snapshot.exposure.min, snapshot.exposure.max) == (1, 100)
    assert service.store.events.get_count(EventType.CAMERA_SETTINGS_CHANGED.value) == 2


def test_stop_releases_device(make_device, make_mode):
    device = _device(make_device, make_mode)
    service = _make_service(device)
    asyncio.run(service.start())

    asyncio.run(service.stop())

    assert device.released is True
    assert service.device is None


def test_unrotatable_calibration_keeps_previous_rotation(make_device, make_mode):
    tilted = dict(CALIBRATION, distortion=[0.1, -0.05, 0.001, 0.002, 0.01, 0.0, 0.0, 0.0, 0.0, 0.0, 0.0, 0.0, 0.01, 0.0])
    service = _make_service(_device(make_device, make_mode), calibrations=[tilted])
    asyncio.run(service.start())

    with pytest.raises(GeometryInputError):
        asyncio.run(service.set_rotation_mode(RotationMode.ROT_90_CCW))

    assert service.store.geometry.get_rotation_mode() is RotationMode.IDENTITY
    assert service.config.rotation_mode is RotationMode.IDENTITY
    assert service.get_frame_geometry().width == 640
    assert asyncio.run(service.set_rotation_mode(RotationMode.IDENTITY)).width == 640
