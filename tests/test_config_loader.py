import json

import pytest

from app.core.config import settings
from app.core.exceptions import GeometryInputError
from app.schemas.camera import CameraConfiguration, HardwareProfile
from app.schemas.quirks import CameraQuirk
from app.schemas.rotation import RotationMode
from app.services.config_loader import load_camera_configuration, load_hardware_profile

CALIBRATION = {
    "resolution": {"width": 640, "height": 480},
    "intrinsics": [[600.0, 0.0, 320.0], [0.0, 600.0, 240.0], [0.0, 0.0, 1.0]],
    "distortion": [0.1, -0.05, 0.001, 0.002, 0.01],
}


def _write(tmp_path, name, data):
    path = tmp_path / name
    path.write_text(data if isinstance(data, str) else json.dumps(data), encoding="utf-8")
    return path


def test_loads_configuration_with_calibration_matrix(tmp_path):
    path = _write(
        tmp_path,
        "camera.json",
        {
            "nickname": "front",
            "fov_deg": 68.5,
            "rotation_mode": 90,
            "other_paths": ["/dev/v4l/by-id/cam", "/dev/v4l/by-path/usb-0:1:1.0-video-index0"],
            "calibrations": [CALIBRATION],
        },
    )

    config = load_camera_configuration(path)

    assert config.rotation_mode is RotationMode.ROT_90_CCW
    assert config.fov_deg == 68.5
    calibration = config.get_calibration(640, 480)
    assert calibration.intrinsics.fx == 600.0
    assert calibration.distortion.tangential == (0.001, 0.002)
    assert config.get_calibration(1280, 720) is None


def test_usb_path_prefers_by_path_alias(tmp_path, monkeypatch):
    monkeypatch.setattr("sys.platform", "linux")
    config = CameraConfiguration(
        path="/dev/video0",
        other_paths=["/dev/v4l/by-id/cam", "/dev/v4l/by-path/usb-0:1:1.0-video-index0"],
    )
    assert config.get_usb_path() == "/dev/v4l/by-path/usb-0:1:1.0-video-index0"
    assert CameraConfiguration(path="/dev/video0").get_usb_path() is None


def test_missing_configuration_uses_defaults(tmp_path):
    config = load_camera_configuration(tmp_path / "missing.json")

    assert config.calibrations == []
    assert config.rotation_mode is RotationMode.IDENTITY
    assert config.fov_deg == settings.DEFAULT_DIAGONAL_FOV_DEG


def test_malformed_calibration_fails_fast(tmp_path):
    bad = dict(CALIBRATION, distortion=[0.1, 0.2, 0.3])
    path = _write(tmp_path, "camera.json", {"calibrations": [bad]})

    with pytest.raises(GeometryInputError):
        load_camera_configuration(path)


def test_invalid_json_fails_fast(tmp_path):
    path = _write(tmp_path, "camera.json", "{not json")

    with pytest.raises(GeometryInputError):
        load_camera_configuration(path)


def test_invalid_rotation_is_rejected(tmp_path):
    path = _write(tmp_path, "camera.json", {"rotation_mode": 45})

    with pytest.raises(GeometryInputError):
        load_camera_configuration(path)


def test_hardware_profile_loads(tmp_path):
    path = _write(
        tmp_path,
        "hardware.json",
        {"blacklisted_res_indices": [2, 0], "preset_fov_deg": 75.0, "camera_quirks": ["StickyFPS"]},
    )

    profile = load_hardware_profile(path)

    assert profile.blacklisted_res_indices == [2, 0]
    assert profile.has_preset_fov()
    assert profile.camera_quirks == [CameraQuirk.STICKY_FPS]


def test_missing_or_invalid_hardware_profile_falls_back_to_default(tmp_path):
    assert load_hardware_profile(tmp_path / "missing.json") == HardwareProfile()
    assert load_hardware_profile(_write(tmp_path, "bad.json", "[1, 2")) == HardwareProfile()
    assert not load_hardware_profile(tmp_path / "missing.json").has_preset_fov()


def test_default_fov_follows_settings(monkeypatch):
    monkeypatch.setattr(settings, "DEFAULT_DIAGONAL_FOV_DEG", 82.0)
    assert CameraConfiguration().fov_deg == 82.0
