from app.schemas.quirks import CameraQuirk, QuirkyCamera, lookup_quirky_camera, resolve_capability_profile


def test_ps3_eye_is_gain_capable_and_fps_capped():
    camera = lookup_quirky_camera(0x2000, 0x1415, "USB Camera-B4.09.24.1")
    profile = camera.profile()

    assert camera.has_quirk(CameraQuirk.GAIN)
    assert camera.has_quirk(CameraQuirk.FPS_CAP_100)
    assert profile.supports_gain is True
    assert profile.white_balance_controllable is False
    assert profile.fps_cap == 100.0


def test_ardu_cameras_need_matching_base_name():
    assert lookup_quirky_camera(0x6366, 0x0C45, "OV9281").has_quirk(CameraQuirk.ARDU_OV9281)
    assert lookup_quirky_camera(0x6366, 0x0C45, "OV2311").profile().exposure_range == (1, 140)
    assert not lookup_quirky_camera(0x6366, 0x0C45, "Arducam B0201").has_quirks()


def test_name_only_entries_match_any_ids():
    assert lookup_quirky_camera(0x1234, 0x5678, "Snap Camera").profile().unsupported is True
    assert lookup_quirky_camera(-1, -1, "LifeCam HD-3000").profile().sticky_fps is True


def test_unknown_camera_has_default_profile():
    camera = lookup_quirky_camera(0x1234, 0x5678, "Generic UVC")
    profile = camera.profile()

    assert not camera.has_quirks()
    assert (camera.usb_vid, camera.usb_pid, camera.base_name) == (0x1234, 0x5678, "Generic UVC")
    assert profile.supports_gain is False
    assert profile.white_balance_controllable is True
    assert profile.exposure_range is None
    assert profile.fps_cap is None


def test_with_quirks_merges_without_mutating():
    camera = QuirkyCamera(base_name="cam", quirks=frozenset({CameraQuirk.GAIN}))
    merged = camera.with_quirks([CameraQuirk.STICKY_FPS])

    assert merged.quirks == {CameraQuirk.GAIN, CameraQuirk.STICKY_FPS}
    assert camera.quirks == {CameraQuirk.GAIN}


def test_empty_quirk_set_resolves_to_defaults():
    profile = resolve_capability_profile([])
    assert profile.unsupported is False
    assert profile.adjustable_focus is False
