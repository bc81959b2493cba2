"""
하드웨어 quirk(특정 카메라 계열의 비표준 동작) 정의와 효과 테이블입니다.

quirk 플래그는 장치 생성 시 한 번만 CapabilityProfile로 해석되고,
CameraCapability의 각 getter/setter는 플래그 대신 해석된 프로파일만 참조합니다.
"""
from enum import Enum
from typing import Dict, FrozenSet, Iterable, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field


class CameraQuirk(str, Enum):
    GAIN = "Gain"                                # 게인 제어 지원, 화이트 밸런스 제어 없음 (PS3 Eye 계열)
    FPS_CAP_100 = "FPSCap100"                    # 100 FPS 초과 모드는 동작하지 않음
    STICKY_FPS = "StickyFPS"                     # 초기 비디오 모드 강제 설정 시 FPS가 고정되어 버림
    ADJUSTABLE_FOCUS = "AdjustableFocus"         # 오토포커스를 끄고 무한대 초점으로 고정해야 함
    COMPLETELY_BROKEN = "CompletelyBroken"       # 지원하지 않는 장치
    ARDU_OV9281 = "ArduOV9281"                   # ArduCam OV9281: 노출 범위 1..75 고정
    ARDU_OV2311 = "ArduOV2311"                   # ArduCam OV2311: 노출 범위 1..140 고정


class QuirkEffect(BaseModel):
    """하나의 quirk가 settables에 주는 효과. None 필드는 효과 없음을 의미합니다."""
    model_config = ConfigDict(frozen=True)

    exposure_range: Optional[Tuple[int, int]] = None
    supports_gain: Optional[bool] = None
    white_balance_controllable: Optional[bool] = None
    fps_cap: Optional[float] = None
    sticky_fps: Optional[bool] = None
    adjustable_focus: Optional[bool] = None
    unsupported: Optional[bool] = None


QUIRK_EFFECTS: Dict[CameraQuirk, QuirkEffect] = {
    CameraQuirk.GAIN: QuirkEffect(supports_gain=True, white_balance_controllable=False),
    CameraQuirk.FPS_CAP_100: QuirkEffect(fps_cap=100.0),
    CameraQuirk.STICKY_FPS: QuirkEffect(sticky_fps=True),
    CameraQuirk.ADJUSTABLE_FOCUS: QuirkEffect(adjustable_focus=True),
    CameraQuirk.COMPLETELY_BROKEN: QuirkEffect(unsupported=True),
    CameraQuirk.ARDU_OV9281: QuirkEffect(exposure_range=(1, 75)),
    CameraQuirk.ARDU_OV2311: QuirkEffect(exposure_range=(1, 140)),
}


class CapabilityProfile(BaseModel):
    """quirk 집합을 하나로 합친 결과. 장치 생성 시 한 번 계산됩니다."""
    model_config = ConfigDict(frozen=True)

    exposure_range: Optional[Tuple[int, int]] = None
    supports_gain: bool = False
    white_balance_controllable: bool = True
    fps_cap: Optional[float] = None
    sticky_fps: bool = False
    adjustable_focus: bool = False
    unsupported: bool = False


def resolve_capability_profile(quirks: Iterable[CameraQuirk]) -> CapabilityProfile:
    merged: Dict[str, object] = {}
    # 정렬해서 적용 순서를 고정합니다. fps_cap은 가장 낮은 값이 이깁니다.
    for quirk in sorted(set(quirks), key=lambda q: q.value):
        effect = QUIRK_EFFECTS.get(quirk)
        if effect is None:
            continue
        for name, value in effect.model_dump(exclude_none=True).items():
            if name == "fps_cap" and "fps_cap" in merged:
                value = min(merged["fps_cap"], value)
            merged[name] = value
    return CapabilityProfile(**merged)


class QuirkyCamera(BaseModel):
    """장치 식별자(vendor/product id, 기본 이름)와 그 장치의 quirk 집합."""
    model_config = ConfigDict(frozen=True)

    usb_vid: int = -1
    usb_pid: int = -1
    base_name: str = ""
    quirks: FrozenSet[CameraQuirk] = Field(default_factory=frozenset)

    def has_quirk(self, quirk: CameraQuirk) -> bool:
        return quirk in self.quirks

    def has_quirks(self) -> bool:
        return bool(self.quirks)

    def matches(self, usb_vid: int, usb_pid: int, base_name: str) -> bool:
        # vid/pid가 -1인 항목은 이름만으로 매칭합니다.
        if self.usb_vid == -1 and self.usb_pid == -1:
            return bool(self.base_name) and self.base_name == base_name
        if (self.usb_vid, self.usb_pid) != (usb_vid, usb_pid):
            return False
        return not self.base_name or self.base_name == base_name

    def with_quirks(self, extra: Iterable[CameraQuirk]) -> "QuirkyCamera":
        return self.model_copy(update={"quirks": frozenset(self.quirks) | frozenset(extra)})

    def profile(self) -> CapabilityProfile:
        return resolve_capability_profile(self.quirks)


KNOWN_QUIRKY_CAMERAS: List[QuirkyCamera] = [
    QuirkyCamera(usb_vid=0x9331, usb_pid=0x5A3, quirks=frozenset({CameraQuirk.COMPLETELY_BROKEN})),
    QuirkyCamera(usb_vid=0x825, usb_pid=0x46D, quirks=frozenset({CameraQuirk.COMPLETELY_BROKEN})),
    QuirkyCamera(base_name="Snap Camera", quirks=frozenset({CameraQuirk.COMPLETELY_BROKEN})),
    QuirkyCamera(usb_vid=0x2000, usb_pid=0x1415, quirks=frozenset({CameraQuirk.GAIN, CameraQuirk.FPS_CAP_100})),
    QuirkyCamera(usb_vid=0x85B, usb_pid=0x46D, quirks=frozenset({CameraQuirk.ADJUSTABLE_FOCUS})),
    QuirkyCamera(usb_vid=0x6366, usb_pid=0x0C45, base_name="OV9281", quirks=frozenset({CameraQuirk.ARDU_OV9281})),
    QuirkyCamera(usb_vid=0x6366, usb_pid=0x0C45, base_name="OV2311", quirks=frozenset({CameraQuirk.ARDU_OV2311})),
    QuirkyCamera(base_name="LifeCam HD-3000", quirks=frozenset({CameraQuirk.STICKY_FPS})),
]


def lookup_quirky_camera(usb_vid: int, usb_pid: int, base_name: str) -> QuirkyCamera:
    """알려진 장치 목록에서 일치하는 항목을 찾고, 없으면 quirk가 없는 기본 항목을 반환합니다."""
    for known in KNOWN_QUIRKY_CAMERAS:
        if known.matches(usb_vid, usb_pid, base_name):
            return known.model_copy(update={"usb_vid": usb_vid, "usb_pid": usb_pid, "base_name": base_name})
    return QuirkyCamera(usb_vid=usb_vid, usb_pid=usb_pid, base_name=base_name)
