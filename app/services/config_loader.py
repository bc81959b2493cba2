"""
카메라 설정과 하드웨어 프로필 JSON 파일을 읽어 검증된 모델로 변환합니다.

캘리브레이션이 잘못된 설정은 파이프라인에 들어가기 전에 GeometryInputError로 거부하고,
하드웨어 프로필이 없으면 기본 프로필로 계속 진행합니다.
"""
import json
from pathlib import Path
from typing import Union

from pydantic import ValidationError

from app.core.exceptions import GeometryInputError
from app.core.logging import logger
from app.schemas.camera import CameraConfiguration, HardwareProfile

PathLike = Union[str, Path]


def load_camera_configuration(path: PathLike) -> CameraConfiguration:
    path = Path(path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError:
        logger.warning(f"Camera configuration {path} not found; using defaults.")
        return CameraConfiguration()
    except json.JSONDecodeError as e:
        raise GeometryInputError(f"Camera configuration {path} is not valid JSON: {e}") from e

    try:
        config = CameraConfiguration.model_validate(data)
    except ValidationError as e:
        raise GeometryInputError(f"Camera configuration {path} is invalid: {e}") from e

    logger.info(
        f"Loaded camera configuration '{config.nickname or config.base_name}' "
        f"with {len(config.calibrations)} calibration(s), rotation={config.rotation_mode.value}"
    )
    return config


def load_hardware_profile(path: PathLike) -> HardwareProfile:
    path = Path(path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        return HardwareProfile.model_validate(data)
    except FileNotFoundError:
        logger.info(f"No hardware profile at {path}; using defaults.")
        return HardwareProfile()
    except (json.JSONDecodeError, ValidationError) as e:
        logger.error(f"Could not load hardware profile from {path}: {e}")
        return HardwareProfile()
