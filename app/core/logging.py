import sys
from loguru import logger

from app.core.config import settings

# --- 로거 설정 ---
# 기본 sink를 제거하고 설정 값에 맞는 sink만 다시 등록합니다.
logger.remove()

LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
    "<level>{message}</level>"
)

# 콘솔(터미널) 출력. 장치 I/O 실패는 WARNING/ERROR로 여기에 남습니다.
logger.add(
    sys.stderr,
    level=settings.LOG_LEVEL.upper(),
    format=LOG_FORMAT,
    colorize=True,
)

# 파일 출력은 LOG_FILE_PATH가 지정된 경우에만 추가합니다.
if settings.LOG_FILE_PATH:
    logger.add(
        settings.LOG_FILE_PATH,
        level=settings.LOG_LEVEL.upper(),
        format=LOG_FORMAT,
        rotation=settings.LOG_FILE_ROTATION,
        enqueue=True,
    )

# 다른 모듈에서는 'from app.core.logging import logger'로 가져가서 사용합니다.
__all__ = ["logger"]
