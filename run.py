import uvicorn
import os

from app.main import app

if __name__ == "__main__":
    # 포트 번호는 환경 변수 또는 기본값으로 설정
    port = int(os.environ.get("PORT", 52000))

    # Uvicorn 서버 실행
    # 카메라 장치는 프로세스당 하나의 핸들만 열 수 있으므로 reload 워커를 쓰지 않습니다.
    uvicorn.run("app.main:app", host="0.0.0.0", port=port, reload=False)
