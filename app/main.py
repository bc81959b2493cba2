from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
import traceback

from app.api.v1.router import api_router
from app.core.exceptions import GeometryInputError, UnsupportedCapability
from app.dependencies import get_camera_source_service
from app.core.logging import logger


@asynccontextmanager
async def lifespan(app: FastAPI):
    camera_source_service = get_camera_source_service()

    logger.info("Application startup: Opening camera source...")
    # 장치를 열지 못해도 서버는 뜹니다. 지오메트리 API는 계속 사용 가능합니다.
    await camera_source_service.start()

    yield

    logger.info("Application shutdown: Releasing camera source...")
    await camera_source_service.stop()
    logger.info("All services have been stopped.")


app = FastAPI(title="Camera Frame Geometry Server", lifespan=lifespan)


@app.exception_handler(UnsupportedCapability)
async def unsupported_capability_handler(request: Request, exc: UnsupportedCapability):
    logger.info(f"{request.method} {request.url}: {exc}")
    return JSONResponse(status_code=409, content={"detail": str(exc)})


@app.exception_handler(GeometryInputError)
async def geometry_input_error_handler(request: Request, exc: GeometryInputError):
    logger.warning(f"Rejected geometry input for {request.method} {request.url}: {exc}")
    return JSONResponse(status_code=422, content={"detail": str(exc)})


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    error_details = traceback.format_exc()
    logger.error(f"Unhandled exception for request {request.method} {request.url}:\n{error_details}")
    return JSONResponse(status_code=500, content={"detail": "An internal server error occurred."})

# HTTP API 라우터 등록
app.include_router(api_router, prefix="/api")
