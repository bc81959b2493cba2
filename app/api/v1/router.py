from fastapi import APIRouter
from app.api.v1.endpoints import (
    health,
    store,
    device,
    geometry,
)

api_router = APIRouter()

# --- HTTP API Endpoints ---
api_router.include_router(health.router, tags=["Health"])
api_router.include_router(store.router, prefix="/store", tags=["Store"])
api_router.include_router(device.router, prefix="/device", tags=["Device"])
api_router.include_router(geometry.router, prefix="/geometry", tags=["Geometry"])
