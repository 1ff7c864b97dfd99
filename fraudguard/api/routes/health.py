"""Health and readiness endpoints."""

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from fraudguard.api.dependencies import get_services
from fraudguard.config import settings

router = APIRouter(tags=["health"])


@router.get("/health")
async def health() -> dict:
    from fraudguard.main import get_uptime

    return {
        "status": "healthy",
        "version": settings.app_version,
        "uptime_seconds": get_uptime(),
    }


@router.get("/ready")
async def ready() -> JSONResponse:
    model_server = get_services().model_server
    ready_ = model_server.is_loaded
    return JSONResponse(
        status_code=200 if ready_ else 503,
        content={
            "status": "ready" if ready_ else "degraded",
            "model_loaded": ready_,
            "model_version": model_server.model_version,
        },
    )
