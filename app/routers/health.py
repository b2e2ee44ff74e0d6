import platform
import time
from datetime import datetime, timezone
from fastapi import APIRouter, Request

SERVICE_NAME = "Image Catalog Service"
SERVICE_VERSION = "1.0.0"

STARTED_AT = time.monotonic()

router = APIRouter(prefix="/health", tags=["health"])

@router.get("")
def health():
    return {
        "ok": True,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "service": SERVICE_NAME,
        "version": SERVICE_VERSION,
    }

@router.get("/detailed")
def health_detailed(request: Request):
    """Health check with runtime details."""
    settings = request.app.state.settings
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "uptime": round(time.monotonic() - STARTED_AT, 3),
        "environment": settings.environment,
        "python_version": platform.python_version(),
        "platform": platform.platform(),
        "storage_provider": request.app.state.service.provider.name,
        "record_store": request.app.state.service.store.backend,
    }
