from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
import uvicorn
import logging

from app.settings import settings
from app.image_service.service import ImageService
from app.storage.factory import build_record_store, build_storage_provider
from app.routers.batch import router as batch_router
from app.routers.debug import router as debug_router
from app.routers.health import router as health_router
from app.routers.image_service import router as image_router
from app.exceptions import add_exception_handlers

logging.basicConfig(level=settings.log_level)
log = logging.getLogger("image-catalog")

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
        Async context manager for FastAPI application lifecycle events.
        Builds the record store, storage provider and image service from settings.
    """
    # Initialize resources
    store = build_record_store(settings)
    store.initialize()
    provider = build_storage_provider(settings)
    app.state.settings = settings
    app.state.service = ImageService(store=store, provider=provider, settings=settings)
    log.info("Using %s storage provider with %s record store", provider.name, store.backend)
    yield
    # Cleanup resources
    provider.close()

# Initialize App
app = FastAPI(
    title=settings.app_title,
    lifespan=lifespan,
    description="Image Catalog Service",
)

# Add exception handlers
add_exception_handlers(app)

# CORS - Middleware; requests without an Origin header are unaffected
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "x-api-key"],
)

# Add the routers; batch routes first so /images/batch is never read as an image id
app.include_router(health_router)
app.include_router(batch_router)
app.include_router(image_router)
app.include_router(debug_router)

if __name__ == "__main__":
    uvicorn.run("app.main:app", host="0.0.0.0", port=8000, reload=True)
