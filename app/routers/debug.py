from fastapi import APIRouter, Depends

from app.dependencies.dependencies import get_image_service, verify_api_key
from app.image_service.service import ImageService

router = APIRouter(
    prefix="/debug",
    tags=["debug"],
    dependencies=[Depends(verify_api_key)],
)

@router.get("/db-status")
def db_status(service: ImageService = Depends(get_image_service)):
    """Reports record store location, size and record count."""
    records = service.store.load_all()
    status = service.store.describe()
    status["record_count"] = len(records)
    if service.settings.environment == "development":
        status["records"] = [r.model_dump(mode="json", by_alias=True) for r in records]
    return status
