from fastapi import APIRouter, Depends
from typing import List, Optional

from app.dependencies.dependencies import get_image_service, verify_api_key
from app.image_service.service import ImageService
from app.image_service.models import BatchRequest, ImageRecord, StatsResponse

router = APIRouter(
    prefix="/images/batch",
    tags=["images"],
    dependencies=[Depends(verify_api_key)],
)

@router.post("", response_model=List[ImageRecord])
def get_images_batch(
    payload: Optional[BatchRequest] = None,
    service: ImageService = Depends(get_image_service),
):
    """Gets up to 50 images by ID; unknown IDs are skipped."""
    return service.batch_get(payload.ids if payload else None)

@router.get("/stats", response_model=StatsResponse)
def get_stats(service: ImageService = Depends(get_image_service)):
    """Counts images by format and tag, and sums their sizes."""
    return service.stats()
