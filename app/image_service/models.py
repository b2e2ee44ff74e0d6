from typing import Any, Dict, List, Optional
from datetime import datetime, timezone
from pydantic import BaseModel, ConfigDict, Field
from uuid import uuid4

def new_image_id() -> str:
    """Generates a new unique image ID."""
    return str(uuid4())

def utcnow() -> datetime:
    return datetime.now(timezone.utc)

class ImageRecord(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(default_factory=new_image_id)
    filename: str
    url: str
    storage: Dict[str, Any] = {}
    title: str = ""
    alt: str = ""
    tags: List[str] = []
    custom: Dict[str, Any] = {}
    size: int = 0
    width: int = 0
    height: int = 0
    mimetype: str
    uploaded_at: datetime = Field(default_factory=utcnow, alias="uploadedAt")
    updated_at: datetime = Field(default_factory=utcnow, alias="updatedAt")

class UpdateImageRequest(BaseModel):
    title: Optional[str] = None
    alt: Optional[str] = None
    tags: Optional[Any] = None  # list or comma separated string
    custom: Optional[Dict[str, Any]] = None

class BatchRequest(BaseModel):
    ids: Optional[Any] = None

class ListImagesResponse(BaseModel):
    items: List[ImageRecord]
    total: int
    page: int
    limit: int

class BulkUploadError(BaseModel):
    filename: str
    error: str

class BulkUploadResponse(BaseModel):
    success: int
    failed: int
    results: List[ImageRecord]
    errors: List[BulkUploadError]

class DeleteResponse(BaseModel):
    ok: bool = True
    id: str

class StatsResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    total: int
    by_format: Dict[str, int] = Field(alias="byFormat")
    by_tag: Dict[str, int] = Field(alias="byTag")
    total_size: int = Field(alias="totalSize")
