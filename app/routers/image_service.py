from fastapi import APIRouter, Depends, UploadFile, File, Form, Query, Response
from starlette.concurrency import run_in_threadpool
from typing import List, Optional
import logging

from app.dependencies.dependencies import get_image_service, verify_api_key
from app.image_service.service import ImageService
from app.image_service.models import (
    BulkUploadResponse,
    DeleteResponse,
    ImageRecord,
    ListImagesResponse,
    UpdateImageRequest,
)
from app.exceptions import InvalidRequestException, MissingFileException

log = logging.getLogger(__name__)

router = APIRouter(
    prefix="/images",
    tags=["images"],
    dependencies=[Depends(verify_api_key)],
)

async def read_upload(file: Optional[UploadFile]):
    """Returns (bytes, content_type, filename) for an optional multipart file."""
    if file is None:
        return None, None, ""
    contents = await file.read()
    return contents, file.content_type, file.filename or ""

@router.post("", response_model=ImageRecord, status_code=201)
async def upload_image(
    response: Response,
    image: Optional[UploadFile] = File(None),
    width: Optional[str] = Form(None),
    height: Optional[str] = Form(None),
    alt: Optional[str] = Form(None),
    tags: Optional[str] = Form(None),  # Comma Separated Values
    custom: Optional[str] = Form(None),  # JSON object
    title: Optional[str] = Form(None),
    service: ImageService = Depends(get_image_service),
):
    """Uploads an image and records its metadata."""
    response.headers["X-Content-Type-Options"] = "nosniff"

    data, content_type, filename = await read_upload(image)
    log.debug("Upload request for %s (%s)", filename, content_type)
    return await run_in_threadpool(
        service.create_image,
        data,
        content_type,
        filename,
        width=width,
        height=height,
        alt=alt,
        tags=tags,
        custom=custom,
        title=title,
    )

@router.post("/bulk", response_model=BulkUploadResponse, status_code=201)
async def upload_images_bulk(
    images: Optional[List[UploadFile]] = File(None),
    tags: Optional[str] = Form(None),
    service: ImageService = Depends(get_image_service),
):
    """Uploads several images; each file succeeds or fails on its own."""
    if not images:
        raise MissingFileException("No files uploaded")
    if len(images) > service.settings.max_bulk_files:
        raise InvalidRequestException(f"Maximum {service.settings.max_bulk_files} files allowed per request")

    files = [await read_upload(f) for f in images]
    return await run_in_threadpool(service.bulk_create, files, tags=tags)

@router.get("", response_model=ListImagesResponse)
def list_images_handler(
    search: Optional[str] = Query(None),
    tag: Optional[str] = Query(None),
    page: int = Query(1),
    limit: int = Query(20),
    service: ImageService = Depends(get_image_service),
):
    """Lists images with optional search and tag filters."""
    return service.list_images(search=search, tag=tag, page=page, limit=limit)

@router.get("/{image_id}", response_model=ImageRecord)
def get_image(
    image_id: str,
    service: ImageService = Depends(get_image_service),
):
    """Gets image metadata."""
    return service.get_image(image_id)

@router.patch("/{image_id}", response_model=ImageRecord)
def update_image(
    image_id: str,
    changes: Optional[UpdateImageRequest] = None,
    service: ImageService = Depends(get_image_service),
):
    """Updates title, alt, tags or custom metadata."""
    return service.update_image(image_id, changes or UpdateImageRequest())

@router.post("/{image_id}/file", response_model=ImageRecord)
async def replace_image_file(
    image_id: str,
    image: Optional[UploadFile] = File(None),
    service: ImageService = Depends(get_image_service),
):
    """Replaces the stored binary of an existing image."""
    data, content_type, filename = await read_upload(image)
    return await run_in_threadpool(service.replace_file, image_id, data, content_type, filename)

@router.delete("/{image_id}", response_model=DeleteResponse)
def delete_image(
    image_id: str,
    service: ImageService = Depends(get_image_service),
):
    """Deletes an image and its metadata."""
    return service.delete_image(image_id)
