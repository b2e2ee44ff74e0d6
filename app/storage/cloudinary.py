import base64
import cloudinary
import cloudinary.uploader
from cloudinary.exceptions import Error as CloudinaryError
from typing import Any, Dict
from app.settings import Settings
from app.storage.base import StorageProvider, StorageProviderError, UploadResult
import logging

log = logging.getLogger(__name__)

# -------------------------
# Cloudinary CDN storage
# -------------------------
class CloudinaryStorageProvider(StorageProvider):
    name = "cdn"

    def __init__(self, settings: Settings):
        self.folder = settings.storage_folder
        cloudinary.config(
            cloud_name=settings.cloudinary_cloud_name,
            api_key=settings.cloudinary_api_key,
            api_secret=settings.cloudinary_api_secret,
            secure=True,
        )
        log.info("Initialized Cloudinary client for cloud %s", settings.cloudinary_cloud_name)

    def upload(self, data: bytes, filename: str, content_type: str) -> UploadResult:
        data_uri = f"data:{content_type};base64,{base64.b64encode(data).decode('ascii')}"
        try:
            result = cloudinary.uploader.upload(
                data_uri,
                folder=self.folder,
                public_id=filename.rsplit(".", 1)[0],
                resource_type="image",
                overwrite=False,
                unique_filename=True,
            )
        except CloudinaryError as e:
            raise StorageProviderError(f"Cloudinary upload failed: {e}") from e
        log.debug("Uploaded %s to Cloudinary as %s", filename, result.get("public_id"))

        return UploadResult(
            url=result["secure_url"],
            storage={
                "provider": self.name,
                "public_id": result["public_id"],
                "version": result.get("version"),
                "signature": result.get("signature"),
            },
            width=result.get("width"),
            height=result.get("height"),
        )

    def delete(self, storage: Dict[str, Any]) -> bool:
        public_id = storage.get("public_id")
        if not public_id:
            return False
        try:
            result = cloudinary.uploader.destroy(public_id, resource_type="image", invalidate=True)
        except CloudinaryError as e:
            raise StorageProviderError(f"Cloudinary delete failed: {e}") from e
        deleted = result.get("result") == "ok"
        log.debug("Cloudinary destroy %s: %s", public_id, result.get("result"))
        return deleted

    def close(self):
        log.info("Closed Cloudinary client")
