from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field
from typing import List, Optional

ALLOWED_IMAGE_TYPES = (
    "image/jpeg",
    "image/png",
    "image/webp",
    "image/avif",
    "image/gif",
    "image/svg+xml",
)

class Settings(BaseSettings):
    app_title: str = Field("Image Catalog Service")
    environment: str = Field("production")
    log_level: str = Field("INFO")

    # Empty key disables the x-api-key check
    api_key: str = Field("")
    cors_origins: str = Field("http://localhost:3000")

    # Empty path keeps records in memory only
    data_file: str = Field("data/images.json")

    storage_provider: str = Field("blob")
    storage_folder: str = Field("images")
    max_upload_bytes: int = Field(20 * 1024 * 1024)
    max_bulk_files: int = Field(10)
    max_batch_ids: int = Field(50)
    allowed_image_types: List[str] = Field(default_factory=lambda: list(ALLOWED_IMAGE_TYPES))

    # blob storage
    aws_region: str = Field("us-east-1")
    s3_bucket: str = Field("image-catalog-bucket")
    aws_endpoint_url: Optional[str] = Field(None)
    aws_access_key_id: str = Field("test")
    aws_secret_access_key: str = Field("test")
    s3_public_base_url: Optional[str] = Field(None)

    # cdn storage
    cloudinary_cloud_name: str = Field("")
    cloudinary_api_key: str = Field("")
    cloudinary_api_secret: str = Field("")

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    @property
    def cors_origin_list(self) -> List[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

settings = Settings()
