import boto3
from io import BytesIO
from typing import Any, Dict
from botocore.exceptions import BotoCoreError, ClientError
from app.settings import Settings
from app.storage.base import StorageProvider, StorageProviderError, UploadResult
import logging

log = logging.getLogger(__name__)

# -------------------------
# S3 blob storage
# -------------------------
class S3StorageProvider(StorageProvider):
    name = "blob"

    def __init__(self, settings: Settings):
        self.settings = settings
        self.bucket = settings.s3_bucket
        session = boto3.session.Session(region_name=settings.aws_region)
        kwargs = {
            "aws_access_key_id": settings.aws_access_key_id,
            "aws_secret_access_key": settings.aws_secret_access_key,
        }
        if settings.aws_endpoint_url:
            kwargs["endpoint_url"] = settings.aws_endpoint_url

        self.client = session.client("s3", **kwargs)
        log.info("Initialized S3 client")

        # Ensure bucket exists at initialization
        self.ensure_bucket()

    def ensure_bucket(self):
        try:
            self.client.head_bucket(Bucket=self.bucket)
            log.debug("Bucket %s already exists", self.bucket)
        except ClientError as e:
            error_code = int(e.response["Error"]["Code"])
            if error_code == 404:
                self.client.create_bucket(Bucket=self.bucket)
                log.info("Created bucket %s", self.bucket)
            else:
                log.error("Failed to check/create bucket: %s", e)
                raise

    def object_key(self, filename: str) -> str:
        folder = self.settings.storage_folder.strip("/")
        return f"{folder}/{filename}" if folder else filename

    def public_url(self, key: str) -> str:
        if self.settings.s3_public_base_url:
            return f"{self.settings.s3_public_base_url.rstrip('/')}/{key}"
        if self.settings.aws_endpoint_url:
            return f"{self.settings.aws_endpoint_url.rstrip('/')}/{self.bucket}/{key}"
        return f"https://{self.bucket}.s3.{self.settings.aws_region}.amazonaws.com/{key}"

    def upload(self, data: bytes, filename: str, content_type: str) -> UploadResult:
        key = self.object_key(filename)
        try:
            self.client.upload_fileobj(
                Fileobj=BytesIO(data),
                Bucket=self.bucket,
                Key=key,
                ExtraArgs={"ContentType": content_type},
            )
        except (BotoCoreError, ClientError) as e:
            raise StorageProviderError(f"S3 upload failed: {e}") from e
        log.debug("Uploaded %s to s3://%s/%s", filename, self.bucket, key)

        url = self.public_url(key)
        return UploadResult(
            url=url,
            storage={"provider": self.name, "bucket": self.bucket, "key": key, "url": url},
        )

    def delete(self, storage: Dict[str, Any]) -> bool:
        key = storage.get("key")
        if not key:
            return False
        try:
            self.client.delete_object(Bucket=storage.get("bucket") or self.bucket, Key=key)
        except (BotoCoreError, ClientError) as e:
            raise StorageProviderError(f"S3 delete failed: {e}") from e
        log.debug("Deleted s3://%s/%s", self.bucket, key)
        return True

    def close(self):
        log.info("Closed S3 client")
