"""Storage provider interface for image binaries."""
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional
from pydantic import BaseModel

class StorageProviderError(Exception):
    """Raised when a storage backend call fails."""

class UploadResult(BaseModel):
    url: str
    storage: Dict[str, Any]
    width: Optional[int] = None
    height: Optional[int] = None

class StorageProvider(ABC):
    """
        Uniform upload/delete contract over binary storage backends.

        Implementations wrap their client library errors in
        StorageProviderError so callers never depend on a specific SDK.
    """
    name: str

    @abstractmethod
    def upload(self, data: bytes, filename: str, content_type: str) -> UploadResult:
        """
        Uploads the bytes under the given storage-safe filename.

        Returns:
            UploadResult with the public URL and a provider-tagged storage descriptor.

        Raises:
            StorageProviderError: If the remote upload fails.
        """

    @abstractmethod
    def delete(self, storage: Dict[str, Any]) -> bool:
        """
        Deletes the binary referenced by a storage descriptor.

        Returns:
            True if the backend confirmed the deletion, False otherwise.

        Raises:
            StorageProviderError: If the remote call fails.
        """

    def close(self):
        pass
