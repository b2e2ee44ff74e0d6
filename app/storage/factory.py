from app.settings import Settings
from app.storage.base import StorageProvider
from app.storage.records import JSONRecordStore, MemoryRecordStore

def build_storage_provider(settings: Settings) -> StorageProvider:
    """Selects the binary storage backend once, at startup."""
    provider = settings.storage_provider.lower()
    if provider == "blob":
        from app.storage.s3 import S3StorageProvider
        return S3StorageProvider(settings)
    if provider == "cdn":
        from app.storage.cloudinary import CloudinaryStorageProvider
        return CloudinaryStorageProvider(settings)
    raise ValueError(f"Unknown storage provider '{settings.storage_provider}', expected 'blob' or 'cdn'")

def build_record_store(settings: Settings):
    if settings.data_file:
        return JSONRecordStore(settings.data_file)
    return MemoryRecordStore()
