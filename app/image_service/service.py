import logging
import threading
from typing import Any, Dict, List, Optional, Sequence, Tuple

from app.exceptions import (
    ImageNotFoundException,
    InvalidRequestException,
    MissingFileException,
    PayloadTooLargeException,
    PersistenceException,
    TooManyIdsException,
    UnsupportedTypeException,
    UploadFailedException,
)
from app.image_service.helpers import (
    generate_safe_filename,
    normalize_tags,
    parse_custom_data,
    parse_dimension,
    read_dimensions,
    title_from_filename,
)
from app.image_service.models import (
    BulkUploadError,
    BulkUploadResponse,
    DeleteResponse,
    ImageRecord,
    ListImagesResponse,
    StatsResponse,
    UpdateImageRequest,
    new_image_id,
    utcnow,
)
from app.settings import Settings
from app.storage.base import StorageProvider, StorageProviderError, UploadResult

log = logging.getLogger(__name__)

MAX_PAGE_SIZE = 100

class ImageService:
    """
        Image catalogue operations over a record store and a storage provider.

        Every mutation reloads the whole store, applies the change and writes
        the whole store back. The lock serializes writers inside this process
        only; remote uploads run outside it.
    """

    def __init__(self, store, provider: StorageProvider, settings: Settings):
        self.store = store
        self.provider = provider
        self.settings = settings
        self._lock = threading.Lock()

    # ------------------------------
    # internals
    # ------------------------------

    def _persist(self, records: List[ImageRecord]):
        try:
            self.store.save_all(records)
        except (OSError, TypeError, ValueError) as e:
            log.error(f"Record store write failed: {e}")
            raise PersistenceException(f"Failed to save image metadata: {e}")

    def _validate_file(self, data: Optional[bytes], content_type: Optional[str]):
        if not data:
            raise MissingFileException()
        if content_type not in self.settings.allowed_image_types:
            raise UnsupportedTypeException(content_type)
        if len(data) > self.settings.max_upload_bytes:
            raise PayloadTooLargeException(self.settings.max_upload_bytes)

    def _upload(self, data: bytes, original_name: str, content_type: str) -> Tuple[str, UploadResult]:
        filename = generate_safe_filename(original_name)
        try:
            result = self.provider.upload(data, filename, content_type)
        except StorageProviderError as e:
            log.error(f"Upload of {original_name} failed: {e}")
            raise UploadFailedException(f"Failed to upload image: {e}")
        return filename, result

    @staticmethod
    def _dimensions(data: bytes, content_type: str, result: UploadResult) -> Tuple[int, int]:
        """Provider-reported size, else the size Pillow reads from the header, else (0, 0)."""
        if result.width and result.height:
            return result.width, result.height
        return read_dimensions(data, content_type) or (0, 0)

    @staticmethod
    def _find_index(records: Sequence[ImageRecord], image_id: str) -> int:
        for idx, record in enumerate(records):
            if record.id == image_id:
                return idx
        return -1

    def discard_binary(self, storage: Optional[Dict[str, Any]]) -> bool:
        """Best-effort removal of a stored binary; failures are logged, never raised."""
        if not storage:
            return False
        if storage.get("provider") != self.provider.name:
            log.warning(
                "Skipping cleanup of %s binary while %s provider is active",
                storage.get("provider"), self.provider.name,
            )
            return False
        try:
            deleted = self.provider.delete(storage)
        except StorageProviderError as e:
            log.warning("Best-effort binary cleanup failed: %s", e)
            return False
        if not deleted:
            log.warning("Storage provider did not confirm deletion of %s", storage)
        return deleted

    # ------------------------------
    # create
    # ------------------------------

    def create_image(
        self,
        data: Optional[bytes],
        content_type: Optional[str],
        original_name: str,
        width: Any = None,
        height: Any = None,
        alt: Optional[str] = None,
        tags: Any = None,
        custom: Any = None,
        title: Optional[str] = None,
    ) -> ImageRecord:
        """Uploads the binary and appends its metadata record to the store."""
        self._validate_file(data, content_type)
        filename, result = self._upload(data, original_name, content_type)

        width, height = parse_dimension(width), parse_dimension(height)
        dims = (0, 0) if (width and height) else self._dimensions(data, content_type, result)

        now = utcnow()
        record = ImageRecord(
            id=new_image_id(),
            filename=filename,
            url=result.url,
            storage=result.storage,
            title=title or title_from_filename(original_name),
            alt=str(alt) if alt is not None else "",
            tags=normalize_tags(tags),
            custom=parse_custom_data(custom),
            size=len(data),
            width=width or dims[0],
            height=height or dims[1],
            mimetype=content_type,
            uploaded_at=now,
            updated_at=now,
        )

        with self._lock:
            records = self.store.load_all()
            existing = {r.id for r in records}
            while record.id in existing:
                record.id = new_image_id()
            records.append(record)
            try:
                self._persist(records)
            except PersistenceException:
                self.discard_binary(record.storage)
                raise

        log.info("Saved image metadata %s", record.id)
        return record

    def bulk_create(self, files: Sequence[Tuple[Optional[bytes], Optional[str], str]], tags: Any = None) -> BulkUploadResponse:
        """Creates one record per (data, content_type, name) entry; failures are collected, not raised."""
        results = []
        errors = []
        for data, content_type, original_name in files:
            try:
                record = self.create_image(
                    data,
                    content_type,
                    original_name,
                    alt=f"Image: {original_name}",
                    tags=tags,
                )
            except (
                MissingFileException,
                UnsupportedTypeException,
                PayloadTooLargeException,
                UploadFailedException,
                PersistenceException,
            ) as e:
                log.warning("Bulk upload of %s failed: %s", original_name, e.detail)
                errors.append(BulkUploadError(filename=original_name, error=e.detail))
            else:
                results.append(record)

        return BulkUploadResponse(
            success=len(results),
            failed=len(errors),
            results=results,
            errors=errors,
        )

    # ------------------------------
    # read
    # ------------------------------

    def list_images(
        self,
        search: Optional[str] = None,
        tag: Optional[str] = None,
        page: int = 1,
        limit: int = 20,
    ) -> ListImagesResponse:
        """Filters, then paginates, the full store."""
        page = max(1, page)
        limit = min(MAX_PAGE_SIZE, max(1, limit))

        items = self.store.load_all()
        if search:
            q = search.lower()
            items = [
                r for r in items
                if q in r.title.lower()
                or q in r.alt.lower()
                or any(q in t.lower() for t in r.tags)
            ]
        if tag:
            t = tag.lower()
            items = [r for r in items if t in [x.lower() for x in r.tags]]

        start = (page - 1) * limit
        return ListImagesResponse(
            items=items[start:start + limit],
            total=len(items),
            page=page,
            limit=limit,
        )

    def get_image(self, image_id: str) -> ImageRecord:
        for record in self.store.load_all():
            if record.id == image_id:
                return record
        raise ImageNotFoundException(image_id)

    def batch_get(self, ids: Any) -> List[ImageRecord]:
        """Returns the known records for ids, in request order, without duplicates."""
        if not isinstance(ids, list) or not ids:
            raise InvalidRequestException("IDs array is required and must not be empty")
        if len(ids) > self.settings.max_batch_ids:
            raise TooManyIdsException(self.settings.max_batch_ids)

        wanted = []
        for image_id in ids:
            if isinstance(image_id, str) and image_id.strip() and image_id not in wanted:
                wanted.append(image_id)

        by_id = {r.id: r for r in self.store.load_all()}
        return [by_id[i] for i in wanted if i in by_id]

    def stats(self) -> StatsResponse:
        records = self.store.load_all()
        by_format: Dict[str, int] = {}
        by_tag: Dict[str, int] = {}
        total_size = 0
        for record in records:
            parts = record.mimetype.split("/") if record.mimetype else []
            fmt = parts[1] if len(parts) > 1 and parts[1] else "unknown"
            by_format[fmt] = by_format.get(fmt, 0) + 1
            for t in record.tags:
                by_tag[t] = by_tag.get(t, 0) + 1
            total_size += record.size or 0

        return StatsResponse(
            total=len(records),
            by_format=by_format,
            by_tag=by_tag,
            total_size=total_size,
        )

    # ------------------------------
    # update
    # ------------------------------

    def update_image(self, image_id: str, changes: UpdateImageRequest) -> ImageRecord:
        """Merges the provided fields onto the stored record."""
        fields = changes.model_dump(exclude_none=True)
        with self._lock:
            records = self.store.load_all()
            idx = self._find_index(records, image_id)
            if idx == -1:
                raise ImageNotFoundException(image_id)

            current = records[idx]
            update = {"updated_at": utcnow()}
            if "title" in fields:
                update["title"] = str(fields["title"])
            if "alt" in fields:
                update["alt"] = str(fields["alt"])
            if "tags" in fields:
                update["tags"] = normalize_tags(fields["tags"])
            if "custom" in fields:
                update["custom"] = fields["custom"]

            records[idx] = current.model_copy(update=update)
            self._persist(records)

        log.info("Updated image metadata %s", image_id)
        return records[idx]

    def replace_file(
        self,
        image_id: str,
        data: Optional[bytes],
        content_type: Optional[str],
        original_name: str,
    ) -> ImageRecord:
        """Uploads a new binary for an existing record, then drops the old one."""
        self.get_image(image_id)
        self._validate_file(data, content_type)
        filename, result = self._upload(data, original_name, content_type)
        dims = self._dimensions(data, content_type, result)

        with self._lock:
            records = self.store.load_all()
            idx = self._find_index(records, image_id)
            if idx == -1:
                # deleted while the upload was in flight
                self.discard_binary(result.storage)
                raise ImageNotFoundException(image_id)

            previous = records[idx]
            records[idx] = previous.model_copy(update={
                "filename": filename,
                "url": result.url,
                "storage": result.storage,
                "size": len(data),
                "width": dims[0],
                "height": dims[1],
                "mimetype": content_type,
                "updated_at": utcnow(),
            })
            try:
                self._persist(records)
            except PersistenceException:
                self.discard_binary(result.storage)
                raise

        self.discard_binary(previous.storage)
        log.info("Replaced file for image %s", image_id)
        return records[idx]

    # ------------------------------
    # delete
    # ------------------------------

    def delete_image(self, image_id: str) -> DeleteResponse:
        """Removes the record first; binary cleanup afterwards is best-effort."""
        with self._lock:
            records = self.store.load_all()
            idx = self._find_index(records, image_id)
            if idx == -1:
                raise ImageNotFoundException(image_id)
            removed = records.pop(idx)
            self._persist(records)

        self.discard_binary(removed.storage)
        log.info("Deleted image %s", image_id)
        return DeleteResponse(id=removed.id)
