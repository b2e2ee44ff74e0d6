import json
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Sequence
from pydantic import ValidationError
from app.image_service.models import ImageRecord
import logging

log = logging.getLogger(__name__)

def _parse_records(raw: Any, source: str) -> List[ImageRecord]:
    if not isinstance(raw, list):
        log.warning("Record document %s is not a list, treating store as empty", source)
        return []
    records = []
    for item in raw:
        try:
            records.append(ImageRecord.model_validate(item))
        except ValidationError as e:
            log.warning("Skipping invalid record in %s: %s", source, e)
    return records

def _dump_records(records: Sequence[ImageRecord]) -> List[Dict[str, Any]]:
    return [r.model_dump(mode="json", by_alias=True) for r in records]

# -------------------------
# JSON document store
# -------------------------
class JSONRecordStore:
    """
        Keeps every image record in one JSON array on disk.

        Reads degrade to an empty store when the document is missing or
        corrupt; writes go through a ``.tmp`` sibling and an atomic rename.
    """
    backend = "json"

    def __init__(self, path):
        self.path = Path(path)
        self.tmp_path = self.path.with_name(self.path.name + ".tmp")

    def initialize(self):
        self.path.parent.mkdir(parents=True, exist_ok=True)
        if not self.path.exists():
            self.path.write_text("[]", encoding="utf-8")
            log.info("Created empty record store at %s", self.path)

    def load_all(self) -> List[ImageRecord]:
        try:
            with self.path.open("r", encoding="utf-8") as handle:
                raw = json.load(handle)
        except FileNotFoundError:
            return []
        except (OSError, ValueError) as e:
            log.warning("Failed to read record store %s, treating as empty: %s", self.path, e)
            return []
        return _parse_records(raw, str(self.path))

    def save_all(self, records: Sequence[ImageRecord]) -> None:
        payload = json.dumps(_dump_records(records), ensure_ascii=False, indent=2)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        try:
            with self.tmp_path.open("w", encoding="utf-8") as handle:
                handle.write(payload)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(self.tmp_path, self.path)
        except OSError:
            self.tmp_path.unlink(missing_ok=True)
            raise
        log.debug("Persisted %d records to %s", len(records), self.path)

    def describe(self) -> Dict[str, Any]:
        exists = self.path.exists()
        stat = self.path.stat() if exists else None
        return {
            "backend": self.backend,
            "path": str(self.path),
            "exists": exists,
            "size": stat.st_size if stat else 0,
            "modified": datetime.fromtimestamp(stat.st_mtime, timezone.utc).isoformat() if stat else None,
        }

# -------------------------
# In-memory store
# -------------------------
class MemoryRecordStore:
    """Process-local store with the same contract; nothing survives a restart."""
    backend = "memory"

    def __init__(self, records: Sequence[ImageRecord] = ()):
        self._records = _dump_records(records)

    def initialize(self):
        log.info("Using in-memory record store")

    def load_all(self) -> List[ImageRecord]:
        return _parse_records(self._records, "memory")

    def save_all(self, records: Sequence[ImageRecord]) -> None:
        self._records = _dump_records(records)

    def describe(self) -> Dict[str, Any]:
        return {
            "backend": self.backend,
            "path": None,
            "exists": True,
            "size": len(json.dumps(self._records)),
            "modified": None,
        }
