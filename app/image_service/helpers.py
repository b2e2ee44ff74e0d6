import json
import logging
import re
import time
import uuid
from io import BytesIO
from typing import Any, Dict, List, Optional, Tuple

from PIL import Image, UnidentifiedImageError

log = logging.getLogger(__name__)

UNSAFE_FILENAME_CHARS = re.compile(r"[^A-Za-z0-9_.-]")

# Formats Pillow can open to read dimensions
RASTER_TYPES = {"image/png", "image/jpeg", "image/gif", "image/webp"}

def normalize_tags(tags: Any) -> List[str]:
    """
        Normalizes tags given as a comma separated string or a sequence.
        Entries are trimmed, blanks dropped and duplicates removed
        (case-sensitive), keeping first-seen order.
    """
    if not tags:
        return []
    if isinstance(tags, str):
        candidates = tags.split(",")
    elif isinstance(tags, (list, tuple)):
        candidates = [str(t) for t in tags]
    else:
        return []

    normalized = []
    for tag in candidates:
        tag = tag.strip()
        if tag and tag not in normalized:
            normalized.append(tag)
    return normalized

def generate_safe_filename(original_name: str) -> str:
    """Builds a storage-safe, collision-resistant name: <ms timestamp>_<8 hex>_<sanitized>."""
    safe_name = UNSAFE_FILENAME_CHARS.sub("_", original_name or "")
    timestamp = int(time.time() * 1000)
    suffix = uuid.uuid4().hex[:8]
    return f"{timestamp}_{suffix}_{safe_name}"

def parse_custom_data(custom: Any) -> Dict[str, Any]:
    """Parses user supplied custom metadata, falling back to {} on anything unparsable."""
    if custom is None or custom == "":
        return {}
    if isinstance(custom, dict):
        return custom
    if isinstance(custom, str):
        try:
            parsed = json.loads(custom)
        except ValueError:
            log.debug("Ignoring unparsable custom metadata")
            return {}
        return parsed if isinstance(parsed, dict) else {}
    return {}

def parse_dimension(value: Any) -> int:
    try:
        return max(0, int(value))
    except (TypeError, ValueError):
        return 0

def title_from_filename(original_name: str) -> str:
    return (original_name or "").split(".")[0]

def read_dimensions(data: bytes, content_type: str) -> Optional[Tuple[int, int]]:
    """Reads width/height from raster image bytes; None when Pillow cannot tell."""
    if content_type not in RASTER_TYPES:
        return None
    try:
        with Image.open(BytesIO(data)) as img:
            return img.size
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError):
        log.debug("Could not read dimensions for %s payload", content_type)
        return None
