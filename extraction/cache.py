# extraction/cache.py
import hashlib
import json
import os
from tempfile import NamedTemporaryFile
from typing import Any, Dict, Optional

from catalog.errors import CacheIOError
from catalog.logger import get_logger

logger = get_logger(__name__)


def hash_description(description: str) -> str:
    return hashlib.sha256(description.encode("utf-8")).hexdigest()


class ExtractionCache:
    """
    Extraction results keyed by the SHA-256 of the raw description, one JSON
    file per key. Entries are written once and never evicted. Any I/O or
    decode failure is logged and reported as a miss.
    """

    def __init__(self, cache_dir: str):
        self.cache_dir = cache_dir

    def path_for(self, description: str) -> str:
        return os.path.join(self.cache_dir, f"{hash_description(description)}.json")

    def _read(self, path: str) -> Optional[Dict[str, Any]]:
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            return None
        except (OSError, ValueError) as e:
            raise CacheIOError(f"Failed to read cache entry {path}: {e}") from e
        if not isinstance(data, dict):
            raise CacheIOError(f"Cache entry {path} is not a JSON object")
        return data

    def _write(self, path: str, result: Dict[str, Any]):
        tmp_file = None
        try:
            os.makedirs(self.cache_dir, exist_ok=True)
            with NamedTemporaryFile(
                "w", encoding="utf-8", delete=False, dir=self.cache_dir, suffix=".tmp"
            ) as tmp:
                tmp_file = tmp.name
                json.dump(result, tmp)
                tmp.flush()
                os.fsync(tmp.fileno())
            os.replace(tmp_file, path)
        except OSError as e:
            if tmp_file and os.path.exists(tmp_file):
                os.unlink(tmp_file)
            raise CacheIOError(f"Failed to write cache entry {path}: {e}") from e

    def get(self, description: str) -> Optional[Dict[str, Any]]:
        path = self.path_for(description)
        try:
            return self._read(path)
        except CacheIOError as e:
            logger.warning("%s; treating as cache miss.", e)
            return None

    def put(self, description: str, result: Dict[str, Any]) -> bool:
        path = self.path_for(description)
        try:
            self._write(path, result)
        except CacheIOError as e:
            logger.warning("%s", e)
            return False
        logger.debug("Cached extraction result at %s", path)
        return True
