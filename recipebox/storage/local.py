import os
import logging
from pathlib import Path
from typing import Iterable, Optional

from ..errors import StorageError
from ..settings import settings
from .assets import StoredAsset, new_storage_key

logger = logging.getLogger("recipebox.storage")


def media_root() -> Path:
    return Path(settings.media_root) if settings.media_root else (Path(os.getcwd()) / "media")


class LocalStorage:
    """Disk-backed store for local development. Files are served at /media."""

    def __init__(self, root: Optional[Path] = None, key_prefix: str = "recipes"):
        self.root = root or media_root()
        self.key_prefix = key_prefix
        self.root.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        # Ensure strict path safety (simple check)
        if ".." in key or key.startswith("/"):
            raise StorageError(f"Invalid storage key: {key}")
        return self.root / key

    def upload(self, data: bytes, *, filename: Optional[str] = None, content_type: Optional[str] = None) -> StoredAsset:
        key = new_storage_key(self.key_prefix, filename, content_type)
        file_path = self._path(key)
        try:
            file_path.parent.mkdir(parents=True, exist_ok=True)
            with open(file_path, "wb") as f:
                f.write(data)
        except OSError as e:
            raise StorageError(f"write {file_path} failed: {e}") from e

        logger.info(f"Saved {len(data)} bytes to {file_path}")
        return StoredAsset(url=f"/media/{key}", storage_id=key)

    def delete(self, storage_id: str) -> None:
        file_path = self._path(storage_id)
        try:
            file_path.unlink(missing_ok=True)
        except OSError as e:
            raise StorageError(f"unlink {file_path} failed: {e}") from e
        logger.info(f"Deleted file {file_path}")

    def delete_many(self, storage_ids: Iterable[str]) -> None:
        for storage_id in storage_ids:
            if storage_id:
                self.delete(storage_id)
