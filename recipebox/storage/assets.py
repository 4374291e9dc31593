import mimetypes
import uuid
from dataclasses import dataclass
from typing import Optional


@dataclass
class StoredAsset:
    """Result of an upload: where the asset is served and how to delete it."""
    url: str
    storage_id: str

    def as_dict(self) -> dict:
        return {"url": self.url, "storage_id": self.storage_id}


def new_storage_key(prefix: str, filename: Optional[str] = None, content_type: Optional[str] = None) -> str:
    """Build a unique object key, e.g. recipes/3f2a....jpg"""
    ext = ""
    if filename and "." in filename:
        ext = "." + filename.rsplit(".", 1)[1].lower()
    elif content_type:
        ext = mimetypes.guess_extension(content_type) or ""
    prefix = prefix.strip("/")
    key = f"{uuid.uuid4().hex}{ext}"
    return f"{prefix}/{key}" if prefix else key
