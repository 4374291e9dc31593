"""Object storage gateways.

A gateway exposes:
- upload(data, filename=, content_type=) -> StoredAsset
- delete(storage_id)
- delete_many(storage_ids)

and raises StorageError on failure.
"""

from typing import Iterable, Optional, Protocol

from ..settings import settings
from .assets import StoredAsset


class StorageGateway(Protocol):
    def upload(self, data: bytes, *, filename: Optional[str] = None, content_type: Optional[str] = None) -> StoredAsset:
        ...

    def delete(self, storage_id: str) -> None:
        ...

    def delete_many(self, storage_ids: Iterable[str]) -> None:
        ...


_store: Optional[StorageGateway] = None


def get_store() -> StorageGateway:
    """Process-wide gateway selected by settings.storage_backend."""
    global _store
    if _store is None:
        if settings.storage_backend == "local":
            from .local import LocalStorage
            _store = LocalStorage(key_prefix=settings.object_key_prefix)
        else:
            from .s3_compat import get_s3_store
            _store = get_s3_store()
    return _store
