"""FastAPI dependencies for Recipe Box API.

Provides:
- Owner resolution (header → env default)
- Object storage gateway
"""

from typing import Optional

from fastapi import Header

from .settings import settings
from .storage import StorageGateway, get_store


def get_owner_id(
    x_owner_id: Optional[str] = Header(None, alias="X-Owner-Id"),
) -> str:
    """Resolve the caller's owner id.

    Authentication happens upstream; whatever sits in front of the API puts
    the resolved identity in X-Owner-Id. Without it we fall back to
    settings.default_owner_id (single-user local mode).
    """
    if x_owner_id and x_owner_id.strip():
        return x_owner_id.strip()
    return settings.default_owner_id


def get_storage() -> StorageGateway:
    return get_store()
