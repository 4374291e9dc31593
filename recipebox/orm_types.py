# recipebox/orm_types.py
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.types import JSON


def JSONDocument():
    """Platform-independent JSON column type.

    - PostgreSQL: JSONB
    - SQLite (tests): JSON stored as text
    """
    return JSON().with_variant(JSONB(), "postgresql")
