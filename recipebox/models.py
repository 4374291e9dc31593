"""SQLAlchemy ORM models for Recipe Box.

Tables:
- categories: Owner-scoped grouping of recipes
- recipes: The recipe aggregate. Images, ingredients, steps and notes live
  in JSON columns so every mutation rewrites one row.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import String, DateTime, Text, Integer, Index, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from .db import Base
from .orm_types import JSONDocument


def generate_uuid() -> str:
    return str(uuid.uuid4())


class Category(Base):
    """Owner-scoped category. Recipes reference it weakly (no FK)."""
    __tablename__ = "categories"
    __table_args__ = (
        Index("ix_categories_owner_id", "owner_id"),
    )

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=generate_uuid
    )
    owner_id: Mapped[str] = mapped_column(String(64), nullable=False)
    name: Mapped[str] = mapped_column(String(120), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )


class Recipe(Base):
    """Recipe aggregate owned by exactly one owner."""
    __tablename__ = "recipes"
    __table_args__ = (
        Index("ix_recipes_owner_id", "owner_id"),
        Index("ix_recipes_category_id", "category_id"),
        CheckConstraint("likes >= 0", name="ck_recipes_likes_non_negative"),
    )

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=generate_uuid
    )
    owner_id: Mapped[str] = mapped_column(String(64), nullable=False)
    # Weak reference: cleared when the category is deleted
    category_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Primary image
    image_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    image_storage_id: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    # [{"url": ..., "storage_id": ...}]
    gallery: Mapped[list[dict]] = mapped_column(JSONDocument(), nullable=False, default=list)
    ingredients: Mapped[list[str]] = mapped_column(JSONDocument(), nullable=False, default=list)
    steps: Mapped[list[str]] = mapped_column(JSONDocument(), nullable=False, default=list)
    # [{"text": ..., "created_at": iso8601}]
    notes: Mapped[list[dict]] = mapped_column(JSONDocument(), nullable=False, default=list)

    likes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    @property
    def storage_ids(self) -> list[str]:
        """Every asset id this recipe owns: primary first, then gallery."""
        ids = [self.image_storage_id] if self.image_storage_id else []
        ids.extend(img["storage_id"] for img in (self.gallery or []) if img.get("storage_id"))
        return ids
