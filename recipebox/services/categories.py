import logging

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from ..errors import NotFound
from ..models import Category, Recipe

logger = logging.getLogger("recipebox.categories")


def get_category(db: Session, category_id: str, *, owner_id: str) -> Category:
    category = db.get(Category, category_id)
    if category is None:
        raise NotFound("Category", category_id, reason="missing")
    if category.owner_id != owner_id:
        raise NotFound("Category", category_id, reason="not_owned")
    return category


def list_categories(db: Session, *, owner_id: str) -> list[Category]:
    stmt = select(Category).where(Category.owner_id == owner_id).order_by(Category.name)
    return list(db.scalars(stmt))


def create_category(db: Session, *, owner_id: str, name: str) -> Category:
    category = Category(owner_id=owner_id, name=name)
    db.add(category)
    db.commit()
    db.refresh(category)
    return category


def rename_category(db: Session, category_id: str, *, owner_id: str, name: str) -> Category:
    category = get_category(db, category_id, owner_id=owner_id)
    category.name = name
    db.commit()
    db.refresh(category)
    return category


def delete_category(db: Session, category_id: str, *, owner_id: str) -> int:
    """Delete an owned category and detach the recipes that referenced it.

    The two writes are separate commits. If the second one never runs,
    recipes keep a dangling category_id, which readers treat as advisory.

    Returns:
        Number of recipes whose category_id was cleared.
    """
    category = get_category(db, category_id, owner_id=owner_id)
    db.delete(category)
    db.commit()

    result = db.execute(
        update(Recipe)
        .where(Recipe.category_id == category_id)
        .values(category_id=None)
    )
    db.commit()
    detached = result.rowcount or 0
    logger.info(f"Deleted category {category_id}; detached {detached} recipe(s)")
    return detached
