"""Persistence for the Recipe aggregate.

A recipe is always written as a whole row in one commit; callers load,
mutate in memory, then save.
"""

from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..errors import NotFound
from ..models import Recipe


def load_recipe(db: Session, recipe_id: str, *, owner_id: str) -> Recipe:
    """Load a recipe scoped to its owner.

    Raises NotFound with reason "missing" or "not_owned"; both render as
    the same 404.
    """
    recipe = db.get(Recipe, recipe_id)
    if recipe is None:
        raise NotFound("Recipe", recipe_id, reason="missing")
    if recipe.owner_id != owner_id:
        raise NotFound("Recipe", recipe_id, reason="not_owned")
    return recipe


def save_recipe(db: Session, recipe: Recipe) -> Recipe:
    db.add(recipe)
    db.commit()
    db.refresh(recipe)
    return recipe


def remove_recipe(db: Session, recipe: Recipe) -> None:
    db.delete(recipe)
    db.commit()


def list_recipes(db: Session, *, owner_id: str, category_id: Optional[str] = None) -> list[Recipe]:
    stmt = select(Recipe).where(Recipe.owner_id == owner_id)
    if category_id:
        stmt = stmt.where(Recipe.category_id == category_id)
    stmt = stmt.order_by(Recipe.created_at.desc(), Recipe.id)
    return list(db.scalars(stmt))
