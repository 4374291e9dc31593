"""In-memory transitions on the Recipe aggregate.

Nothing here touches the database or object storage. Each function mutates
one loaded Recipe and leaves persistence to the caller. JSON columns are
always reassigned (never mutated in place) so the ORM sees the change.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Optional, get_args

from pydantic import ValidationError

from ..errors import ImageNotFound, InvalidAction, InvariantViolation, ValidationFailed
from ..models import Recipe
from ..schemas import FieldUpdate, RecipeAction, TaggedAction
from ..storage.assets import StoredAsset

logger = logging.getLogger("recipebox.mutations")


# action tag -> payload model, derived from the closed union
ACTION_MODELS = {
    get_args(model.model_fields["action"].annotation)[0]: model
    for model in get_args(get_args(TaggedAction)[0])
}


def _describe(exc: ValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()))
        parts.append(f"{loc}: {err['msg']}" if loc else err["msg"])
    return "; ".join(parts)


def parse_recipe_action(body: Any) -> RecipeAction:
    """Validate a JSON PATCH body into exactly one action payload.

    Raises:
        InvalidAction: `action` is present but not a known tag
        ValidationFailed: payload is missing or has malformed fields
    """
    if not isinstance(body, dict):
        raise ValidationFailed("Request body must be a JSON object")

    tag = body.get("action")
    if tag is None:
        model = FieldUpdate
    elif isinstance(tag, str) and tag in ACTION_MODELS:
        model = ACTION_MODELS[tag]
    else:
        raise InvalidAction()

    try:
        return model.model_validate(body)
    except ValidationError as e:
        raise ValidationFailed(_describe(e)) from e


# --- Scalar fields ---

def like(recipe: Recipe) -> None:
    recipe.likes = (recipe.likes or 0) + 1


def assign_fields(recipe: Recipe, update: FieldUpdate) -> None:
    if update.name is not None:
        recipe.name = update.name
    if update.description is not None:
        recipe.description = update.description


# --- Lists ---

def _without_index(items: Optional[list], index: int) -> list:
    items = list(items or [])
    if 0 <= index < len(items):
        del items[index]
    else:
        logger.debug(f"Index {index} out of range for list of {len(items)}; nothing removed")
    return items


def add_ingredient(recipe: Recipe, text: str) -> None:
    recipe.ingredients = [*(recipe.ingredients or []), text]


def delete_ingredient(recipe: Recipe, index: int) -> None:
    recipe.ingredients = _without_index(recipe.ingredients, index)


def add_step(recipe: Recipe, text: str) -> None:
    recipe.steps = [*(recipe.steps or []), text]


def delete_step(recipe: Recipe, index: int) -> None:
    recipe.steps = _without_index(recipe.steps, index)


def add_note(recipe: Recipe, text: str, *, now: Optional[datetime] = None) -> None:
    created_at = (now or datetime.now(timezone.utc)).isoformat()
    recipe.notes = [*(recipe.notes or []), {"text": text, "created_at": created_at}]


def delete_note(recipe: Recipe, index: int) -> None:
    recipe.notes = _without_index(recipe.notes, index)


# --- Images ---

def _ensure_unreferenced(recipe: Recipe, storage_id: str) -> None:
    if storage_id in recipe.storage_ids:
        raise InvariantViolation(f"Asset {storage_id} already referenced by recipe {recipe.id}")


def find_gallery_image(recipe: Recipe, storage_id: str) -> dict:
    for img in recipe.gallery or []:
        if img.get("storage_id") == storage_id:
            return img
    raise ImageNotFound(storage_id)


def replace_main_image(recipe: Recipe, asset: StoredAsset) -> Optional[str]:
    """Point the primary image at a new asset. Returns the replaced storage id."""
    _ensure_unreferenced(recipe, asset.storage_id)
    previous = recipe.image_storage_id
    recipe.image_url = asset.url
    recipe.image_storage_id = asset.storage_id
    return previous


def append_gallery_image(recipe: Recipe, asset: StoredAsset) -> None:
    _ensure_unreferenced(recipe, asset.storage_id)
    recipe.gallery = [*(recipe.gallery or []), asset.as_dict()]


def remove_gallery_image(recipe: Recipe, storage_id: str) -> None:
    recipe.gallery = [img for img in (recipe.gallery or []) if img.get("storage_id") != storage_id]


def set_main_image(recipe: Recipe, storage_id: str) -> None:
    """Swap the chosen gallery image with the current primary.

    The old primary goes to the end of the gallery; if it never had a
    storage id it is dropped and the gallery shrinks by one.
    """
    chosen = find_gallery_image(recipe, storage_id)
    old_main = {"url": recipe.image_url, "storage_id": recipe.image_storage_id}

    gallery = [img for img in (recipe.gallery or []) if img.get("storage_id") != storage_id]
    if old_main["storage_id"]:
        gallery.append(old_main)

    recipe.image_url = chosen.get("url")
    recipe.image_storage_id = chosen["storage_id"]
    recipe.gallery = gallery
