"""Recipe mutation dispatcher.

Applies exactly one change to a recipe and sequences the object-store side
effects around the single persist call:

- uploads happen before the document references the new asset
- a gallery image is deleted from storage before its reference is removed
- a replaced primary image is deleted only after the new state is saved

A failure part-way may orphan an asset in storage; it never leaves the
saved document pointing at an asset that was not uploaded.
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, Iterable, Optional

from sqlalchemy.orm import Session

from ..errors import InternalError, RecipeBoxError, StorageError, ValidationFailed
from ..infra.recipe_lock import recipe_mutation_lock
from ..models import Recipe
from ..schemas import (
    AddIngredientAction,
    AddNoteAction,
    AddStepAction,
    DeleteGalleryImageAction,
    DeleteIngredientAction,
    DeleteNoteAction,
    DeleteStepAction,
    FieldUpdate,
    LikeAction,
    RecipeAction,
    SetMainImageAction,
    UploadFailure,
)
from ..storage import StorageGateway
from . import recipe_actions as actions
from .categories import get_category
from .recipe_store import load_recipe, remove_recipe, save_recipe

logger = logging.getLogger("recipebox.mutations")


@dataclass
class UploadedFile:
    filename: Optional[str]
    content_type: Optional[str]
    data: bytes

    @property
    def is_empty(self) -> bool:
        return not self.data


@dataclass
class UploadOutcome:
    recipe: Recipe
    failures: list[UploadFailure] = field(default_factory=list)

    @property
    def complete(self) -> bool:
        return not self.failures


def _delete_gallery_image(recipe: Recipe, action: DeleteGalleryImageAction, storage: StorageGateway) -> None:
    storage_id = action.image.storage_id
    actions.find_gallery_image(recipe, storage_id)
    storage.delete(storage_id)
    actions.remove_gallery_image(recipe, storage_id)


_ACTION_HANDLERS: dict[type, Callable[[Recipe, RecipeAction, StorageGateway], None]] = {
    LikeAction: lambda recipe, action, storage: actions.like(recipe),
    AddIngredientAction: lambda recipe, action, storage: actions.add_ingredient(recipe, action.ingredient),
    DeleteIngredientAction: lambda recipe, action, storage: actions.delete_ingredient(recipe, action.index),
    AddStepAction: lambda recipe, action, storage: actions.add_step(recipe, action.step),
    DeleteStepAction: lambda recipe, action, storage: actions.delete_step(recipe, action.index),
    AddNoteAction: lambda recipe, action, storage: actions.add_note(recipe, action.note),
    DeleteNoteAction: lambda recipe, action, storage: actions.delete_note(recipe, action.index),
    SetMainImageAction: lambda recipe, action, storage: actions.set_main_image(recipe, action.image.storage_id),
    DeleteGalleryImageAction: _delete_gallery_image,
    FieldUpdate: lambda recipe, action, storage: actions.assign_fields(recipe, action),
}


def _discard_assets(storage: StorageGateway, storage_ids: Iterable[str], *, recipe_id: str) -> list[str]:
    """Best-effort delete. Returns the ids left orphaned in storage."""
    ids = [s for s in storage_ids if s]
    if not ids:
        return []
    try:
        storage.delete_many(ids)
    except StorageError as e:
        logger.warning(f"Orphaned {len(ids)} asset(s) for recipe {recipe_id}: {ids} ({e.detail})")
        return ids
    return []


def _as_internal(db: Session, recipe_id: str) -> InternalError:
    db.rollback()
    logger.exception(f"Unexpected failure mutating recipe {recipe_id}")
    return InternalError()


def apply_action(
    db: Session,
    storage: StorageGateway,
    *,
    recipe_id: str,
    owner_id: str,
    action: RecipeAction,
) -> Recipe:
    """Load, apply one action, persist. Returns the saved recipe."""
    try:
        with recipe_mutation_lock(recipe_id):
            recipe = load_recipe(db, recipe_id, owner_id=owner_id)
            _ACTION_HANDLERS[type(action)](recipe, action, storage)
            logger.info(f"Applied {getattr(action, 'action', 'field-update')} to recipe {recipe_id}")
            return save_recipe(db, recipe)
    except RecipeBoxError:
        db.rollback()
        raise
    except Exception as e:
        raise _as_internal(db, recipe_id) from e


def _upload_one(storage: StorageGateway, upload: UploadedFile, *, field_name: str, failures: list[UploadFailure]):
    try:
        return storage.upload(upload.data, filename=upload.filename, content_type=upload.content_type)
    except StorageError as e:
        logger.warning(f"Upload of {upload.filename or '<unnamed>'} ({field_name}) failed: {e.detail}")
        failures.append(UploadFailure(field=field_name, filename=upload.filename, message=e.message))
        return None


def apply_uploads(
    db: Session,
    storage: StorageGateway,
    *,
    recipe_id: str,
    owner_id: str,
    main_file: Optional[UploadedFile] = None,
    gallery_files: Iterable[UploadedFile] = (),
) -> UploadOutcome:
    """Upload a new primary image and/or gallery images, then persist once.

    Each file succeeds or fails on its own; the returned outcome holds the
    saved recipe (with every asset that did upload) and the failures.
    """
    uploaded: list[str] = []
    try:
        with recipe_mutation_lock(recipe_id):
            recipe = load_recipe(db, recipe_id, owner_id=owner_id)
            failures: list[UploadFailure] = []
            replaced: Optional[str] = None

            if main_file is not None and not main_file.is_empty:
                asset = _upload_one(storage, main_file, field_name="file", failures=failures)
                if asset:
                    uploaded.append(asset.storage_id)
                    replaced = actions.replace_main_image(recipe, asset)

            for upload in gallery_files:
                if upload.is_empty:
                    continue
                asset = _upload_one(storage, upload, field_name="galleryFiles", failures=failures)
                if asset:
                    uploaded.append(asset.storage_id)
                    actions.append_gallery_image(recipe, asset)

            recipe = save_recipe(db, recipe)
            uploaded = []
    except RecipeBoxError:
        db.rollback()
        _discard_assets(storage, uploaded, recipe_id=recipe_id)
        raise
    except Exception as e:
        err = _as_internal(db, recipe_id)
        _discard_assets(storage, uploaded, recipe_id=recipe_id)
        raise err from e

    if replaced:
        _discard_assets(storage, [replaced], recipe_id=recipe_id)
    return UploadOutcome(recipe=recipe, failures=failures)


def create_recipe(
    db: Session,
    storage: StorageGateway,
    *,
    owner_id: str,
    name: Optional[str],
    description: Optional[str],
    category_id: Optional[str],
    image: Optional[UploadedFile],
) -> Recipe:
    """Create a recipe with its mandatory primary image and category."""
    name = (name or "").strip()
    if not name:
        raise ValidationFailed("Name is required")
    if not category_id:
        raise ValidationFailed("Category ID is required")
    if image is None or image.is_empty:
        raise ValidationFailed("Image file is required")

    get_category(db, category_id, owner_id=owner_id)
    asset = storage.upload(image.data, filename=image.filename, content_type=image.content_type)

    recipe = Recipe(
        owner_id=owner_id,
        category_id=category_id,
        name=name,
        description=description,
        image_url=asset.url,
        image_storage_id=asset.storage_id,
        gallery=[],
        ingredients=[],
        steps=[],
        notes=[],
        likes=0,
    )
    try:
        recipe = save_recipe(db, recipe)
    except Exception as e:
        err = _as_internal(db, "<new>")
        _discard_assets(storage, [asset.storage_id], recipe_id="<new>")
        raise err from e
    logger.info(f"Created recipe {recipe.id} in category {category_id}")
    return recipe


def delete_recipe(
    db: Session,
    storage: StorageGateway,
    *,
    recipe_id: str,
    owner_id: str,
) -> list[str]:
    """Delete the recipe row, then every asset it owned.

    Returns asset ids that could not be removed from storage.
    """
    with recipe_mutation_lock(recipe_id):
        recipe = load_recipe(db, recipe_id, owner_id=owner_id)
        asset_ids = recipe.storage_ids
        remove_recipe(db, recipe)

    logger.info(f"Deleted recipe {recipe_id}; removing {len(asset_ids)} asset(s)")
    return _discard_assets(storage, asset_ids, recipe_id=recipe_id)
