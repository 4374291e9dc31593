"""Recipes API router.

Endpoints:
- GET /api/recipes - List the owner's recipes (optionally by category)
- POST /api/recipes - Create recipe (multipart, primary image required)
- GET /api/recipes/{id} - Get recipe
- PATCH /api/recipes/{id} - Apply one action (JSON) or upload images (multipart)
- DELETE /api/recipes/{id} - Delete recipe and its stored images
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Query, Request, UploadFile
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.util import get_remote_address
from sqlalchemy.orm import Session
from starlette.datastructures import UploadFile as StarletteUploadFile

from ..db import get_db
from ..deps import get_owner_id, get_storage
from ..errors import ValidationFailed
from ..models import Recipe
from ..schemas import (
    ImageRef,
    MessageEnvelope,
    NoteOut,
    RecipeEnvelope,
    RecipeListEnvelope,
    RecipeOut,
    UploadEnvelope,
)
from ..services import mutations
from ..services.mutations import UploadedFile
from ..services.recipe_actions import parse_recipe_action
from ..services.recipe_store import list_recipes as list_owner_recipes, load_recipe
from ..settings import settings
from ..storage import StorageGateway

router = APIRouter()
limiter = Limiter(key_func=get_remote_address)
logger = logging.getLogger("recipebox.recipes")


def _recipe_to_out(recipe: Recipe) -> RecipeOut:
    return RecipeOut(
        id=recipe.id,
        owner_id=recipe.owner_id,
        category_id=recipe.category_id,
        name=recipe.name,
        description=recipe.description,
        image=ImageRef(url=recipe.image_url, storage_id=recipe.image_storage_id),
        gallery=[ImageRef(**img) for img in (recipe.gallery or [])],
        ingredients=list(recipe.ingredients or []),
        steps=list(recipe.steps or []),
        notes=[NoteOut(**note) for note in (recipe.notes or [])],
        likes=recipe.likes or 0,
        created_at=recipe.created_at,
        updated_at=recipe.updated_at,
    )


async def _read_upload(value) -> Optional[UploadedFile]:
    # Browsers send an empty string for a file input left blank
    if not isinstance(value, StarletteUploadFile):
        return None
    data = await value.read()
    return UploadedFile(filename=value.filename, content_type=value.content_type, data=data)


@router.get("/recipes", response_model=RecipeListEnvelope)
def list_recipes(
    category_id: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    owner_id: str = Depends(get_owner_id),
):
    """List the owner's recipes, newest first."""
    recipes = list_owner_recipes(db, owner_id=owner_id, category_id=category_id)
    return RecipeListEnvelope(data=[_recipe_to_out(r) for r in recipes])


@router.post("/recipes", response_model=RecipeEnvelope, status_code=201)
@limiter.limit(settings.rate_limit_mutations)
def create_recipe(
    request: Request,  # Required for rate limiter
    name: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    category_id: Optional[str] = Form(None, alias="categoryId"),
    file: Optional[UploadFile] = File(None),
    db: Session = Depends(get_db),
    storage: StorageGateway = Depends(get_storage),
    owner_id: str = Depends(get_owner_id),
):
    """Create a recipe. The primary image and category are mandatory."""
    image = None
    if file is not None:
        image = UploadedFile(filename=file.filename, content_type=file.content_type, data=file.file.read())

    recipe = mutations.create_recipe(
        db,
        storage,
        owner_id=owner_id,
        name=name,
        description=description.strip() if description else None,
        category_id=category_id,
        image=image,
    )
    return RecipeEnvelope(data=_recipe_to_out(recipe), message="Recipe created")


@router.get("/recipes/{recipe_id}", response_model=RecipeEnvelope)
def get_recipe(
    recipe_id: str,
    db: Session = Depends(get_db),
    owner_id: str = Depends(get_owner_id),
):
    recipe = load_recipe(db, recipe_id, owner_id=owner_id)
    return RecipeEnvelope(data=_recipe_to_out(recipe))


@router.patch("/recipes/{recipe_id}")
@limiter.limit(settings.rate_limit_mutations)
async def update_recipe(
    request: Request,
    recipe_id: str,
    db: Session = Depends(get_db),
    storage: StorageGateway = Depends(get_storage),
    owner_id: str = Depends(get_owner_id),
):
    """Apply exactly one change to a recipe.

    - multipart/form-data: `file` (new primary image) and/or `galleryFiles`
    - JSON: `{"action": ..., ...payload}`, or `{name, description}` with no action
    """
    content_type = request.headers.get("content-type", "")

    if content_type.startswith("multipart/form-data"):
        form = await request.form()
        main_file = await _read_upload(form.get("file"))
        gallery_files = []
        for value in form.getlist("galleryFiles"):
            upload = await _read_upload(value)
            if upload is not None:
                gallery_files.append(upload)

        outcome = await run_in_threadpool(
            mutations.apply_uploads,
            db,
            storage,
            recipe_id=recipe_id,
            owner_id=owner_id,
            main_file=main_file,
            gallery_files=gallery_files,
        )
        envelope = UploadEnvelope(
            success=outcome.complete,
            data=_recipe_to_out(outcome.recipe),
            failures=outcome.failures,
            message=None if outcome.complete else f"{len(outcome.failures)} file(s) failed to upload",
        )
        return JSONResponse(
            status_code=200 if outcome.complete else 207,
            content=envelope.model_dump(mode="json"),
        )

    try:
        body = await request.json()
    except ValueError:
        raise ValidationFailed("Request body must be valid JSON")

    action = parse_recipe_action(body)
    recipe = await run_in_threadpool(
        mutations.apply_action,
        db,
        storage,
        recipe_id=recipe_id,
        owner_id=owner_id,
        action=action,
    )
    return RecipeEnvelope(data=_recipe_to_out(recipe))


@router.delete("/recipes/{recipe_id}", response_model=MessageEnvelope)
def delete_recipe(
    recipe_id: str,
    db: Session = Depends(get_db),
    storage: StorageGateway = Depends(get_storage),
    owner_id: str = Depends(get_owner_id),
):
    """Delete a recipe and every image it owns."""
    orphaned = mutations.delete_recipe(db, storage, recipe_id=recipe_id, owner_id=owner_id)
    if orphaned:
        return MessageEnvelope(message=f"Recipe deleted; {len(orphaned)} image(s) could not be removed from storage")
    return MessageEnvelope(message="Recipe deleted")
