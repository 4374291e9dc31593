"""Pydantic schemas for Recipe Box API.

Request/response models for:
- Categories
- Recipes (images, gallery, notes)
- PATCH actions (closed union tagged by `action`)
- Response envelopes
"""

from datetime import datetime
from typing import Annotated, Literal, Optional, Union

from pydantic import AliasChoices, BaseModel, Field, StrictInt, StringConstraints


NonEmptyStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


# --- Category ---

class CategoryIn(BaseModel):
    name: Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=120)]


class CategoryOut(BaseModel):
    id: str
    owner_id: str
    name: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# --- Recipe ---

class ImageRef(BaseModel):
    url: Optional[str] = None
    storage_id: Optional[str] = None


class NoteOut(BaseModel):
    text: str
    created_at: datetime


class RecipeOut(BaseModel):
    id: str
    owner_id: str
    category_id: Optional[str]
    name: str
    description: Optional[str]
    image: ImageRef
    gallery: list[ImageRef] = []
    ingredients: list[str] = []
    steps: list[str] = []
    notes: list[NoteOut] = []
    likes: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# --- PATCH actions ---

class _Action(BaseModel):
    """Base for action payloads. Unknown keys are ignored."""


class ImageSelector(BaseModel):
    storage_id: NonEmptyStr = Field(
        validation_alias=AliasChoices("storage_id", "storageId", "public_id")
    )


class LikeAction(_Action):
    action: Literal["like"]


class AddIngredientAction(_Action):
    action: Literal["add-ingredient"]
    ingredient: NonEmptyStr


class DeleteIngredientAction(_Action):
    action: Literal["delete-ingredient"]
    index: StrictInt = Field(..., ge=0)


class AddStepAction(_Action):
    action: Literal["add-step"]
    step: NonEmptyStr


class DeleteStepAction(_Action):
    action: Literal["delete-step"]
    index: StrictInt = Field(..., ge=0)


class AddNoteAction(_Action):
    action: Literal["add-note"]
    note: NonEmptyStr


class DeleteNoteAction(_Action):
    action: Literal["delete-note"]
    index: StrictInt = Field(..., ge=0)


class SetMainImageAction(_Action):
    action: Literal["set-main-image"]
    image: ImageSelector


class DeleteGalleryImageAction(_Action):
    action: Literal["delete-gallery-image"]
    image: ImageSelector


class FieldUpdate(_Action):
    """No `action` key: assign name/description directly."""
    name: Optional[Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=200)]] = None
    description: Optional[str] = None


TaggedAction = Annotated[
    Union[
        LikeAction,
        AddIngredientAction,
        DeleteIngredientAction,
        AddStepAction,
        DeleteStepAction,
        AddNoteAction,
        DeleteNoteAction,
        SetMainImageAction,
        DeleteGalleryImageAction,
    ],
    Field(discriminator="action"),
]

RecipeAction = Union[TaggedAction, FieldUpdate]


# --- Uploads ---

class UploadFailure(BaseModel):
    field: Literal["file", "galleryFiles"]
    filename: Optional[str] = None
    message: str


# --- Envelopes ---

class RecipeEnvelope(BaseModel):
    success: bool = True
    data: RecipeOut
    message: Optional[str] = None


class RecipeListEnvelope(BaseModel):
    success: bool = True
    data: list[RecipeOut]


class UploadEnvelope(BaseModel):
    success: bool = True
    data: RecipeOut
    failures: list[UploadFailure] = []
    message: Optional[str] = None


class CategoryEnvelope(BaseModel):
    success: bool = True
    data: CategoryOut
    message: Optional[str] = None


class CategoryListEnvelope(BaseModel):
    success: bool = True
    data: list[CategoryOut]


class MessageEnvelope(BaseModel):
    success: bool = True
    message: Optional[str] = None
