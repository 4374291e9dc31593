from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..db import get_db
from ..deps import get_owner_id
from ..schemas import (
    CategoryEnvelope,
    CategoryIn,
    CategoryListEnvelope,
    CategoryOut,
    MessageEnvelope,
)
from ..services import categories as category_service

router = APIRouter(prefix="/categories", tags=["categories"])


@router.get("", response_model=CategoryListEnvelope)
def list_categories(
    db: Session = Depends(get_db),
    owner_id: str = Depends(get_owner_id),
):
    """List the owner's categories sorted by name."""
    rows = category_service.list_categories(db, owner_id=owner_id)
    return CategoryListEnvelope(data=[CategoryOut.model_validate(c) for c in rows])


@router.post("", response_model=CategoryEnvelope, status_code=201)
def create_category(
    data: CategoryIn,
    db: Session = Depends(get_db),
    owner_id: str = Depends(get_owner_id),
):
    category = category_service.create_category(db, owner_id=owner_id, name=data.name)
    return CategoryEnvelope(data=CategoryOut.model_validate(category), message="Category created")


@router.get("/{category_id}", response_model=CategoryEnvelope)
def get_category(
    category_id: str,
    db: Session = Depends(get_db),
    owner_id: str = Depends(get_owner_id),
):
    category = category_service.get_category(db, category_id, owner_id=owner_id)
    return CategoryEnvelope(data=CategoryOut.model_validate(category))


@router.put("/{category_id}", response_model=CategoryEnvelope)
def rename_category(
    category_id: str,
    data: CategoryIn,
    db: Session = Depends(get_db),
    owner_id: str = Depends(get_owner_id),
):
    category = category_service.rename_category(db, category_id, owner_id=owner_id, name=data.name)
    return CategoryEnvelope(data=CategoryOut.model_validate(category), message="Category updated successfully")


@router.delete("/{category_id}", response_model=MessageEnvelope)
def delete_category(
    category_id: str,
    db: Session = Depends(get_db),
    owner_id: str = Depends(get_owner_id),
):
    """Delete a category. Its recipes stay, with category_id cleared."""
    category_service.delete_category(db, category_id, owner_id=owner_id)
    return MessageEnvelope(message="Category deleted successfully")
