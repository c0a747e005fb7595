from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from pricing_portal.core.cache import QueryCache
from pricing_portal.core.errors import NotFoundError
from pricing_portal.database.connection import get_db
from pricing_portal.dependencies.auth import require_admin, require_auth
from pricing_portal.dependencies.providers import get_cache
from pricing_portal.schemas.category import CategoryCreate, CategoryResponse, CategoryUpdate
from pricing_portal.services.category_service import (
    create_category, delete_category, list_categories, update_category,
)

router = APIRouter(prefix="/api/categories", tags=["Categories"])


@router.get("", response_model=List[CategoryResponse], dependencies=[Depends(require_auth)])
def list_all(db: Session = Depends(get_db), cache: QueryCache = Depends(get_cache)):
    return cache.get_or_set(
        ("categories",),
        lambda: [CategoryResponse.model_validate(c).model_dump() for c in list_categories(db)],
    )


@router.post(
    "",
    response_model=CategoryResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_admin)],
)
def create(data: CategoryCreate, db: Session = Depends(get_db), cache: QueryCache = Depends(get_cache)):
    category = create_category(db, data)
    cache.invalidate("categories")
    return category


@router.put("/{category_id}", response_model=CategoryResponse, dependencies=[Depends(require_admin)])
def update(
    category_id: str,
    data: CategoryUpdate,
    db: Session = Depends(get_db),
    cache: QueryCache = Depends(get_cache),
):
    category = update_category(db, category_id, data)
    if not category:
        raise NotFoundError("Category not found")
    cache.invalidate("categories")
    return category


@router.delete("/{category_id}", dependencies=[Depends(require_admin)])
def delete(category_id: str, db: Session = Depends(get_db), cache: QueryCache = Depends(get_cache)):
    if not delete_category(db, category_id):
        raise NotFoundError("Category not found")
    cache.invalidate("categories")
    return {"message": "Category deleted"}
