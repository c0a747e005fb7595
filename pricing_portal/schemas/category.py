from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

SLUG_PATTERN = r"^[a-z0-9-]+$"


class CategoryBase(BaseModel):
    name: str = Field(min_length=1)
    slug: str = Field(min_length=1, pattern=SLUG_PATTERN)
    description: Optional[str] = None
    display_order: int = 0


class CategoryCreate(CategoryBase):
    pass


class CategoryUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    slug: Optional[str] = Field(default=None, min_length=1, pattern=SLUG_PATTERN)
    description: Optional[str] = None
    display_order: Optional[int] = None


class CategoryResponse(CategoryBase):
    id: str
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
