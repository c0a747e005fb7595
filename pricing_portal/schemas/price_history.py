from pydantic import BaseModel
from datetime import datetime
from typing import List, Optional


class PriceHistoryResponse(BaseModel):
    id: str
    product_id: str
    user_id: Optional[str] = None
    old_price: Optional[float] = None
    new_price: float
    change_type: str
    changed_by: Optional[str] = None
    changed_at: datetime
    reason: Optional[str] = None

    class Config:
        from_attributes = True


class PriceHistoryPageMeta(BaseModel):
    total: int
    page: int
    page_size: int
    total_pages: int


class PriceHistoryPageResponse(BaseModel):
    items: List[PriceHistoryResponse]
    meta: PriceHistoryPageMeta
