import math
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from pricing_portal.database.connection import get_db
from pricing_portal.dependencies.auth import require_auth, require_self_or_admin
from pricing_portal.enums.statuses import PriceChangeType
from pricing_portal.schemas.price_history import (
    PriceHistoryPageMeta,
    PriceHistoryPageResponse,
    PriceHistoryResponse,
)
from pricing_portal.schemas.user import CallerIdentity
from pricing_portal.services.price_history_service import MAX_PAGE_SIZE, get_price_history

router = APIRouter(prefix="/api/price-history", tags=["Price History"])


@router.get("", response_model=PriceHistoryPageResponse)
def list_history(
    product_id: Optional[str] = None,
    user_id: Optional[str] = None,
    change_type: Optional[PriceChangeType] = None,
    from_date: Optional[datetime] = None,
    to_date: Optional[datetime] = None,
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=MAX_PAGE_SIZE),
    db: Session = Depends(get_db),
    caller: CallerIdentity = Depends(require_auth),
):
    """
    Paginated price changes, newest first.
    Clients only ever see their own entries.
    """
    if not caller.is_admin:
        if user_id is not None:
            require_self_or_admin(caller, user_id, "Forbidden - Cannot access other client history")
        user_id = caller.id

    items, total = get_price_history(
        db,
        product_id=product_id,
        user_id=user_id,
        change_type=change_type.value if change_type else None,
        from_date=from_date,
        to_date=to_date,
        page=page,
        page_size=page_size,
    )
    total_pages = math.ceil(total / page_size) if total > 0 else 0

    return PriceHistoryPageResponse(
        items=[PriceHistoryResponse.model_validate(h) for h in items],
        meta=PriceHistoryPageMeta(
            total=total,
            page=page,
            page_size=page_size,
            total_pages=total_pages,
        ),
    )
