import logging
from datetime import datetime
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from pricing_portal.enums.statuses import PriceChangeType
from pricing_portal.models.price_history import PriceHistory

logger = logging.getLogger(__name__)

MAX_PAGE_SIZE = 200


def record_price_change(
    db: Session,
    product_id: str,
    user_id: Optional[str],
    old_price: Optional[float],
    new_price: float,
    change_type: PriceChangeType,
    changed_by: Optional[str],
    reason: Optional[str] = None,
) -> PriceHistory:
    """
    Append a history row in the caller's transaction.

    The row is flushed immediately so a failing insert surfaces here and the
    caller's price mutation is rolled back with it.
    """
    history = PriceHistory(
        product_id=product_id,
        user_id=user_id,
        old_price=old_price,
        new_price=new_price,
        change_type=PriceChangeType(change_type).value,
        changed_by=changed_by,
        changed_at=datetime.utcnow(),
        reason=reason,
    )
    db.add(history)
    db.flush()
    logger.debug(
        "price change %s product=%s user=%s %s -> %s",
        history.change_type, product_id, user_id, old_price, new_price,
    )
    return history


def get_price_history(
    db: Session,
    product_id: Optional[str] = None,
    user_id: Optional[str] = None,
    change_type: Optional[str] = None,
    from_date: Optional[datetime] = None,
    to_date: Optional[datetime] = None,
    page: int = 1,
    page_size: int = 50,
) -> Tuple[List[PriceHistory], int]:
    """
    Returns (items, total_count), newest first.
    page is 1-based.
    """
    if page < 1:
        page = 1
    if page_size < 1:
        page_size = 1
    if page_size > MAX_PAGE_SIZE:
        page_size = MAX_PAGE_SIZE

    query = db.query(PriceHistory)
    if product_id:
        query = query.filter(PriceHistory.product_id == product_id)
    if user_id:
        query = query.filter(PriceHistory.user_id == user_id)
    if change_type:
        query = query.filter(PriceHistory.change_type == change_type)
    if from_date:
        query = query.filter(PriceHistory.changed_at >= from_date)
    if to_date:
        query = query.filter(PriceHistory.changed_at <= to_date)

    total = query.count()

    offset = (page - 1) * page_size
    items = (
        query
        .order_by(PriceHistory.changed_at.desc())
        .offset(offset)
        .limit(page_size)
        .all()
    )

    return items, total
