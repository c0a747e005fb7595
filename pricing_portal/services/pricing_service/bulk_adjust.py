import logging
import math
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from pricing_portal.core.errors import ValidationError
from pricing_portal.database.connection import atomic
from pricing_portal.enums.statuses import PriceChangeType
from pricing_portal.models.client_price import ClientPrice
from pricing_portal.models.product import Product
from pricing_portal.schemas.client_price import SkippedPrice
from pricing_portal.services.price_history_service import record_price_change
from pricing_portal.services.pricing_service.calculate_price import (
    ResolvedPrice,
    is_below_floor,
    resolve_price,
)
from pricing_portal.services.pricing_service.client_price_service import (
    CONCURRENT_EDIT,
    floor_message,
)

logger = logging.getLogger(__name__)


@dataclass
class AdjustmentResult:
    updated_count: int = 0
    skipped: List[SkippedPrice] = field(default_factory=list)


def plan_adjustment(
    base_price: float,
    custom_price: float,
    discount_percentage: float,
    percentage: float,
) -> Tuple[float, float, ResolvedPrice]:
    """
    Shift one client price by `percentage` points of its base price.

    Positive percentages lower the price, negative ones raise it. The row
    keeps its pricing mode:

        discount mode: discount_percentage += percentage
        custom mode:   custom_price -= base_price * percentage / 100

    A custom price that drops to zero or below stays in custom mode, so it
    resolves to itself and trips the floor check instead of falling back to
    the base price.

    Returns (new_custom_price, new_discount_percentage, resolved).
    """
    if custom_price and custom_price > 0:
        new_custom = custom_price - base_price * percentage / 100.0
        resolved = ResolvedPrice(final_price=new_custom, savings=base_price - new_custom)
        return new_custom, 0.0, resolved

    new_discount = (discount_percentage or 0.0) + percentage
    return 0.0, new_discount, resolve_price(base_price, 0.0, new_discount)


def apply_global_adjustment(
    db: Session,
    client_id: str,
    percentage: float,
    changed_by: Optional[str],
    reason: Optional[str] = None,
) -> AdjustmentResult:
    rows = (
        db.query(ClientPrice)
        .join(Product, ClientPrice.product_id == Product.id)
        .filter(ClientPrice.user_id == client_id, Product.is_active.is_(True))
        .order_by(Product.code)
        .all()
    )

    if not math.isfinite(percentage):
        raise ValidationError("Percentage must be a finite number")

    result = AdjustmentResult()
    if not rows or percentage == 0:
        return result

    with atomic(db, CONCURRENT_EDIT):
        for row in rows:
            product = row.product
            base_price = product.base_price_usd
            old = resolve_price(base_price, row.custom_price_usd, row.discount_percentage)
            new_custom, new_discount, new = plan_adjustment(
                base_price, row.custom_price_usd, row.discount_percentage, percentage
            )

            if is_below_floor(base_price, new.final_price):
                result.skipped.append(
                    SkippedPrice(
                        product_id=product.id,
                        product_code=product.code,
                        message=floor_message(base_price),
                    )
                )
                continue

            row.custom_price_usd = new_custom
            row.discount_percentage = new_discount
            record_price_change(
                db,
                product_id=product.id,
                user_id=client_id,
                old_price=old.final_price,
                new_price=new.final_price,
                change_type=PriceChangeType.bulk_update,
                changed_by=changed_by,
                reason=reason or f"Bulk adjustment {percentage:+g}%",
            )
            result.updated_count += 1

        if result.updated_count == 0:
            raise ValidationError(
                "Failed to update any prices",
                errors=[f"{s.product_code}: {s.message}" for s in result.skipped],
            )

    logger.info(
        "bulk adjust %+g%% for client %s: %d updated, %d skipped",
        percentage, client_id, result.updated_count, len(result.skipped),
    )
    return result
