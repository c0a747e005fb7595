import logging
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from pricing_portal.core.errors import NotFoundError, ValidationError
from pricing_portal.database.connection import atomic
from pricing_portal.enums.statuses import PriceChangeType
from pricing_portal.models.client_price import ClientPrice
from pricing_portal.models.product import Product
from pricing_portal.models.user_profile import UserProfile
from pricing_portal.schemas.client_price import BulkClientPriceItem, PricingSummaryResponse
from pricing_portal.services.price_history_service import record_price_change
from pricing_portal.services.pricing_service.calculate_price import (
    PricedItem,
    ResolvedPrice,
    average_discount,
    is_below_floor,
    resolve_price,
    total_savings,
)

logger = logging.getLogger(__name__)

CONCURRENT_EDIT = "Price was modified concurrently; reload and retry"


def floor_message(base_price: float) -> str:
    return f"Price cannot be below base price of ${base_price:.2f}"


def get_active_product(db: Session, product_id: str) -> Product:
    product = (
        db.query(Product)
        .filter(Product.id == product_id, Product.is_active.is_(True))
        .first()
    )
    if not product:
        raise NotFoundError("Product not found")
    return product


def default_discount_for(db: Session, user_id: str) -> float:
    profile = db.query(UserProfile).filter(UserProfile.id == user_id).first()
    return float(profile.discount_tier or 0.0) if profile else 0.0


def choose_pricing_mode(
    custom_price: Optional[float],
    discount_percentage: Optional[float],
    default_discount: float = 0.0,
) -> Tuple[float, float]:
    """Return (custom_price, discount_percentage) with exactly one mode set."""
    if custom_price is not None and custom_price > 0:
        return float(custom_price), 0.0
    if discount_percentage is not None:
        return 0.0, float(discount_percentage)
    return 0.0, float(default_discount)


def check_price_floor(product: Product, custom_price: float, discount_percentage: float) -> ResolvedPrice:
    resolved = resolve_price(product.base_price_usd, custom_price, discount_percentage)
    if is_below_floor(product.base_price_usd, resolved.final_price):
        raise ValidationError(floor_message(product.base_price_usd))
    return resolved


def resolve_row(price: ClientPrice) -> ResolvedPrice:
    return resolve_price(
        price.product.base_price_usd, price.custom_price_usd, price.discount_percentage
    )


# --------------------------
# QUERIES
# --------------------------
def get_client_price(db: Session, price_id: str) -> Optional[ClientPrice]:
    return db.query(ClientPrice).filter(ClientPrice.id == price_id).first()


def find_by_user_and_product(db: Session, user_id: str, product_id: str) -> Optional[ClientPrice]:
    return (
        db.query(ClientPrice)
        .filter(ClientPrice.user_id == user_id, ClientPrice.product_id == product_id)
        .first()
    )


def list_client_prices(db: Session, user_id: str, product_id: Optional[str] = None) -> List[ClientPrice]:
    query = db.query(ClientPrice).filter(ClientPrice.user_id == user_id)
    if product_id:
        query = query.filter(ClientPrice.product_id == product_id)
    return query.order_by(ClientPrice.created_at.desc()).all()


# --------------------------
# UPSERT (no commit)
# --------------------------
def _upsert(
    db: Session,
    user_id: str,
    product: Product,
    custom_price: float,
    discount_percentage: float,
    change_type: PriceChangeType,
    changed_by: Optional[str],
    reason: Optional[str],
) -> Tuple[ClientPrice, bool]:
    resolved = check_price_floor(product, custom_price, discount_percentage)

    price = find_by_user_and_product(db, user_id, product.id)
    old_price = None
    if price:
        old_price = resolve_row(price).final_price
        price.custom_price_usd = custom_price
        price.discount_percentage = discount_percentage
    else:
        price = ClientPrice(
            user_id=user_id,
            product_id=product.id,
            custom_price_usd=custom_price,
            discount_percentage=discount_percentage,
        )
        price.product = product
        db.add(price)

    history_created = False
    if old_price is None or abs(old_price - resolved.final_price) > 1e-9:
        record_price_change(
            db,
            product_id=product.id,
            user_id=user_id,
            old_price=old_price,
            new_price=resolved.final_price,
            change_type=change_type,
            changed_by=changed_by,
            reason=reason,
        )
        history_created = True
    return price, history_created


# --------------------------
# SET PRICE (create or update in place)
# --------------------------
def set_client_price(
    db: Session,
    user_id: str,
    product_id: str,
    custom_price: Optional[float],
    discount_percentage: Optional[float],
    change_type: PriceChangeType,
    changed_by: Optional[str],
    reason: Optional[str] = None,
) -> Tuple[ClientPrice, bool]:
    product = get_active_product(db, product_id)
    custom, discount = choose_pricing_mode(
        custom_price, discount_percentage, default_discount_for(db, user_id)
    )

    with atomic(db, CONCURRENT_EDIT):
        price, history_created = _upsert(
            db, user_id, product, custom, discount, change_type, changed_by, reason
        )

    db.refresh(price)
    return price, history_created


# --------------------------
# UPDATE BY ID
# --------------------------
def update_client_price(
    db: Session,
    price: ClientPrice,
    custom_price: Optional[float],
    discount_percentage: Optional[float],
    change_type: PriceChangeType,
    changed_by: Optional[str],
    reason: Optional[str] = None,
) -> Tuple[ClientPrice, bool]:
    if custom_price is None and discount_percentage is None:
        raise ValidationError("Provide a custom price or a discount percentage")

    product = get_active_product(db, price.product_id)
    custom, discount = choose_pricing_mode(custom_price, discount_percentage)

    with atomic(db, CONCURRENT_EDIT):
        price, history_created = _upsert(
            db, price.user_id, product, custom, discount, change_type, changed_by, reason
        )

    db.refresh(price)
    return price, history_created


# --------------------------
# DELETE (back to base price)
# --------------------------
def delete_client_price(
    db: Session,
    price: ClientPrice,
    change_type: PriceChangeType,
    changed_by: Optional[str],
) -> None:
    base_price = price.product.base_price_usd
    old_price = resolve_row(price).final_price

    with atomic(db, CONCURRENT_EDIT):
        if abs(old_price - base_price) > 1e-9:
            record_price_change(
                db,
                product_id=price.product_id,
                user_id=price.user_id,
                old_price=old_price,
                new_price=base_price,
                change_type=change_type,
                changed_by=changed_by,
                reason="client price removed",
            )
        db.delete(price)


# --------------------------
# BULK IMPORT (all or nothing)
# --------------------------
def bulk_import_prices(
    db: Session,
    user_id: str,
    items: List[BulkClientPriceItem],
    changed_by: Optional[str],
    reason: Optional[str] = None,
) -> int:
    if not items:
        raise ValidationError("No prices supplied")

    default_discount = default_discount_for(db, user_id)
    planned = []
    errors: List[str] = []
    seen = set()

    for item in items:
        if item.product_id in seen:
            errors.append(f"Product {item.product_id}: duplicate entry")
            continue
        seen.add(item.product_id)

        try:
            product = get_active_product(db, item.product_id)
            custom, discount = choose_pricing_mode(
                item.custom_price_usd, item.discount_percentage, default_discount
            )
            check_price_floor(product, custom, discount)
        except (NotFoundError, ValidationError) as exc:
            errors.append(f"Product {item.product_id}: {exc.detail}")
            continue
        planned.append((product, custom, discount))

    if errors:
        raise ValidationError("Invalid prices; nothing was imported", errors=errors)

    with atomic(db, CONCURRENT_EDIT):
        for product, custom, discount in planned:
            _upsert(
                db, user_id, product, custom, discount,
                PriceChangeType.bulk_update, changed_by, reason,
            )

    logger.info("imported %d client prices for user %s", len(planned), user_id)
    return len(planned)


# --------------------------
# SUMMARY
# --------------------------
def pricing_summary(db: Session, user_id: str) -> PricingSummaryResponse:
    rows = list_client_prices(db, user_id)
    items = [
        PricedItem(
            base_price=row.product.base_price_usd,
            custom_price=row.custom_price_usd,
            discount_percentage=row.discount_percentage,
        )
        for row in rows
    ]
    total_value = sum(item.resolved.final_price for item in items)

    return PricingSummaryResponse(
        client_id=user_id,
        total_products=len(items),
        average_discount=round(average_discount(items), 2),
        total_savings=round(total_savings(items), 2),
        total_value=round(total_value, 2),
    )
