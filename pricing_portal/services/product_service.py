import logging
import math
from typing import List, Optional, Tuple

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from pricing_portal.core.errors import ValidationError
from pricing_portal.enums.statuses import PriceChangeType
from pricing_portal.models.product import Product
from pricing_portal.models.product_category import ProductCategory
from pricing_portal.models.product_treatment import ProductTreatment
from pricing_portal.schemas.product import ProductCreate, ProductUpdate, TreatmentsAdd
from pricing_portal.services.price_history_service import record_price_change

logger = logging.getLogger(__name__)


def _check_category(db: Session, category_id: Optional[str]) -> None:
    if category_id is None:
        return
    exists = db.query(ProductCategory.id).filter(ProductCategory.id == category_id).first()
    if not exists:
        raise ValidationError(f"Category {category_id} not found")


def _commit_catalog_change(db: Session) -> None:
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ValidationError("Product code already exists")


# --------------------------
# CREATE PRODUCT
# --------------------------
def create_product(db: Session, data: ProductCreate) -> Product:
    if get_product_by_code(db, data.code):
        raise ValidationError("Product code already exists")
    _check_category(db, data.category_id)

    values = data.model_dump(exclude={"specifications"})
    product = Product(**values, currency="USD")
    if data.specifications is not None:
        product.specifications = data.specifications.model_dump()

    db.add(product)
    _commit_catalog_change(db)
    db.refresh(product)
    logger.info("product %s created (base $%.2f)", product.code, product.base_price_usd)
    return product


# --------------------------
# GET PRODUCT
# --------------------------
def get_product(db: Session, product_id: str) -> Optional[Product]:
    return db.query(Product).filter(Product.id == product_id).first()


def get_product_by_code(db: Session, code: str) -> Optional[Product]:
    return db.query(Product).filter(Product.code == code).first()


# --------------------------
# LIST PRODUCTS
# --------------------------
def list_products(
    db: Session,
    category_id: Optional[str] = None,
    search: Optional[str] = None,
    include_inactive: bool = False,
) -> List[Product]:
    query = db.query(Product)
    if not include_inactive:
        query = query.filter(Product.is_active.is_(True))
    if category_id:
        query = query.filter(Product.category_id == category_id)
    if search:
        pattern = f"%{search}%"
        query = query.filter(or_(Product.name.ilike(pattern), Product.code.ilike(pattern)))
    return query.order_by(Product.name).all()


# --------------------------
# UPDATE PRODUCT (+ base price history)
# --------------------------
def update_product(
    db: Session,
    product_id: str,
    data: ProductUpdate,
    changed_by: Optional[str],
) -> Tuple[Optional[Product], bool]:
    product = get_product(db, product_id)
    if not product:
        return None, False

    changes = data.model_dump(exclude_unset=True)

    if "code" in changes and changes["code"] != product.code:
        if get_product_by_code(db, changes["code"]):
            raise ValidationError("Product code already exists")
    if "category_id" in changes:
        _check_category(db, changes["category_id"])

    history_created = False
    new_base = changes.get("base_price_usd")
    if new_base is not None and new_base != product.base_price_usd:
        record_price_change(
            db,
            product_id=product.id,
            user_id=None,
            old_price=product.base_price_usd,
            new_price=new_base,
            change_type=PriceChangeType.admin_update,
            changed_by=changed_by,
        )
        history_created = True

    for key, value in changes.items():
        if key == "specifications":
            value = data.specifications.model_dump() if data.specifications else None
        setattr(product, key, value)

    _commit_catalog_change(db)
    db.refresh(product)
    return product, history_created


# --------------------------
# DELETE PRODUCT (soft)
# --------------------------
def delete_product(db: Session, product_id: str) -> Optional[Product]:
    product = get_product(db, product_id)
    if not product:
        return None

    product.is_active = False
    db.commit()
    db.refresh(product)
    logger.info("product %s deactivated", product.code)
    return product


# --------------------------
# TREATMENTS
# --------------------------
def add_treatments(db: Session, product_id: str, data: TreatmentsAdd) -> Optional[List[ProductTreatment]]:
    """
    Attach treatments to a product. additional_costs lines up with
    treatment_ids by position. Re-adding a treatment replaces its cost.
    """
    product = get_product(db, product_id)
    if not product:
        return None

    costs = data.additional_costs or []
    wanted = {}
    for index, treatment_id in enumerate(data.treatment_ids):
        cost = costs[index] if index < len(costs) else None
        if cost is not None and (not math.isfinite(cost) or cost < 0):
            raise ValidationError(f"Invalid additional cost for treatment {treatment_id}")
        wanted[treatment_id] = cost

    existing = {t.treatment_id: t for t in product.treatments}
    for treatment_id, cost in wanted.items():
        if treatment_id in existing:
            existing[treatment_id].additional_cost = cost
        else:
            db.add(ProductTreatment(product_id=product.id, treatment_id=treatment_id, additional_cost=cost))

    db.commit()
    db.refresh(product)
    logger.info("product %s: %d treatments added or updated", product.code, len(wanted))
    return list(product.treatments)
