from typing import List, Optional

from sqlalchemy.orm import Session

from pricing_portal.core.errors import ValidationError
from pricing_portal.models.product import Product
from pricing_portal.models.product_category import ProductCategory
from pricing_portal.schemas.category import CategoryCreate, CategoryUpdate


def _slug_taken(db: Session, slug: str, exclude_id: Optional[str] = None) -> bool:
    query = db.query(ProductCategory.id).filter(ProductCategory.slug == slug)
    if exclude_id:
        query = query.filter(ProductCategory.id != exclude_id)
    return query.first() is not None


def list_categories(db: Session) -> List[ProductCategory]:
    return (
        db.query(ProductCategory)
        .order_by(ProductCategory.display_order, ProductCategory.name)
        .all()
    )


def get_category(db: Session, category_id: str) -> Optional[ProductCategory]:
    return db.query(ProductCategory).filter(ProductCategory.id == category_id).first()


def get_category_by_slug(db: Session, slug: str) -> Optional[ProductCategory]:
    return db.query(ProductCategory).filter(ProductCategory.slug == slug).first()


def create_category(db: Session, data: CategoryCreate) -> ProductCategory:
    if _slug_taken(db, data.slug):
        raise ValidationError(f"Category slug '{data.slug}' already exists")
    category = ProductCategory(**data.model_dump())
    db.add(category)
    db.commit()
    db.refresh(category)
    return category


def update_category(db: Session, category_id: str, data: CategoryUpdate) -> Optional[ProductCategory]:
    category = get_category(db, category_id)
    if not category:
        return None

    changes = data.model_dump(exclude_unset=True)
    if "slug" in changes and _slug_taken(db, changes["slug"], exclude_id=category_id):
        raise ValidationError(f"Category slug '{changes['slug']}' already exists")

    for key, value in changes.items():
        setattr(category, key, value)

    db.commit()
    db.refresh(category)
    return category


def delete_category(db: Session, category_id: str) -> bool:
    category = get_category(db, category_id)
    if not category:
        return False

    in_use = db.query(Product.id).filter(Product.category_id == category_id).count()
    if in_use:
        raise ValidationError(
            f"Category is used by {in_use} product(s) and cannot be deleted"
        )

    db.delete(category)
    db.commit()
    return True
