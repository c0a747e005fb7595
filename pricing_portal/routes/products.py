from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from pricing_portal.core.cache import QueryCache
from pricing_portal.core.errors import NotFoundError
from pricing_portal.database.connection import get_db
from pricing_portal.dependencies.auth import require_admin, require_auth
from pricing_portal.dependencies.providers import get_cache
from pricing_portal.schemas.product import (
    ProductCreate,
    ProductDeleteResponse,
    ProductResponse,
    ProductUpdate,
    ProductUpdateResponse,
    ResolvedPriceResponse,
    ProductTreatmentResponse,
    TreatmentsAdd,
    TreatmentsAddResponse,
)
from pricing_portal.schemas.user import CallerIdentity
from pricing_portal.services.pricing_service.calculate_price import resolve_price
from pricing_portal.services.pricing_service.client_price_service import list_client_prices
from pricing_portal.services.product_service import (
    create_product, get_product, list_products,
    update_product, delete_product, add_treatments,
)

router = APIRouter(prefix="/api/products", tags=["Products"])


def _client_prices(db: Session, cache: QueryCache, client_id: str) -> Dict[str, dict]:
    def load():
        return {
            row.product_id: {
                "custom_price_usd": row.custom_price_usd,
                "discount_percentage": row.discount_percentage,
            }
            for row in list_client_prices(db, client_id)
        }
    return cache.get_or_set(("client-prices", client_id, "by-product"), load)


def _with_client_price(product: dict, prices: Dict[str, dict]) -> dict:
    price = prices.get(product["id"], {"custom_price_usd": 0.0, "discount_percentage": 0.0})
    resolved = resolve_price(
        product["base_price_usd"], price["custom_price_usd"], price["discount_percentage"]
    )
    client_price = ResolvedPriceResponse(
        custom_price_usd=price["custom_price_usd"],
        discount_percentage=price["discount_percentage"],
        final_price_usd=resolved.final_price,
        savings_usd=resolved.savings,
    )
    return {**product, "client_price": client_price.model_dump()}


def _invalidate_catalog(cache: QueryCache) -> None:
    cache.invalidate("products")
    # resolved client prices depend on base prices
    cache.invalidate("client-prices")


# CREATE
@router.post("", response_model=ProductResponse, status_code=status.HTTP_201_CREATED)
def create(
    data: ProductCreate,
    db: Session = Depends(get_db),
    cache: QueryCache = Depends(get_cache),
    caller: CallerIdentity = Depends(require_admin),
):
    product = create_product(db, data)
    _invalidate_catalog(cache)
    return product


# LIST
@router.get("", response_model=List[ProductResponse])
def list_all(
    category_id: Optional[str] = None,
    search: Optional[str] = None,
    include_inactive: bool = False,
    db: Session = Depends(get_db),
    cache: QueryCache = Depends(get_cache),
    caller: CallerIdentity = Depends(require_auth),
):
    include_inactive = include_inactive and caller.is_admin
    products = cache.get_or_set(
        ("products", category_id, search, include_inactive),
        lambda: [
            ProductResponse.model_validate(p).model_dump()
            for p in list_products(db, category_id, search, include_inactive)
        ],
    )
    if caller.is_admin:
        return products

    prices = _client_prices(db, cache, caller.id)
    return [_with_client_price(p, prices) for p in products]


# GET BY ID
@router.get("/{product_id}", response_model=ProductResponse)
def get(
    product_id: str,
    db: Session = Depends(get_db),
    cache: QueryCache = Depends(get_cache),
    caller: CallerIdentity = Depends(require_auth),
):
    product = get_product(db, product_id)
    if not product or (not product.is_active and not caller.is_admin):
        raise NotFoundError("Product not found")

    data = ProductResponse.model_validate(product).model_dump()
    if caller.is_admin:
        return data
    return _with_client_price(data, _client_prices(db, cache, caller.id))


# UPDATE
@router.put("/{product_id}", response_model=ProductUpdateResponse)
def update(
    product_id: str,
    data: ProductUpdate,
    db: Session = Depends(get_db),
    cache: QueryCache = Depends(get_cache),
    caller: CallerIdentity = Depends(require_admin),
):
    product, history_created = update_product(db, product_id, data, changed_by=caller.id)
    if not product:
        raise NotFoundError("Product not found")
    _invalidate_catalog(cache)
    return ProductUpdateResponse(
        product=ProductResponse.model_validate(product),
        price_history_created=history_created,
    )


# DELETE (soft)
@router.delete("/{product_id}", response_model=ProductDeleteResponse)
def delete(
    product_id: str,
    db: Session = Depends(get_db),
    cache: QueryCache = Depends(get_cache),
    caller: CallerIdentity = Depends(require_admin),
):
    product = delete_product(db, product_id)
    if not product:
        raise NotFoundError("Product not found")
    _invalidate_catalog(cache)
    return ProductDeleteResponse(
        message="Product deactivated",
        product=ProductResponse.model_validate(product),
    )


# TREATMENTS
@router.post(
    "/{product_id}/treatments",
    response_model=TreatmentsAddResponse,
    status_code=status.HTTP_201_CREATED,
)
def add_product_treatments(
    product_id: str,
    data: TreatmentsAdd,
    db: Session = Depends(get_db),
    caller: CallerIdentity = Depends(require_admin),
):
    treatments = add_treatments(db, product_id, data)
    if treatments is None:
        raise NotFoundError("Product not found")
    return TreatmentsAddResponse(
        message="Treatments added successfully",
        treatments=[ProductTreatmentResponse.model_validate(t) for t in treatments],
    )
