from typing import Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from pricing_portal.core.cache import QueryCache
from pricing_portal.core.errors import NotFoundError
from pricing_portal.database.connection import get_db
from pricing_portal.dependencies.auth import require_auth, require_self_or_admin, resolve_client_id
from pricing_portal.dependencies.providers import get_cache
from pricing_portal.enums.statuses import PriceChangeType
from pricing_portal.schemas.client_price import (
    BulkAdjustRequest,
    BulkAdjustResponse,
    BulkClientPriceRequest,
    BulkImportResponse,
    ClientPriceDeleteResponse,
    ClientPriceListResponse,
    ClientPriceResponse,
    ClientPriceSet,
    ClientPriceSetResponse,
    ClientPriceUpdate,
    PricingSummaryResponse,
)
from pricing_portal.schemas.user import CallerIdentity
from pricing_portal.services.pricing_service.bulk_adjust import apply_global_adjustment
from pricing_portal.services.pricing_service.client_price_service import (
    bulk_import_prices,
    delete_client_price,
    get_client_price,
    list_client_prices,
    pricing_summary,
    set_client_price,
    update_client_price,
)

router = APIRouter(prefix="/api/client-prices", tags=["Client Prices"])


def _change_type(caller: CallerIdentity) -> PriceChangeType:
    return PriceChangeType.admin_update if caller.is_admin else PriceChangeType.client_custom


def _owned_price(db: Session, caller: CallerIdentity, price_id: str, action: str):
    price = get_client_price(db, price_id)
    if not price:
        raise NotFoundError("Price not found")
    require_self_or_admin(caller, price.user_id, f"Forbidden - Cannot {action} other client prices")
    return price


# LIST
@router.get("", response_model=ClientPriceListResponse)
def list_prices(
    client_id: Optional[str] = None,
    product_id: Optional[str] = None,
    db: Session = Depends(get_db),
    cache: QueryCache = Depends(get_cache),
    caller: CallerIdentity = Depends(require_auth),
):
    client_id = resolve_client_id(caller, client_id)
    prices = cache.get_or_set(
        ("client-prices", client_id, "list", product_id),
        lambda: [
            ClientPriceResponse.from_row(row).model_dump()
            for row in list_client_prices(db, client_id, product_id)
        ],
    )
    return {"prices": prices}


# SET (create or update in place)
@router.post("", response_model=ClientPriceSetResponse, status_code=status.HTTP_201_CREATED)
def set_price(
    data: ClientPriceSet,
    db: Session = Depends(get_db),
    cache: QueryCache = Depends(get_cache),
    caller: CallerIdentity = Depends(require_auth),
):
    client_id = resolve_client_id(caller, data.user_id)
    price, history_created = set_client_price(
        db,
        user_id=client_id,
        product_id=data.product_id,
        custom_price=data.custom_price_usd,
        discount_percentage=data.discount_percentage,
        change_type=_change_type(caller),
        changed_by=caller.id,
        reason=data.reason,
    )
    cache.invalidate("client-prices", client_id)
    return ClientPriceSetResponse(
        price=ClientPriceResponse.from_row(price), history_created=history_created
    )


# SUMMARY
@router.get("/summary", response_model=PricingSummaryResponse)
def summary(
    client_id: Optional[str] = None,
    db: Session = Depends(get_db),
    caller: CallerIdentity = Depends(require_auth),
):
    client_id = resolve_client_id(caller, client_id)
    return pricing_summary(db, client_id)


# BULK IMPORT
@router.post("/bulk", response_model=BulkImportResponse, status_code=status.HTTP_201_CREATED)
def bulk_import(
    data: BulkClientPriceRequest,
    db: Session = Depends(get_db),
    cache: QueryCache = Depends(get_cache),
    caller: CallerIdentity = Depends(require_auth),
):
    client_id = resolve_client_id(caller, data.user_id)
    imported = bulk_import_prices(db, client_id, data.prices, changed_by=caller.id, reason=data.reason)
    cache.invalidate("client-prices", client_id)
    return BulkImportResponse(imported=imported)


# BULK ADJUST
@router.post("/bulk-adjust", response_model=BulkAdjustResponse)
def bulk_adjust(
    data: BulkAdjustRequest,
    db: Session = Depends(get_db),
    cache: QueryCache = Depends(get_cache),
    caller: CallerIdentity = Depends(require_auth),
):
    client_id = resolve_client_id(caller, data.client_id)
    result = apply_global_adjustment(
        db, client_id, float(data.percentage), changed_by=caller.id, reason=data.reason
    )
    cache.invalidate("client-prices", client_id)
    return BulkAdjustResponse(
        success=True,
        updated=result.updated_count,
        skipped=result.skipped,
        message=f"Successfully updated {result.updated_count} price(s) "
                f"with {data.percentage}% adjustment",
    )


# UPDATE BY ID
@router.put("/{price_id}", response_model=ClientPriceSetResponse)
def update_price(
    price_id: str,
    data: ClientPriceUpdate,
    db: Session = Depends(get_db),
    cache: QueryCache = Depends(get_cache),
    caller: CallerIdentity = Depends(require_auth),
):
    price = _owned_price(db, caller, price_id, "modify")
    price, history_created = update_client_price(
        db,
        price,
        custom_price=data.custom_price_usd,
        discount_percentage=data.discount_percentage,
        change_type=_change_type(caller),
        changed_by=caller.id,
        reason=data.reason,
    )
    cache.invalidate("client-prices", price.user_id)
    return ClientPriceSetResponse(
        price=ClientPriceResponse.from_row(price), history_created=history_created
    )


# DELETE BY ID
@router.delete("/{price_id}", response_model=ClientPriceDeleteResponse)
def delete_price(
    price_id: str,
    db: Session = Depends(get_db),
    cache: QueryCache = Depends(get_cache),
    caller: CallerIdentity = Depends(require_auth),
):
    price = _owned_price(db, caller, price_id, "delete")
    owner_id = price.user_id
    delete_client_price(db, price, change_type=_change_type(caller), changed_by=caller.id)
    cache.invalidate("client-prices", owner_id)
    return ClientPriceDeleteResponse(success=True)
