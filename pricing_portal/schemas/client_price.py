import math
from datetime import datetime
from typing import List, Optional, Union

from pydantic import BaseModel, Field, StrictFloat, StrictInt, field_validator

from pricing_portal.services.pricing_service.calculate_price import resolve_price

DISCOUNT_BOUNDS = dict(ge=-500, le=100)


class ClientPriceSet(BaseModel):
    product_id: str
    # admins may price another client; clients always price themselves
    user_id: Optional[str] = None
    custom_price_usd: Optional[float] = Field(default=None, ge=0, allow_inf_nan=False)
    discount_percentage: Optional[float] = Field(default=None, **DISCOUNT_BOUNDS)
    reason: Optional[str] = None


class ClientPriceUpdate(BaseModel):
    custom_price_usd: Optional[float] = Field(default=None, ge=0, allow_inf_nan=False)
    discount_percentage: Optional[float] = Field(default=None, **DISCOUNT_BOUNDS)
    reason: Optional[str] = None


class ClientPriceResponse(BaseModel):
    id: str
    user_id: str
    product_id: str
    product_code: Optional[str] = None
    custom_price_usd: float
    discount_percentage: float
    base_price_usd: float
    final_price_usd: float
    savings_usd: float
    version: int
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_row(cls, price) -> "ClientPriceResponse":
        product = price.product
        resolved = resolve_price(
            product.base_price_usd, price.custom_price_usd, price.discount_percentage
        )
        return cls(
            id=price.id,
            user_id=price.user_id,
            product_id=price.product_id,
            product_code=product.code,
            custom_price_usd=price.custom_price_usd,
            discount_percentage=price.discount_percentage,
            base_price_usd=product.base_price_usd,
            final_price_usd=resolved.final_price,
            savings_usd=resolved.savings,
            version=price.version,
            created_at=price.created_at,
            updated_at=price.updated_at,
        )


class ClientPriceListResponse(BaseModel):
    prices: List[ClientPriceResponse]


class ClientPriceSetResponse(BaseModel):
    price: ClientPriceResponse
    history_created: bool


class ClientPriceDeleteResponse(BaseModel):
    success: bool = True


# ---------- Bulk import ----------

class BulkClientPriceItem(BaseModel):
    product_id: str
    custom_price_usd: Optional[float] = Field(default=None, ge=0, allow_inf_nan=False)
    discount_percentage: Optional[float] = Field(default=None, **DISCOUNT_BOUNDS)


class BulkClientPriceRequest(BaseModel):
    user_id: Optional[str] = None
    prices: List[BulkClientPriceItem]
    reason: Optional[str] = None


class BulkImportResponse(BaseModel):
    imported: int


# ---------- Bulk adjustment ----------

class BulkAdjustRequest(BaseModel):
    # positive = decrease (discount), negative = increase (markup)
    percentage: Union[StrictInt, StrictFloat]
    client_id: Optional[str] = None
    reason: Optional[str] = None

    @field_validator("percentage")
    @classmethod
    def must_be_finite(cls, value):
        if not math.isfinite(value):
            raise ValueError("percentage must be a finite number")
        return value


class SkippedPrice(BaseModel):
    product_id: str
    product_code: str
    message: str


class BulkAdjustResponse(BaseModel):
    success: bool
    updated: int
    skipped: List[SkippedPrice] = []
    message: str


# ---------- Summary ----------

class PricingSummaryResponse(BaseModel):
    client_id: str
    total_products: int
    average_discount: float
    total_savings: float
    total_value: float
