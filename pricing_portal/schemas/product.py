from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from pricing_portal.schemas.specifications import ProductSpecification

CODE_PATTERN = r"^[A-Z0-9-]+$"


class ResolvedPriceResponse(BaseModel):
    custom_price_usd: float
    discount_percentage: float
    final_price_usd: float
    savings_usd: float


class ProductBase(BaseModel):
    code: str = Field(min_length=1, pattern=CODE_PATTERN)
    name: str = Field(min_length=1)
    category_id: Optional[str] = None
    base_price_usd: float = Field(gt=0)
    image_url: Optional[str] = None
    specifications: Optional[ProductSpecification] = None
    is_active: bool = True


class ProductCreate(ProductBase):
    pass


class ProductUpdate(BaseModel):
    code: Optional[str] = Field(default=None, min_length=1, pattern=CODE_PATTERN)
    name: Optional[str] = Field(default=None, min_length=1)
    category_id: Optional[str] = None
    base_price_usd: Optional[float] = Field(default=None, gt=0)
    image_url: Optional[str] = None
    specifications: Optional[ProductSpecification] = None
    is_active: Optional[bool] = None


class ProductResponse(ProductBase):
    id: str
    currency: str = "USD"
    created_at: datetime
    updated_at: datetime
    # only filled in for client callers
    client_price: Optional[ResolvedPriceResponse] = None

    class Config:
        from_attributes = True


class ProductUpdateResponse(BaseModel):
    product: ProductResponse
    price_history_created: bool


class ProductDeleteResponse(BaseModel):
    message: str
    product: ProductResponse


# ---------- Treatments ----------

class TreatmentsAdd(BaseModel):
    treatment_ids: List[str]
    # matched to treatment_ids by position; missing entries mean no surcharge
    additional_costs: Optional[List[Optional[float]]] = None


class ProductTreatmentResponse(BaseModel):
    id: str
    treatment_id: str
    additional_cost: Optional[float] = None

    class Config:
        from_attributes = True


class TreatmentsAddResponse(BaseModel):
    message: str
    treatments: List[ProductTreatmentResponse]
