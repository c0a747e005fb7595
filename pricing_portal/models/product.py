import uuid
from datetime import datetime

from sqlalchemy import Column, String, Float, Boolean, DateTime, ForeignKey, JSON
from sqlalchemy.orm import relationship

from pricing_portal.database.connection import Base


class Product(Base):
    __tablename__ = "products"

    id = Column(String, primary_key=True, index=True, default=lambda: str(uuid.uuid4()))
    code = Column(String, unique=True, index=True, nullable=False)
    name = Column(String, nullable=False)
    category_id = Column(String, ForeignKey("product_categories.id"), nullable=True, index=True)

    base_price_usd = Column(Float, nullable=False)
    currency = Column(String, default="USD", nullable=False)

    image_url = Column(String, nullable=True)
    # tagged variant, see schemas.specifications
    specifications = Column(JSON, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False, index=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    category = relationship("ProductCategory", back_populates="products")
    treatments = relationship(
        "ProductTreatment", back_populates="product", order_by="ProductTreatment.created_at"
    )
