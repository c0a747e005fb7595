import uuid
from datetime import datetime

from sqlalchemy import Column, String, Float, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship

from pricing_portal.database.connection import Base


class ProductTreatment(Base):
    """A lens treatment (coating, tint, ...) offered on a product."""
    __tablename__ = "product_treatments"
    __table_args__ = (
        UniqueConstraint("product_id", "treatment_id", name="uq_product_treatments_product_treatment"),
    )

    id = Column(String, primary_key=True, index=True, default=lambda: str(uuid.uuid4()))
    product_id = Column(String, ForeignKey("products.id"), nullable=False, index=True)
    treatment_id = Column(String, nullable=False)
    # surcharge on top of the product price; null = included
    additional_cost = Column(Float, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    product = relationship("Product", back_populates="treatments")
