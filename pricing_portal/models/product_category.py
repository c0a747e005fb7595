import uuid
from datetime import datetime

from sqlalchemy import Column, String, Integer, DateTime
from sqlalchemy.orm import relationship

from pricing_portal.database.connection import Base


class ProductCategory(Base):
    __tablename__ = "product_categories"

    id = Column(String, primary_key=True, index=True, default=lambda: str(uuid.uuid4()))
    name = Column(String, nullable=False)
    # e.g. monofocales-future-x-stock / -laboratory / monofocales-terminados
    slug = Column(String, unique=True, index=True, nullable=False)
    description = Column(String, nullable=True)
    display_order = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    products = relationship("Product", back_populates="category")
