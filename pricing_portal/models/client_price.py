import uuid
from datetime import datetime

from sqlalchemy import Column, String, Float, Integer, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship

from pricing_portal.database.connection import Base


class ClientPrice(Base):
    __tablename__ = "client_prices"
    __table_args__ = (
        UniqueConstraint("user_id", "product_id", name="uq_client_prices_user_product"),
    )

    id = Column(String, primary_key=True, index=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String, nullable=False, index=True)
    product_id = Column(String, ForeignKey("products.id"), nullable=False, index=True)

    # exactly one pricing mode: custom_price_usd > 0, or a discount relative to base
    custom_price_usd = Column(Float, default=0.0, nullable=False)
    discount_percentage = Column(Float, default=0.0, nullable=False)

    version = Column(Integer, default=1, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    product = relationship("Product")

    __mapper_args__ = {"version_id_col": version}
