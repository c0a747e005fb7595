import uuid
from datetime import datetime

from sqlalchemy import Column, String, Float, DateTime, ForeignKey, event
from sqlalchemy.orm import relationship

from pricing_portal.database.connection import Base


class PriceHistory(Base):
    __tablename__ = "price_history"

    id = Column(String, primary_key=True, index=True, default=lambda: str(uuid.uuid4()))
    product_id = Column(String, ForeignKey("products.id"), nullable=False, index=True)
    # null = global (base price) change
    user_id = Column(String, nullable=True, index=True)
    old_price = Column(Float, nullable=True)
    new_price = Column(Float, nullable=False)
    change_type = Column(String, nullable=False, index=True)
    changed_by = Column(String, nullable=True)
    changed_at = Column(DateTime, default=datetime.utcnow, index=True)
    reason = Column(String, nullable=True)

    product = relationship("Product")


class ImmutableRecordError(RuntimeError):
    pass


@event.listens_for(PriceHistory, "before_update")
def _block_update(mapper, connection, target):
    raise ImmutableRecordError(f"price_history row {target.id} is append-only")


@event.listens_for(PriceHistory, "before_delete")
def _block_delete(mapper, connection, target):
    raise ImmutableRecordError(f"price_history row {target.id} is append-only")
