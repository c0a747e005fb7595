import uuid
from datetime import datetime

from sqlalchemy import Column, String, DateTime

from pricing_portal.database.connection import Base


class RegistrationRequest(Base):
    __tablename__ = "registration_requests"

    id = Column(String, primary_key=True, index=True, default=lambda: str(uuid.uuid4()))
    email = Column(String, nullable=False, index=True)
    company_name = Column(String, nullable=False)
    phone = Column(String, nullable=True)
    status = Column(String, default="pending", nullable=False, index=True)

    rejection_reason = Column(String, nullable=True)
    rejected_by = Column(String, nullable=True)
    rejected_at = Column(DateTime, nullable=True)

    approved_by = Column(String, nullable=True)
    approved_at = Column(DateTime, nullable=True)
    # identity-provider account created or reused on approval
    user_id = Column(String, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
