from datetime import datetime

from sqlalchemy import Column, String, Float, DateTime, event, inspect

from pricing_portal.database.connection import Base


class UserProfile(Base):
    __tablename__ = "user_profiles"

    # same id as the identity-provider account
    id = Column(String, primary_key=True, index=True)
    email = Column(String, nullable=False, index=True)
    company_name = Column(String, nullable=True)
    contact_name = Column(String, nullable=True)
    phone = Column(String, nullable=True)
    role = Column(String, default="client", nullable=False)
    status = Column(String, default="pending", nullable=False, index=True)
    discount_tier = Column(Float, default=0.0, nullable=False)

    approved_by = Column(String, nullable=True)
    approved_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class RoleChangeError(RuntimeError):
    pass


@event.listens_for(UserProfile, "before_update")
def _role_is_immutable(mapper, connection, target):
    if inspect(target).attrs.role.history.has_changes():
        raise RoleChangeError(f"role of user {target.id} cannot change")
