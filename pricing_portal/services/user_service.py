import logging
from datetime import datetime
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from pricing_portal.core.errors import (
    ExternalServiceError,
    InvalidTransitionError,
    NotFoundError,
    ValidationError,
)
from pricing_portal.database.connection import atomic
from pricing_portal.enums.statuses import AccountStatus, UserRole
from pricing_portal.integrations.identity_provider import IdentityProvider, password_setup_redirect
from pricing_portal.models.user_profile import UserProfile
from pricing_portal.schemas.user import ClientPreauthorize, UserProfileUpdate
from pricing_portal.services.registration_service import throwaway_password

logger = logging.getLogger(__name__)


def get_profile(db: Session, user_id: str) -> Optional[UserProfile]:
    return db.query(UserProfile).filter(UserProfile.id == user_id).first()


def _require_profile(db: Session, user_id: str) -> UserProfile:
    profile = get_profile(db, user_id)
    if not profile:
        raise NotFoundError("User not found")
    return profile


def list_users(db: Session, status: Optional[str] = None) -> List[UserProfile]:
    query = db.query(UserProfile)
    if status and status != "all":
        query = query.filter(UserProfile.status == status)
    return query.order_by(UserProfile.created_at.desc()).all()


def list_clients(db: Session, status: str = AccountStatus.approved.value) -> List[UserProfile]:
    query = db.query(UserProfile).filter(UserProfile.role == UserRole.client.value)
    if status != "all":
        query = query.filter(UserProfile.status == status)
    return query.order_by(UserProfile.created_at.desc()).all()


# --------------------------
# PRE-AUTHORIZE CLIENT (admin)
# --------------------------
def preauthorize_client(
    db: Session,
    identity: IdentityProvider,
    data: ClientPreauthorize,
    approved_by: str,
) -> Tuple[UserProfile, Optional[str]]:
    """Create an approved client directly, skipping the registration queue."""
    email = data.email.strip().lower()
    if identity.find_user_by_email(email):
        raise ValidationError("User with this email already exists")

    approved_at = datetime.utcnow()
    account = identity.create_user(
        email=email,
        password=throwaway_password(),
        email_confirm=True,
        user_metadata={
            "company_name": data.company_name,
            "contact_name": data.contact_name,
            "phone": data.phone,
            "discount_tier": data.discount_tier,
            "status": AccountStatus.approved.value,
            "approved_by": approved_by,
            "approved_at": approved_at.isoformat(),
            "is_admin": False,
        },
    )
    user_id = account["id"]

    try:
        with atomic(db):
            profile = UserProfile(
                id=user_id,
                email=email,
                company_name=data.company_name,
                contact_name=data.contact_name,
                phone=data.phone,
                role=UserRole.client.value,
                status=AccountStatus.approved.value,
                discount_tier=data.discount_tier,
                approved_by=approved_by,
                approved_at=approved_at,
            )
            db.add(profile)
    except Exception:
        try:
            identity.delete_user(user_id)
        except ExternalServiceError:
            logger.exception("could not remove identity account %s", user_id)
        raise

    db.refresh(profile)
    logger.info("client %s pre-authorized by %s", email, approved_by)

    warning = None
    try:
        identity.send_password_setup_email(email, redirect_to=password_setup_redirect())
    except ExternalServiceError as exc:
        logger.warning("password setup email for %s not sent: %s", email, exc.detail)
        warning = "Client created but the invitation email could not be sent"
    return profile, warning


# --------------------------
# UPDATE PROFILE (admin)
# --------------------------
def update_profile(db: Session, user_id: str, data: UserProfileUpdate) -> UserProfile:
    profile = _require_profile(db, user_id)
    for key, value in data.model_dump(exclude_unset=True).items():
        setattr(profile, key, value)
    db.commit()
    db.refresh(profile)
    return profile


# --------------------------
# SUSPEND / REACTIVATE (admin)
# --------------------------
def suspend_user(db: Session, user_id: str, suspended_by: str) -> UserProfile:
    profile = _require_profile(db, user_id)
    if profile.status != AccountStatus.approved.value:
        raise InvalidTransitionError("user", profile.status, "suspend")

    profile.status = AccountStatus.suspended.value
    db.commit()
    db.refresh(profile)
    logger.info("user %s suspended by %s", user_id, suspended_by)
    return profile


def reactivate_user(db: Session, user_id: str, reactivated_by: str) -> UserProfile:
    profile = _require_profile(db, user_id)
    if profile.status not in (AccountStatus.suspended.value, AccountStatus.rejected.value):
        raise InvalidTransitionError("user", profile.status, "reactivate")

    profile.status = AccountStatus.approved.value
    profile.approved_by = reactivated_by
    profile.approved_at = datetime.utcnow()
    db.commit()
    db.refresh(profile)
    logger.info("user %s reactivated by %s", user_id, reactivated_by)
    return profile
