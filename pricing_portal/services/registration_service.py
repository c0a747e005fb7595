import logging
import secrets
from datetime import datetime
from typing import List, Optional

from sqlalchemy.orm import Session

from pricing_portal.core.errors import (
    ExternalServiceError,
    InvalidTransitionError,
    NotFoundError,
    ValidationError,
)
from pricing_portal.database.connection import atomic
from pricing_portal.enums.statuses import AccountStatus, RegistrationStatus, UserRole
from pricing_portal.integrations.identity_provider import IdentityProvider, password_setup_redirect
from pricing_portal.models.registration_request import RegistrationRequest
from pricing_portal.models.user_profile import UserProfile
from pricing_portal.schemas.registration import ApprovalResponse, RegistrationCreate

logger = logging.getLogger(__name__)

EMAIL_NOT_SENT = (
    'User approved but email could not be sent. '
    'User can use "Forgot Password" to set up their account.'
)
EMAIL_RATE_LIMITED = (
    "User approved but the email rate limit was reached. "
    "Resend the invitation later or ask the user to use \"Forgot Password\"."
)


def throwaway_password() -> str:
    # never shown to anyone; the user sets a real one from the email link
    return secrets.token_urlsafe(24) + "Aa1!"


def get_registration(db: Session, request_id: str) -> Optional[RegistrationRequest]:
    return db.query(RegistrationRequest).filter(RegistrationRequest.id == request_id).first()


def list_registrations(db: Session, status: Optional[str] = None) -> List[RegistrationRequest]:
    query = db.query(RegistrationRequest)
    if status and status != "all":
        query = query.filter(RegistrationRequest.status == status)
    return query.order_by(RegistrationRequest.created_at.desc()).all()


# --------------------------
# SUBMIT (public)
# --------------------------
def submit_registration(db: Session, data: RegistrationCreate) -> RegistrationRequest:
    email = data.email.strip().lower()

    already_pending = (
        db.query(RegistrationRequest.id)
        .filter(
            RegistrationRequest.email == email,
            RegistrationRequest.status == RegistrationStatus.pending.value,
        )
        .first()
    )
    if already_pending:
        raise ValidationError("A registration request for this email is already pending")

    request = RegistrationRequest(
        email=email,
        company_name=data.company_name.strip(),
        phone=data.phone,
        status=RegistrationStatus.pending.value,
    )
    db.add(request)
    db.commit()
    db.refresh(request)
    logger.info("registration request %s submitted for %s", request.id, email)
    return request


def _require_pending(request: Optional[RegistrationRequest], action: str) -> RegistrationRequest:
    if request is None:
        raise NotFoundError("Registration request not found")
    if request.status != RegistrationStatus.pending.value:
        raise InvalidTransitionError("registration request", request.status, action)
    return request


def _discard_account(identity: IdentityProvider, user_id: str) -> None:
    try:
        identity.delete_user(user_id)
    except ExternalServiceError:
        logger.exception("could not remove identity account %s after failed approval", user_id)


# --------------------------
# APPROVE (admin)
# --------------------------
def approve_registration(
    db: Session,
    identity: IdentityProvider,
    request_id: str,
    approved_by: str,
) -> ApprovalResponse:
    """
    Approve a pending request and provision the client's account.

    1. reuse the provider account for the email, or create one with a
       throwaway password and a confirmed email
    2. stamp approval metadata on the account
    3. upsert the client profile and mark the request approved (one commit)
    4. send the password-setup email; failure here only adds a warning

    If step 2 or 3 fails and step 1 created the account, the account is
    deleted again before the error propagates.
    """
    request = _require_pending(get_registration(db, request_id), "approve")
    email = request.email

    account = identity.find_user_by_email(email)
    created = account is None
    if created:
        account = identity.create_user(
            email=email,
            password=throwaway_password(),
            email_confirm=True,
            user_metadata={
                "company_name": request.company_name,
                "phone": request.phone,
                "is_admin": False,
            },
        )
    else:
        logger.info("reusing identity account %s for %s", account["id"], email)

    user_id = account["id"]
    approved_at = datetime.utcnow()

    try:
        identity.update_user_metadata(
            user_id,
            {
                "company_name": request.company_name,
                "phone": request.phone,
                "status": AccountStatus.approved.value,
                "approved_by": approved_by,
                "approved_at": approved_at.isoformat(),
                "is_admin": False,
            },
        )

        with atomic(db):
            profile = db.query(UserProfile).filter(UserProfile.id == user_id).first()
            if profile is None:
                profile = UserProfile(id=user_id, email=email, role=UserRole.client.value)
                db.add(profile)
            profile.company_name = request.company_name
            profile.phone = request.phone
            profile.status = AccountStatus.approved.value
            profile.approved_by = approved_by
            profile.approved_at = approved_at

            request.status = RegistrationStatus.approved.value
            request.approved_by = approved_by
            request.approved_at = approved_at
            request.user_id = user_id
    except Exception:
        if created:
            _discard_account(identity, user_id)
        raise

    logger.info("registration %s approved by %s (account %s)", request_id, approved_by, user_id)

    try:
        identity.send_password_setup_email(email, redirect_to=password_setup_redirect())
    except ExternalServiceError as exc:
        logger.warning("password setup email for %s not sent: %s", email, exc.detail)
        warning = EMAIL_RATE_LIMITED if exc.rate_limited else EMAIL_NOT_SENT
        return ApprovalResponse(success=True, warning=warning, email=email)

    return ApprovalResponse(
        success=True,
        message="Registration approved and invitation email sent",
        email=email,
    )


# --------------------------
# REJECT (admin)
# --------------------------
def reject_registration(
    db: Session,
    request_id: str,
    reason: str,
    rejected_by: str,
) -> RegistrationRequest:
    request = _require_pending(get_registration(db, request_id), "reject")

    reason = (reason or "").strip()
    if not reason:
        raise ValidationError("A rejection reason is required")

    request.status = RegistrationStatus.rejected.value
    request.rejection_reason = reason
    request.rejected_by = rejected_by
    request.rejected_at = datetime.utcnow()
    db.commit()
    db.refresh(request)
    logger.info("registration %s rejected by %s", request_id, rejected_by)
    return request
