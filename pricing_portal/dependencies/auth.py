from typing import Optional

from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from pricing_portal.core.errors import AuthenticationError, AuthorizationError, ValidationError
from pricing_portal.core.security import decode_access_token
from pricing_portal.database.connection import get_db
from pricing_portal.enums.statuses import AccountStatus
from pricing_portal.models.user_profile import UserProfile
from pricing_portal.schemas.user import CallerIdentity

# tokens are issued by the identity provider, not by this service
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/v1/token", auto_error=False)

DISABLED_STATUSES = (AccountStatus.suspended.value, AccountStatus.rejected.value)


def get_token_caller(token: Optional[str] = Depends(oauth2_scheme)) -> CallerIdentity:
    if not token:
        raise AuthenticationError("Unauthorized")
    caller = decode_access_token(token)
    if not caller.id:
        raise AuthenticationError("Could not validate credentials")
    return caller


def get_current_caller(
    caller: CallerIdentity = Depends(get_token_caller),
    db: Session = Depends(get_db),
) -> CallerIdentity:
    profile = db.query(UserProfile).filter(UserProfile.id == caller.id).first()

    if profile is None:
        if not caller.is_admin:
            raise AuthorizationError("Account pending approval")
        return caller

    if profile.status == AccountStatus.pending.value:
        raise AuthorizationError("Account pending approval")
    if profile.status in DISABLED_STATUSES:
        raise AuthorizationError("Account disabled")
    return caller


def require_auth(caller: CallerIdentity = Depends(get_current_caller)) -> CallerIdentity:
    return caller


def require_admin(caller: CallerIdentity = Depends(get_current_caller)) -> CallerIdentity:
    if not caller.is_admin:
        raise AuthorizationError("Forbidden - Admin access required")
    return caller


def require_self_or_admin(
    caller: CallerIdentity,
    owner_id: Optional[str],
    detail: str = "Forbidden - Cannot access other client prices",
) -> None:
    if caller.is_admin or (owner_id is not None and caller.id == owner_id):
        return
    raise AuthorizationError(detail)


def resolve_client_id(caller: CallerIdentity, requested_id: Optional[str]) -> str:
    """
    Which client a pricing request is about: clients always act on
    themselves, admins must name the client.
    """
    if requested_id is None:
        if caller.is_admin:
            raise ValidationError("client_id is required")
        return caller.id
    require_self_or_admin(caller, requested_id)
    return requested_id
