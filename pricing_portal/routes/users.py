from typing import Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from pricing_portal.core.cache import QueryCache
from pricing_portal.database.connection import get_db
from pricing_portal.dependencies.auth import get_token_caller, require_admin
from pricing_portal.dependencies.providers import get_cache, get_identity_provider
from pricing_portal.integrations.identity_provider import IdentityProvider
from pricing_portal.schemas.user import (
    CallerIdentity,
    ClientPreauthorize,
    ClientPreauthorizeResponse,
    MeResponse,
    UserListResponse,
    UserProfileResponse,
    UserProfileUpdate,
)
from pricing_portal.services.user_service import (
    get_profile,
    list_clients,
    list_users,
    preauthorize_client,
    reactivate_user,
    suspend_user,
    update_profile,
)

admin_router = APIRouter(prefix="/api/admin/users", tags=["User Administration"])
auth_router = APIRouter(prefix="/api/auth", tags=["Accounts"])


# --------------------------
# /api/admin/users
# --------------------------
@admin_router.get("", response_model=UserListResponse, dependencies=[Depends(require_admin)])
def list_all(status: Optional[str] = None, db: Session = Depends(get_db)):
    return {"data": list_users(db, status)}


@admin_router.put("/{user_id}", response_model=UserProfileResponse, dependencies=[Depends(require_admin)])
def update(
    user_id: str,
    data: UserProfileUpdate,
    db: Session = Depends(get_db),
    cache: QueryCache = Depends(get_cache),
):
    profile = update_profile(db, user_id, data)
    cache.invalidate("users")
    return profile


@admin_router.post("/{user_id}/suspend", response_model=UserProfileResponse)
def suspend(
    user_id: str,
    db: Session = Depends(get_db),
    cache: QueryCache = Depends(get_cache),
    caller: CallerIdentity = Depends(require_admin),
):
    profile = suspend_user(db, user_id, suspended_by=caller.id)
    cache.invalidate("users")
    return profile


@admin_router.post("/{user_id}/reactivate", response_model=UserProfileResponse)
def reactivate(
    user_id: str,
    db: Session = Depends(get_db),
    cache: QueryCache = Depends(get_cache),
    caller: CallerIdentity = Depends(require_admin),
):
    profile = reactivate_user(db, user_id, reactivated_by=caller.id)
    cache.invalidate("users")
    return profile


# --------------------------
# /api/auth
# --------------------------
@auth_router.get("/clients", response_model=UserListResponse, dependencies=[Depends(require_admin)])
def clients(
    status: str = "approved",
    db: Session = Depends(get_db),
    cache: QueryCache = Depends(get_cache),
):
    data = cache.get_or_set(
        ("users", "clients", status),
        lambda: [UserProfileResponse.model_validate(p).model_dump() for p in list_clients(db, status)],
    )
    return {"data": data}


@auth_router.post("/clients", response_model=ClientPreauthorizeResponse, status_code=status.HTTP_201_CREATED)
def preauthorize(
    data: ClientPreauthorize,
    db: Session = Depends(get_db),
    cache: QueryCache = Depends(get_cache),
    caller: CallerIdentity = Depends(require_admin),
    identity: IdentityProvider = Depends(get_identity_provider),
):
    profile, warning = preauthorize_client(db, identity, data, approved_by=caller.id)
    cache.invalidate("users")
    return ClientPreauthorizeResponse(
        user=UserProfileResponse.model_validate(profile),
        message=None if warning else "Client created and invitation email sent",
        warning=warning,
    )


# pending and disabled accounts may still ask who they are
@auth_router.get("/me", response_model=MeResponse)
def me(caller: CallerIdentity = Depends(get_token_caller), db: Session = Depends(get_db)):
    profile = get_profile(db, caller.id)
    return MeResponse(
        id=caller.id,
        email=caller.email,
        is_admin=caller.is_admin,
        profile=UserProfileResponse.model_validate(profile) if profile else None,
    )
