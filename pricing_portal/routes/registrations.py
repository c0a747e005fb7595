from typing import Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from pricing_portal.core.cache import QueryCache
from pricing_portal.database.connection import get_db
from pricing_portal.dependencies.auth import require_admin
from pricing_portal.dependencies.providers import get_cache, get_identity_provider
from pricing_portal.integrations.identity_provider import IdentityProvider
from pricing_portal.schemas.registration import (
    ApprovalResponse,
    ApproveRegistrationRequest,
    RegistrationCreate,
    RegistrationListResponse,
    RegistrationResponse,
    RejectRegistrationRequest,
)
from pricing_portal.schemas.user import CallerIdentity
from pricing_portal.services.registration_service import (
    approve_registration,
    list_registrations,
    reject_registration,
    submit_registration,
)

router = APIRouter(tags=["Registrations"])


# public sign-up form
@router.post("/api/registrations", response_model=RegistrationResponse, status_code=status.HTTP_201_CREATED)
def submit(data: RegistrationCreate, db: Session = Depends(get_db)):
    return submit_registration(db, data)


@router.get(
    "/api/admin/registrations",
    response_model=RegistrationListResponse,
    dependencies=[Depends(require_admin)],
)
def list_all(status: Optional[str] = None, db: Session = Depends(get_db)):
    return {"requests": list_registrations(db, status)}


@router.post("/api/admin/approve-registration", response_model=ApprovalResponse)
def approve(
    data: ApproveRegistrationRequest,
    db: Session = Depends(get_db),
    cache: QueryCache = Depends(get_cache),
    caller: CallerIdentity = Depends(require_admin),
    identity: IdentityProvider = Depends(get_identity_provider),
):
    result = approve_registration(db, identity, data.request_id, approved_by=caller.id)
    cache.invalidate("users")
    return result


@router.post("/api/admin/reject-registration", response_model=RegistrationResponse)
def reject(
    data: RejectRegistrationRequest,
    db: Session = Depends(get_db),
    caller: CallerIdentity = Depends(require_admin),
):
    return reject_registration(db, data.request_id, data.reason, rejected_by=caller.id)
