import pytest

from pricing_portal.core.errors import (
    ExternalServiceError,
    InvalidTransitionError,
    NotFoundError,
    ValidationError,
)
from pricing_portal.models.registration_request import RegistrationRequest
from pricing_portal.models.user_profile import RoleChangeError, UserProfile
from pricing_portal.schemas.registration import RegistrationCreate
from pricing_portal.services.registration_service import (
    approve_registration,
    list_registrations,
    reject_registration,
    submit_registration,
)
from pricing_portal.services.user_service import reactivate_user, suspend_user

ADMIN_ID = "admin-0001"


def _submit(db, email="Compras@OpticaNorte.test", company="Optica Norte"):
    return submit_registration(db, RegistrationCreate(email=email, company_name=company, phone="+57 300 000"))


@pytest.mark.order(1)
def test_submit_creates_pending_request(db):
    request = _submit(db)

    assert request.status == "pending"
    assert request.email == "compras@opticanorte.test"
    assert [r.id for r in list_registrations(db, "pending")] == [request.id]


@pytest.mark.order(2)
def test_duplicate_pending_request_is_rejected(db):
    _submit(db)
    with pytest.raises(ValidationError):
        _submit(db)


@pytest.mark.order(3)
def test_approve_creates_account_profile_and_sends_email(db, identity):
    request = _submit(db)

    result = approve_registration(db, identity, request.id, approved_by=ADMIN_ID)

    assert result.success is True
    assert result.warning is None
    assert result.email == "compras@opticanorte.test"

    db.refresh(request)
    assert request.status == "approved"
    assert request.approved_by == ADMIN_ID
    assert request.approved_at is not None

    account = identity.find_user_by_email(request.email)
    assert account["email_confirmed"] is True
    assert account["user_metadata"]["status"] == "approved"
    assert account["user_metadata"]["is_admin"] is False
    assert request.user_id == account["id"]

    profile = db.query(UserProfile).filter(UserProfile.id == account["id"]).one()
    assert profile.role == "client"
    assert profile.status == "approved"
    assert identity.emails_sent[0][0] == request.email
    assert identity.emails_sent[0][1].endswith("/setup-password")


@pytest.mark.order(4)
def test_approve_reuses_existing_account(db, identity):
    existing = identity.add_existing("compras@opticanorte.test")
    request = _submit(db)

    approve_registration(db, identity, request.id, approved_by=ADMIN_ID)

    assert identity.created == []
    assert len(identity.users) == 1
    db.refresh(request)
    assert request.user_id == existing["id"]


@pytest.mark.order(5)
@pytest.mark.parametrize("final_state", ["approved", "rejected"])
def test_approve_requires_pending(db, identity, final_state):
    request = _submit(db)
    if final_state == "approved":
        approve_registration(db, identity, request.id, approved_by=ADMIN_ID)
    else:
        reject_registration(db, request.id, "Not an optical business", rejected_by=ADMIN_ID)
    accounts_before = dict(identity.users)

    with pytest.raises(InvalidTransitionError) as exc:
        approve_registration(db, identity, request.id, approved_by=ADMIN_ID)

    assert exc.value.status_code == 400
    db.refresh(request)
    assert request.status == final_state
    assert identity.users == accounts_before


@pytest.mark.order(6)
def test_reject_requires_reason(db):
    request = _submit(db)

    with pytest.raises(ValidationError):
        reject_registration(db, request.id, "   ", rejected_by=ADMIN_ID)
    db.refresh(request)
    assert request.status == "pending"

    rejected = reject_registration(db, request.id, "Duplicate company", rejected_by=ADMIN_ID)
    assert rejected.status == "rejected"
    assert rejected.rejection_reason == "Duplicate company"
    assert rejected.rejected_by == ADMIN_ID


@pytest.mark.order(7)
def test_missing_request_is_not_found(db, identity):
    with pytest.raises(NotFoundError):
        approve_registration(db, identity, "no-such-request", approved_by=ADMIN_ID)


@pytest.mark.order(8)
@pytest.mark.parametrize("rate_limited", [True, False])
def test_email_failure_keeps_approval(db, identity, rate_limited):
    identity.email_error = ExternalServiceError("smtp down", rate_limited=rate_limited)
    request = _submit(db)

    result = approve_registration(db, identity, request.id, approved_by=ADMIN_ID)

    assert result.success is True
    assert result.warning
    assert ("rate limit" in result.warning) is rate_limited
    db.refresh(request)
    assert request.status == "approved"


@pytest.mark.order(9)
def test_failed_metadata_update_removes_new_account(db, identity):
    identity.fail_metadata_update = True
    request = _submit(db)

    with pytest.raises(ExternalServiceError):
        approve_registration(db, identity, request.id, approved_by=ADMIN_ID)

    assert identity.users == {}
    assert len(identity.deleted) == 1
    db.refresh(request)
    assert request.status == "pending"
    assert db.query(UserProfile).count() == 0


@pytest.mark.order(10)
def test_failed_metadata_update_keeps_reused_account(db, identity):
    existing = identity.add_existing("compras@opticanorte.test")
    identity.fail_metadata_update = True
    request = _submit(db)

    with pytest.raises(ExternalServiceError):
        approve_registration(db, identity, request.id, approved_by=ADMIN_ID)

    assert existing["id"] in identity.users
    assert identity.deleted == []


@pytest.mark.order(11)
def test_suspend_and_reactivate(db, identity):
    request = _submit(db)
    approve_registration(db, identity, request.id, approved_by=ADMIN_ID)
    db.refresh(request)

    assert suspend_user(db, request.user_id, ADMIN_ID).status == "suspended"
    with pytest.raises(InvalidTransitionError):
        suspend_user(db, request.user_id, ADMIN_ID)

    profile = reactivate_user(db, request.user_id, ADMIN_ID)
    assert profile.status == "approved"
    with pytest.raises(InvalidTransitionError):
        reactivate_user(db, request.user_id, ADMIN_ID)


@pytest.mark.order(12)
def test_role_cannot_change(db, make_client):
    profile = make_client()
    profile.role = "admin"
    with pytest.raises(RoleChangeError):
        db.flush()
    db.rollback()


@pytest.mark.order(13)
def test_registration_flow_over_http(client, db, identity, admin_headers):
    response = client.post(
        "/api/registrations",
        json={"email": "ventas@visionplus.test", "company_name": "Vision Plus", "phone": "555-0101"},
    )
    assert response.status_code == 201
    request_id = response.json()["id"]
    assert response.json()["status"] == "pending"

    listed = client.get("/api/admin/registrations?status=pending", headers=admin_headers)
    assert [r["id"] for r in listed.json()["requests"]] == [request_id]

    approved = client.post(
        "/api/admin/approve-registration",
        json={"requestId": request_id, "email": "ignored@ui.test", "company_name": "Vision Plus"},
        headers=admin_headers,
    )
    assert approved.status_code == 200
    body = approved.json()
    assert body["success"] is True
    assert body["email"] == "ventas@visionplus.test"
    assert body["message"] == "Registration approved and invitation email sent"

    user_id = db.query(RegistrationRequest).filter(RegistrationRequest.id == request_id).one().user_id

    suspended = client.post(f"/api/admin/users/{user_id}/suspend", headers=admin_headers)
    assert suspended.json()["status"] == "suspended"

    reactivated = client.post(f"/api/admin/users/{user_id}/reactivate", headers=admin_headers)
    assert reactivated.json()["status"] == "approved"

    again = client.post(
        "/api/admin/approve-registration", json={"requestId": request_id}, headers=admin_headers
    )
    assert again.status_code == 400
    assert again.json()["detail"] == "Cannot approve registration request with status 'approved'"


@pytest.mark.order(14)
def test_reject_over_http_requires_reason(client, admin_headers):
    request_id = client.post(
        "/api/registrations",
        json={"email": "info@lentesdelsur.test", "company_name": "Lentes del Sur"},
    ).json()["id"]

    missing = client.post(
        "/api/admin/reject-registration", json={"requestId": request_id}, headers=admin_headers
    )
    assert missing.status_code == 400

    rejected = client.post(
        "/api/admin/reject-registration",
        json={"requestId": request_id, "reason": "Outside service area"},
        headers=admin_headers,
    )
    assert rejected.status_code == 200
    assert rejected.json()["status"] == "rejected"


@pytest.mark.order(15)
def test_invalid_email_is_a_bad_request(client):
    response = client.post("/api/registrations", json={"email": "not-an-email", "company_name": "X"})
    assert response.status_code == 400
