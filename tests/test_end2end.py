import uuid
import pytest

from pricing_portal.core.cache import QueryCache
from pricing_portal.routes.client_prices import bulk_adjust, set_price, summary
from pricing_portal.routes.products import create, list_all
from pricing_portal.schemas.client_price import BulkAdjustRequest, ClientPriceSet
from pricing_portal.schemas.product import ProductCreate
from pricing_portal.schemas.registration import RegistrationCreate
from pricing_portal.schemas.user import CallerIdentity
from pricing_portal.services.price_history_service import get_price_history
from pricing_portal.services.registration_service import approve_registration, submit_registration
from pricing_portal.services.user_service import get_profile

ADMIN = CallerIdentity(id="admin-e2e", email="admin@altavista.test", is_admin=True)


def _create_test_product(db, cache, code=None, base_price=100.0):
    payload = ProductCreate(
        code=code or f"E2E-{uuid.uuid4().hex[:6].upper()}",
        name="E2E Future-X Lens",
        base_price_usd=base_price,
        specifications={
            "kind": "finished_lens",
            "sphere": {"start": -4.0, "step": 0.25, "count": 33},
            "cylinder": {"start": -2.0, "step": 0.25, "count": 9},
        },
    )
    return create(payload, db=db, cache=cache, caller=ADMIN)


def _approved_client(db, identity, email="e2e@opticas.test"):
    request = submit_registration(db, RegistrationCreate(email=email, company_name="E2E Opticas"))
    approve_registration(db, identity, request.id, approved_by=ADMIN.id)
    db.refresh(request)
    profile = get_profile(db, request.user_id)
    return CallerIdentity(id=profile.id, email=profile.email, is_admin=False)


@pytest.mark.order(1)
def test_create_product_route_handler(db):
    cache = QueryCache()
    created = _create_test_product(db, cache, code="E2E-LENS-1", base_price=250.0)

    assert created.code == "E2E-LENS-1"
    assert created.specifications["kind"] == "finished_lens"

    listed = list_all(db=db, cache=cache, caller=ADMIN)
    assert [p["code"] for p in listed] == ["E2E-LENS-1"]


@pytest.mark.order(2)
def test_approved_client_sees_own_prices(db, identity):
    cache = QueryCache()
    product = _create_test_product(db, cache, base_price=100.0)
    caller = _approved_client(db, identity)

    set_price(
        ClientPriceSet(product_id=product.id, custom_price_usd=130.0),
        db=db, cache=cache, caller=caller,
    )

    listed = list_all(db=db, cache=cache, caller=caller)
    assert listed[0]["client_price"]["final_price_usd"] == pytest.approx(130.0)
    assert listed[0]["client_price"]["savings_usd"] == pytest.approx(-30.0)


@pytest.mark.order(3)
def test_bulk_adjust_flow_with_history(db, identity):
    cache = QueryCache()
    caller = _approved_client(db, identity)
    products = [_create_test_product(db, cache, base_price=price) for price in (80.0, 120.0)]
    for product in products:
        set_price(
            ClientPriceSet(product_id=product.id, discount_percentage=-25),
            db=db, cache=cache, caller=caller,
        )
    before = summary(db=db, caller=caller)

    down = bulk_adjust(BulkAdjustRequest(percentage=10), db=db, cache=cache, caller=caller)
    up = bulk_adjust(BulkAdjustRequest(percentage=-10), db=db, cache=cache, caller=caller)
    after = summary(db=db, caller=caller)

    assert down.updated == up.updated == 2
    assert after.total_value == pytest.approx(before.total_value)
    assert after.average_discount == pytest.approx(-25.0)

    items, total = get_price_history(db, user_id=caller.id, change_type="bulk_update")
    assert total == 4
    assert all(item.changed_by == caller.id for item in items)
