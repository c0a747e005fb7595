import json

import httpx
import pytest

from pricing_portal.core.errors import ConfigurationError, ExternalServiceError
from pricing_portal.integrations.identity_provider import USERS_PER_PAGE, IdentityProvider

SERVICE_KEY = "service-role-key"


def _provider(handler):
    return IdentityProvider(
        "https://idp.example.test/", SERVICE_KEY, transport=httpx.MockTransport(handler)
    )


def _page(start, count):
    return [{"id": f"user-{n}", "email": f"user{n}@opticas.test"} for n in range(start, start + count)]


@pytest.mark.parametrize("base_url, key", [(None, SERVICE_KEY), ("https://idp.example.test", None), ("", "")])
def test_missing_url_or_key_is_a_configuration_error(base_url, key):
    with pytest.raises(ConfigurationError):
        IdentityProvider(base_url, key)


def test_requests_carry_service_key_and_auth_prefix():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json={"id": "user-1", "email": "a@opticas.test"})

    user = _provider(handler).get_user("user-1")

    assert user["id"] == "user-1"
    assert str(seen[0].url) == "https://idp.example.test/auth/v1/admin/users/user-1"
    assert seen[0].headers["apikey"] == SERVICE_KEY
    assert seen[0].headers["authorization"] == f"Bearer {SERVICE_KEY}"


def test_find_user_by_email_walks_pages():
    pages = {1: _page(0, USERS_PER_PAGE), 2: _page(USERS_PER_PAGE, 3)}
    requested = []

    def handler(request):
        page = int(request.url.params["page"])
        requested.append(page)
        assert request.url.params["per_page"] == str(USERS_PER_PAGE)
        return httpx.Response(200, json={"users": pages.get(page, [])})

    provider = _provider(handler)
    target = f"USER{USERS_PER_PAGE + 1}@opticas.test"

    assert provider.find_user_by_email(target)["id"] == f"user-{USERS_PER_PAGE + 1}"
    assert requested == [1, 2]

    requested.clear()
    assert provider.find_user_by_email("nobody@opticas.test") is None
    assert requested == [1, 2]


def test_rate_limit_is_flagged():
    provider = _provider(lambda request: httpx.Response(429, json={"msg": "too many"}))

    with pytest.raises(ExternalServiceError) as exc:
        provider.send_password_setup_email("a@opticas.test", "https://portal.test/setup-password")

    assert exc.value.rate_limited is True
    assert exc.value.status_code == 500


@pytest.mark.parametrize(
    "response, detail",
    [
        (httpx.Response(422, json={"msg": "Password should be at least 6 characters"}),
         "Password should be at least 6 characters"),
        (httpx.Response(400, json={"error_description": "User already registered"}),
         "User already registered"),
        (httpx.Response(503, text="<html>upstream down</html>"), "Identity provider error (503)"),
        (httpx.Response(500, json={"unexpected": True}), "Identity provider error (500)"),
    ],
)
def test_error_responses_become_external_service_errors(response, detail):
    provider = _provider(lambda request: response)

    with pytest.raises(ExternalServiceError) as exc:
        provider.create_user("a@opticas.test", "pw")

    assert exc.value.detail == detail
    assert exc.value.rate_limited is False


def test_unreachable_provider_is_an_external_service_error():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(ExternalServiceError) as exc:
        _provider(handler).delete_user("user-1")

    assert "unreachable" in exc.value.detail


def test_create_update_and_recover_payloads():
    calls = []

    def handler(request):
        calls.append((request.method, request.url.path, dict(request.url.params), request.content))
        if request.method == "POST" and request.url.path.endswith("/admin/users"):
            return httpx.Response(200, json={"id": "user-9", "email": "new@opticas.test"})
        if request.method == "PUT":
            return httpx.Response(200, json={"id": "user-9"})
        return httpx.Response(200)

    provider = _provider(handler)
    created = provider.create_user("new@opticas.test", "pw", user_metadata={"status": "approved"})
    provider.update_user_metadata("user-9", {"is_admin": False})
    assert provider.send_password_setup_email("new@opticas.test", "https://portal.test/setup-password") is None

    assert created["id"] == "user-9"
    create, update, recover = calls
    assert json.loads(create[3]) == {
        "email": "new@opticas.test",
        "password": "pw",
        "email_confirm": True,
        "user_metadata": {"status": "approved"},
    }
    assert (update[0], update[1]) == ("PUT", "/auth/v1/admin/users/user-9")
    assert json.loads(update[3]) == {"user_metadata": {"is_admin": False}}
    assert recover[1] == "/auth/v1/recover"
    assert recover[2] == {"redirect_to": "https://portal.test/setup-password"}
    assert json.loads(recover[3]) == {"email": "new@opticas.test"}
