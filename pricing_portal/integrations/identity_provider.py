"""
Admin client for the hosted identity provider (Supabase GoTrue API).

Only the calls the portal needs: look up, create, update and delete
accounts, and trigger the password-setup (recovery) email.
"""
import logging
from typing import Any, Dict, Optional

import httpx

from pricing_portal.core.config import settings
from pricing_portal.core.errors import ConfigurationError, ExternalServiceError

logger = logging.getLogger(__name__)

USERS_PER_PAGE = 200


class IdentityProvider:
    def __init__(
        self,
        base_url: Optional[str],
        service_key: Optional[str],
        timeout: float = 15.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        if not base_url or not service_key:
            raise ConfigurationError("Service role key not found")

        self._client = httpx.Client(
            base_url=f"{base_url.rstrip('/')}/auth/v1",
            headers={
                "apikey": service_key,
                "Authorization": f"Bearer {service_key}",
            },
            timeout=timeout,
            transport=transport,
        )

    def close(self) -> None:
        self._client.close()

    # --------------------------
    # transport
    # --------------------------
    def _request(self, method: str, path: str, **kwargs) -> Any:
        try:
            response = self._client.request(method, path, **kwargs)
        except httpx.HTTPError as exc:
            logger.error("identity provider %s %s failed: %s", method, path, exc)
            raise ExternalServiceError(f"Identity provider unreachable: {exc}")

        if response.status_code == 429:
            raise ExternalServiceError(
                "Email rate limit exceeded. Please try again later.", rate_limited=True
            )
        if response.status_code >= 400:
            raise ExternalServiceError(_error_message(response))

        if not response.content:
            return None
        return response.json()

    # --------------------------
    # accounts
    # --------------------------
    def find_user_by_email(self, email: str) -> Optional[Dict[str, Any]]:
        email = email.strip().lower()
        page = 1
        while True:
            body = self._request(
                "GET", "/admin/users", params={"page": page, "per_page": USERS_PER_PAGE}
            ) or {}
            users = body.get("users", [])
            for user in users:
                if (user.get("email") or "").lower() == email:
                    return user
            if len(users) < USERS_PER_PAGE:
                return None
            page += 1

    def get_user(self, user_id: str) -> Dict[str, Any]:
        return self._request("GET", f"/admin/users/{user_id}")

    def create_user(
        self,
        email: str,
        password: str,
        email_confirm: bool = True,
        user_metadata: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        user = self._request(
            "POST",
            "/admin/users",
            json={
                "email": email,
                "password": password,
                "email_confirm": email_confirm,
                "user_metadata": user_metadata or {},
            },
        )
        logger.info("identity account created for %s", email)
        return user

    def update_user_metadata(self, user_id: str, user_metadata: Dict[str, Any]) -> Dict[str, Any]:
        return self._request(
            "PUT", f"/admin/users/{user_id}", json={"user_metadata": user_metadata}
        )

    def delete_user(self, user_id: str) -> None:
        self._request("DELETE", f"/admin/users/{user_id}")
        logger.info("identity account %s deleted", user_id)

    # --------------------------
    # email
    # --------------------------
    def send_password_setup_email(self, email: str, redirect_to: Optional[str] = None) -> None:
        params = {"redirect_to": redirect_to} if redirect_to else None
        self._request("POST", "/recover", params=params, json={"email": email})


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return f"Identity provider error ({response.status_code})"
    for key in ("msg", "message", "error_description", "error"):
        if isinstance(body, dict) and body.get(key):
            return str(body[key])
    return f"Identity provider error ({response.status_code})"


def build_identity_provider() -> IdentityProvider:
    return IdentityProvider(
        settings.SUPABASE_URL,
        settings.SUPABASE_SERVICE_ROLE_KEY,
        timeout=settings.IDENTITY_TIMEOUT_SECONDS,
    )


def password_setup_redirect() -> str:
    return f"{settings.SITE_URL.rstrip('/')}/setup-password"
