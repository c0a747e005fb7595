# pricing_portal/core/security.py
from datetime import datetime, timedelta
from typing import Any, Dict, Optional

from jose import jwt, JWTError

from pricing_portal.core.config import settings
from pricing_portal.schemas.user import CallerIdentity


# Create Access Token
# Tokens are normally minted by the identity provider; this mirrors its claim
# layout for local tooling and tests.
def create_access_token(
    user_id: str,
    email: Optional[str] = None,
    user_metadata: Optional[Dict[str, Any]] = None,
    expires_minutes: Optional[int] = None,
) -> str:
    expire = datetime.utcnow() + timedelta(
        minutes=expires_minutes or settings.ACCESS_TOKEN_EXPIRE_MINUTES
    )
    data = {
        "sub": user_id,
        "email": email,
        "aud": settings.JWT_AUDIENCE,
        "role": "authenticated",
        "user_metadata": user_metadata or {},
        "exp": expire,
    }
    return jwt.encode(data, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


# Base decode
def _decode_raw(token: str) -> Optional[dict]:
    try:
        return jwt.decode(
            token,
            settings.SECRET_KEY,
            algorithms=[settings.ALGORITHM],
            audience=settings.JWT_AUDIENCE,
        )
    except JWTError:
        return None


# Decode Access Token
def decode_access_token(token: str) -> CallerIdentity:
    payload = _decode_raw(token)
    if not payload:
        return CallerIdentity()
    metadata = payload.get("user_metadata") or {}
    return CallerIdentity(
        id=payload.get("sub"),
        email=payload.get("email"),
        is_admin=metadata.get("is_admin") is True,
    )
