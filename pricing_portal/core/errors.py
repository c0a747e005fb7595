"""
Error taxonomy for the portal.

Every error is an ``HTTPException`` so services and routes can raise them
directly and FastAPI renders ``{"detail": ...}`` with the right status code.
"""
from typing import Any, Dict, List, Optional

from fastapi import HTTPException, status


class PortalError(HTTPException):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, detail: Any, headers: Optional[Dict[str, str]] = None):
        super().__init__(status_code=self.status_code, detail=detail, headers=headers)


class ValidationError(PortalError):
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, detail: Any, errors: Optional[List[str]] = None):
        super().__init__(detail)
        self.errors = errors or []


class InvalidTransitionError(ValidationError):
    """Raised when a lifecycle transition is attempted from the wrong state."""

    def __init__(self, entity: str, current: str, action: str):
        super().__init__(f"Cannot {action} {entity} with status '{current}'")
        self.current = current
        self.action = action


class AuthenticationError(PortalError):
    status_code = status.HTTP_401_UNAUTHORIZED

    def __init__(self, detail: str = "Unauthorized"):
        super().__init__(detail, headers={"WWW-Authenticate": "Bearer"})


class AuthorizationError(PortalError):
    status_code = status.HTTP_403_FORBIDDEN


class NotFoundError(PortalError):
    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(PortalError):
    status_code = status.HTTP_409_CONFLICT


class ExternalServiceError(PortalError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, detail: str, rate_limited: bool = False):
        super().__init__(detail)
        self.rate_limited = rate_limited


class ConfigurationError(PortalError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, detail: str):
        super().__init__(f"Server configuration error: {detail}")
