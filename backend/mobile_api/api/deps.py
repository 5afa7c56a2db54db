"""API dependencies - authentication, rate ceilings and collaborators"""

from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from typing import Optional

from mobile_api.config import settings
from mobile_api.core.database import get_db
from mobile_api.core.exceptions import RateLimitExceededError
from mobile_api.models.user import User
from mobile_api.services.rate_limiter import rate_limiter
from mobile_api.services.session_service import AuthenticatedSession, session_service
from mobile_api.services.storage_service import StorageClient, get_storage_client

# HTTP Bearer token scheme; missing credentials are reported as NO_TOKEN, not 403
security = HTTPBearer(auto_error=False)


def _bearer_token(credentials: Optional[HTTPAuthorizationCredentials]) -> Optional[str]:
    return credentials.credentials if credentials else None


def get_auth_session(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db)
) -> AuthenticatedSession:
    """
    Validate the bearer token against its signature and live session row

    Args:
        credentials: HTTP Bearer credentials
        db: Database session

    Returns:
        The authenticated user with decoded token claims

    Raises:
        AuthenticationError: NO_TOKEN, INVALID_TOKEN, SESSION_EXPIRED or USER_NOT_FOUND
    """
    return session_service.validate(db, _bearer_token(credentials))


def get_current_user(
    auth: AuthenticatedSession = Depends(get_auth_session)
) -> User:
    """Get current authenticated user"""
    return auth.user


def get_optional_auth_session(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db)
) -> Optional[AuthenticatedSession]:
    """Same checks as get_auth_session, but never rejects the request."""
    return session_service.validate_optional(db, _bearer_token(credentials))


def get_optional_current_user(
    auth: Optional[AuthenticatedSession] = Depends(get_optional_auth_session)
) -> Optional[User]:
    """Get current user if authenticated, None otherwise"""
    return auth.user if auth else None


def get_storage() -> StorageClient:
    return get_storage_client()


def client_ip(request: Request) -> str:
    return request.client.host if request.client else "unknown"


def auth_rate_limit(request: Request) -> None:
    """Stricter ceiling for credential endpoints (signup/login)."""
    key = f"auth:{client_ip(request)}"
    if not rate_limiter.allow(key, settings.AUTH_RATE_LIMIT, settings.RATE_LIMIT_WINDOW_SECONDS):
        raise RateLimitExceededError(
            "Too many authentication attempts, please try again later",
            code="AUTH_RATE_LIMIT"
        )
