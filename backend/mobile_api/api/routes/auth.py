"""Authentication routes"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from mobile_api.core.database import get_db
from mobile_api.schemas.response import APIResponse
from mobile_api.schemas.user import (
    SignupRequest,
    LoginRequest,
    AuthResponse,
    RefreshResponse,
    UserResponse,
)
from mobile_api.services.user_service import user_service
from mobile_api.services.session_service import AuthenticatedSession, session_service
from mobile_api.api.deps import auth_rate_limit, get_auth_session, get_current_user
from mobile_api.models.user import User

router = APIRouter()


@router.post(
    "/signup",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(auth_rate_limit)],
)
def signup(
    body: SignupRequest,
    db: Session = Depends(get_db)
):
    """
    Signup endpoint - create account and open its first session

    Args:
        body: Email, password and optional display name
        db: Database session

    Returns:
        JWT token and user info
    """
    user = user_service.create_user(db, body.email, body.password, body.name)
    token = session_service.issue(db, user)

    return AuthResponse(token=token, user=UserResponse.model_validate(user))


@router.post(
    "/login",
    response_model=AuthResponse,
    status_code=status.HTTP_200_OK,
    dependencies=[Depends(auth_rate_limit)],
)
def login(
    credentials: LoginRequest,
    db: Session = Depends(get_db)
):
    """
    Login endpoint - authenticate user and return JWT token

    Each login opens an independent session; earlier sessions stay valid.
    """
    user = user_service.authenticate_user(db, credentials.email, credentials.password)
    token = session_service.issue(db, user)

    return AuthResponse(token=token, user=UserResponse.model_validate(user))


@router.post("/logout", status_code=status.HTTP_200_OK)
def logout(
    auth: AuthenticatedSession = Depends(get_auth_session),
    db: Session = Depends(get_db)
):
    """
    Logout endpoint - revoke the session behind the presented token

    Returns:
        Success message
    """
    session_service.revoke(db, auth.token_id)

    return APIResponse(message="Logged out successfully")


@router.post("/refresh", response_model=RefreshResponse)
def refresh_token(
    auth: AuthenticatedSession = Depends(get_auth_session),
    db: Session = Depends(get_db),
):
    """
    Refresh token - the presented token stops validating immediately

    Returns:
        New JWT token
    """
    token = session_service.refresh(db, auth.token_id, auth.user)
    return RefreshResponse(token=token)


@router.get("/me")
def get_current_user_info(
    current_user: User = Depends(get_current_user)
):
    """Get current user information"""
    return {
        "success": True,
        "user": UserResponse.model_validate(current_user)
    }
