"""Pydantic schemas for API validation"""

from mobile_api.schemas.user import (
    SignupRequest,
    LoginRequest,
    UserResponse,
    AuthResponse,
    RefreshResponse,
    ProfileUpdate,
    PasswordChangeRequest,
    AccountDeleteRequest,
)
from mobile_api.schemas.item import ItemCreate, ItemUpdate, UploadCreate
from mobile_api.schemas.response import APIResponse, ErrorResponse

__all__ = [
    "SignupRequest", "LoginRequest", "UserResponse", "AuthResponse", "RefreshResponse",
    "ProfileUpdate", "PasswordChangeRequest", "AccountDeleteRequest",
    "ItemCreate", "ItemUpdate", "UploadCreate",
    "APIResponse", "ErrorResponse"
]
