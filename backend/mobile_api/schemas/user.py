"""User and authentication schemas"""

from pydantic import BaseModel, ConfigDict
from typing import Optional
from datetime import datetime


class SignupRequest(BaseModel):
    """Signup schema - format and strength checks live in user_service"""
    email: Optional[str] = None
    password: Optional[str] = None
    name: Optional[str] = None


class LoginRequest(BaseModel):
    """User login schema"""
    email: Optional[str] = None
    password: Optional[str] = None


class UserResponse(BaseModel):
    """User response schema (no secret fields)"""
    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    name: Optional[str] = None
    avatar_url: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    last_login: Optional[datetime] = None


class AuthResponse(BaseModel):
    """Token issued on signup/login"""
    success: bool = True
    token: str
    user: UserResponse


class RefreshResponse(BaseModel):
    """Replacement token"""
    success: bool = True
    token: str


class ProfileUpdate(BaseModel):
    """Partial profile update; only fields present in the body are applied"""
    name: Optional[str] = None
    avatar_url: Optional[str] = None


class PasswordChangeRequest(BaseModel):
    current_password: Optional[str] = None
    new_password: Optional[str] = None


class AccountDeleteRequest(BaseModel):
    password: Optional[str] = None
