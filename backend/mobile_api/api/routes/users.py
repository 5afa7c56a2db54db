"""User profile routes"""

from fastapi import APIRouter, Body, Depends, status
from sqlalchemy.orm import Session
from typing import Optional

from mobile_api.core.database import get_db
from mobile_api.schemas.response import APIResponse
from mobile_api.schemas.user import (
    AccountDeleteRequest,
    PasswordChangeRequest,
    ProfileUpdate,
    UserResponse,
)
from mobile_api.services.item_service import item_service
from mobile_api.services.storage_service import StorageClient
from mobile_api.services.user_service import user_service
from mobile_api.api.deps import get_current_user, get_storage
from mobile_api.models.user import User

router = APIRouter()


@router.get("/me")
def get_my_profile(
    current_user: User = Depends(get_current_user)
):
    """Get current user profile"""
    return {
        "success": True,
        "user": UserResponse.model_validate(current_user)
    }


@router.put("/me")
def update_my_profile(
    body: ProfileUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Update current user profile

    Args:
        body: Fields to change (name, avatar_url); absent fields are left alone
        current_user: Current authenticated user
        db: Database session

    Returns:
        Updated profile
    """
    user = user_service.update_profile(db, current_user, body.model_dump(exclude_unset=True))
    return {
        "success": True,
        "user": UserResponse.model_validate(user)
    }


@router.put("/me/password")
def change_my_password(
    body: PasswordChangeRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Change user password

    Returns:
        Success message
    """
    user_service.change_password(db, current_user, body.current_password, body.new_password)
    return APIResponse(message="Password updated successfully")


@router.get("/me/items")
def get_my_items(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Get all items owned by current user"""
    items = item_service.list_items(db, current_user)
    return {
        "success": True,
        "count": len(items),
        "items": [item.to_dict() for item in items]
    }


@router.delete("/me", status_code=status.HTTP_200_OK)
def delete_my_account(
    body: Optional[AccountDeleteRequest] = Body(default=None),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    storage: StorageClient = Depends(get_storage)
):
    """
    Delete current user account (cascades to items, sessions and uploads)

    Args:
        body: Password confirmation
        current_user: Current authenticated user
        db: Database session
        storage: Object storage bridge

    Returns:
        Success message
    """
    password = body.password if body else None
    user_service.delete_account(db, current_user, password, storage)

    return APIResponse(message="Account deleted successfully")
