"""User service - handles signup, credential checks and profile management"""

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from typing import Any, Dict, Optional
import logging
import re

from mobile_api.config import settings
from mobile_api.core.database import utc_now
from mobile_api.models.user import User
from mobile_api.core.security import get_password_hash, verify_password
from mobile_api.core.exceptions import (
    DuplicateEmailError,
    InvalidCredentialsError,
    InvalidPasswordError,
    ValidationError,
)
from mobile_api.services.item_service import item_service
from mobile_api.services.storage_service import StorageClient

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

PROFILE_FIELDS = ("name", "avatar_url")


class UserService:
    """Service for user management"""

    @staticmethod
    def normalize_email(email: str) -> str:
        return email.strip().lower()

    @staticmethod
    def validate_new_password(password: str, message: str = "Password must be at least 8 characters") -> None:
        if len(password) < settings.PASSWORD_MIN_LENGTH:
            raise ValidationError(message, code="WEAK_PASSWORD")

    @staticmethod
    def create_user(db: Session, email: Optional[str], password: Optional[str], name: Optional[str] = None) -> User:
        """
        Register a new user

        Args:
            db: Database session
            email: Email address (stored lower-cased)
            password: Plain text password, at least PASSWORD_MIN_LENGTH chars
            name: Optional display name

        Returns:
            Created user
        """
        if not email or not password:
            raise ValidationError("Email and password are required", code="MISSING_FIELDS")

        email = UserService.normalize_email(email)
        if not EMAIL_PATTERN.match(email):
            raise ValidationError("Invalid email format", code="INVALID_EMAIL")

        UserService.validate_new_password(password)

        if UserService.get_user_by_email(db, email):
            raise DuplicateEmailError()

        user = User(
            email=email,
            password_hash=get_password_hash(password),
            name=name or None,
        )
        db.add(user)
        try:
            db.commit()
        except IntegrityError:
            # Lost a race with a concurrent signup for the same email.
            db.rollback()
            raise DuplicateEmailError()
        db.refresh(user)

        logger.info(f"Created user: {user.email}")
        return user

    @staticmethod
    def authenticate_user(db: Session, email: Optional[str], password: Optional[str]) -> User:
        """
        Check credentials; unknown email and wrong password are indistinguishable

        Args:
            db: Database session
            email: Email address
            password: Password

        Returns:
            Authenticated user
        """
        if not email or not password:
            raise ValidationError("Email and password are required", code="MISSING_FIELDS")

        user = UserService.get_user_by_email(db, UserService.normalize_email(email))
        if not user or not verify_password(password, user.password_hash):
            raise InvalidCredentialsError()

        user.last_login = utc_now()
        db.commit()
        db.refresh(user)

        logger.info(f"User authenticated: {user.email}")
        return user

    @staticmethod
    def get_user_by_email(db: Session, email: str) -> Optional[User]:
        """Get user by (normalised) email"""
        return db.query(User).filter(User.email == email).first()

    @staticmethod
    def update_profile(db: Session, user: User, changes: Dict[str, Any]) -> User:
        """
        Apply a partial profile update as one parameterised UPDATE

        Args:
            db: Database session
            user: User being updated
            changes: Mapping of field name to new value; only present keys apply

        Returns:
            Updated user
        """
        values = {key: value for key, value in changes.items() if key in PROFILE_FIELDS}
        if not values:
            raise ValidationError("No fields to update", code="NO_UPDATES")

        values["updated_at"] = utc_now()
        db.query(User).filter(User.id == user.id).update(values, synchronize_session=False)
        db.commit()
        db.refresh(user)
        return user

    @staticmethod
    def change_password(
        db: Session,
        user: User,
        current_password: Optional[str],
        new_password: Optional[str]
    ) -> None:
        """
        Replace the password hash after re-checking the current password

        A wrong current password leaves the stored hash untouched.
        """
        if not current_password or not new_password:
            raise ValidationError("Current and new password are required", code="MISSING_FIELDS")

        UserService.validate_new_password(new_password, "New password must be at least 8 characters")

        if not verify_password(current_password, user.password_hash):
            raise InvalidPasswordError("Current password is incorrect")

        db.query(User).filter(User.id == user.id).update(
            {"password_hash": get_password_hash(new_password), "updated_at": utc_now()},
            synchronize_session=False,
        )
        db.commit()
        db.refresh(user)
        logger.info(f"Password changed for user: {user.email}")

    @staticmethod
    def delete_account(db: Session, user: User, password: Optional[str], storage: StorageClient) -> None:
        """
        Delete the account after password confirmation

        Blobs of the user's uploads are removed best-effort first; the row
        delete cascades to items, sessions and uploads.
        """
        if not password:
            raise ValidationError("Password is required to delete account", code="MISSING_PASSWORD")

        if not verify_password(password, user.password_hash):
            raise InvalidPasswordError()

        item_service.purge_upload_blobs(storage, user.uploads)

        email = user.email
        db.delete(user)
        db.commit()
        logger.info(f"Deleted user: {email}")


# Singleton instance
user_service = UserService()
