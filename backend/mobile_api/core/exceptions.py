"""Custom exception classes for the application"""

from typing import Optional, Dict, Any


class BaseAPIException(Exception):
    """Base exception for all API errors"""

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        code: str = "SERVER_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.status_code = status_code
        self.code = code
        self.details = details or {}
        super().__init__(self.message)


# Authentication Errors
class AuthenticationError(BaseAPIException):
    """Base authentication error"""
    def __init__(self, message: str = "Authentication failed", code: str = "AUTH_ERROR"):
        super().__init__(message, status_code=401, code=code)


class NoTokenError(AuthenticationError):
    """Authorization header missing or not a Bearer credential"""
    def __init__(self):
        super().__init__("No token provided", code="NO_TOKEN")


class TokenInvalidError(AuthenticationError):
    """JWT signature, structure or embedded expiry check failed"""
    def __init__(self):
        super().__init__("Invalid or expired token", code="INVALID_TOKEN")


class SessionExpiredError(AuthenticationError):
    """No live session row backs the presented token"""
    def __init__(self):
        super().__init__("Session expired", code="SESSION_EXPIRED")


class UserNotFoundError(AuthenticationError):
    """Token refers to a user that no longer exists"""
    def __init__(self):
        super().__init__("User not found", code="USER_NOT_FOUND")


class InvalidCredentialsError(AuthenticationError):
    """Invalid email or password"""
    def __init__(self):
        super().__init__("Invalid email or password", code="INVALID_CREDENTIALS")


class InvalidPasswordError(AuthenticationError):
    """Password re-confirmation failed for a signed-in user"""
    def __init__(self, message: str = "Password is incorrect"):
        super().__init__(message, code="INVALID_PASSWORD")


# Authorization Errors
class AuthorizationError(BaseAPIException):
    """Insufficient permissions"""
    def __init__(self, message: str = "Access denied"):
        super().__init__(message, status_code=403, code="FORBIDDEN")


# Resource Errors
class ResourceNotFoundError(BaseAPIException):
    """Resource not found"""
    def __init__(self, resource: str):
        super().__init__(f"{resource} not found", status_code=404, code="NOT_FOUND")


# Validation Errors
class ValidationError(BaseAPIException):
    """Validation error"""
    def __init__(
        self,
        message: str,
        code: str = "VALIDATION_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message, status_code=400, code=code, details=details)


class DuplicateEmailError(ValidationError):
    """Email already registered"""
    def __init__(self):
        super().__init__("Email already registered", code="EMAIL_EXISTS")


# Upstream Errors
class UpstreamError(BaseAPIException):
    """An external collaborator (object store, cloud API) failed"""
    def __init__(self, message: str = "Upstream service failed", code: str = "UPSTREAM_ERROR"):
        super().__init__(message, status_code=502, code=code)


class StorageError(UpstreamError):
    """Object storage operation failed"""
    def __init__(self, message: str = "Storage operation failed"):
        super().__init__(message, code="STORAGE_ERROR")


class StorageNotConfiguredError(BaseAPIException):
    """Object storage bucket is not configured"""
    def __init__(self):
        super().__init__("Spaces bucket not configured", status_code=503, code="STORAGE_NOT_CONFIGURED")


class RateLimitExceededError(BaseAPIException):
    """Rate limit exceeded"""
    def __init__(
        self,
        message: str = "Too many requests, please try again later",
        code: str = "RATE_LIMIT_EXCEEDED"
    ):
        super().__init__(message, status_code=429, code=code)
