"""Security utilities - JWT encoding and password hashing"""

from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any, Sequence
from jose import JWTError, jwt
import bcrypt
from mobile_api.config import settings


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Verify a password against its hash

    Args:
        plain_password: Plain text password
        hashed_password: Hashed password

    Returns:
        bool: True if password matches
    """
    try:
        return bcrypt.checkpw(
            plain_password.encode('utf-8'),
            hashed_password.encode('utf-8')
        )
    except ValueError:
        # Stored value is not a bcrypt hash.
        return False


def get_password_hash(password: str) -> str:
    """
    Hash a password using bcrypt

    Args:
        password: Plain text password

    Returns:
        str: Hashed password
    """
    return bcrypt.hashpw(
        password.encode('utf-8'),
        bcrypt.gensalt(rounds=settings.BCRYPT_ROUNDS)
    ).decode('utf-8')


def encode_token(
    claims: Dict[str, Any],
    *,
    secret_key: str,
    algorithm: str,
    expires_delta: timedelta,
    issued_at: Optional[datetime] = None
) -> str:
    """
    Sign a time-bound JWT

    Args:
        claims: Claims to embed in the token
        secret_key: HMAC signing key
        algorithm: JWS algorithm name
        expires_delta: Validity window counted from issuance
        issued_at: Issuance time (aware UTC), defaults to now

    Returns:
        str: Encoded JWT token
    """
    issued_at = issued_at or datetime.now(timezone.utc)
    to_encode = claims.copy()
    to_encode.update({
        "iat": issued_at,
        "exp": issued_at + expires_delta,
    })
    return jwt.encode(to_encode, secret_key, algorithm=algorithm)


def decode_token(token: str, *, secret_key: str, algorithms: Sequence[str]) -> Optional[Dict[str, Any]]:
    """
    Decode and verify JWT token

    Args:
        token: JWT token string
        secret_key: HMAC signing key
        algorithms: Accepted algorithms

    Returns:
        Optional[Dict]: Decoded token data or None if the signature,
        structure or embedded expiry check fails
    """
    try:
        return jwt.decode(token, secret_key, algorithms=list(algorithms))
    except JWTError:
        return None
