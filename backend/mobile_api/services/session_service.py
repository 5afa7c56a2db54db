"""Session-backed JWT issuance, validation and revocation."""

from __future__ import annotations

import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Dict, Optional

from prometheus_client import Counter
from sqlalchemy.orm import Session

from mobile_api.config import Settings, settings
from mobile_api.core.database import utc_now
from mobile_api.core.exceptions import (
    AuthenticationError,
    NoTokenError,
    SessionExpiredError,
    TokenInvalidError,
    UserNotFoundError,
)
from mobile_api.core.security import decode_token, encode_token
from mobile_api.models.security import AuthSession
from mobile_api.models.user import User

logger = logging.getLogger(__name__)

SESSIONS_ISSUED = Counter("mobile_api_sessions_issued_total", "Sessions created on token issuance")
SESSIONS_REVOKED = Counter("mobile_api_sessions_revoked_total", "Sessions deleted by logout or refresh")
SESSIONS_SWEPT = Counter("mobile_api_sessions_swept_total", "Expired sessions deleted by the sweeper")


@dataclass(frozen=True)
class AuthenticatedSession:
    """Verified identity plus the decoded claims of the presented token."""

    user: User
    claims: Dict[str, Any]

    @property
    def token_id(self) -> str:
        return self.claims["jti"]


class SessionService:
    """
    Turn a verified identity into a bearer token and back.

    Every issued token has exactly one row in ``sessions`` keyed by its jti.
    A token authenticates only while its signature verifies AND that row
    exists with ``expires_at`` in the future; deleting the row revokes it.
    """

    def __init__(
        self,
        secret_key: str,
        algorithm: str = "HS256",
        ttl: timedelta = timedelta(days=7),
    ) -> None:
        self.secret_key = secret_key
        self.algorithm = algorithm
        self.ttl = ttl

    @classmethod
    def from_settings(cls, config: Settings) -> "SessionService":
        return cls(
            secret_key=config.SECRET_KEY,
            algorithm=config.ALGORITHM,
            ttl=timedelta(days=config.SESSION_TTL_DAYS),
        )

    def issue(self, db: Session, user: User) -> str:
        """
        Sign a token for ``user`` and persist its session row.

        The row is committed before the token is returned; if the commit
        fails the exception propagates and no token leaves this method.
        """
        # JWT exp has second resolution; keep the row's expiry identical to it.
        issued_at = utc_now().replace(microsecond=0)
        token_jti = secrets.token_urlsafe(32)
        token = encode_token(
            {"sub": str(user.id), "email": user.email, "jti": token_jti},
            secret_key=self.secret_key,
            algorithm=self.algorithm,
            expires_delta=self.ttl,
            issued_at=issued_at,
        )
        db.add(
            AuthSession(
                user_id=user.id,
                token_jti=token_jti,
                created_at=issued_at,
                expires_at=issued_at + self.ttl,
            )
        )
        db.commit()
        SESSIONS_ISSUED.inc()
        return token

    def validate(self, db: Session, token: Optional[str]) -> AuthenticatedSession:
        """
        Resolve a presented token to its user.

        Raises, in check order:
            NoTokenError: nothing was presented
            TokenInvalidError: bad signature/structure or embedded expiry passed
            SessionExpiredError: no live session row for the token's jti
            UserNotFoundError: the user behind the session is gone
        """
        if not token:
            raise NoTokenError()

        payload = decode_token(token, secret_key=self.secret_key, algorithms=[self.algorithm])
        if not payload:
            raise TokenInvalidError()

        token_jti = payload.get("jti")
        subject = payload.get("sub")
        if not token_jti or not subject:
            raise TokenInvalidError()
        try:
            user_id = int(subject)
        except (TypeError, ValueError):
            raise TokenInvalidError()

        live_session = (
            db.query(AuthSession.id)
            .filter(AuthSession.token_jti == token_jti, AuthSession.expires_at > utc_now())
            .first()
        )
        if live_session is None:
            raise SessionExpiredError()

        user = db.get(User, user_id)
        if user is None:
            raise UserNotFoundError()

        return AuthenticatedSession(user=user, claims=payload)

    def validate_optional(self, db: Session, token: Optional[str]) -> Optional[AuthenticatedSession]:
        """Same checks as validate(); any authentication failure yields None."""
        try:
            return self.validate(db, token)
        except AuthenticationError:
            return None

    def revoke(self, db: Session, token_jti: str) -> bool:
        """Delete the session row for ``token_jti``. Idempotent."""
        deleted = (
            db.query(AuthSession)
            .filter(AuthSession.token_jti == token_jti)
            .delete(synchronize_session=False)
        )
        db.commit()
        if deleted:
            SESSIONS_REVOKED.inc(deleted)
        return deleted > 0

    def refresh(self, db: Session, old_token_jti: str, user: User) -> str:
        """
        Replace a session: revoke the old row first, then issue a new token.

        There is no compensation if issue() fails after the revoke; the
        caller is logged out and must authenticate again.
        """
        self.revoke(db, old_token_jti)
        return self.issue(db, user)

    def sweep(self, db: Session, now: Optional[datetime] = None) -> int:
        """Delete every session whose expiry has passed. Returns rows removed."""
        cutoff = now or utc_now()
        removed = (
            db.query(AuthSession)
            .filter(AuthSession.expires_at <= cutoff)
            .delete(synchronize_session=False)
        )
        db.commit()
        if removed:
            SESSIONS_SWEPT.inc(removed)
        logger.info("Cleaned up %d expired sessions", removed)
        return removed


session_service = SessionService.from_settings(settings)
