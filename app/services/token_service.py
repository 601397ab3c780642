"""
Token lifecycle service.

Issues access/refresh token pairs, rotates refresh tokens with one-time-use
semantics, keeps the revocation set, and tracks user activity for the
inactivity timeout.

A single instance is created at startup and stored on app.state; see
app.core.deps.get_token_service.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional, Union
import uuid

from sqlalchemy.orm import Session

from app.core import security
from app.core.exceptions import InvalidTokenError, NotFoundError, RevokedTokenError
from app.crud import user as crud_user

logger = logging.getLogger(__name__)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Treat naive datetimes from the database as UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str


class TokenService:
    """
    Manages issued tokens for all users.

    Args:
        revocations: Store with add(token, ttl_seconds) / contains(token)
        settings: Application settings (TTLs and inactivity timeout)
    """

    def __init__(self, revocations, settings):
        self.revocations = revocations
        self.settings = settings

    @property
    def refresh_ttl_seconds(self) -> int:
        return self.settings.REFRESH_TOKEN_EXPIRE_SECONDS

    @property
    def inactivity_timeout(self) -> timedelta:
        return timedelta(days=self.settings.INACTIVITY_TIMEOUT_DAYS)

    def generate_token_pair(
        self,
        db: Session,
        user_id: Union[str, uuid.UUID],
        role: str,
        email: str
    ) -> TokenPair:
        """
        Issue a new access/refresh pair carrying the user's current token_version.

        Raises:
            NotFoundError: If the user does not exist
        """
        user = crud_user.get_by_id(db, user_id)
        if not user:
            raise NotFoundError("User not found")

        claims = {
            "user_id": str(user.id),
            "role": role.value if hasattr(role, "value") else role,
            "email": email,
            "token_version": user.token_version,
        }
        return TokenPair(
            access_token=security.create_access_token(claims),
            refresh_token=security.create_refresh_token(claims),
        )

    def rotate_refresh_token(self, db: Session, old_refresh_token: str) -> TokenPair:
        """
        Exchange a refresh token for a new pair. Each refresh token works once.

        The stored token_version is bumped with a compare-and-increment so two
        concurrent rotations of the same token cannot both succeed.

        Raises:
            InvalidTokenError: Bad signature, expired, wrong audience/issuer,
                missing claims, stale version, or a lost rotation race
            RevokedTokenError: The token was already consumed or logged out
        """
        try:
            claims = security.decode_refresh_token(old_refresh_token)
        except InvalidTokenError:
            # Expired and malformed refresh tokens look the same to callers
            raise InvalidTokenError("Invalid refresh token")

        if self.is_token_blacklisted(old_refresh_token):
            raise RevokedTokenError()

        user = crud_user.get_by_id(db, claims.user_id)
        if not user or user.token_version != claims.token_version:
            raise InvalidTokenError("Invalid refresh token")

        new_version = crud_user.increment_token_version(db, user.id, expected_version=claims.token_version)
        if new_version is None:
            raise InvalidTokenError("Invalid refresh token")

        self.blacklist_token(old_refresh_token)

        return self.generate_token_pair(db, user.id, claims.role, claims.email)

    def blacklist_token(self, token: str) -> None:
        """Revoke a refresh token until its natural expiry. Idempotent."""
        self.revocations.add(token, self.refresh_ttl_seconds)
        logger.info("Refresh token revoked")

    def is_token_blacklisted(self, token: str) -> bool:
        return self.revocations.contains(token)

    def check_activity(self, db: Session, user_id: Union[str, uuid.UUID]) -> None:
        """Record that the user is active now."""
        crud_user.update_last_active(db, user_id, datetime.now(timezone.utc))

    def has_exceeded_inactivity_timeout(self, db: Session, user_id: Union[str, uuid.UUID]) -> bool:
        """
        True when the user is unknown, has never been active, or has been
        inactive for longer than INACTIVITY_TIMEOUT_DAYS.
        """
        user = crud_user.get_by_id(db, user_id)
        if not user or user.last_active_at is None:
            return True

        inactive_for = datetime.now(timezone.utc) - as_utc(user.last_active_at)
        return inactive_for > self.inactivity_timeout

    def invalidate_all_user_tokens(self, db: Session, user_id: Union[str, uuid.UUID]) -> None:
        """
        Invalidate every refresh token issued to a user (logout everywhere).

        Raises:
            NotFoundError: If the user does not exist
        """
        new_version = crud_user.increment_token_version(db, user_id)
        if new_version is None:
            raise NotFoundError("User not found")
        logger.info(
            "All tokens invalidated for user",
            extra={"user_id": str(user_id), "token_version": new_version}
        )

    def verify_access_token(self, token: str) -> security.TokenClaims:
        return security.decode_access_token(token)

    def is_access_token_current(self, db: Session, claims: security.TokenClaims) -> bool:
        """
        Whether an access token still carries the user's current token_version.

        Only consulted when ENFORCE_ACCESS_TOKEN_VERSION is enabled.
        """
        user = crud_user.get_by_id(db, claims.user_id)
        if not user:
            return False
        return claims.token_version is not None and claims.token_version == user.token_version

