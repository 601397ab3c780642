"""
Security utilities for JWT authentication and password hashing.

Access and refresh tokens are HS256 JWTs signed with separate secrets and
scoped by audience/issuer. Passwords are hashed using bcrypt.
"""

import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional
from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext
from app.core.config import settings
from app.core.exceptions import InvalidTokenError, TokenExpiredError

# Password hashing context (bcrypt)
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=settings.BCRYPT_ROUNDS)

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"

ACCESS_REQUIRED_CLAIMS = ("user_id", "role", "email")
REFRESH_REQUIRED_CLAIMS = ("user_id", "role", "email", "token_version")


@dataclass(frozen=True)
class TokenClaims:
    """Verified token payload."""
    user_id: str
    role: str
    email: str
    token_version: Optional[int]
    jti: Optional[str]
    issued_at: Optional[int]
    expires_at: int


@dataclass(frozen=True)
class Principal:
    """Authenticated caller derived from a verified access token. Never stored."""
    id: str
    email: str
    role: str


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a plain password against a hashed password."""
    # Bcrypt has a 72-byte limit - truncate if necessary
    password_bytes = plain_password.encode('utf-8')[:72]
    return pwd_context.verify(password_bytes, hashed_password)


def get_password_hash(password: str) -> str:
    """
    Hash a password using bcrypt.

    Note: Bcrypt has a 72-byte limit. Passwords longer than 72 bytes
    are automatically truncated to comply with this limitation.
    """
    # Bcrypt has a 72-byte limit - truncate if necessary
    password_bytes = password.encode('utf-8')[:72]
    return pwd_context.hash(password_bytes)


def _encode(data: dict, secret: str, token_type: str, expires_delta: timedelta) -> str:
    now = datetime.now(timezone.utc)
    to_encode = data.copy()
    to_encode.update({
        "type": token_type,
        "iat": now,
        "exp": now + expires_delta,
        "aud": settings.TOKEN_AUDIENCE,
        "iss": settings.TOKEN_ISSUER,
        "jti": uuid.uuid4().hex,
    })
    return jwt.encode(to_encode, secret, algorithm=settings.ALGORITHM)


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a JWT access token.

    Args:
        data: Claims to encode ({"user_id", "role", "email", "token_version"})
        expires_delta: Optional expiration time delta (default: ACCESS_TOKEN_EXPIRE_SECONDS)

    Returns:
        Encoded JWT token as a string
    """
    if expires_delta is None:
        expires_delta = timedelta(seconds=settings.ACCESS_TOKEN_EXPIRE_SECONDS)
    return _encode(data, settings.ACCESS_TOKEN_SECRET, ACCESS_TOKEN_TYPE, expires_delta)


def create_refresh_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a JWT refresh token with longer expiration.

    Args:
        data: Claims to encode; must include token_version
        expires_delta: Optional expiration time delta (default: REFRESH_TOKEN_EXPIRE_SECONDS)

    Returns:
        Encoded JWT refresh token
    """
    if expires_delta is None:
        expires_delta = timedelta(seconds=settings.REFRESH_TOKEN_EXPIRE_SECONDS)
    return _encode(data, settings.REFRESH_TOKEN_SECRET, REFRESH_TOKEN_TYPE, expires_delta)


def _decode(token: str, secret: str, token_type: str, required: tuple) -> TokenClaims:
    try:
        payload = jwt.decode(
            token,
            secret,
            algorithms=[settings.ALGORITHM],
            audience=settings.TOKEN_AUDIENCE,
            issuer=settings.TOKEN_ISSUER,
        )
    except ExpiredSignatureError:
        raise TokenExpiredError()
    except JWTError:
        raise InvalidTokenError()

    if payload.get("type") != token_type:
        raise InvalidTokenError()

    # A valid signature is not enough: every identity claim must be present
    for claim in required:
        if payload.get(claim) in (None, ""):
            raise InvalidTokenError()

    token_version = payload.get("token_version")
    if token_version is not None and (isinstance(token_version, bool) or not isinstance(token_version, int)):
        raise InvalidTokenError()

    return TokenClaims(
        user_id=str(payload["user_id"]),
        role=str(payload["role"]),
        email=str(payload["email"]),
        token_version=token_version,
        jti=payload.get("jti"),
        issued_at=payload.get("iat"),
        expires_at=payload["exp"],
    )


def decode_access_token(token: str) -> TokenClaims:
    """
    Decode and validate an access token.

    Raises:
        TokenExpiredError: If the token is past its exp claim
        InvalidTokenError: For any other signature, claim or shape failure
    """
    return _decode(token, settings.ACCESS_TOKEN_SECRET, ACCESS_TOKEN_TYPE, ACCESS_REQUIRED_CLAIMS)


def decode_refresh_token(token: str) -> TokenClaims:
    """Decode and validate a refresh token. Raises like decode_access_token."""
    return _decode(token, settings.REFRESH_TOKEN_SECRET, REFRESH_TOKEN_TYPE, REFRESH_REQUIRED_CLAIMS)
