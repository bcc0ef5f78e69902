"""
Security Module

Password hashing, signed token issue/verify, and password-reset tokens.
Uses passlib with bcrypt and python-jose.

SECURITY NOTES:
- Access and refresh tokens use different secrets and carry a `type` claim,
  so one class can never be accepted in place of the other.
- Verification is stateless. There is no revocation list; a token is valid
  until it expires.
- Reset tokens are random strings; only their SHA-256 digest is stored.
"""
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional, Dict, Any
import hashlib
import secrets

from jose import JWTError, jwt
from passlib.context import CryptContext
from safestart.config import get_settings

settings = get_settings()

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"

pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.BCRYPT_ROUNDS,
)


class InvalidTokenError(Exception):
    """Token failed signature, expiry, issuer/audience or claim checks."""


@dataclass(frozen=True)
class TokenClaims:
    user_id: str
    tenant_id: str
    role: str
    token_type: str


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash (constant time)."""
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    """
    Hash a password using bcrypt.

    NOTE: Intentionally slow. Don't call this in hot paths or tight loops.
    """
    return pwd_context.hash(password)


def _create_token(
    user_id: str,
    tenant_id: str,
    role: str,
    token_type: str,
    secret: str,
    expires_delta: timedelta,
) -> str:
    now = datetime.utcnow()
    to_encode: Dict[str, Any] = {
        "sub": user_id,
        "tenant_id": tenant_id,
        "role": role,
        "type": token_type,
        "iat": now,
        "exp": now + expires_delta,
    }
    if settings.JWT_ISSUER:
        to_encode["iss"] = settings.JWT_ISSUER
    if settings.JWT_AUDIENCE:
        to_encode["aud"] = settings.JWT_AUDIENCE

    return jwt.encode(to_encode, secret, algorithm=settings.JWT_ALGORITHM)


def create_access_token(
    user_id: str,
    tenant_id: str,
    role: str,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """Create a short-lived access token for the given actor."""
    return _create_token(
        user_id,
        tenant_id,
        role,
        ACCESS_TOKEN_TYPE,
        settings.JWT_ACCESS_SECRET,
        expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
    )


def create_refresh_token(
    user_id: str,
    tenant_id: str,
    role: str,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """Create a long-lived refresh token, signed with the refresh secret."""
    return _create_token(
        user_id,
        tenant_id,
        role,
        REFRESH_TOKEN_TYPE,
        settings.JWT_REFRESH_SECRET,
        expires_delta or timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS),
    )


def _decode_token(token: str, secret: str, expected_type: str) -> TokenClaims:
    try:
        payload = jwt.decode(
            token,
            secret,
            algorithms=[settings.JWT_ALGORITHM],
            audience=settings.JWT_AUDIENCE or None,
            issuer=settings.JWT_ISSUER or None,
        )
    except JWTError as e:
        raise InvalidTokenError(str(e)) from e

    if payload.get("type") != expected_type:
        raise InvalidTokenError(f"Expected {expected_type} token")

    user_id = payload.get("sub")
    tenant_id = payload.get("tenant_id")
    role = payload.get("role")
    if not user_id or not tenant_id or not role:
        raise InvalidTokenError("Token is missing required claims")

    return TokenClaims(user_id=user_id, tenant_id=tenant_id, role=role, token_type=expected_type)


def decode_access_token(token: str) -> TokenClaims:
    """
    Verify an access token and return its claims.

    Raises InvalidTokenError on bad signature, expiry, issuer/audience
    mismatch, wrong token class or missing claims.
    """
    return _decode_token(token, settings.JWT_ACCESS_SECRET, ACCESS_TOKEN_TYPE)


def decode_refresh_token(token: str) -> TokenClaims:
    """Verify a refresh token and return its claims."""
    return _decode_token(token, settings.JWT_REFRESH_SECRET, REFRESH_TOKEN_TYPE)


def generate_reset_token() -> str:
    """Random URL-safe token sent to the user by email."""
    return secrets.token_urlsafe(32)


def hash_reset_token(token: str) -> str:
    """Digest stored on the user row; the raw token is never persisted."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()
