"""Password hashing and session token utilities."""

import logging
import secrets
from datetime import UTC, datetime, timedelta
from typing import Any

import jwt
from pwdlib import PasswordHash

from portfolio.core.config import settings

logger = logging.getLogger(__name__)

# Initialize password hasher with Argon2 (recommended algorithm)
password_hash = PasswordHash.recommended()

_fallback_session_secret: str | None = None


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Verify a plain password against a hashed password.

    Args:
        plain_password: The plain text password to verify
        hashed_password: The hashed password to compare against

    Returns:
        True if the password matches, False otherwise
    """
    return password_hash.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    """
    Hash a password using Argon2.

    Args:
        password: The plain text password to hash

    Returns:
        The hashed password
    """
    return password_hash.hash(password)


def uses_fallback_session_secret() -> bool:
    """Return True when no SESSION_SECRET is configured."""
    return not settings.SESSION_SECRET


def get_session_secret() -> str:
    """
    Return the key used to sign session tokens.

    Outside production a missing SESSION_SECRET is replaced by a random
    per-process key, so sessions do not survive a restart.

    Returns:
        The signing key

    Raises:
        RuntimeError: If SESSION_SECRET is missing in production
    """
    global _fallback_session_secret

    if settings.SESSION_SECRET:
        return settings.SESSION_SECRET

    if settings.ENVIRONMENT == "production":
        raise RuntimeError("SESSION_SECRET must be set in production")

    if _fallback_session_secret is None:
        logger.warning(
            "SESSION_SECRET is not set; using a temporary secret. "
            "Sessions will be invalidated on restart."
        )
        _fallback_session_secret = secrets.token_urlsafe(32)
    return _fallback_session_secret


def create_session_token(email: str, name: str, expires_delta: timedelta | None = None) -> str:
    """
    Create a signed session token for the cookie.

    The token is a compact HS256 JWT: base64url header and payload with a
    ``.``-separated HMAC signature.

    Args:
        email: User email, stored as the ``sub`` claim
        name: Display name
        expires_delta: Optional custom lifetime (defaults to SESSION_MAX_AGE_DAYS)

    Returns:
        The encoded token
    """
    lifetime = expires_delta or timedelta(days=settings.SESSION_MAX_AGE_DAYS)
    now = datetime.now(UTC)
    to_encode: dict[str, Any] = {
        "sub": email,
        "name": name,
        "iat": now,
        "exp": now + lifetime,
    }
    return jwt.encode(to_encode, get_session_secret(), algorithm=settings.ALGORITHM)


def decode_session_token(token: str) -> dict[str, Any]:
    """
    Verify a session token signature and expiry and return its claims.

    Args:
        token: The token read from the session cookie

    Returns:
        The decoded payload

    Raises:
        jwt.InvalidTokenError: If the token is malformed, tampered with or expired
    """
    return jwt.decode(token, get_session_secret(), algorithms=[settings.ALGORITHM])
