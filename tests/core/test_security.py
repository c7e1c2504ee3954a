"""Unit tests for password hashing and session tokens."""

from datetime import UTC, datetime, timedelta

import jwt
import pytest

from portfolio.core import security
from portfolio.core.config import settings
from portfolio.core.security import (
    create_session_token,
    decode_session_token,
    get_password_hash,
    get_session_secret,
    verify_password,
)


@pytest.mark.unit
def test_password_hashing():
    """Test password hashing creates an Argon2 hash."""
    password = "TestPassword123"
    hashed = get_password_hash(password)

    assert hashed != password
    assert hashed.startswith("$argon2")


@pytest.mark.unit
def test_password_verification():
    """Test verification accepts the right password and rejects a wrong one."""
    hashed = get_password_hash("TestPassword123")

    assert verify_password("TestPassword123", hashed) is True
    assert verify_password("WrongPassword456", hashed) is False


@pytest.mark.unit
def test_password_hashing_is_not_deterministic():
    """Test that hashing the same password twice produces different hashes."""
    assert get_password_hash("TestPassword123") != get_password_hash("TestPassword123")


@pytest.mark.unit
def test_session_token_round_trip():
    """Test the token carries email, name and a future expiry."""
    token = create_session_token("ana@example.com", "Ana")

    decoded = decode_session_token(token)

    assert token.count(".") == 2
    assert decoded["sub"] == "ana@example.com"
    assert decoded["name"] == "Ana"
    assert datetime.fromtimestamp(decoded["exp"], tz=UTC) > datetime.now(UTC)


@pytest.mark.unit
def test_session_token_default_lifetime():
    decoded = decode_session_token(create_session_token("ana@example.com", "Ana"))

    assert decoded["exp"] - decoded["iat"] == settings.SESSION_MAX_AGE_DAYS * 24 * 3600


@pytest.mark.unit
def test_token_with_invalid_signature():
    """Test a token signed with another key is rejected."""
    token = jwt.encode({"sub": "ana@example.com"}, "wrong-secret", algorithm=settings.ALGORITHM)

    with pytest.raises(jwt.InvalidTokenError):
        decode_session_token(token)


@pytest.mark.unit
def test_tampered_token():
    token = create_session_token("ana@example.com", "Ana")
    header, payload, signature = token.split(".")
    forged = ".".join([header, payload, signature[:-2] + ("AA" if signature[-2:] != "AA" else "BB")])

    with pytest.raises(jwt.InvalidTokenError):
        decode_session_token(forged)


@pytest.mark.unit
def test_expired_token():
    token = create_session_token("ana@example.com", "Ana", expires_delta=timedelta(minutes=-1))

    with pytest.raises(jwt.ExpiredSignatureError):
        decode_session_token(token)


@pytest.mark.unit
def test_configured_secret_is_used(monkeypatch):
    monkeypatch.setattr(settings, "SESSION_SECRET", "configured-secret")

    assert get_session_secret() == "configured-secret"
    assert security.uses_fallback_session_secret() is False


@pytest.mark.unit
def test_fallback_secret_is_stable(monkeypatch):
    """Without a configured secret, one random key is used per process."""
    monkeypatch.setattr(settings, "SESSION_SECRET", None)
    monkeypatch.setattr(settings, "ENVIRONMENT", "development")
    monkeypatch.setattr(security, "_fallback_session_secret", None)

    first = get_session_secret()

    assert first == get_session_secret()
    assert security.uses_fallback_session_secret() is True


@pytest.mark.unit
def test_missing_secret_in_production(monkeypatch):
    monkeypatch.setattr(settings, "SESSION_SECRET", None)
    monkeypatch.setattr(settings, "ENVIRONMENT", "production")

    with pytest.raises(RuntimeError):
        get_session_secret()
