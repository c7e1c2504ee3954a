"""Tests for registration, login and the session cookie."""

import pytest
from httpx import AsyncClient

from portfolio.core.config import settings
from portfolio.models.user import User
from tests.helpers import TEST_EMAIL, TEST_NAME, TEST_PASSWORD

pytestmark = pytest.mark.integration

COOKIE = settings.SESSION_COOKIE_NAME


async def test_register_sets_session(client: AsyncClient) -> None:
    """Registration creates the user and logs them in."""
    response = await client.post(
        "/api/v1/auth/register",
        json={"email": "New@Example.com", "password": "s3cret-pass", "name": "New"},
    )

    assert response.status_code == 201
    assert response.json()["email"] == "new@example.com"
    assert "password_hash" not in response.json()
    set_cookie = response.headers["set-cookie"].lower()
    assert COOKIE in set_cookie
    assert "httponly" in set_cookie
    assert "samesite=lax" in set_cookie

    me = await client.get("/api/v1/auth/me")
    assert me.status_code == 200
    assert me.json()["name"] == "New"


async def test_register_duplicate(client: AsyncClient, test_user: User) -> None:
    response = await client.post(
        "/api/v1/auth/register", json={"email": TEST_EMAIL, "password": "another-pass"}
    )

    assert response.status_code == 409
    assert response.json()["error_code"] == "CONFLICT"


@pytest.mark.parametrize(
    "payload",
    [
        {"email": "not-an-email", "password": "s3cret-pass"},
        {"email": "short@example.com", "password": "short"},
    ],
)
async def test_register_invalid_payload(client: AsyncClient, payload: dict) -> None:
    response = await client.post("/api/v1/auth/register", json=payload)

    assert response.status_code == 422


async def test_login_and_me(client: AsyncClient, test_user: User) -> None:
    response = await client.post(
        "/api/v1/auth/login", json={"email": TEST_EMAIL, "password": TEST_PASSWORD}
    )

    assert response.status_code == 200
    assert client.cookies.get(COOKIE)

    me = await client.get("/api/v1/auth/me")
    assert me.json() == {
        "email": TEST_EMAIL,
        "name": TEST_NAME,
        "created_at": me.json()["created_at"],
    }


async def test_login_wrong_password(client: AsyncClient, test_user: User) -> None:
    response = await client.post(
        "/api/v1/auth/login", json={"email": TEST_EMAIL, "password": "WrongPass999"}
    )

    assert response.status_code == 401
    assert response.json() == {
        "detail": "Wrong credentials",
        "error_code": "AUTHENTICATION_ERROR",
    }
    assert COOKIE not in response.headers.get("set-cookie", "")


async def test_me_without_session(client: AsyncClient) -> None:
    response = await client.get("/api/v1/auth/me")

    assert response.status_code == 401
    assert "set-cookie" not in response.headers


async def test_me_with_invalid_cookie_clears_it(client: AsyncClient) -> None:
    """A stale cookie is answered with 401 and removed."""
    client.cookies.set(COOKIE, "garbage")

    response = await client.get("/api/v1/auth/me")

    assert response.status_code == 401
    set_cookie = response.headers["set-cookie"]
    assert set_cookie.startswith(f"{COOKIE}=")
    assert "Max-Age=0" in set_cookie


async def test_logout(auth_client: AsyncClient) -> None:
    response = await auth_client.post("/api/v1/auth/logout")

    assert response.status_code == 200
    assert response.json() == {"message": "Logged out"}
    assert "Max-Age=0" in response.headers["set-cookie"]


async def test_protected_route_requires_session(client: AsyncClient) -> None:
    response = await client.get("/api/v1/transactions")

    assert response.status_code == 401
    assert response.json()["error_code"] == "AUTHENTICATION_ERROR"


async def test_config_reports_fallback_secret(client: AsyncClient, monkeypatch) -> None:
    monkeypatch.setattr(settings, "SESSION_SECRET", None)
    response = await client.get("/api/v1/auth/config")
    assert response.json() == {"uses_fallback_session_secret": True}

    monkeypatch.setattr(settings, "SESSION_SECRET", "configured")
    response = await client.get("/api/v1/auth/config")
    assert response.json() == {"uses_fallback_session_secret": False}
