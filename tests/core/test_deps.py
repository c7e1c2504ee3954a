"""Tests for core dependencies."""

from datetime import timedelta

import pytest

from portfolio.core.deps import get_current_user, get_optional_user
from portfolio.core.exceptions import AuthenticationError
from portfolio.core.security import create_session_token
from tests.helpers import TEST_EMAIL, TEST_NAME


@pytest.mark.integration
async def test_optional_user_from_valid_token(test_db, test_user):
    """A valid session token resolves to its user."""
    token = create_session_token(TEST_EMAIL, TEST_NAME)

    user = await get_optional_user(db=test_db, session_token=token)

    assert user is not None
    assert user.email == TEST_EMAIL


@pytest.mark.integration
@pytest.mark.parametrize(
    "token",
    [
        None,
        "",
        "not-a-token",
        "a.b.c",
    ],
)
async def test_optional_user_without_valid_token(test_db, test_user, token):
    """Missing or malformed tokens resolve to no user."""
    assert await get_optional_user(db=test_db, session_token=token) is None


@pytest.mark.integration
async def test_optional_user_expired_token(test_db, test_user):
    token = create_session_token(TEST_EMAIL, TEST_NAME, expires_delta=timedelta(seconds=-1))

    assert await get_optional_user(db=test_db, session_token=token) is None


@pytest.mark.integration
async def test_optional_user_deleted_user(test_db):
    """A signed token for a user that no longer exists resolves to no user."""
    token = create_session_token("gone@example.com", "Gone")

    assert await get_optional_user(db=test_db, session_token=token) is None


@pytest.mark.integration
async def test_current_user_requires_session():
    with pytest.raises(AuthenticationError) as exc_info:
        await get_current_user(user=None)

    assert exc_info.value.status_code == 401
