"""Tests for user service functions."""

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from portfolio.core.exceptions import AuthenticationError, ConflictError
from portfolio.models.user import User
from portfolio.schemas.auth import UserRegister
from portfolio.services.user_service import authenticate_user, get_user_by_email, register_user
from tests.helpers import TEST_EMAIL, TEST_PASSWORD


@pytest.mark.integration
async def test_register_user_hashes_password(test_db: AsyncSession) -> None:
    """Registration stores a normalized email and never the plain password."""
    user = await register_user(
        test_db, UserRegister(email="  Ana@Example.com ", password="s3cret-pass")
    )

    assert user.email == "ana@example.com"
    assert user.name == "ana"
    assert user.password_hash != "s3cret-pass"


@pytest.mark.integration
async def test_register_duplicate_email(test_db: AsyncSession, test_user: User) -> None:
    """A second registration with any casing of the same email conflicts."""
    with pytest.raises(ConflictError) as exc_info:
        await register_user(
            test_db, UserRegister(email=TEST_EMAIL.upper(), password="another-pass")
        )

    assert exc_info.value.status_code == 409


@pytest.mark.integration
async def test_authenticate_user_success(test_db: AsyncSession, test_user: User) -> None:
    """Correct credentials return the user; email matching ignores case."""
    user = await authenticate_user(test_db, "Test@Example.COM", TEST_PASSWORD)

    assert user.email == TEST_EMAIL


@pytest.mark.integration
@pytest.mark.parametrize(
    ("email", "password"),
    [
        (TEST_EMAIL, "WrongPass999"),
        ("nobody@example.com", TEST_PASSWORD),
    ],
)
async def test_authenticate_user_wrong_credentials(
    test_db: AsyncSession, test_user: User, email: str, password: str
) -> None:
    """Unknown users and wrong passwords get the same error."""
    with pytest.raises(AuthenticationError) as exc_info:
        await authenticate_user(test_db, email, password)

    assert exc_info.value.detail == "Wrong credentials"


@pytest.mark.integration
async def test_user_without_password_cannot_log_in(test_db: AsyncSession) -> None:
    """Accounts created without a password never authenticate."""
    test_db.add(User(email="sso@example.com", name="SSO", password_hash=None))
    await test_db.commit()

    with pytest.raises(AuthenticationError):
        await authenticate_user(test_db, "sso@example.com", "whatever-pass")


@pytest.mark.integration
async def test_get_user_by_email(test_db: AsyncSession, test_user: User) -> None:
    assert (await get_user_by_email(test_db, TEST_EMAIL)).name == "Test User"
    assert await get_user_by_email(test_db, "missing@example.com") is None
