"""Service layer for user registration and authentication."""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from portfolio.core.exceptions import AuthenticationError, ConflictError
from portfolio.core.security import get_password_hash, verify_password
from portfolio.db.session import transactional
from portfolio.models.user import User
from portfolio.repositories.user import UserRepository, normalize_email
from portfolio.schemas.auth import UserRegister

logger = logging.getLogger(__name__)


async def get_user_by_email(db: AsyncSession, email: str) -> User | None:
    """Retrieve a user by email address (any case).

    Args:
        db: Async database session
        email: User's email address

    Returns:
        User model instance if found, None otherwise
    """
    repo = UserRepository(User, db)
    return await repo.get_by_email(email)


async def register_user(db: AsyncSession, data: UserRegister) -> User:
    """Create a user with a hashed password.

    The display name defaults to the local part of the email.

    Args:
        db: Async database session
        data: Validated registration payload

    Returns:
        The created user

    Raises:
        ConflictError: If the email is already registered

    Example:
        >>> user = await register_user(db, UserRegister(email="ana@example.com", password="s3cret-pass"))
        >>> user.name
        'ana'
    """
    email = normalize_email(data.email)
    repo = UserRepository(User, db)
    if await repo.exists_by_email(email):
        raise ConflictError("Email already registered")

    async with transactional(db):
        user = User(
            email=email,
            name=(data.name or "").strip() or email.split("@")[0],
            password_hash=get_password_hash(data.password),
        )
        db.add(user)

    logger.info(f"Registered user {email}")
    return user


async def authenticate_user(db: AsyncSession, email: str, password: str) -> User:
    """Authenticate a user by email and password.

    Args:
        db: Async database session
        email: Email address (any case)
        password: Plain text password to verify

    Returns:
        User: Authenticated user instance

    Raises:
        AuthenticationError: If the user does not exist, has no password or
            the password does not match
    """
    user = await get_user_by_email(db, email)

    if not user or not user.password_hash or not verify_password(password, user.password_hash):
        logger.warning(f"Failed login for {normalize_email(email)}")
        raise AuthenticationError("Wrong credentials")

    return user
