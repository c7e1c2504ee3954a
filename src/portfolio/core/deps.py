"""Dependencies for FastAPI routes."""

from typing import Annotated

import jwt
from fastapi import Cookie, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from portfolio.core.config import settings
from portfolio.core.exceptions import AuthenticationError
from portfolio.core.security import decode_session_token
from portfolio.db.session import get_db
from portfolio.models.user import User
from portfolio.repositories.user import UserRepository


async def get_optional_user(
    db: Annotated[AsyncSession, Depends(get_db)],
    session_token: Annotated[
        str | None, Cookie(alias=settings.SESSION_COOKIE_NAME)
    ] = None,
) -> User | None:
    """
    Resolve the user behind the session cookie, if any.

    Args:
        db: Database session
        session_token: Signed token read from the session cookie

    Returns:
        The user, or None when the cookie is missing, invalid, expired or
        names a user that no longer exists
    """
    if not session_token:
        return None

    try:
        payload = decode_session_token(session_token)
    except jwt.InvalidTokenError:
        return None

    email: str | None = payload.get("sub")
    if not email:
        return None

    repo = UserRepository(User, db)
    return await repo.get_by_email(email)


async def get_current_user(
    user: Annotated[User | None, Depends(get_optional_user)],
) -> User:
    """
    Require an authenticated session.

    Args:
        user: User resolved from the session cookie

    Returns:
        The authenticated user

    Raises:
        AuthenticationError: If there is no valid session
    """
    if user is None:
        raise AuthenticationError("Not authenticated")
    return user


# Type aliases for cleaner dependency injection
CurrentUser = Annotated[User, Depends(get_current_user)]
OptionalUser = Annotated[User | None, Depends(get_optional_user)]
DbSession = Annotated[AsyncSession, Depends(get_db)]
