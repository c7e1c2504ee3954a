"""Authentication routes: registration, login and the session cookie."""

import logging
from datetime import timedelta

from fastapi import APIRouter, Request, Response, status
from fastapi.responses import JSONResponse

from portfolio.core.config import settings
from portfolio.core.deps import DbSession, OptionalUser
from portfolio.core.rate_limit import limiter
from portfolio.core.security import create_session_token, uses_fallback_session_secret
from portfolio.models.user import User
from portfolio.schemas.auth import AuthConfigResponse, MessageResponse, UserLogin, UserRegister
from portfolio.schemas.user import UserResponse
from portfolio.services import user_service

router = APIRouter()
logger = logging.getLogger(__name__)


def _set_session_cookie(response: Response, user: User) -> None:
    max_age = timedelta(days=settings.SESSION_MAX_AGE_DAYS)
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=create_session_token(user.email, user.name, expires_delta=max_age),
        max_age=int(max_age.total_seconds()),
        httponly=True,
        samesite="lax",
        secure=settings.ENVIRONMENT == "production",
        path="/",
    )


@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit(settings.AUTH_RATE_LIMIT)
async def register(
    request: Request,
    response: Response,
    user_data: UserRegister,
    db: DbSession,
) -> User:
    """
    Register a new user and open a session.

    Args:
        user_data: Email, password and optional display name
        db: Database session

    Returns:
        The created user

    Raises:
        ConflictError: 409 if the email is already registered
    """
    user = await user_service.register_user(db, user_data)
    _set_session_cookie(response, user)
    return user


@router.post("/login", response_model=UserResponse)
@limiter.limit(settings.AUTH_RATE_LIMIT)
async def login(
    request: Request,
    response: Response,
    credentials: UserLogin,
    db: DbSession,
) -> User:
    """
    Check credentials and set the session cookie.

    Raises:
        AuthenticationError: 401 if the credentials are wrong
    """
    user = await user_service.authenticate_user(db, credentials.email, credentials.password)
    _set_session_cookie(response, user)
    logger.info(f"User {user.email} logged in")
    return user


@router.post("/logout", response_model=MessageResponse)
async def logout(response: Response) -> MessageResponse:
    """Clear the session cookie."""
    response.delete_cookie(settings.SESSION_COOKIE_NAME, path="/")
    return MessageResponse(message="Logged out")


@router.get("/me", response_model=UserResponse)
async def read_me(request: Request, user: OptionalUser) -> User | JSONResponse:
    """
    Get the user of the current session.

    A missing or invalid session answers 401 and clears any stale cookie.
    """
    if user is None:
        response = JSONResponse(
            status_code=status.HTTP_401_UNAUTHORIZED,
            content={"detail": "Not authenticated", "error_code": "AUTHENTICATION_ERROR"},
        )
        if settings.SESSION_COOKIE_NAME in request.cookies:
            response.delete_cookie(settings.SESSION_COOKIE_NAME, path="/")
        return response
    return user


@router.get("/config", response_model=AuthConfigResponse)
async def auth_config() -> AuthConfigResponse:
    """Report whether sessions are signed with a generated development secret."""
    return AuthConfigResponse(uses_fallback_session_secret=uses_fallback_session_secret())
