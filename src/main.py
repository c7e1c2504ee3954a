"""FastAPI application entry point."""

import logging
import logging.config
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi.errors import RateLimitExceeded
from sqlalchemy.exc import SQLAlchemyError

import portfolio.models  # noqa: F401  (registers every table on Base.metadata)
from portfolio.api.routes import (
    accounts,
    auth,
    dashboard,
    health,
    holdings,
    imports,
    instrument_types,
    instruments,
    prices,
    transactions,
)
from portfolio.core.cache import configure_market_data_cache
from portfolio.core.config import settings
from portfolio.core.exceptions import (
    AppException,
    app_exception_handler,
    storage_exception_handler,
)
from portfolio.core.middleware import RequestLoggingMiddleware, RequestTimeoutMiddleware
from portfolio.core.rate_limit import limiter, rate_limit_exceeded_handler
from portfolio.core.security import get_session_secret
from portfolio.db.base import Base
from portfolio.db.session import AsyncSessionLocal, engine
from portfolio.services.catalog_service import seed_instrument_types

# Configure logging
logging.config.dictConfig(settings.LOGGING_CONFIG)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan events."""
    logger.info(f"Starting {settings.APP_NAME} ({settings.ENVIRONMENT})")

    # Fails fast in production when SESSION_SECRET is missing
    get_session_secret()

    async with engine.begin() as conn:
        # Create tables (use Alembic in production)
        if settings.ENVIRONMENT == "development":
            await conn.run_sync(Base.metadata.create_all)

    async with AsyncSessionLocal() as session:
        await seed_instrument_types(session)

    configure_market_data_cache()

    yield

    logger.info("Shutting down application")
    await engine.dispose()


app = FastAPI(
    title=settings.APP_NAME,
    version="0.1.0",
    lifespan=lifespan,
)

# Add rate limiter to app state
app.state.limiter = limiter

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_origin_regex=settings.CORS_ORIGIN_REGEX,
    allow_credentials=settings.CORS_CREDENTIALS,
    allow_methods=settings.CORS_METHODS,
    allow_headers=settings.CORS_HEADERS,
)

# Bound every request; a timed out request answers 504 and its session is never committed
app.add_middleware(RequestTimeoutMiddleware, timeout=settings.REQUEST_TIMEOUT_SECONDS)

# Middleware is applied in reverse order, so this is the outermost layer
app.add_middleware(RequestLoggingMiddleware)

# Register exception handlers
app.add_exception_handler(AppException, app_exception_handler)  # type: ignore[arg-type]
app.add_exception_handler(SQLAlchemyError, storage_exception_handler)  # type: ignore[arg-type]
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)  # type: ignore[arg-type]

# Include routers
app.include_router(health.router, tags=["health"])
app.include_router(auth.router, prefix="/api/v1/auth", tags=["auth"])
app.include_router(accounts.router, prefix="/api/v1/accounts", tags=["accounts"])
app.include_router(
    instrument_types.router, prefix="/api/v1/instrument-types", tags=["instrument-types"]
)
app.include_router(instruments.router, prefix="/api/v1/instruments", tags=["instruments"])
app.include_router(prices.router, prefix="/api/v1/prices", tags=["prices"])
app.include_router(transactions.router, prefix="/api/v1/transactions", tags=["transactions"])
app.include_router(holdings.router, prefix="/api/v1/holdings", tags=["holdings"])
app.include_router(dashboard.router, prefix="/api/v1/dashboard", tags=["dashboard"])
app.include_router(imports.router, prefix="/api/v1", tags=["imports"])


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower(),
    )
