"""Pytest fixtures for testing."""

from collections.abc import AsyncGenerator
from datetime import date
from decimal import Decimal

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

import portfolio.models  # noqa: F401
from main import app
from portfolio.core.config import settings
from portfolio.core.rate_limit import limiter
from portfolio.core.security import create_session_token, get_password_hash
from portfolio.db.base import Base
from portfolio.db.session import get_db
from portfolio.models.instrument import Instrument
from portfolio.models.instrument_price import InstrumentPrice
from portfolio.models.user import User
from portfolio.services.catalog_service import seed_instrument_types
from tests.helpers import OTHER_EMAIL, TEST_EMAIL, TEST_NAME, TEST_PASSWORD

# Test database URL (SQLite in-memory for fast tests)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture(autouse=True)
def reset_limiter():
    """Reset rate limiter storage so limits do not leak between tests."""
    limiter.reset()
    yield
    limiter.reset()


@pytest.fixture(autouse=True)
def upload_dir(tmp_path, monkeypatch):
    """Store uploads in a per-test directory."""
    path = tmp_path / "uploads"
    monkeypatch.setattr(settings, "UPLOAD_DIR", str(path))
    return path


@pytest_asyncio.fixture(scope="function")
async def test_engine():
    """Create a test database engine."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        future=True,
    )

    # Create all tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    # Drop all tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def test_db(test_engine) -> AsyncGenerator[AsyncSession]:
    """Create a test database session with the default instrument types."""
    async_session_maker = async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )

    async with async_session_maker() as session:
        await seed_instrument_types(session)
        yield session


@pytest_asyncio.fixture(scope="function")
async def client(test_db: AsyncSession) -> AsyncGenerator[AsyncClient]:
    """Create a test client with database override."""

    async def override_get_db() -> AsyncGenerator[AsyncSession]:
        yield test_db

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest_asyncio.fixture(scope="function")
async def test_user(test_db: AsyncSession) -> User:
    """Create a test user."""
    user = User(
        email=TEST_EMAIL,
        name=TEST_NAME,
        password_hash=get_password_hash(TEST_PASSWORD),
    )
    test_db.add(user)
    await test_db.commit()
    return user


@pytest_asyncio.fixture(scope="function")
async def other_user(test_db: AsyncSession) -> User:
    """Create a second user to check data isolation."""
    user = User(
        email=OTHER_EMAIL,
        name="Other User",
        password_hash=get_password_hash(TEST_PASSWORD),
    )
    test_db.add(user)
    await test_db.commit()
    return user


@pytest.fixture(scope="function")
def session_token(test_user: User) -> str:
    """Generate a valid session token for the test user."""
    return create_session_token(TEST_EMAIL, TEST_NAME)


@pytest_asyncio.fixture(scope="function")
async def auth_client(client: AsyncClient, session_token: str) -> AsyncClient:
    """Test client carrying the session cookie of the test user."""
    client.cookies.set(settings.SESSION_COOKIE_NAME, session_token)
    return client


@pytest_asyncio.fixture(scope="function")
async def instruments(test_db: AsyncSession) -> dict[str, str]:
    """Catalog used across ledger and valuation tests.

    Returns:
        Mapping of instrument code to instrument type
    """
    catalog = {
        "AL30": ("bond", "Bono AL30"),
        "GGAL": ("stock", "Grupo Galicia"),
        "ARS": ("cash", "Pesos"),
        "USD": ("cash", "Dolares"),
        "USD/ARS": ("other", "Dolar / Peso"),
    }
    for code, (type_code, name) in catalog.items():
        test_db.add(Instrument(code=code, instrument_type_code=type_code, name=name))
    await test_db.commit()
    return {code: type_code for code, (type_code, _) in catalog.items()}


@pytest.fixture
def add_price(test_db: AsyncSession):
    """Factory storing a price row directly."""

    async def _add(
        code: str,
        price_date: date,
        price: str,
        currency: str = "ARS",
    ) -> None:
        test_db.add(
            InstrumentPrice(
                instrument_code=code,
                price_date=price_date,
                price=Decimal(price),
                currency_code=currency,
            )
        )
        await test_db.commit()

    return _add
