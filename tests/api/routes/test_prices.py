"""Tests for price endpoints and market data sync."""

from datetime import UTC, date, datetime
from decimal import Decimal

import pytest
from httpx import AsyncClient

from main import app
from portfolio.models.instrument import Instrument
from portfolio.services.quote_provider import Quote, SymbolNotFoundError, get_quote_fetcher

pytestmark = pytest.mark.integration


@pytest.fixture
def quotes():
    """Serve sync quotes from a dict instead of Yahoo Finance."""
    prices: dict[str, str] = {}

    async def fetch(symbol: str) -> Quote:
        if symbol not in prices:
            raise SymbolNotFoundError(f"No price data for symbol '{symbol}'")
        return Quote(
            symbol=symbol,
            price=Decimal(prices[symbol]),
            price_date=date(2025, 3, 14),
            currency="USD",
            as_of=datetime(2025, 3, 14, 20, 0, tzinfo=UTC),
        )

    app.dependency_overrides[get_quote_fetcher] = lambda: fetch
    yield prices
    app.dependency_overrides.pop(get_quote_fetcher, None)


async def test_upsert_and_list(auth_client: AsyncClient, instruments) -> None:
    first = await auth_client.post(
        "/api/v1/prices",
        json={"instrument_code": "AL30", "price_date": "2025-01-02", "price": "100", "currency_code": "ars"},
    )
    second = await auth_client.post(
        "/api/v1/prices",
        json={"instrument_code": "AL30", "price_date": "2025-01-02", "price": "101", "currency_code": "ARS"},
    )

    assert first.status_code == 200
    assert second.json()["id"] == first.json()["id"]

    listed = await auth_client.get("/api/v1/prices", params={"instrument_code": "AL30"})
    assert len(listed.json()) == 1
    row = listed.json()[0]
    assert Decimal(row["price"]) == Decimal("101")
    assert row["instrument_name"] == "Bono AL30"


async def test_upsert_validation(auth_client: AsyncClient, instruments) -> None:
    non_positive = await auth_client.post(
        "/api/v1/prices",
        json={"instrument_code": "AL30", "price": "0", "currency_code": "ARS"},
    )
    assert non_positive.status_code == 422

    unknown = await auth_client.post(
        "/api/v1/prices",
        json={"instrument_code": "NOPE", "price": "1", "currency_code": "ARS"},
    )
    assert unknown.status_code == 404


async def test_correct_and_delete_pair_price(auth_client: AsyncClient, instruments, add_price) -> None:
    await add_price("USD/ARS", date(2025, 1, 2), "1000")

    corrected = await auth_client.put(
        "/api/v1/prices/USD/ARS/2025-01-02", json={"price": "1010"}
    )
    assert corrected.status_code == 200
    assert corrected.json()["instrument_code"] == "USD/ARS"
    assert Decimal(corrected.json()["price"]) == Decimal("1010")

    assert (await auth_client.delete("/api/v1/prices/USD/ARS/2025-01-02")).status_code == 204
    assert (await auth_client.delete("/api/v1/prices/USD/ARS/2025-01-02")).status_code == 404


async def test_price_writes_require_session(client: AsyncClient, instruments) -> None:
    response = await client.post(
        "/api/v1/prices",
        json={"instrument_code": "AL30", "price": "1", "currency_code": "ARS"},
    )

    assert response.status_code == 401


async def test_sync_partial_failure_is_207(auth_client: AsyncClient, test_db, quotes) -> None:
    """Three instruments, one without a quote: two updated and one itemized error."""
    for code in ("AAPL", "MSFT", "ZZZZ"):
        test_db.add(Instrument(code=code, instrument_type_code="stock", name=code))
    await test_db.commit()
    quotes.update({"AAPL": "190.5", "MSFT": "410"})

    response = await auth_client.post("/api/v1/prices/sync")

    assert response.status_code == 207
    data = response.json()
    assert data["success"] is False
    assert data["updated"] == 2
    assert len(data["errors"]) == 1
    assert data["errors"][0].startswith("ZZZZ")

    stored = await auth_client.get("/api/v1/prices", params={"instrument_code": "AAPL"})
    assert Decimal(stored.json()[0]["price"]) == Decimal("190.5")


async def test_sync_success_is_200(auth_client: AsyncClient, test_db, quotes) -> None:
    test_db.add(Instrument(code="AAPL", instrument_type_code="stock", name="Apple"))
    await test_db.commit()
    quotes["AAPL"] = "190.5"

    response = await auth_client.post("/api/v1/prices/sync")

    assert response.status_code == 200
    assert response.json() == {"success": True, "updated": 1, "errors": []}
