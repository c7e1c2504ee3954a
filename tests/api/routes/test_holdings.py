"""Tests for holding endpoints."""

from datetime import date
from decimal import Decimal

import pytest
from httpx import AsyncClient

pytestmark = pytest.mark.integration


async def record(client: AsyncClient, **overrides) -> None:
    payload = {
        "account_name": "Broker",
        "instrument_code": "AL30",
        "transaction_type": "buy",
        "quantity": "10",
        "transaction_date": "2025-01-02",
        **overrides,
    }
    response = await client.post("/api/v1/transactions", json=payload)
    assert response.status_code == 201


async def test_holdings_are_valued(auth_client: AsyncClient, instruments, add_price) -> None:
    await record(auth_client, price="100")
    await add_price("AL30", date(2025, 1, 3), "120")
    await record(auth_client, instrument_code="GGAL")

    response = await auth_client.get("/api/v1/holdings")

    assert response.status_code == 200
    rows = {row["instrument_code"]: row for row in response.json()}
    assert Decimal(rows["AL30"]["valuation"]) == Decimal("1200")
    assert Decimal(rows["AL30"]["average_price"]) == Decimal("100")
    assert rows["AL30"]["has_price"] is True
    assert rows["GGAL"]["has_price"] is False
    assert Decimal(rows["GGAL"]["valuation"]) == 0
    assert [row["instrument_code"] for row in response.json()] == ["AL30", "GGAL"]


async def test_remove_and_rebuild(auth_client: AsyncClient, instruments) -> None:
    """Removing a balance row is undone by rebuilding from the log."""
    await record(auth_client)
    await record(auth_client, transaction_type="sell", quantity="4")

    removed = await auth_client.delete("/api/v1/holdings/Broker/AL30")
    assert removed.status_code == 204
    assert (await auth_client.get("/api/v1/holdings")).json() == []

    rebuilt = await auth_client.post("/api/v1/holdings/rebuild")
    assert rebuilt.json() == {"balances": 1}
    rows = (await auth_client.get("/api/v1/holdings")).json()
    assert Decimal(rows[0]["quantity"]) == Decimal("6")


async def test_remove_missing_holding(auth_client: AsyncClient, instruments) -> None:
    response = await auth_client.delete("/api/v1/holdings/Broker/USD/ARS")

    assert response.status_code == 404


async def test_holdings_filter_by_account(auth_client: AsyncClient, instruments) -> None:
    await record(auth_client)
    await record(auth_client, account_name="Savings", instrument_code="USD", transaction_type="deposit")

    response = await auth_client.get("/api/v1/holdings", params={"account_name": "Savings"})

    assert [row["instrument_code"] for row in response.json()] == ["USD"]
