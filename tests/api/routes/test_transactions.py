"""Tests for transaction endpoints."""

from decimal import Decimal

import pytest
from httpx import AsyncClient

pytestmark = pytest.mark.integration

BUY = {
    "account_name": "Broker",
    "instrument_code": "AL30",
    "transaction_type": "buy",
    "quantity": "10",
    "price": "100",
    "transaction_date": "2025-01-02",
}


async def holding_quantity(client: AsyncClient, instrument: str) -> Decimal | None:
    response = await client.get("/api/v1/holdings")
    for row in response.json():
        if row["account_name"] == "Broker" and row["instrument_code"] == instrument:
            return Decimal(row["quantity"])
    return None


async def test_record_transaction(auth_client: AsyncClient, instruments) -> None:
    response = await auth_client.post("/api/v1/transactions", json=BUY)

    assert response.status_code == 201
    data = response.json()
    assert data["account_name"] == "Broker"
    assert Decimal(data["total_amount"]) == Decimal("1000")
    assert data["currency_code"] == "ARS"
    assert await holding_quantity(auth_client, "AL30") == Decimal("10")

    accounts = await auth_client.get("/api/v1/accounts")
    assert [a["name"] for a in accounts.json()] == ["Broker"]


@pytest.mark.parametrize(
    "override",
    [
        {"quantity": "0"},
        {"quantity": "-5"},
        {"price": "-1"},
        {"transaction_type": "swap"},
        {"account_name": ""},
    ],
)
async def test_invalid_transaction_is_rejected(
    auth_client: AsyncClient, instruments, override: dict
) -> None:
    response = await auth_client.post("/api/v1/transactions", json={**BUY, **override})

    assert response.status_code == 422
    assert (await auth_client.get("/api/v1/transactions")).json() == []


async def test_unknown_instrument(auth_client: AsyncClient, instruments) -> None:
    response = await auth_client.post(
        "/api/v1/transactions", json={**BUY, "instrument_code": "NOPE"}
    )

    assert response.status_code == 404
    assert (await auth_client.get("/api/v1/accounts")).json() == []


async def test_list_filters(auth_client: AsyncClient, instruments) -> None:
    await auth_client.post("/api/v1/transactions", json=BUY)
    await auth_client.post(
        "/api/v1/transactions",
        json={**BUY, "instrument_code": "GGAL", "transaction_date": "2025-02-01"},
    )
    await auth_client.post(
        "/api/v1/transactions", json={**BUY, "account_name": "Savings", "quantity": "1"}
    )

    everything = await auth_client.get("/api/v1/transactions")
    assert len(everything.json()) == 3

    ggal = await auth_client.get("/api/v1/transactions", params={"instrument_code": "GGAL"})
    assert [t["instrument_name"] for t in ggal.json()] == ["Grupo Galicia"]

    savings = await auth_client.get("/api/v1/transactions", params={"account_name": "Savings"})
    assert len(savings.json()) == 1

    january = await auth_client.get(
        "/api/v1/transactions", params={"date_from": "2025-01-01", "date_to": "2025-01-31"}
    )
    assert {t["instrument_code"] for t in january.json()} == {"AL30"}

    limited = await auth_client.get("/api/v1/transactions", params={"limit": 1})
    assert len(limited.json()) == 1

    too_many = await auth_client.get("/api/v1/transactions", params={"limit": 501})
    assert too_many.status_code == 422


async def test_amend_transaction(auth_client: AsyncClient, instruments) -> None:
    created = (await auth_client.post("/api/v1/transactions", json=BUY)).json()

    response = await auth_client.put(
        "/api/v1/transactions", json={**BUY, "id": created["id"], "quantity": "4"}
    )

    assert response.status_code == 200
    assert Decimal(response.json()["quantity"]) == Decimal("4")
    assert await holding_quantity(auth_client, "AL30") == Decimal("4")


async def test_amend_moves_balance(auth_client: AsyncClient, instruments) -> None:
    created = (await auth_client.post("/api/v1/transactions", json=BUY)).json()

    response = await auth_client.put(
        "/api/v1/transactions",
        json={
            **BUY,
            "instrument_code": "GGAL",
            "created_at": created["created_at"],
            "original_instrument_code": "AL30",
        },
    )

    assert response.status_code == 200
    assert await holding_quantity(auth_client, "AL30") is None
    assert await holding_quantity(auth_client, "GGAL") == Decimal("10")


async def test_amend_requires_identifier(auth_client: AsyncClient, instruments) -> None:
    response = await auth_client.put("/api/v1/transactions", json=BUY)

    assert response.status_code == 422


async def test_delete_by_body(auth_client: AsyncClient, instruments) -> None:
    created = (await auth_client.post("/api/v1/transactions", json=BUY)).json()

    response = await auth_client.request(
        "DELETE", "/api/v1/transactions", json={"id": created["id"]}
    )

    assert response.status_code == 204
    assert (await auth_client.get("/api/v1/transactions")).json() == []
    assert await holding_quantity(auth_client, "AL30") is None


async def test_delete_by_legacy_key_in_query(auth_client: AsyncClient, instruments) -> None:
    created = (await auth_client.post("/api/v1/transactions", json=BUY)).json()

    response = await auth_client.delete(
        "/api/v1/transactions",
        params={
            "account_name": "Broker",
            "instrument_code": "AL30",
            "created_at": created["created_at"],
        },
    )

    assert response.status_code == 204
    assert (await auth_client.get("/api/v1/transactions")).json() == []


async def test_delete_errors(auth_client: AsyncClient, instruments) -> None:
    no_identifier = await auth_client.delete("/api/v1/transactions")
    assert no_identifier.status_code == 400

    missing = await auth_client.delete(
        "/api/v1/transactions", params={"id": "00000000-0000-0000-0000-000000000000"}
    )
    assert missing.status_code == 404
