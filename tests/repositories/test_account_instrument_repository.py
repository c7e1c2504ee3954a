"""Tests for AccountInstrumentRepository."""

from decimal import Decimal

import pytest

from portfolio.models.account_instrument import AccountInstrument
from portfolio.repositories.account_instrument import AccountInstrumentRepository
from tests.helpers import OTHER_EMAIL, TEST_EMAIL


@pytest.mark.asyncio
async def test_apply_delta_creates_then_accumulates(test_db, test_user, instruments):
    """The first delta creates the row; later ones add to it."""
    repo = AccountInstrumentRepository(AccountInstrument, test_db)

    await repo.apply_delta(TEST_EMAIL, "Broker", "AL30", Decimal("10"))
    await repo.apply_delta(TEST_EMAIL, "Broker", "AL30", Decimal("-2.5"))
    await test_db.commit()

    assert await repo.get_quantity(TEST_EMAIL, "Broker", "AL30") == Decimal("7.5")
    assert await repo.get_quantity(TEST_EMAIL, "Broker", "GGAL") is None


@pytest.mark.asyncio
async def test_balances_are_per_user(test_db, test_user, other_user, instruments):
    repo = AccountInstrumentRepository(AccountInstrument, test_db)

    await repo.apply_delta(TEST_EMAIL, "Broker", "AL30", Decimal("1"))
    await repo.apply_delta(OTHER_EMAIL, "Broker", "AL30", Decimal("5"))
    await test_db.commit()

    assert await repo.get_quantity(TEST_EMAIL, "Broker", "AL30") == Decimal("1")
    assert await repo.get_quantity(OTHER_EMAIL, "Broker", "AL30") == Decimal("5")


@pytest.mark.asyncio
async def test_get_positive_skips_empty_and_short(test_db, test_user, instruments):
    """Only balances above zero are listed, ordered by account then instrument."""
    repo = AccountInstrumentRepository(AccountInstrument, test_db)
    await repo.apply_delta(TEST_EMAIL, "Savings", "USD", Decimal("100"))
    await repo.apply_delta(TEST_EMAIL, "Broker", "GGAL", Decimal("3"))
    await repo.apply_delta(TEST_EMAIL, "Broker", "AL30", Decimal("5"))
    await repo.apply_delta(TEST_EMAIL, "Broker", "ARS", Decimal("0"))
    await repo.apply_delta(TEST_EMAIL, "Broker", "USD", Decimal("-1"))
    await test_db.commit()

    rows = await repo.get_positive(TEST_EMAIL)
    assert [(r.account_name, r.instrument_code) for r in rows] == [
        ("Broker", "AL30"),
        ("Broker", "GGAL"),
        ("Savings", "USD"),
    ]

    savings = await repo.get_positive(TEST_EMAIL, "Savings")
    assert [r.instrument_code for r in savings] == ["USD"]


@pytest.mark.asyncio
async def test_delete_helpers(test_db, test_user, instruments):
    repo = AccountInstrumentRepository(AccountInstrument, test_db)
    await repo.apply_delta(TEST_EMAIL, "Broker", "AL30", Decimal("5"))
    await repo.apply_delta(TEST_EMAIL, "Savings", "USD", Decimal("5"))
    await repo.apply_delta(TEST_EMAIL, "Other", "USD", Decimal("5"))
    await test_db.commit()

    assert await repo.delete_one(TEST_EMAIL, "Broker", "AL30") is True
    assert await repo.delete_one(TEST_EMAIL, "Broker", "AL30") is False
    assert await repo.delete_for_accounts(TEST_EMAIL, ["Savings"]) == 1
    assert await repo.delete_for_user(TEST_EMAIL) == 1
