"""Tests for holdings, portfolio totals and performance."""

from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from portfolio.core.exceptions import NotFoundError
from portfolio.schemas.transaction import TransactionInput
from portfolio.services import ledger_service, valuation_service
from tests.helpers import TEST_EMAIL

pytestmark = pytest.mark.unit


async def record(db: AsyncSession, **data) -> None:
    values = {
        "account_name": "Broker",
        "instrument_code": "AL30",
        "transaction_type": "buy",
        "quantity": "10",
        "transaction_date": date(2025, 1, 2),
    }
    values.update(data)
    await ledger_service.record_transaction(db, TEST_EMAIL, TransactionInput(**values))


class TestHoldings:
    """Tests for get_holdings."""

    async def test_priced_holding_is_valued(
        self, test_db: AsyncSession, test_user, instruments
    ) -> None:
        """A buy of 10 at 100 ARS is worth 1000."""
        await record(test_db, price="100", currency_code="ARS")

        holdings = await valuation_service.get_holdings(test_db, TEST_EMAIL, base_currency="ARS")

        assert len(holdings) == 1
        holding = holdings[0]
        assert holding.quantity == Decimal("10")
        assert holding.current_price == Decimal("100")
        assert holding.valuation == Decimal("1000")
        assert holding.valuation_base == Decimal("1000")
        assert holding.has_price is True
        assert holding.fx_missing is False
        assert holding.average_price == Decimal("100")
        assert holding.instrument_name == "Bono AL30"
        assert holding.instrument_type_code == "bond"

    async def test_unpriced_holding_is_zero(
        self, test_db: AsyncSession, test_user, instruments
    ) -> None:
        await record(test_db, instrument_code="GGAL")

        holdings = await valuation_service.get_holdings(test_db, TEST_EMAIL)

        assert holdings[0].has_price is False
        assert holdings[0].valuation == Decimal("0")
        assert holdings[0].price_date is None
        assert holdings[0].average_price is None

    async def test_non_positive_balances_are_hidden(
        self, test_db: AsyncSession, test_user, instruments
    ) -> None:
        await record(test_db, transaction_type="sell", quantity="3")

        assert await valuation_service.get_holdings(test_db, TEST_EMAIL) == []

    async def test_latest_price_is_used(
        self, test_db: AsyncSession, test_user, instruments, add_price
    ) -> None:
        await record(test_db)
        await add_price("AL30", date(2025, 1, 1), "90")
        await add_price("AL30", date(2025, 1, 5), "120")

        holdings = await valuation_service.get_holdings(test_db, TEST_EMAIL)

        assert holdings[0].current_price == Decimal("120")
        assert holdings[0].price_date == date(2025, 1, 5)

    async def test_average_price_weights_buys(
        self, test_db: AsyncSession, test_user, instruments
    ) -> None:
        await record(test_db, quantity="10", price="100", transaction_date=date(2025, 1, 1))
        await record(test_db, quantity="30", price="200", transaction_date=date(2025, 1, 2))

        holdings = await valuation_service.get_holdings(test_db, TEST_EMAIL)

        assert holdings[0].average_price == Decimal("175")

    async def test_foreign_currency_is_converted(
        self, test_db: AsyncSession, test_user, instruments, add_price
    ) -> None:
        await record(test_db, instrument_code="GGAL", quantity="2")
        await add_price("GGAL", date(2025, 1, 2), "5", currency="USD")
        await add_price("USD/ARS", date(2025, 1, 2), "1000")

        holdings = await valuation_service.get_holdings(test_db, TEST_EMAIL, base_currency="ARS")

        assert holdings[0].valuation == Decimal("10")
        assert holdings[0].valuation_base == Decimal("10000")
        assert holdings[0].fx_rate_to_base == Decimal("1000")
        assert holdings[0].fx_missing is False

    async def test_missing_rate_is_flagged(
        self, test_db: AsyncSession, test_user, instruments, add_price
    ) -> None:
        await record(test_db, instrument_code="GGAL", quantity="2")
        await add_price("GGAL", date(2025, 1, 2), "5", currency="EUR")

        holdings = await valuation_service.get_holdings(test_db, TEST_EMAIL, base_currency="ARS")

        assert holdings[0].fx_missing is True
        assert holdings[0].valuation_base == Decimal("10")
        assert holdings[0].fx_rate_to_base is None

    async def test_sorted_by_base_valuation_and_filtered_by_account(
        self, test_db: AsyncSession, test_user, instruments, add_price
    ) -> None:
        await record(test_db, instrument_code="AL30", quantity="1")
        await record(test_db, instrument_code="GGAL", quantity="1")
        await record(test_db, account_name="Savings", instrument_code="GGAL", quantity="1")
        await add_price("AL30", date(2025, 1, 2), "10")
        await add_price("GGAL", date(2025, 1, 2), "50")

        holdings = await valuation_service.get_holdings(test_db, TEST_EMAIL)
        assert [h.valuation_base for h in holdings] == [
            Decimal("50"),
            Decimal("50"),
            Decimal("10"),
        ]

        broker = await valuation_service.get_holdings(test_db, TEST_EMAIL, "Broker")
        assert [h.instrument_code for h in broker] == ["GGAL", "AL30"]


class TestPortfolioTotals:
    """Tests for portfolio_totals."""

    async def test_totals_per_account(
        self, test_db: AsyncSession, test_user, instruments, add_price
    ) -> None:
        await record(test_db, instrument_code="AL30", quantity="10")
        await record(test_db, instrument_code="GGAL", quantity="1")
        await record(test_db, account_name="Savings", instrument_code="AL30", quantity="1")
        await add_price("AL30", date(2025, 1, 2), "100")
        await add_price("GGAL", date(2025, 1, 3), "2", currency="USD")
        await add_price("USD/ARS", date(2025, 1, 3), "1000")

        totals = await valuation_service.portfolio_totals(test_db, TEST_EMAIL, base_currency="ARS")

        assert [t.account_name for t in totals] == ["Broker", "Savings"]
        broker = totals[0]
        assert broker.total_value_base == Decimal("3000")
        assert broker.totals_by_currency == {"ARS": Decimal("1000"), "USD": Decimal("2")}
        assert broker.instruments_count == 2
        assert broker.last_price_date == date(2025, 1, 3)
        assert broker.base_currency_code == "ARS"
        assert broker.fx_missing is False
        assert totals[1].total_value_base == Decimal("100")

    async def test_missing_rate_marks_account(
        self, test_db: AsyncSession, test_user, instruments, add_price
    ) -> None:
        await record(test_db, instrument_code="GGAL", quantity="1")
        await add_price("GGAL", date(2025, 1, 2), "2", currency="EUR")

        totals = await valuation_service.portfolio_totals(test_db, TEST_EMAIL, base_currency="ARS")

        assert totals[0].fx_missing is True


class TestPerformance:
    """Tests for performance."""

    async def test_single_price_has_zero_change(
        self, test_db: AsyncSession, test_user, instruments, add_price
    ) -> None:
        await add_price("AL30", date(2025, 1, 2), "100")

        entries = await valuation_service.performance(test_db, "AL30")

        assert len(entries) == 1
        assert entries[0].price_change_percent == Decimal("0")
        assert entries[0].previous_price is None

    async def test_change_against_previous_day(
        self, test_db: AsyncSession, test_user, instruments, add_price
    ) -> None:
        await add_price("AL30", date(2025, 1, 1), "100")
        await add_price("AL30", date(2025, 1, 2), "110")
        await add_price("GGAL", date(2025, 1, 1), "200")
        await add_price("GGAL", date(2025, 1, 3), "150")

        entries = await valuation_service.performance(test_db)

        assert [e.instrument_code for e in entries] == ["AL30", "GGAL"]
        assert entries[0].price_change_percent == Decimal("10.0000")
        assert entries[0].previous_price_date == date(2025, 1, 1)
        assert entries[1].price_change_percent == Decimal("-25.0000")

    async def test_unknown_instrument(self, test_db: AsyncSession, instruments) -> None:
        with pytest.raises(NotFoundError):
            await valuation_service.performance(test_db, "NOPE")
