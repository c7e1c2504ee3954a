"""Transaction repository: ledger log queries."""

import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Any

from sqlalchemy import Row, case, delete, func, select

from portfolio.db.base import truncate_to_millis
from portfolio.models.instrument import Instrument
from portfolio.models.transaction import Transaction, TransactionType
from portfolio.repositories.base import BaseRepository

PRICE_QUANTUM = Decimal("0.00000001")

INCREASING_TYPES = (
    TransactionType.BUY,
    TransactionType.DEPOSIT,
    TransactionType.DIVIDEND,
    TransactionType.INTEREST,
)


class TransactionRepository(BaseRepository[Transaction]):
    """Repository for ledger transactions.

    Example:
        >>> repo = TransactionRepository(Transaction, db)
        >>> rows = await repo.get_filtered("ana@example.com", account_name="Broker", limit=50)
    """

    async def get_for_user(self, user_email: str, transaction_id: uuid.UUID) -> Transaction | None:
        """Get a transaction by id, only if it belongs to the user.

        Args:
            user_email: Owner email
            transaction_id: Surrogate id

        Returns:
            The transaction, or None
        """
        result = await self.db.execute(
            select(Transaction)
            .where(Transaction.id == transaction_id)
            .where(Transaction.user_email == user_email)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def get_by_legacy_key(
        self,
        user_email: str,
        account_name: str,
        instrument_code: str,
        created_at: datetime,
    ) -> Transaction | None:
        """Find a transaction by ``(account, instrument, created_at)``.

        ``created_at`` is normalized to UTC milliseconds, the precision at
        which it is stored.

        Returns:
            The oldest matching transaction, or None
        """
        result = await self.db.execute(
            select(Transaction)
            .where(Transaction.user_email == user_email)
            .where(Transaction.account_name == account_name)
            .where(Transaction.instrument_code == instrument_code)
            .where(Transaction.created_at == truncate_to_millis(created_at))
            .order_by(Transaction.id)
            .limit(1)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def get_filtered(
        self,
        user_email: str,
        *,
        account_name: str | None = None,
        instrument_code: str | None = None,
        date_from: date | None = None,
        date_to: date | None = None,
        limit: int = 100,
    ) -> list[Row[Any]]:
        """List transactions of a user, newest first.

        Args:
            user_email: Owner email
            account_name: Restrict to one account
            instrument_code: Restrict to one instrument
            date_from: Inclusive lower bound on transaction date
            date_to: Inclusive upper bound on transaction date
            limit: Maximum number of rows

        Returns:
            Rows of ``(Transaction, instrument_name)``
        """
        query = (
            select(Transaction, Instrument.name)
            .join(Instrument, Instrument.code == Transaction.instrument_code)
            .where(Transaction.user_email == user_email)
        )
        if account_name is not None:
            query = query.where(Transaction.account_name == account_name)
        if instrument_code is not None:
            query = query.where(Transaction.instrument_code == instrument_code)
        if date_from is not None:
            query = query.where(Transaction.transaction_date >= date_from)
        if date_to is not None:
            query = query.where(Transaction.transaction_date <= date_to)
        query = query.order_by(
            Transaction.transaction_date.desc(), Transaction.created_at.desc()
        ).limit(limit)
        result = await self.db.execute(query.execution_options(populate_existing=True))
        return list(result.all())

    async def get_by_imported_file(self, imported_file_id: uuid.UUID) -> list[Transaction]:
        """Get the transactions created from an uploaded file."""
        result = await self.db.execute(
            select(Transaction)
            .where(Transaction.imported_file_id == imported_file_id)
            .order_by(Transaction.created_at)
        )
        return list(result.scalars().all())

    async def get_signed_totals(self, user_email: str) -> list[Row[Any]]:
        """Sum signed quantities per balance key from the log.

        Returns:
            Rows of ``(account_name, instrument_code, quantity)``
        """
        signed = case(
            (Transaction.transaction_type.in_(INCREASING_TYPES), Transaction.quantity),
            else_=-Transaction.quantity,
        )
        result = await self.db.execute(
            select(
                Transaction.account_name,
                Transaction.instrument_code,
                func.sum(signed).label("quantity"),
            )
            .where(Transaction.user_email == user_email)
            .group_by(Transaction.account_name, Transaction.instrument_code)
        )
        return list(result.all())

    async def get_buy_average_prices(
        self,
        user_email: str,
    ) -> dict[tuple[str, str], Decimal]:
        """Quantity-weighted average price of priced buys per ``(account, instrument)``.

        Returns:
            Mapping of ``(account_name, instrument_code)`` to average price
        """
        result = await self.db.execute(
            select(
                Transaction.account_name,
                Transaction.instrument_code,
                func.sum(Transaction.price * Transaction.quantity).label("cost"),
                func.sum(Transaction.quantity).label("quantity"),
            )
            .where(Transaction.user_email == user_email)
            .where(Transaction.transaction_type == TransactionType.BUY)
            .where(Transaction.price.is_not(None))
            .group_by(Transaction.account_name, Transaction.instrument_code)
        )
        averages: dict[tuple[str, str], Decimal] = {}
        for account_name, instrument_code, cost, quantity in result.all():
            if quantity:
                average = Decimal(str(cost)) / Decimal(str(quantity))
                averages[(account_name, instrument_code)] = average.quantize(PRICE_QUANTUM)
        return averages

    async def delete_for_accounts(self, user_email: str, account_names: list[str]) -> int:
        """Delete every transaction of the given accounts.

        Returns:
            Number of deleted rows
        """
        if not account_names:
            return 0
        result = await self.db.execute(
            delete(Transaction)
            .where(Transaction.user_email == user_email)
            .where(Transaction.account_name.in_(account_names))
            .execution_options(synchronize_session=False)
        )
        return result.rowcount
