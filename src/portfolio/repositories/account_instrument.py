"""Balance repository: atomic quantity deltas on account_instruments."""

from decimal import Decimal

from sqlalchemy import delete, select

from portfolio.db.base import utc_now
from portfolio.db.dialect import upsert_insert
from portfolio.models.account_instrument import AccountInstrument
from portfolio.repositories.base import BaseRepository


class AccountInstrumentRepository(BaseRepository[AccountInstrument]):
    """Repository for balance rows keyed by ``(user_email, account_name, instrument_code)``.

    Quantities are never read, modified and written back; every change is a
    single ``quantity = quantity + delta`` statement.

    Example:
        >>> repo = AccountInstrumentRepository(AccountInstrument, db)
        >>> await repo.apply_delta("ana@example.com", "Broker", "AL30", Decimal("10"))
    """

    async def apply_delta(
        self,
        user_email: str,
        account_name: str,
        instrument_code: str,
        delta: Decimal,
    ) -> None:
        """Add a signed delta to a balance, creating the row when absent.

        Args:
            user_email: Owner email
            account_name: Account name
            instrument_code: Instrument code
            delta: Signed quantity to add
        """
        stmt = upsert_insert(self.db, AccountInstrument).values(
            user_email=user_email,
            account_name=account_name,
            instrument_code=instrument_code,
            quantity=delta,
            updated_at=utc_now(),
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["user_email", "account_name", "instrument_code"],
            set_={
                "quantity": AccountInstrument.quantity + stmt.excluded.quantity,
                "updated_at": stmt.excluded.updated_at,
            },
        )
        await self.db.execute(stmt)

    async def get_quantity(
        self,
        user_email: str,
        account_name: str,
        instrument_code: str,
    ) -> Decimal | None:
        """Read the current quantity of a balance.

        Returns:
            The quantity, or None if no balance row exists
        """
        result = await self.db.execute(
            select(AccountInstrument.quantity)
            .where(AccountInstrument.user_email == user_email)
            .where(AccountInstrument.account_name == account_name)
            .where(AccountInstrument.instrument_code == instrument_code)
        )
        return result.scalar_one_or_none()

    async def get_positive(
        self,
        user_email: str,
        account_name: str | None = None,
    ) -> list[AccountInstrument]:
        """Get balances with a quantity above zero.

        Args:
            user_email: Owner email
            account_name: Restrict to one account

        Returns:
            Balance rows ordered by account and instrument
        """
        query = (
            select(AccountInstrument)
            .where(AccountInstrument.user_email == user_email)
            .where(AccountInstrument.quantity > 0)
            .order_by(AccountInstrument.account_name, AccountInstrument.instrument_code)
            .execution_options(populate_existing=True)
        )
        if account_name is not None:
            query = query.where(AccountInstrument.account_name == account_name)
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def delete_one(self, user_email: str, account_name: str, instrument_code: str) -> bool:
        """Delete a single balance row.

        Returns:
            True if a row was deleted
        """
        result = await self.db.execute(
            delete(AccountInstrument)
            .where(AccountInstrument.user_email == user_email)
            .where(AccountInstrument.account_name == account_name)
            .where(AccountInstrument.instrument_code == instrument_code)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount > 0

    async def delete_for_accounts(self, user_email: str, account_names: list[str]) -> int:
        """Delete every balance of the given accounts.

        Returns:
            Number of deleted rows
        """
        if not account_names:
            return 0
        result = await self.db.execute(
            delete(AccountInstrument)
            .where(AccountInstrument.user_email == user_email)
            .where(AccountInstrument.account_name.in_(account_names))
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    async def delete_for_user(self, user_email: str) -> int:
        """Delete every balance of a user.

        Returns:
            Number of deleted rows
        """
        result = await self.db.execute(
            delete(AccountInstrument)
            .where(AccountInstrument.user_email == user_email)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount
