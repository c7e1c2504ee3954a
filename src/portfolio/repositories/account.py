"""Account repository for account-specific database operations."""

from sqlalchemy import delete, select

from portfolio.core.constants import AccountTypes
from portfolio.db.dialect import upsert_insert
from portfolio.models.account import Account
from portfolio.repositories.base import BaseRepository


class AccountRepository(BaseRepository[Account]):
    """Repository for Account model keyed by ``(user_email, name)``.

    Example:
        >>> repo = AccountRepository(Account, db)
        >>> accounts = await repo.get_by_user(user.email)
    """

    async def get_by_user(self, user_email: str) -> list[Account]:
        """Get all accounts of a user ordered by name.

        Args:
            user_email: Owner email

        Returns:
            List of accounts
        """
        result = await self.db.execute(
            select(Account).where(Account.user_email == user_email).order_by(Account.name)
        )
        return list(result.scalars().all())

    async def get_by_user_and_name(self, user_email: str, name: str) -> Account | None:
        """Get account by owner and exact name.

        Args:
            user_email: Owner email
            name: Account name

        Returns:
            Account object if found, None otherwise
        """
        result = await self.db.execute(
            select(Account)
            .where(Account.user_email == user_email)
            .where(Account.name == name)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def get_children(self, user_email: str, parent_name: str) -> list[Account]:
        """Get accounts whose parent is the given account.

        Args:
            user_email: Owner email
            parent_name: Name of the parent account

        Returns:
            List of child accounts
        """
        result = await self.db.execute(
            select(Account)
            .where(Account.user_email == user_email)
            .where(Account.parent_account_name == parent_name)
            .order_by(Account.name)
        )
        return list(result.scalars().all())

    async def ensure(
        self,
        user_email: str,
        name: str,
        account_type: str = AccountTypes.DEFAULT,
    ) -> bool:
        """Create the account if it does not exist yet.

        Issues a single ``INSERT ... ON CONFLICT DO NOTHING`` so concurrent
        callers cannot both create the same account.

        Args:
            user_email: Owner email
            name: Account name
            account_type: Type used only when the account is created

        Returns:
            True if a new account was inserted, False if it already existed
        """
        stmt = (
            upsert_insert(self.db, Account)
            .values(user_email=user_email, name=name, account_type=account_type)
            .on_conflict_do_nothing(index_elements=["user_email", "name"])
            .returning(Account.id)
        )
        result = await self.db.execute(stmt)
        return result.first() is not None

    async def delete_by_names(self, user_email: str, names: list[str]) -> int:
        """Delete accounts of a user by name.

        Args:
            user_email: Owner email
            names: Account names to delete

        Returns:
            Number of deleted rows
        """
        if not names:
            return 0
        result = await self.db.execute(
            delete(Account)
            .where(Account.user_email == user_email)
            .where(Account.name.in_(names))
            .execution_options(synchronize_session=False)
        )
        return result.rowcount
