"""Service layer for the account directory.

Accounts are addressed by ``(user_email, name)``. Deleting an account
cascades explicitly, in this module: child accounts naming it as parent are
deleted with it, and every deleted account loses its transactions and
balances, all in one database transaction.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from portfolio.core.constants import AccountTypes
from portfolio.core.exceptions import ConflictError, NotFoundError, ValidationError
from portfolio.db.session import transactional
from portfolio.models.account import Account
from portfolio.models.account_instrument import AccountInstrument
from portfolio.models.transaction import Transaction
from portfolio.repositories.account import AccountRepository
from portfolio.repositories.account_instrument import AccountInstrumentRepository
from portfolio.repositories.transaction import TransactionRepository
from portfolio.schemas.account import AccountCreate, AccountDeleteResponse, AccountUpdate

logger = logging.getLogger(__name__)


async def ensure_account(
    db: AsyncSession,
    user_email: str,
    name: str,
    account_type: str = AccountTypes.DEFAULT,
) -> bool:
    """Make sure an account exists, creating it when missing.

    Idempotent and safe under concurrency. Does not commit: the caller owns
    the surrounding transaction, so the account is created together with
    whatever needed it.

    Args:
        db: Database session
        user_email: Owner email
        name: Account name
        account_type: Type given to a newly created account

    Returns:
        True if the account was created by this call
    """
    repo = AccountRepository(Account, db)
    created = await repo.ensure(user_email, name, account_type)
    if created:
        logger.info(f"Created account '{name}' for {user_email}")
    return created


async def list_accounts(db: AsyncSession, user_email: str) -> list[Account]:
    """List the user's accounts ordered by name."""
    repo = AccountRepository(Account, db)
    return await repo.get_by_user(user_email)


async def get_account(db: AsyncSession, user_email: str, name: str) -> Account:
    """Get an account of the user.

    Raises:
        NotFoundError: If the account does not exist
    """
    repo = AccountRepository(Account, db)
    account = await repo.get_by_user_and_name(user_email, name)
    if account is None:
        raise NotFoundError(f"Account '{name}' not found")
    return account


async def _check_parent(
    repo: AccountRepository, user_email: str, name: str, parent_name: str | None
) -> None:
    if not parent_name:
        return
    if parent_name == name:
        raise ValidationError("An account cannot be its own parent")
    if await repo.get_by_user_and_name(user_email, parent_name) is None:
        raise ValidationError(f"Parent account '{parent_name}' does not exist")


async def create_account(db: AsyncSession, user_email: str, data: AccountCreate) -> Account:
    """Create an account.

    Args:
        db: Database session
        user_email: Owner email
        data: Account fields

    Returns:
        The created account

    Raises:
        ConflictError: If the user already has an account with that name
        ValidationError: If the parent account is missing or is the account itself
    """
    repo = AccountRepository(Account, db)
    if await repo.get_by_user_and_name(user_email, data.name) is not None:
        raise ConflictError(f"Account '{data.name}' already exists")
    await _check_parent(repo, user_email, data.name, data.parent_account_name)

    async with transactional(db):
        account = Account(
            user_email=user_email,
            name=data.name,
            account_type=data.account_type,
            bank_name=data.bank_name,
            parent_account_name=data.parent_account_name or None,
        )
        db.add(account)

    logger.info(f"Created account '{data.name}' for {user_email}")
    return account


async def update_account(
    db: AsyncSession, user_email: str, name: str, data: AccountUpdate
) -> Account:
    """Update type, bank or parent of an account.

    Only fields present in the payload change; an empty parent name clears
    the parent.

    Raises:
        NotFoundError: If the account does not exist
        ValidationError: If nothing was sent or the parent is invalid
    """
    changes = data.model_dump(exclude_unset=True)
    if not changes:
        raise ValidationError("No fields to update")

    repo = AccountRepository(Account, db)
    account = await get_account(db, user_email, name)
    if "parent_account_name" in changes:
        changes["parent_account_name"] = changes["parent_account_name"] or None
        await _check_parent(repo, user_email, name, changes["parent_account_name"])

    async with transactional(db):
        for field, value in changes.items():
            setattr(account, field, value)

    return account


async def delete_account(db: AsyncSession, user_email: str, name: str) -> AccountDeleteResponse:
    """Delete an account, its child accounts, and their transactions and balances.

    Args:
        db: Database session
        user_email: Owner email
        name: Account to delete

    Returns:
        Names of the deleted accounts and how many ledger rows went with them

    Raises:
        NotFoundError: If the account does not exist
    """
    repo = AccountRepository(Account, db)
    await get_account(db, user_email, name)
    children = await repo.get_children(user_email, name)
    names = [child.name for child in children] + [name]

    async with transactional(db):
        deleted_transactions = await TransactionRepository(
            Transaction, db
        ).delete_for_accounts(user_email, names)
        deleted_balances = await AccountInstrumentRepository(
            AccountInstrument, db
        ).delete_for_accounts(user_email, names)
        await repo.delete_by_names(user_email, names)

    logger.info(
        f"Deleted accounts {names} for {user_email} "
        f"({deleted_transactions} transactions, {deleted_balances} balances)"
    )
    return AccountDeleteResponse(
        deleted_accounts=names,
        deleted_transactions=deleted_transactions,
        deleted_balances=deleted_balances,
    )
