"""Ledger engine: the transaction log and the balances derived from it.

Every balance row must equal the sum of the signed quantities of the live
transactions sharing its ``(user_email, account_name, instrument_code)`` key.
Each operation here writes the log row and the matching balance delta in one
database transaction, and balance quantities are only ever changed with a
single ``quantity = quantity + delta`` statement.
"""

import logging
import uuid
from datetime import date
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from portfolio.core.constants import APIConstants
from portfolio.core.exceptions import NotFoundError
from portfolio.db.session import transactional
from portfolio.models.account_instrument import AccountInstrument
from portfolio.models.instrument import Instrument
from portfolio.models.instrument_price import InstrumentPrice
from portfolio.models.transaction import Transaction, TransactionType
from portfolio.repositories.account_instrument import AccountInstrumentRepository
from portfolio.repositories.instrument import InstrumentRepository
from portfolio.repositories.instrument_price import InstrumentPriceRepository
from portfolio.repositories.transaction import INCREASING_TYPES, TransactionRepository
from portfolio.schemas.transaction import (
    TransactionAmend,
    TransactionInput,
    TransactionLookup,
    TransactionResponse,
)
from portfolio.services.account_service import ensure_account

logger = logging.getLogger(__name__)


def signed_quantity(transaction_type: TransactionType, quantity: Decimal) -> Decimal:
    """Quantity as it affects the balance.

    Buys, deposits, dividends and interest add; sells and withdrawals
    subtract. Used both to apply a transaction and to undo it.
    """
    if transaction_type in INCREASING_TYPES:
        return quantity
    return -quantity


def _total_amount(data: TransactionInput) -> Decimal | None:
    if data.total_amount is not None:
        return data.total_amount
    if data.price is not None:
        return data.price * data.quantity
    return None


async def _require_instrument(db: AsyncSession, code: str) -> None:
    if not await InstrumentRepository(Instrument, db).exists(code):
        raise NotFoundError(f"Instrument '{code}' not found")


async def _store_price(db: AsyncSession, data: TransactionInput) -> None:
    if data.price is None:
        return
    await InstrumentPriceRepository(InstrumentPrice, db).upsert(
        data.instrument_code,
        data.transaction_date,
        data.price,
        data.currency_code,
    )


async def _find(db: AsyncSession, user_email: str, lookup: TransactionLookup) -> Transaction:
    repo = TransactionRepository(Transaction, db)
    if lookup.id is not None:
        transaction = await repo.get_for_user(user_email, lookup.id)
    elif lookup.account_name and lookup.instrument_code and lookup.created_at:
        transaction = await repo.get_by_legacy_key(
            user_email, lookup.account_name, lookup.instrument_code, lookup.created_at
        )
    else:
        transaction = None
    if transaction is None:
        raise NotFoundError("Transaction not found")
    return transaction


async def record_transaction(
    db: AsyncSession,
    user_email: str,
    data: TransactionInput,
    *,
    imported_file_id: uuid.UUID | None = None,
) -> Transaction:
    """Append a transaction to the ledger and apply it to the balance.

    The account is created when missing. When a price is given it is also
    stored as the instrument's price for the transaction date. Price,
    log row and balance delta commit together or not at all.

    Args:
        db: Database session
        user_email: Owner email
        data: Validated transaction
        imported_file_id: Uploaded file the row came from, if any

    Returns:
        The stored transaction

    Raises:
        NotFoundError: If the instrument does not exist
    """
    balances = AccountInstrumentRepository(AccountInstrument, db)

    async with transactional(db):
        await _require_instrument(db, data.instrument_code)
        await ensure_account(db, user_email, data.account_name)
        await _store_price(db, data)

        transaction = Transaction(
            user_email=user_email,
            account_name=data.account_name,
            instrument_code=data.instrument_code,
            transaction_date=data.transaction_date,
            transaction_type=data.transaction_type,
            quantity=data.quantity,
            price=data.price,
            total_amount=_total_amount(data),
            currency_code=data.currency_code,
            description=data.description,
            imported_file_id=imported_file_id,
        )
        db.add(transaction)
        await db.flush()

        await balances.apply_delta(
            user_email,
            data.account_name,
            data.instrument_code,
            signed_quantity(data.transaction_type, data.quantity),
        )

    logger.info(
        f"Recorded {data.transaction_type.value} {data.quantity} {data.instrument_code} "
        f"in '{data.account_name}' for {user_email}"
    )
    return transaction


async def amend_transaction(
    db: AsyncSession,
    user_email: str,
    data: TransactionAmend,
) -> Transaction:
    """Replace the contents of an existing transaction and rebalance.

    When account and instrument are unchanged one combined delta is applied.
    When either changes, the old contribution is removed from the old
    balance and the new one added to the new balance. The id and creation
    time of the row are preserved.

    Args:
        db: Database session
        user_email: Owner email
        data: New values plus the identifiers of the row

    Returns:
        The updated transaction

    Raises:
        NotFoundError: If the transaction or the new instrument does not exist
    """
    balances = AccountInstrumentRepository(AccountInstrument, db)

    async with transactional(db):
        transaction = await _find(db, user_email, data.lookup())
        await _require_instrument(db, data.instrument_code)

        old_key = (transaction.account_name, transaction.instrument_code)
        new_key = (data.account_name, data.instrument_code)
        old_signed = signed_quantity(transaction.transaction_type, transaction.quantity)
        new_signed = signed_quantity(data.transaction_type, data.quantity)

        if old_key == new_key:
            await balances.apply_delta(user_email, *new_key, new_signed - old_signed)
        else:
            await ensure_account(db, user_email, data.account_name)
            await balances.apply_delta(user_email, *old_key, -old_signed)
            await balances.apply_delta(user_email, *new_key, new_signed)

        await _store_price(db, data)

        transaction.account_name = data.account_name
        transaction.instrument_code = data.instrument_code
        transaction.transaction_type = data.transaction_type
        transaction.transaction_date = data.transaction_date
        transaction.quantity = data.quantity
        transaction.price = data.price
        transaction.total_amount = _total_amount(data)
        transaction.currency_code = data.currency_code
        transaction.description = data.description
        await db.flush()

    logger.info(f"Amended transaction {transaction.id} for {user_email}")
    return transaction


async def remove_transaction(
    db: AsyncSession,
    user_email: str,
    lookup: TransactionLookup,
) -> None:
    """Delete a transaction and undo its effect on the balance.

    Raises:
        NotFoundError: If the transaction does not exist
    """
    balances = AccountInstrumentRepository(AccountInstrument, db)

    async with transactional(db):
        transaction = await _find(db, user_email, lookup)
        transaction_id = transaction.id
        key = (transaction.account_name, transaction.instrument_code)
        delta = -signed_quantity(transaction.transaction_type, transaction.quantity)

        await db.delete(transaction)
        await db.flush()
        await balances.apply_delta(user_email, *key, delta)

    logger.info(f"Removed transaction {transaction_id} for {user_email}")


async def remove_holding(
    db: AsyncSession,
    user_email: str,
    account_name: str,
    instrument_code: str,
) -> None:
    """Delete a balance row without touching the transaction log.

    Administrative escape hatch: the balance no longer matches the log
    afterwards until ``rebuild_balances`` runs.

    Raises:
        NotFoundError: If there is no such balance
    """
    balances = AccountInstrumentRepository(AccountInstrument, db)
    async with transactional(db):
        deleted = await balances.delete_one(user_email, account_name, instrument_code)
        if not deleted:
            raise NotFoundError(f"No holding of '{instrument_code}' in '{account_name}'")

    logger.warning(
        f"Holding {instrument_code} in '{account_name}' removed for {user_email} "
        "without touching its transactions"
    )


async def rebuild_balances(db: AsyncSession, user_email: str) -> int:
    """Recompute every balance of a user from the transaction log.

    Returns:
        Number of balance rows written
    """
    transactions = TransactionRepository(Transaction, db)
    balances = AccountInstrumentRepository(AccountInstrument, db)

    async with transactional(db):
        totals = await transactions.get_signed_totals(user_email)
        removed = await balances.delete_for_user(user_email)
        for account_name, instrument_code, quantity in totals:
            await balances.apply_delta(
                user_email, account_name, instrument_code, Decimal(str(quantity or 0))
            )

    logger.info(
        f"Rebuilt balances for {user_email}: removed {removed}, wrote {len(totals)}"
    )
    return len(totals)


async def list_transactions(
    db: AsyncSession,
    user_email: str,
    *,
    account_name: str | None = None,
    instrument_code: str | None = None,
    date_from: date | None = None,
    date_to: date | None = None,
    limit: int = APIConstants.DEFAULT_TRANSACTION_LIMIT,
) -> list[TransactionResponse]:
    """List a user's transactions, newest first, with instrument names."""
    rows = await TransactionRepository(Transaction, db).get_filtered(
        user_email,
        account_name=account_name,
        instrument_code=instrument_code,
        date_from=date_from,
        date_to=date_to,
        limit=min(limit, APIConstants.MAX_PAGE_SIZE),
    )
    return [
        TransactionResponse.model_validate(transaction).model_copy(
            update={"instrument_name": instrument_name}
        )
        for transaction, instrument_name in rows
    ]
