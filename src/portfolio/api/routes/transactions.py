"""Ledger transaction endpoints."""

import uuid
from datetime import date, datetime
from typing import Annotated

import pydantic
from fastapi import APIRouter, Body, Query, status

from portfolio.core.constants import APIConstants
from portfolio.core.deps import CurrentUser, DbSession
from portfolio.core.exceptions import ValidationError
from portfolio.models.transaction import Transaction
from portfolio.schemas.transaction import (
    TransactionAmend,
    TransactionInput,
    TransactionLookup,
    TransactionResponse,
)
from portfolio.services import ledger_service

router = APIRouter()


@router.get("", response_model=list[TransactionResponse])
async def get_transactions(
    current_user: CurrentUser,
    db: DbSession,
    account_name: str | None = None,
    instrument_code: str | None = None,
    date_from: date | None = None,
    date_to: date | None = None,
    limit: Annotated[
        int, Query(ge=1, le=APIConstants.MAX_PAGE_SIZE)
    ] = APIConstants.DEFAULT_TRANSACTION_LIMIT,
) -> list[TransactionResponse]:
    """
    List transactions of the current user, newest first.

    Args:
        current_user: The authenticated user (from dependency)
        db: Database session
        account_name: Only this account
        instrument_code: Only this instrument
        date_from: Inclusive lower bound on transaction date
        date_to: Inclusive upper bound on transaction date
        limit: Maximum number of rows (default 100, at most 500)

    Returns:
        Transactions with instrument names
    """
    return await ledger_service.list_transactions(
        db,
        current_user.email,
        account_name=account_name,
        instrument_code=instrument_code,
        date_from=date_from,
        date_to=date_to,
        limit=limit,
    )


@router.post("", response_model=TransactionResponse, status_code=status.HTTP_201_CREATED)
async def record_transaction(
    transaction: TransactionInput,
    current_user: CurrentUser,
    db: DbSession,
) -> Transaction:
    """
    Record a transaction and apply it to the balance.

    The account is created when it does not exist yet.

    Raises:
        NotFoundError: 404 if the instrument does not exist
    """
    return await ledger_service.record_transaction(db, current_user.email, transaction)


@router.put("", response_model=TransactionResponse)
async def amend_transaction(
    transaction: TransactionAmend,
    current_user: CurrentUser,
    db: DbSession,
) -> Transaction:
    """
    Replace an existing transaction and move its effect between balances.

    The row is found by ``id``, or by account, instrument and ``created_at``
    (``original_account_name`` / ``original_instrument_code`` when those
    change).

    Raises:
        NotFoundError: 404 if the transaction or the new instrument does not exist
    """
    return await ledger_service.amend_transaction(db, current_user.email, transaction)


@router.delete("", status_code=status.HTTP_204_NO_CONTENT)
async def remove_transaction(
    current_user: CurrentUser,
    db: DbSession,
    lookup: Annotated[TransactionLookup | None, Body()] = None,
    id: uuid.UUID | None = None,
    account_name: str | None = None,
    instrument_code: str | None = None,
    created_at: datetime | None = None,
) -> None:
    """
    Delete a transaction and undo its effect on the balance.

    The transaction is identified in the JSON body or in query parameters.

    Raises:
        ValidationError: 400 if no identifier was given
        NotFoundError: 404 if the transaction does not exist
    """
    if lookup is None:
        try:
            lookup = TransactionLookup(
                id=id,
                account_name=account_name,
                instrument_code=instrument_code,
                created_at=created_at,
            )
        except pydantic.ValidationError as e:
            raise ValidationError(
                "Provide id, or account_name, instrument_code and created_at"
            ) from e
    await ledger_service.remove_transaction(db, current_user.email, lookup)
