"""Account endpoints, keyed by account name within the session user."""

from fastapi import APIRouter, status

from portfolio.core.deps import CurrentUser, DbSession
from portfolio.models.account import Account
from portfolio.schemas.account import (
    AccountCreate,
    AccountDeleteResponse,
    AccountResponse,
    AccountUpdate,
)
from portfolio.services import account_service

router = APIRouter()


@router.get("", response_model=list[AccountResponse])
async def get_accounts(current_user: CurrentUser, db: DbSession) -> list[Account]:
    """
    Get all accounts of the current user ordered by name.

    Args:
        current_user: The authenticated user (from dependency)
        db: Database session

    Returns:
        List of accounts
    """
    return await account_service.list_accounts(db, current_user.email)


@router.post("", response_model=AccountResponse, status_code=status.HTTP_201_CREATED)
async def create_account(
    account: AccountCreate,
    current_user: CurrentUser,
    db: DbSession,
) -> Account:
    """
    Create a new account.

    Raises:
        ConflictError: 409 if the name is taken
        ValidationError: 400 if the parent account does not exist
    """
    return await account_service.create_account(db, current_user.email, account)


@router.get("/{name}", response_model=AccountResponse)
async def get_account(name: str, current_user: CurrentUser, db: DbSession) -> Account:
    """Get one account by name."""
    return await account_service.get_account(db, current_user.email, name)


@router.put("/{name}", response_model=AccountResponse)
async def update_account(
    name: str,
    account_update: AccountUpdate,
    current_user: CurrentUser,
    db: DbSession,
) -> Account:
    """
    Update type, bank or parent of an account.

    Raises:
        NotFoundError: 404 if the account does not exist
        ValidationError: 400 if nothing was sent or the parent is invalid
    """
    return await account_service.update_account(db, current_user.email, name, account_update)


@router.delete("/{name}", response_model=AccountDeleteResponse)
async def delete_account(
    name: str,
    current_user: CurrentUser,
    db: DbSession,
) -> AccountDeleteResponse:
    """
    Delete an account, its child accounts, and their transactions and balances.

    Raises:
        NotFoundError: 404 if the account does not exist
    """
    return await account_service.delete_account(db, current_user.email, name)
