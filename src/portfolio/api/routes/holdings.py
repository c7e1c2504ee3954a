"""Holding endpoints: valued balances and balance maintenance."""

from fastapi import APIRouter, status

from portfolio.core.deps import CurrentUser, DbSession
from portfolio.schemas.holding import HoldingValuation, RebuildResponse
from portfolio.services import ledger_service, valuation_service

router = APIRouter()


@router.get("", response_model=list[HoldingValuation])
async def get_holdings(
    current_user: CurrentUser,
    db: DbSession,
    account_name: str | None = None,
) -> list[HoldingValuation]:
    """
    Positive balances of the current user valued at the latest price.

    Args:
        current_user: The authenticated user (from dependency)
        db: Database session
        account_name: Only this account

    Returns:
        Holdings ordered by base-currency valuation, largest first
    """
    return await valuation_service.get_holdings(db, current_user.email, account_name)


@router.post("/rebuild", response_model=RebuildResponse)
async def rebuild_balances(current_user: CurrentUser, db: DbSession) -> RebuildResponse:
    """Recompute every balance of the current user from the transaction log."""
    count = await ledger_service.rebuild_balances(db, current_user.email)
    return RebuildResponse(balances=count)


@router.delete(
    "/{account_name}/{instrument_code:path}", status_code=status.HTTP_204_NO_CONTENT
)
async def remove_holding(
    account_name: str,
    instrument_code: str,
    current_user: CurrentUser,
    db: DbSession,
) -> None:
    """
    Administrative: delete a balance row without touching its transactions.

    The balance stops matching the transaction log until
    ``POST /holdings/rebuild`` runs.

    Raises:
        NotFoundError: 404 if there is no such balance
    """
    await ledger_service.remove_holding(db, current_user.email, account_name, instrument_code)
