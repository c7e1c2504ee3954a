"""Dashboard endpoints: valuations, totals, performance and recent activity."""

from typing import Annotated

from fastapi import APIRouter, Query

from portfolio.core.constants import APIConstants
from portfolio.core.deps import CurrentUser, DbSession
from portfolio.schemas.holding import AccountTotals, HoldingValuation, PerformanceEntry
from portfolio.schemas.transaction import TransactionResponse
from portfolio.services import valuation_service

router = APIRouter()


@router.get("/valuations", response_model=list[HoldingValuation])
async def get_valuations(
    current_user: CurrentUser,
    db: DbSession,
    account_name: str | None = None,
) -> list[HoldingValuation]:
    """Holdings of the current user with valuations in quote and base currency."""
    return await valuation_service.get_holdings(db, current_user.email, account_name)


@router.get("/portfolio-totals", response_model=list[AccountTotals])
async def get_portfolio_totals(current_user: CurrentUser, db: DbSession) -> list[AccountTotals]:
    """
    Value of each account in the base currency.

    ``fx_missing`` is set on an account when some holding had no exchange
    rate and was added unconverted.
    """
    return await valuation_service.portfolio_totals(db, current_user.email)


@router.get("/performance", response_model=list[PerformanceEntry])
async def get_performance(
    current_user: CurrentUser,
    db: DbSession,
    instrument_code: str | None = None,
) -> list[PerformanceEntry]:
    """Change between the latest and previous price of each instrument."""
    return await valuation_service.performance(db, instrument_code)


@router.get("/transactions", response_model=list[TransactionResponse])
async def get_transaction_history(
    current_user: CurrentUser,
    db: DbSession,
    limit: Annotated[
        int, Query(ge=1, le=APIConstants.MAX_PAGE_SIZE)
    ] = APIConstants.DEFAULT_HISTORY_LIMIT,
) -> list[TransactionResponse]:
    """Newest transactions of the current user (default 50)."""
    return await valuation_service.transaction_history(db, current_user.email, limit)
