"""Price store endpoints and market data sync."""

from datetime import date
from typing import Annotated

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse

from portfolio.core.config import settings
from portfolio.core.deps import CurrentUser, DbSession
from portfolio.core.rate_limit import limiter
from portfolio.models.instrument_price import InstrumentPrice
from portfolio.schemas.price import (
    PriceCorrection,
    PriceResponse,
    PriceSyncResponse,
    PriceUpsert,
    RecentPriceResponse,
)
from portfolio.services import price_service
from portfolio.services.quote_provider import QuoteFetcher, get_quote_fetcher

router = APIRouter()


@router.get("", response_model=list[RecentPriceResponse])
async def get_recent_prices(
    db: DbSession,
    instrument_code: str | None = None,
) -> list[RecentPriceResponse]:
    """
    List the five most recent prices of each instrument, newest first.

    Args:
        db: Database session
        instrument_code: Only prices of this instrument

    Returns:
        Price rows with instrument name and type
    """
    return await price_service.recent_prices(db, instrument_code)


@router.post("", response_model=PriceResponse)
async def upsert_price(
    price: PriceUpsert,
    current_user: CurrentUser,
    db: DbSession,
) -> InstrumentPrice:
    """
    Store the price of an instrument for a day, replacing any existing one.

    Raises:
        NotFoundError: 404 if the instrument does not exist
    """
    return await price_service.upsert_price(db, price)


@router.post(
    "/sync",
    response_model=PriceSyncResponse,
    responses={207: {"model": PriceSyncResponse, "description": "Some instruments failed"}},
)
@limiter.limit(settings.SYNC_RATE_LIMIT)
async def sync_prices(
    request: Request,
    current_user: CurrentUser,
    db: DbSession,
    fetch_quote: Annotated[QuoteFetcher, Depends(get_quote_fetcher)],
) -> PriceSyncResponse | JSONResponse:
    """
    Refresh today's price of every catalog instrument from Yahoo Finance.

    Cash instruments are anchored to the base currency: the base currency
    itself is worth 1 and other currencies are priced by their exchange rate.

    Returns:
        200 when every instrument was priced, 207 with itemized errors otherwise
    """
    result = await price_service.sync_prices(db, fetch_quote)
    if result.errors:
        return JSONResponse(
            status_code=status.HTTP_207_MULTI_STATUS,
            content=result.model_dump(mode="json"),
        )
    return result


@router.put("/{instrument_code:path}/{price_date}", response_model=PriceResponse)
async def correct_price(
    instrument_code: str,
    price_date: date,
    correction: PriceCorrection,
    current_user: CurrentUser,
    db: DbSession,
) -> InstrumentPrice:
    """
    Correct the price or currency stored for a day.

    Raises:
        NotFoundError: 404 if there is no price for that day
        ValidationError: 400 if nothing was sent
    """
    return await price_service.correct_price(db, instrument_code, price_date, correction)


@router.delete("/{instrument_code:path}/{price_date}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_price(
    instrument_code: str,
    price_date: date,
    current_user: CurrentUser,
    db: DbSession,
) -> None:
    """Delete the price stored for a day; 404 if there is none."""
    await price_service.delete_price(db, instrument_code, price_date)
