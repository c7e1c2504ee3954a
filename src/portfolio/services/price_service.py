"""Service layer for the price store and market data sync."""

import logging
from datetime import UTC, date, datetime
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from portfolio.core.config import settings
from portfolio.core.constants import InstrumentTypeCodes, PriceConstants
from portfolio.core.exceptions import NotFoundError, ValidationError
from portfolio.db.session import transactional
from portfolio.models.instrument import Instrument
from portfolio.models.instrument_price import InstrumentPrice
from portfolio.repositories.instrument import InstrumentRepository
from portfolio.repositories.instrument_price import InstrumentPriceRepository
from portfolio.schemas.price import (
    PriceCorrection,
    PriceResponse,
    PriceSyncResponse,
    PriceUpsert,
    RecentPriceResponse,
)
from portfolio.services.quote_provider import QuoteError, QuoteFetcher, fx_symbol

logger = logging.getLogger(__name__)


async def upsert_price(db: AsyncSession, data: PriceUpsert) -> InstrumentPrice:
    """Write the price of an instrument for a day.

    Args:
        db: Database session
        data: Price to store

    Returns:
        The stored price row

    Raises:
        NotFoundError: If the instrument does not exist
    """
    if not await InstrumentRepository(Instrument, db).exists(data.instrument_code):
        raise NotFoundError(f"Instrument '{data.instrument_code}' not found")

    repo = InstrumentPriceRepository(InstrumentPrice, db)
    async with transactional(db):
        price = await repo.upsert(
            data.instrument_code,
            data.price_date,
            data.price,
            data.currency_code,
            data.as_of,
        )
    return price


async def correct_price(
    db: AsyncSession,
    instrument_code: str,
    price_date: date,
    data: PriceCorrection,
) -> InstrumentPrice:
    """Correct the price or currency of an existing day.

    Raises:
        NotFoundError: If there is no price for that instrument and day
        ValidationError: If nothing was sent
    """
    changes = data.model_dump(exclude_unset=True, exclude_none=True)
    if not changes:
        raise ValidationError("No fields to update")

    repo = InstrumentPriceRepository(InstrumentPrice, db)
    price = await repo.get_by_key(instrument_code, price_date)
    if price is None:
        raise NotFoundError(f"No price for '{instrument_code}' on {price_date.isoformat()}")

    async with transactional(db):
        price = await repo.update(db_obj=price, obj_in={**changes, "as_of": datetime.now(UTC)})
    return price


async def delete_price(db: AsyncSession, instrument_code: str, price_date: date) -> None:
    """Delete the price of an instrument for a day.

    Raises:
        NotFoundError: If there is no such price
    """
    repo = InstrumentPriceRepository(InstrumentPrice, db)
    async with transactional(db):
        deleted = await repo.delete_by_key(instrument_code, price_date)
        if not deleted:
            raise NotFoundError(f"No price for '{instrument_code}' on {price_date.isoformat()}")


async def recent_prices(
    db: AsyncSession, instrument_code: str | None = None
) -> list[RecentPriceResponse]:
    """List the newest prices of every instrument, newest first.

    Keeps the five most recent days of each instrument.
    """
    per_instrument = PriceConstants.RECENT_PRICES_PER_INSTRUMENT
    rows = await InstrumentPriceRepository(InstrumentPrice, db).get_recent(
        per_instrument=per_instrument,
        max_rows=per_instrument * PriceConstants.RECENT_PRICES_MAX_INSTRUMENTS,
        instrument_code=instrument_code,
    )
    return [
        RecentPriceResponse.model_validate(
            {
                **PriceResponse.model_validate(price).model_dump(),
                "instrument_name": name,
                "instrument_type_code": type_code,
            }
        )
        for price, name, type_code in rows
    ]


def quote_symbol(instrument: Instrument, base_currency: str) -> tuple[str | None, str | None]:
    """Provider symbol and quote currency used to price an instrument.

    Returns:
        ``(symbol, currency)``; the symbol is None for the base currency's own
        cash instrument, which is always worth 1. The currency is None when
        the provider reports it.
    """
    code = instrument.code.upper()
    if instrument.instrument_type_code == InstrumentTypeCodes.CASH:
        if code == base_currency:
            return None, base_currency
        return fx_symbol(code, base_currency), base_currency
    if "/" in code:
        from_currency, _, to_currency = code.partition("/")
        return fx_symbol(from_currency, to_currency), to_currency
    return instrument.external_symbol or instrument.code, None


async def sync_prices(
    db: AsyncSession,
    fetch_quote: QuoteFetcher,
    base_currency: str | None = None,
) -> PriceSyncResponse:
    """Refresh today's prices of every instrument from the market data provider.

    Each instrument is priced and stored on its own; a failure is itemized in
    the response and does not stop the others.

    Args:
        db: Database session
        fetch_quote: Async callable returning a Quote for a provider symbol
        base_currency: Currency cash instruments are quoted in
            (defaults to settings.BASE_CURRENCY)

    Returns:
        Number of stored prices and the list of failures
    """
    base = (base_currency or settings.BASE_CURRENCY).upper()
    instruments = await InstrumentRepository(Instrument, db).get_all()
    targets = [(i.code, *quote_symbol(i, base)) for i in instruments]
    repo = InstrumentPriceRepository(InstrumentPrice, db)

    updated = 0
    errors: list[str] = []
    for code, symbol, currency in targets:
        if symbol is None:
            price, price_date, as_of = Decimal("1"), date.today(), None
        else:
            try:
                quote = await fetch_quote(symbol)
            except QuoteError as e:
                logger.warning(f"Price sync failed for {code} ({symbol}): {e}")
                errors.append(f"{code}: {e}")
                continue
            price, price_date, as_of = quote.price, quote.price_date, quote.as_of
            currency = currency or quote.currency or settings.DEFAULT_CURRENCY

        if price <= 0:
            errors.append(f"{code}: non-positive price {price}")
            continue

        async with transactional(db):
            await repo.upsert(code, price_date, price, currency, as_of)
        updated += 1

    logger.info(f"Price sync stored {updated} prices with {len(errors)} errors")
    return PriceSyncResponse(success=not errors, updated=updated, errors=errors)
