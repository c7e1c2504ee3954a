"""Valuation deriver: holdings, totals and performance computed on read.

Nothing here writes to the database. Balances are joined with the catalog
and the latest price of each instrument; amounts are converted into the base
currency through ``FxResolver``.
"""

import logging
from collections import defaultdict
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from portfolio.core.config import settings
from portfolio.core.constants import APIConstants
from portfolio.core.exceptions import NotFoundError
from portfolio.db.session import read_only_transaction
from portfolio.models.account_instrument import AccountInstrument
from portfolio.models.instrument import Instrument
from portfolio.models.instrument_price import InstrumentPrice
from portfolio.models.transaction import Transaction
from portfolio.repositories.account_instrument import AccountInstrumentRepository
from portfolio.repositories.instrument import InstrumentRepository
from portfolio.repositories.instrument_price import InstrumentPriceRepository
from portfolio.repositories.transaction import TransactionRepository
from portfolio.schemas.holding import AccountTotals, HoldingValuation, PerformanceEntry
from portfolio.schemas.transaction import TransactionResponse
from portfolio.services.fx import load_fx_resolver
from portfolio.services.ledger_service import list_transactions

logger = logging.getLogger(__name__)

PERCENT_QUANTUM = Decimal("0.0001")


async def get_holdings(
    db: AsyncSession,
    user_email: str,
    account_name: str | None = None,
    base_currency: str | None = None,
) -> list[HoldingValuation]:
    """Value every positive balance of a user at its latest price.

    Balances without a price are valued at zero with ``has_price`` False.

    Args:
        db: Database session
        user_email: Owner email
        account_name: Restrict to one account
        base_currency: Currency of ``valuation_base``
            (defaults to settings.BASE_CURRENCY)

    Returns:
        Holdings ordered by base-currency valuation, largest first
    """
    base = (base_currency or settings.BASE_CURRENCY).upper()

    async with read_only_transaction(db):
        balances = await AccountInstrumentRepository(AccountInstrument, db).get_positive(
            user_email, account_name
        )
        codes = sorted({balance.instrument_code for balance in balances})
        instruments = {
            instrument.code: instrument
            for instrument in await InstrumentRepository(Instrument, db).get_all()
            if instrument.code in codes
        }
        latest = await InstrumentPriceRepository(InstrumentPrice, db).get_latest_by_instrument(
            codes
        )
        averages = await TransactionRepository(Transaction, db).get_buy_average_prices(
            user_email
        )
        fx = await load_fx_resolver(db, base)

    holdings = []
    for balance in balances:
        instrument = instruments.get(balance.instrument_code)
        prices = latest.get(balance.instrument_code)
        price = prices[0] if prices else None
        quantity = Decimal(balance.quantity)

        if price is None:
            current_price = Decimal("0")
            valuation = Decimal("0")
            valuation_base = Decimal("0")
            rate = None
            fx_missing = False
        else:
            current_price = Decimal(price.price)
            valuation = quantity * current_price
            converted = fx.convert(valuation, price.currency_code)
            valuation_base = converted.value
            rate = converted.rate
            fx_missing = converted.fx_missing

        holdings.append(
            HoldingValuation(
                account_name=balance.account_name,
                instrument_code=balance.instrument_code,
                instrument_name=instrument.name if instrument else balance.instrument_code,
                instrument_type_code=instrument.instrument_type_code if instrument else "",
                quantity=quantity,
                current_price=current_price,
                price_date=price.price_date if price else None,
                currency_code=price.currency_code if price else None,
                has_price=price is not None,
                valuation=valuation,
                average_price=averages.get((balance.account_name, balance.instrument_code)),
                valuation_base=valuation_base,
                fx_rate_to_base=rate,
                fx_missing=fx_missing,
            )
        )

    holdings.sort(key=lambda h: h.valuation_base, reverse=True)
    return holdings


async def portfolio_totals(
    db: AsyncSession,
    user_email: str,
    base_currency: str | None = None,
) -> list[AccountTotals]:
    """Total the holdings of each account in the base currency.

    Returns:
        One entry per account with positive balances, largest first
    """
    base = (base_currency or settings.BASE_CURRENCY).upper()
    holdings = await get_holdings(db, user_email, base_currency=base)

    grouped: dict[str, list[HoldingValuation]] = defaultdict(list)
    for holding in holdings:
        grouped[holding.account_name].append(holding)

    totals = []
    for account_name, items in grouped.items():
        by_currency: dict[str, Decimal] = defaultdict(Decimal)
        for item in items:
            if item.has_price and item.currency_code:
                by_currency[item.currency_code] += item.valuation
        price_dates = [item.price_date for item in items if item.price_date is not None]
        totals.append(
            AccountTotals(
                account_name=account_name,
                total_value_base=sum((item.valuation_base for item in items), Decimal("0")),
                base_currency_code=base,
                totals_by_currency=dict(by_currency),
                instruments_count=len(items),
                last_price_date=max(price_dates) if price_dates else None,
                fx_missing=any(item.fx_missing for item in items),
            )
        )

    totals.sort(key=lambda t: t.total_value_base, reverse=True)
    return totals


def _change_percent(latest: Decimal, previous: Decimal | None) -> Decimal:
    if previous is None or previous == 0:
        return Decimal("0")
    return ((latest - previous) / previous * 100).quantize(PERCENT_QUANTUM)


async def performance(
    db: AsyncSession,
    instrument_code: str | None = None,
) -> list[PerformanceEntry]:
    """Change of each instrument between its two most recent price days.

    Args:
        db: Database session
        instrument_code: Restrict to one instrument

    Returns:
        Entries ordered by percent change, largest first

    Raises:
        NotFoundError: If ``instrument_code`` names no instrument
    """
    async with read_only_transaction(db):
        instrument_repo = InstrumentRepository(Instrument, db)
        if instrument_code is not None:
            instrument = await instrument_repo.get(instrument_code)
            if instrument is None:
                raise NotFoundError(f"Instrument '{instrument_code}' not found")
            names = {instrument.code: instrument.name}
        else:
            names = {i.code: i.name for i in await instrument_repo.get_all()}

        latest = await InstrumentPriceRepository(InstrumentPrice, db).get_latest_by_instrument(
            [instrument_code] if instrument_code else None, depth=2
        )

    entries = []
    for code, prices in latest.items():
        current = prices[0]
        earlier = [p for p in prices[1:] if p.price_date < current.price_date]
        previous = earlier[0] if earlier else None
        latest_price = Decimal(current.price)
        previous_price = Decimal(previous.price) if previous else None
        entries.append(
            PerformanceEntry(
                instrument_code=code,
                instrument_name=names.get(code, code),
                latest_price=latest_price,
                latest_price_date=current.price_date,
                currency_code=current.currency_code,
                previous_price=previous_price,
                previous_price_date=previous.price_date if previous else None,
                price_change_percent=_change_percent(latest_price, previous_price),
            )
        )

    entries.sort(key=lambda e: e.price_change_percent, reverse=True)
    return entries


async def transaction_history(
    db: AsyncSession,
    user_email: str,
    limit: int = APIConstants.DEFAULT_HISTORY_LIMIT,
) -> list[TransactionResponse]:
    """Newest transactions of a user for the dashboard."""
    return await list_transactions(db, user_email, limit=limit)
