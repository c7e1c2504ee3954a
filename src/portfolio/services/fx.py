"""Conversion of amounts into the base currency using stored prices.

Exchange rates are ordinary instrument prices: a pair instrument such as
``USD/ARS`` or a ``cash`` instrument coded ``USD`` priced in the base
currency. Nothing here calls the market data provider.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from portfolio.core.constants import InstrumentTypeCodes
from portfolio.models.instrument import Instrument
from portfolio.models.instrument_price import InstrumentPrice
from portfolio.repositories.instrument import InstrumentRepository
from portfolio.repositories.instrument_price import InstrumentPriceRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConvertedAmount:
    """An amount after conversion, tagged with how it was converted.

    When no rate is known, ``value`` is the original amount unchanged,
    ``rate`` is None and ``converted`` is False.
    """

    value: Decimal
    rate: Decimal | None
    converted: bool

    @property
    def fx_missing(self) -> bool:
        return not self.converted


class FxResolver:
    """Resolves currency to base-currency rates from latest prices.

    Lookup order for a currency C:

    1. C is the base currency: rate 1
    2. latest price of ``C/BASE``: that price
    3. latest price of ``BASE/C``: its inverse
    4. latest price of the cash instrument ``C`` quoted in base: that price
    5. no rate
    """

    def __init__(
        self,
        base_currency: str,
        latest_prices: dict[str, InstrumentPrice],
        cash_codes: set[str],
    ):
        self.base_currency = base_currency.upper()
        self._latest = {code.upper(): price for code, price in latest_prices.items()}
        self._cash_codes = {code.upper() for code in cash_codes}
        self._cache: dict[str, Decimal | None] = {}

    def rate_to_base(self, currency: str) -> Decimal | None:
        """Rate multiplying an amount in ``currency`` into the base currency."""
        currency = currency.upper()
        if currency not in self._cache:
            self._cache[currency] = self._resolve(currency)
        return self._cache[currency]

    def _resolve(self, currency: str) -> Decimal | None:
        base = self.base_currency
        if currency == base:
            return Decimal("1")

        direct = self._latest.get(f"{currency}/{base}")
        if direct is not None and direct.price > 0:
            return Decimal(direct.price)

        inverse = self._latest.get(f"{base}/{currency}")
        if inverse is not None and inverse.price > 0:
            return Decimal("1") / Decimal(inverse.price)

        cash = self._latest.get(currency)
        if (
            currency in self._cash_codes
            and cash is not None
            and cash.price > 0
            and cash.currency_code.upper() == base
        ):
            return Decimal(cash.price)

        logger.debug(f"No exchange rate from {currency} to {base}")
        return None

    def convert(self, amount: Decimal, currency: str | None) -> ConvertedAmount:
        """Convert an amount into the base currency.

        Args:
            amount: Amount in ``currency``
            currency: Currency of the amount; None is treated as the base

        Returns:
            The converted amount, or the original one flagged as unconverted
        """
        rate = self.rate_to_base(currency or self.base_currency)
        if rate is None:
            return ConvertedAmount(value=amount, rate=None, converted=False)
        return ConvertedAmount(value=amount * rate, rate=rate, converted=True)


async def load_fx_resolver(db: AsyncSession, base_currency: str) -> FxResolver:
    """Build a resolver from the latest price of every instrument."""
    latest = await InstrumentPriceRepository(InstrumentPrice, db).get_latest_by_instrument()
    instruments = await InstrumentRepository(Instrument, db).get_all(InstrumentTypeCodes.CASH)
    return FxResolver(
        base_currency,
        {code: prices[0] for code, prices in latest.items() if prices},
        {instrument.code for instrument in instruments},
    )
