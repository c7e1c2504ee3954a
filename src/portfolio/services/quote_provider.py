"""Market data provider backed by yfinance.

Note:
    HTTP caching is configured globally via requests-cache with a Redis
    backend (see portfolio.core.cache). Every request yfinance makes goes
    through that cache when it is installed.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import UTC, date, datetime
from decimal import Decimal

import pandas as pd
import yfinance as yf

from portfolio.core.constants import PriceConstants

logger = logging.getLogger(__name__)


class QuoteError(Exception):
    """Base exception for market data errors."""

    pass


class SymbolNotFoundError(QuoteError):
    """Raised when the provider has no data for a symbol."""

    pass


class ProviderError(QuoteError):
    """Raised when the provider request fails."""

    pass


@dataclass(frozen=True)
class Quote:
    """Latest close of a symbol."""

    symbol: str
    price: Decimal
    price_date: date
    currency: str | None
    as_of: datetime


QuoteFetcher = Callable[[str], Awaitable[Quote]]


def fx_symbol(from_currency: str, to_currency: str) -> str:
    """Yahoo Finance symbol of a currency pair, e.g. ``USDARS=X``."""
    return f"{from_currency.upper()}{to_currency.upper()}=X"


def _last_close(df: pd.DataFrame) -> tuple[pd.Timestamp, float] | None:
    if df.empty or "Close" not in df.columns:
        return None
    closes = df["Close"].dropna()
    if closes.empty:
        return None
    return closes.index[-1], float(closes.iloc[-1])


def _to_date(timestamp: pd.Timestamp) -> date:
    if timestamp.tz is not None:
        timestamp = timestamp.tz_convert(UTC)
    return timestamp.date()


def fetch_quote_sync(symbol: str) -> Quote:
    """
    Fetch the latest close of a symbol from Yahoo Finance.

    Reads a short daily history window and keeps its last non-empty close,
    so weekends and market holidays still yield the previous session.

    Args:
        symbol: Provider symbol (e.g. "AAPL", "GGAL.BA", "USDARS=X")

    Returns:
        Quote with the close as a Decimal and the session date

    Raises:
        SymbolNotFoundError: If no close is available for the symbol
        ProviderError: If the request fails
    """
    try:
        ticker = yf.Ticker(symbol)
        df = ticker.history(period=PriceConstants.QUOTE_HISTORY_PERIOD, interval="1d")
        last = _last_close(df)
        if last is None:
            raise SymbolNotFoundError(f"No price data for symbol '{symbol}'")

        timestamp, close = last
        try:
            currency = ticker.fast_info.get("currency")
        except Exception as e:
            logger.debug(f"Currency unavailable for {symbol}: {e}")
            currency = None

        return Quote(
            symbol=symbol,
            price=Decimal(str(close)),
            price_date=_to_date(timestamp),
            currency=currency.upper() if currency else None,
            as_of=datetime.now(UTC),
        )

    except Exception as e:
        if isinstance(e, QuoteError):
            raise
        logger.error(f"Error fetching quote for {symbol}: {e}")
        raise ProviderError(f"Failed to fetch quote for '{symbol}': {str(e)}") from e


async def fetch_quote(symbol: str) -> Quote:
    """Async wrapper running the blocking yfinance call in the default executor."""
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, fetch_quote_sync, symbol)


def get_quote_fetcher() -> QuoteFetcher:
    """Dependency returning the quote fetcher used by price sync."""
    return fetch_quote
