"""Holding and valuation schemas."""

from datetime import date
from decimal import Decimal

from pydantic import BaseModel


class HoldingValuation(BaseModel):
    """A position valued at the latest known price."""

    account_name: str
    instrument_code: str
    instrument_name: str
    instrument_type_code: str
    quantity: Decimal
    current_price: Decimal
    price_date: date | None
    currency_code: str | None
    has_price: bool
    valuation: Decimal
    average_price: Decimal | None
    valuation_base: Decimal
    fx_rate_to_base: Decimal | None
    fx_missing: bool


class AccountTotals(BaseModel):
    """Valuation of one account, expressed in the base currency."""

    account_name: str
    total_value_base: Decimal
    base_currency_code: str
    totals_by_currency: dict[str, Decimal]
    instruments_count: int
    last_price_date: date | None
    fx_missing: bool


class PerformanceEntry(BaseModel):
    """Change between the latest price and the previous dated price."""

    instrument_code: str
    instrument_name: str
    latest_price: Decimal
    latest_price_date: date
    currency_code: str
    previous_price: Decimal | None
    previous_price_date: date | None
    price_change_percent: Decimal


class RebuildResponse(BaseModel):
    """Result of recomputing balances from the transaction log."""

    balances: int
