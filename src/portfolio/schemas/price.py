"""Price schemas."""

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, Field, field_validator


class PriceUpsert(BaseModel):
    """Schema for writing the price of an instrument for a day."""

    instrument_code: str = Field(..., min_length=1, max_length=50)
    price_date: date = Field(default_factory=date.today)
    price: Decimal = Field(..., gt=0)
    currency_code: str = Field(..., min_length=1, max_length=10)
    as_of: datetime | None = None

    @field_validator("currency_code", mode="before")
    @classmethod
    def normalize_currency(cls, v: object) -> object:
        """Currency codes are upper-case."""
        if isinstance(v, str):
            return v.strip().upper()
        return v


class PriceCorrection(BaseModel):
    """Schema for correcting an existing price."""

    price: Decimal | None = Field(None, gt=0)
    currency_code: str | None = Field(None, min_length=1, max_length=10)

    @field_validator("currency_code", mode="before")
    @classmethod
    def normalize_currency(cls, v: object) -> object:
        """Currency codes are upper-case."""
        if isinstance(v, str):
            return v.strip().upper()
        return v


class PriceResponse(BaseModel):
    """Schema for price response."""

    id: UUID
    instrument_code: str
    price_date: date
    price: Decimal
    currency_code: str
    as_of: datetime | None
    created_at: datetime

    model_config = {"from_attributes": True}


class RecentPriceResponse(PriceResponse):
    """Price row with instrument details, as listed in the recent history."""

    instrument_name: str
    instrument_type_code: str


class PriceSyncResponse(BaseModel):
    """Outcome of a market data sync."""

    success: bool
    updated: int
    errors: list[str]
