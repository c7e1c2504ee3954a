"""Transaction schemas."""

from datetime import date, datetime
from decimal import Decimal
from typing import Self
from uuid import UUID

from pydantic import BaseModel, Field, field_validator, model_validator

from portfolio.core.config import settings
from portfolio.models.transaction import TransactionType


class TransactionInput(BaseModel):
    """A ledger event as submitted by a client or read from a spreadsheet row.

    Validation rejects non-positive quantities, prices and totals and
    unknown types before anything is written.
    """

    account_name: str = Field(..., min_length=1, max_length=255)
    instrument_code: str = Field(..., min_length=1, max_length=50)
    transaction_type: TransactionType
    quantity: Decimal = Field(..., gt=0)
    price: Decimal | None = Field(None, gt=0)
    total_amount: Decimal | None = Field(None, gt=0)
    transaction_date: date = Field(default_factory=date.today)
    currency_code: str = Field(default_factory=lambda: settings.DEFAULT_CURRENCY, max_length=10)
    description: str | None = None

    @field_validator("account_name", "instrument_code", mode="before")
    @classmethod
    def strip_key(cls, v: object) -> object:
        """Trim account and instrument names."""
        if isinstance(v, str):
            return v.strip()
        return v

    @field_validator("transaction_type", mode="before")
    @classmethod
    def normalize_type(cls, v: object) -> object:
        """Accept any case and surrounding whitespace."""
        if isinstance(v, str):
            return v.strip().lower()
        return v

    @field_validator("currency_code", mode="before")
    @classmethod
    def normalize_currency(cls, v: object) -> object:
        """Blank currency falls back to the default; codes are upper-case."""
        if v is None or (isinstance(v, str) and not v.strip()):
            return settings.DEFAULT_CURRENCY
        if isinstance(v, str):
            return v.strip().upper()
        return v


class TransactionLookup(BaseModel):
    """Identifies an existing transaction.

    Either the surrogate ``id``, or the ``(account_name, instrument_code,
    created_at)`` triple used by older clients.
    """

    id: UUID | None = None
    account_name: str | None = None
    instrument_code: str | None = None
    created_at: datetime | None = None

    @model_validator(mode="after")
    def check_identifier(self) -> Self:
        """Require an id or the complete legacy key."""
        if self.id is None and not (
            self.account_name and self.instrument_code and self.created_at
        ):
            raise ValueError("Provide id, or account_name, instrument_code and created_at")
        return self


class TransactionAmend(TransactionInput):
    """New values for an existing transaction plus how to find it.

    When the account or instrument changes, ``original_account_name`` and
    ``original_instrument_code`` name the key the row currently has.
    """

    id: UUID | None = None
    created_at: datetime | None = None
    original_account_name: str | None = None
    original_instrument_code: str | None = None

    @model_validator(mode="after")
    def check_identifier(self) -> Self:
        """Require an id or a creation time."""
        if self.id is None and self.created_at is None:
            raise ValueError("Provide id or created_at to identify the transaction")
        return self

    def lookup(self) -> TransactionLookup:
        """Build the lookup for the row being amended."""
        return TransactionLookup(
            id=self.id,
            account_name=self.original_account_name or self.account_name,
            instrument_code=self.original_instrument_code or self.instrument_code,
            created_at=self.created_at,
        )


class TransactionResponse(BaseModel):
    """Schema for transaction response."""

    id: UUID
    account_name: str
    instrument_code: str
    instrument_name: str | None = None
    transaction_type: TransactionType
    transaction_date: date
    quantity: Decimal
    price: Decimal | None
    total_amount: Decimal | None
    currency_code: str
    description: str | None
    imported_file_id: UUID | None
    created_at: datetime

    model_config = {"from_attributes": True}
