"""Account schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from portfolio.core.constants import AccountTypes


def _strip(v: object) -> object:
    if isinstance(v, str):
        return v.strip()
    return v


class AccountCreate(BaseModel):
    """Schema for creating an account."""

    name: str = Field(..., min_length=1, max_length=255)
    account_type: str = Field(AccountTypes.DEFAULT, min_length=1, max_length=50)
    bank_name: str | None = Field(None, max_length=255)
    parent_account_name: str | None = Field(None, max_length=255)

    @field_validator("name", "account_type", "bank_name", "parent_account_name", mode="before")
    @classmethod
    def strip_text(cls, v: object) -> object:
        """Trim surrounding whitespace."""
        return _strip(v)


class AccountUpdate(BaseModel):
    """Schema for updating an account. Only the fields sent are changed."""

    account_type: str | None = Field(None, min_length=1, max_length=50)
    bank_name: str | None = Field(None, max_length=255)
    parent_account_name: str | None = Field(None, max_length=255)

    @field_validator("account_type", "bank_name", "parent_account_name", mode="before")
    @classmethod
    def strip_text(cls, v: object) -> object:
        """Trim surrounding whitespace."""
        return _strip(v)


class AccountResponse(BaseModel):
    """Schema for account response."""

    id: UUID
    name: str
    account_type: str
    bank_name: str | None
    parent_account_name: str | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class AccountDeleteResponse(BaseModel):
    """What an account deletion removed."""

    deleted_accounts: list[str]
    deleted_transactions: int
    deleted_balances: int
