"""Instrument catalog schemas."""

from datetime import datetime

from pydantic import BaseModel, Field, field_validator


class InstrumentTypeCreate(BaseModel):
    """Schema for creating or renaming an instrument type."""

    code: str = Field(..., min_length=1, max_length=20)
    name: str = Field(..., min_length=1, max_length=100)

    @field_validator("code", mode="before")
    @classmethod
    def normalize_code(cls, v: object) -> object:
        """Store type codes lower-cased."""
        if isinstance(v, str):
            return v.strip().lower()
        return v


class InstrumentTypeUpdate(BaseModel):
    """Schema for renaming an instrument type."""

    name: str = Field(..., min_length=1, max_length=100)


class InstrumentTypeResponse(BaseModel):
    """Schema for instrument type response."""

    code: str
    name: str

    model_config = {"from_attributes": True}


class InstrumentCreate(BaseModel):
    """Schema for creating an instrument."""

    code: str = Field(..., min_length=1, max_length=50)
    instrument_type_code: str = Field(..., min_length=1, max_length=20)
    name: str = Field(..., min_length=1, max_length=255)
    external_symbol: str | None = Field(None, max_length=50)
    description: str | None = None

    @field_validator("code", "external_symbol", mode="before")
    @classmethod
    def strip_code(cls, v: object) -> object:
        """Trim codes and symbols."""
        if isinstance(v, str):
            return v.strip() or None
        return v

    @field_validator("instrument_type_code", mode="before")
    @classmethod
    def normalize_type(cls, v: object) -> object:
        """Type codes are lower-case."""
        if isinstance(v, str):
            return v.strip().lower()
        return v


class InstrumentUpdate(BaseModel):
    """Schema for updating an instrument."""

    instrument_type_code: str | None = Field(None, min_length=1, max_length=20)
    name: str | None = Field(None, min_length=1, max_length=255)
    external_symbol: str | None = Field(None, max_length=50)
    description: str | None = None

    @field_validator("instrument_type_code", mode="before")
    @classmethod
    def normalize_type(cls, v: object) -> object:
        """Type codes are lower-case."""
        if isinstance(v, str):
            return v.strip().lower()
        return v


class InstrumentResponse(BaseModel):
    """Schema for instrument response."""

    code: str
    instrument_type_code: str
    name: str
    external_symbol: str | None
    description: str | None
    created_at: datetime

    model_config = {"from_attributes": True}
