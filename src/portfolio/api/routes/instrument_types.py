"""Instrument type endpoints."""

from fastapi import APIRouter, status

from portfolio.core.deps import CurrentUser, DbSession
from portfolio.models.instrument_type import InstrumentType
from portfolio.schemas.instrument import (
    InstrumentTypeCreate,
    InstrumentTypeResponse,
    InstrumentTypeUpdate,
)
from portfolio.services import catalog_service

router = APIRouter()


@router.get("", response_model=list[InstrumentTypeResponse])
async def get_instrument_types(db: DbSession) -> list[InstrumentType]:
    """List instrument types ordered by code."""
    return await catalog_service.list_instrument_types(db)


@router.post("", response_model=InstrumentTypeResponse)
async def save_instrument_type(
    instrument_type: InstrumentTypeCreate,
    current_user: CurrentUser,
    db: DbSession,
) -> InstrumentType:
    """
    Create an instrument type, or rename it when the code already exists.

    Args:
        instrument_type: Code and display name
        current_user: The authenticated user (from dependency)
        db: Database session

    Returns:
        The stored instrument type
    """
    return await catalog_service.save_instrument_type(db, instrument_type)


@router.put("/{code}", response_model=InstrumentTypeResponse)
async def rename_instrument_type(
    code: str,
    instrument_type: InstrumentTypeUpdate,
    current_user: CurrentUser,
    db: DbSession,
) -> InstrumentType:
    """Rename an instrument type; 404 if it does not exist."""
    return await catalog_service.rename_instrument_type(db, code, instrument_type.name)


@router.delete("/{code}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_instrument_type(code: str, current_user: CurrentUser, db: DbSession) -> None:
    """
    Delete an unused instrument type.

    Raises:
        NotFoundError: 404 if the type does not exist
        ConflictError: 409 if instruments still use it
    """
    await catalog_service.delete_instrument_type(db, code)
