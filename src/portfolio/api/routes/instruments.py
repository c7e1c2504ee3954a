"""Instrument catalog endpoints.

Codes may contain a slash (currency pairs such as ``USD/ARS``), so the code
path parameter accepts one.
"""

from fastapi import APIRouter, status

from portfolio.core.deps import CurrentUser, DbSession
from portfolio.models.instrument import Instrument
from portfolio.schemas.instrument import InstrumentCreate, InstrumentResponse, InstrumentUpdate
from portfolio.services import catalog_service

router = APIRouter()


@router.get("", response_model=list[InstrumentResponse])
async def get_instruments(
    db: DbSession,
    instrument_type_code: str | None = None,
) -> list[Instrument]:
    """
    List instruments ordered by code.

    Args:
        db: Database session
        instrument_type_code: Only instruments of this type

    Returns:
        List of instruments
    """
    return await catalog_service.list_instruments(db, instrument_type_code)


@router.post("", response_model=InstrumentResponse, status_code=status.HTTP_201_CREATED)
async def create_instrument(
    instrument: InstrumentCreate,
    current_user: CurrentUser,
    db: DbSession,
) -> Instrument:
    """
    Add an instrument to the catalog.

    Raises:
        ConflictError: 409 if the code is taken
        ValidationError: 400 if the instrument type does not exist
    """
    return await catalog_service.create_instrument(db, instrument)


@router.get("/{code:path}", response_model=InstrumentResponse)
async def get_instrument(code: str, db: DbSession) -> Instrument:
    """Get an instrument by code; 404 if it does not exist."""
    return await catalog_service.get_instrument(db, code)


@router.put("/{code:path}", response_model=InstrumentResponse)
async def update_instrument(
    code: str,
    instrument_update: InstrumentUpdate,
    current_user: CurrentUser,
    db: DbSession,
) -> Instrument:
    """Update name, type, provider symbol or description of an instrument."""
    return await catalog_service.update_instrument(db, code, instrument_update)


@router.delete("/{code:path}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_instrument(code: str, current_user: CurrentUser, db: DbSession) -> None:
    """
    Delete an instrument and its prices.

    Raises:
        NotFoundError: 404 if the instrument does not exist
        ConflictError: 409 if transactions reference it
    """
    await catalog_service.delete_instrument(db, code)
