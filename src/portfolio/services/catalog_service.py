"""Service layer for the instrument catalog: instrument types and instruments."""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from portfolio.core.constants import InstrumentTypeCodes
from portfolio.core.exceptions import ConflictError, NotFoundError, ValidationError
from portfolio.db.session import transactional
from portfolio.models.instrument import Instrument
from portfolio.models.instrument_price import InstrumentPrice
from portfolio.models.instrument_type import InstrumentType
from portfolio.repositories.instrument import InstrumentRepository, InstrumentTypeRepository
from portfolio.repositories.instrument_price import InstrumentPriceRepository
from portfolio.schemas.instrument import (
    InstrumentCreate,
    InstrumentTypeCreate,
    InstrumentUpdate,
)

logger = logging.getLogger(__name__)


async def seed_instrument_types(db: AsyncSession) -> None:
    """Insert the default instrument types that are missing.

    Existing types keep their names. Safe to run on every startup.
    """
    repo = InstrumentTypeRepository(InstrumentType, db)
    async with transactional(db):
        await repo.insert_missing(InstrumentTypeCodes.SEED)
    logger.info(f"Instrument types ensured: {', '.join(InstrumentTypeCodes.SEED)}")


async def list_instrument_types(db: AsyncSession) -> list[InstrumentType]:
    """List instrument types ordered by code."""
    return await InstrumentTypeRepository(InstrumentType, db).get_all()


async def save_instrument_type(db: AsyncSession, data: InstrumentTypeCreate) -> InstrumentType:
    """Create an instrument type, or rename it if the code exists."""
    repo = InstrumentTypeRepository(InstrumentType, db)
    async with transactional(db):
        instrument_type = await repo.upsert(data.code, data.name)
    return instrument_type


async def rename_instrument_type(db: AsyncSession, code: str, name: str) -> InstrumentType:
    """Rename an existing instrument type.

    Raises:
        NotFoundError: If the type does not exist
    """
    repo = InstrumentTypeRepository(InstrumentType, db)
    instrument_type = await repo.get(code.strip().lower())
    if instrument_type is None:
        raise NotFoundError(f"Instrument type '{code}' not found")
    async with transactional(db):
        instrument_type.name = name
    return instrument_type


async def delete_instrument_type(db: AsyncSession, code: str) -> None:
    """Delete an instrument type no instrument uses.

    Raises:
        NotFoundError: If the type does not exist
        ConflictError: If instruments still reference it
    """
    repo = InstrumentTypeRepository(InstrumentType, db)
    code = code.strip().lower()
    if not await repo.exists(code):
        raise NotFoundError(f"Instrument type '{code}' not found")
    if await repo.is_in_use(code):
        raise ConflictError(f"Instrument type '{code}' is used by instruments")
    async with transactional(db):
        await repo.delete(id=code)


async def list_instruments(
    db: AsyncSession, instrument_type_code: str | None = None
) -> list[Instrument]:
    """List instruments ordered by code, optionally of one type."""
    return await InstrumentRepository(Instrument, db).get_all(instrument_type_code)


async def get_instrument(db: AsyncSession, code: str) -> Instrument:
    """Get an instrument by code.

    Raises:
        NotFoundError: If the instrument does not exist
    """
    instrument = await InstrumentRepository(Instrument, db).get(code)
    if instrument is None:
        raise NotFoundError(f"Instrument '{code}' not found")
    return instrument


async def _require_type(db: AsyncSession, code: str) -> None:
    if not await InstrumentTypeRepository(InstrumentType, db).exists(code):
        raise ValidationError(f"Instrument type '{code}' does not exist")


async def create_instrument(db: AsyncSession, data: InstrumentCreate) -> Instrument:
    """Add an instrument to the catalog.

    Raises:
        ConflictError: If the code is taken
        ValidationError: If the instrument type does not exist
    """
    repo = InstrumentRepository(Instrument, db)
    if await repo.exists(data.code):
        raise ConflictError(f"Instrument '{data.code}' already exists")
    await _require_type(db, data.instrument_type_code)

    async with transactional(db):
        instrument = await repo.create(obj_in=data)

    logger.info(f"Created instrument {data.code} ({data.instrument_type_code})")
    return instrument


async def update_instrument(db: AsyncSession, code: str, data: InstrumentUpdate) -> Instrument:
    """Update catalog fields of an instrument.

    Raises:
        NotFoundError: If the instrument does not exist
        ValidationError: If nothing was sent or the new type does not exist
    """
    changes = data.model_dump(exclude_unset=True)
    if not changes:
        raise ValidationError("No fields to update")
    instrument = await get_instrument(db, code)
    if changes.get("instrument_type_code"):
        await _require_type(db, changes["instrument_type_code"])

    async with transactional(db):
        instrument = await InstrumentRepository(Instrument, db).update(
            db_obj=instrument, obj_in=changes
        )
    return instrument


async def delete_instrument(db: AsyncSession, code: str) -> None:
    """Remove an instrument and its prices from the catalog.

    Raises:
        NotFoundError: If the instrument does not exist
        ConflictError: If transactions reference it
    """
    repo = InstrumentRepository(Instrument, db)
    await get_instrument(db, code)
    if await repo.has_transactions(code):
        raise ConflictError(f"Instrument '{code}' has transactions and cannot be deleted")
    async with transactional(db):
        prices = await InstrumentPriceRepository(InstrumentPrice, db).delete_for_instrument(code)
        await repo.delete(id=code)
    logger.info(f"Deleted instrument {code} with {prices} prices")
