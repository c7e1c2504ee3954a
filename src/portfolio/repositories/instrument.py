"""Repositories for the instrument catalog."""

from sqlalchemy import func, select

from portfolio.db.base import utc_now
from portfolio.db.dialect import upsert_insert
from portfolio.models.instrument import Instrument
from portfolio.models.instrument_type import InstrumentType
from portfolio.models.transaction import Transaction
from portfolio.repositories.base import BaseRepository


class InstrumentTypeRepository(BaseRepository[InstrumentType]):
    """Repository for instrument types keyed by code."""

    async def get_all(self) -> list[InstrumentType]:
        """Get every instrument type ordered by code."""
        result = await self.db.execute(select(InstrumentType).order_by(InstrumentType.code))
        return list(result.scalars().all())

    async def upsert(self, code: str, name: str) -> InstrumentType:
        """Insert an instrument type or rename the existing one.

        Args:
            code: Lower-cased type code
            name: Display label

        Returns:
            The stored instrument type
        """
        stmt = upsert_insert(self.db, InstrumentType).values(code=code, name=name)
        stmt = stmt.on_conflict_do_update(
            index_elements=["code"],
            set_={"name": stmt.excluded.name, "updated_at": utc_now()},
        )
        await self.db.execute(stmt)
        result = await self.db.execute(
            select(InstrumentType)
            .where(InstrumentType.code == code)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one()

    async def insert_missing(self, types: dict[str, str]) -> None:
        """Insert the given ``code -> name`` pairs, leaving existing codes untouched.

        Args:
            types: Instrument types to seed
        """
        for code, name in types.items():
            stmt = (
                upsert_insert(self.db, InstrumentType)
                .values(code=code, name=name)
                .on_conflict_do_nothing(index_elements=["code"])
            )
            await self.db.execute(stmt)

    async def is_in_use(self, code: str) -> bool:
        """Check whether any instrument references the type."""
        result = await self.db.execute(
            select(func.count()).select_from(Instrument).where(Instrument.instrument_type_code == code)
        )
        return result.scalar_one() > 0


class InstrumentRepository(BaseRepository[Instrument]):
    """Repository for instruments keyed by code.

    Example:
        >>> repo = InstrumentRepository(Instrument, db)
        >>> instruments = await repo.get_all()
    """

    async def get_all(self, instrument_type_code: str | None = None) -> list[Instrument]:
        """Get instruments ordered by code, optionally of one type.

        Args:
            instrument_type_code: Restrict to this type

        Returns:
            List of instruments with their type loaded
        """
        query = select(Instrument).order_by(Instrument.code)
        if instrument_type_code:
            query = query.where(Instrument.instrument_type_code == instrument_type_code)
        result = await self.db.execute(query)
        return list(result.unique().scalars().all())

    async def has_transactions(self, code: str) -> bool:
        """Check whether the ledger references the instrument."""
        result = await self.db.execute(
            select(func.count()).select_from(Transaction).where(Transaction.instrument_code == code)
        )
        return result.scalar_one() > 0
