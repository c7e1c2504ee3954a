"""InstrumentPrice repository: upserts and windowed "latest N per instrument" reads."""

from collections import defaultdict
from collections.abc import Iterable
from datetime import date, datetime
from decimal import Decimal
from typing import Any

from sqlalchemy import Row, delete, func, select
from sqlalchemy.orm import aliased

from portfolio.db.base import utc_now
from portfolio.db.dialect import upsert_insert
from portfolio.models.instrument import Instrument
from portfolio.models.instrument_price import InstrumentPrice
from portfolio.repositories.base import BaseRepository


def _recency_order() -> tuple[Any, ...]:
    return (
        InstrumentPrice.price_date.desc(),
        InstrumentPrice.as_of.desc().nulls_last(),
        InstrumentPrice.created_at.desc(),
    )


class InstrumentPriceRepository(BaseRepository[InstrumentPrice]):
    """Repository for instrument prices keyed by ``(instrument_code, price_date)``.

    Example:
        >>> repo = InstrumentPriceRepository(InstrumentPrice, db)
        >>> await repo.upsert("AL30", date(2025, 1, 2), Decimal("100"), "ARS")
        >>> latest = await repo.get_latest_by_instrument(["AL30"])
    """

    async def upsert(
        self,
        instrument_code: str,
        price_date: date,
        price: Decimal,
        currency_code: str,
        as_of: datetime | None = None,
    ) -> InstrumentPrice:
        """Write the price of an instrument for a day, replacing any existing one.

        Single ``INSERT ... ON CONFLICT (instrument_code, price_date) DO UPDATE``
        statement. Concurrent writers for the same day resolve last-write-wins
        in commit order.

        Args:
            instrument_code: Instrument code
            price_date: Day the price applies to
            price: Positive price
            currency_code: Quote currency
            as_of: Observation time of the quote (defaults to now)

        Returns:
            The stored price row
        """
        now = utc_now()
        stmt = upsert_insert(self.db, InstrumentPrice).values(
            instrument_code=instrument_code,
            price_date=price_date,
            price=price,
            currency_code=currency_code,
            as_of=as_of or now,
            created_at=now,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["instrument_code", "price_date"],
            set_={
                "price": stmt.excluded.price,
                "currency_code": stmt.excluded.currency_code,
                "as_of": stmt.excluded.as_of,
                "created_at": stmt.excluded.created_at,
            },
        )
        await self.db.execute(stmt)
        result = await self.db.execute(
            select(InstrumentPrice)
            .where(InstrumentPrice.instrument_code == instrument_code)
            .where(InstrumentPrice.price_date == price_date)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one()

    async def get_by_key(self, instrument_code: str, price_date: date) -> InstrumentPrice | None:
        """Get the price of an instrument for a day.

        Args:
            instrument_code: Instrument code
            price_date: Day

        Returns:
            The price row, or None
        """
        result = await self.db.execute(
            select(InstrumentPrice)
            .where(InstrumentPrice.instrument_code == instrument_code)
            .where(InstrumentPrice.price_date == price_date)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def delete_by_key(self, instrument_code: str, price_date: date) -> bool:
        """Delete the price of an instrument for a day.

        Returns:
            True if a row was deleted
        """
        result = await self.db.execute(
            delete(InstrumentPrice)
            .where(InstrumentPrice.instrument_code == instrument_code)
            .where(InstrumentPrice.price_date == price_date)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount > 0

    def _ranked(self, instrument_codes: Iterable[str] | None = None) -> Any:
        rank = (
            func.row_number()
            .over(partition_by=InstrumentPrice.instrument_code, order_by=_recency_order())
            .label("rn")
        )
        query = select(InstrumentPrice, rank)
        if instrument_codes is not None:
            query = query.where(InstrumentPrice.instrument_code.in_(list(instrument_codes)))
        return query.subquery("ranked_prices")

    async def get_recent(
        self,
        per_instrument: int,
        max_rows: int,
        instrument_code: str | None = None,
    ) -> list[Row[Any]]:
        """Get the most recent prices of every instrument.

        Keeps the ``per_instrument`` newest rows of each instrument (by date,
        then ``as_of``, then write time) and caps the result at ``max_rows``.

        Args:
            per_instrument: Rows kept per instrument
            max_rows: Overall row cap
            instrument_code: Restrict to one instrument

        Returns:
            Rows of ``(InstrumentPrice, instrument_name, instrument_type_code)``
            ordered newest first
        """
        ranked = self._ranked([instrument_code] if instrument_code else None)
        price = aliased(InstrumentPrice, ranked)
        result = await self.db.execute(
            select(price, Instrument.name, Instrument.instrument_type_code)
            .join(Instrument, Instrument.code == price.instrument_code)
            .where(ranked.c.rn <= per_instrument)
            .order_by(
                price.price_date.desc(),
                price.as_of.desc().nulls_last(),
                price.created_at.desc(),
                price.instrument_code,
            )
            .limit(max_rows)
            .execution_options(populate_existing=True)
        )
        return list(result.all())

    async def get_latest_by_instrument(
        self,
        instrument_codes: Iterable[str] | None = None,
        depth: int = 1,
    ) -> dict[str, list[InstrumentPrice]]:
        """Get the newest ``depth`` prices of each instrument.

        Args:
            instrument_codes: Restrict to these instruments (all when None)
            depth: Prices kept per instrument, newest first

        Returns:
            Mapping of instrument code to its newest prices; instruments
            without prices are absent
        """
        ranked = self._ranked(instrument_codes)
        price = aliased(InstrumentPrice, ranked)
        result = await self.db.execute(
            select(price)
            .where(ranked.c.rn <= depth)
            .order_by(price.instrument_code, ranked.c.rn)
            .execution_options(populate_existing=True)
        )
        latest: dict[str, list[InstrumentPrice]] = defaultdict(list)
        for row in result.scalars().all():
            latest[row.instrument_code].append(row)
        return dict(latest)

    async def delete_for_instrument(self, instrument_code: str) -> int:
        """Delete every price of an instrument.

        Returns:
            Number of deleted rows
        """
        result = await self.db.execute(
            delete(InstrumentPrice)
            .where(InstrumentPrice.instrument_code == instrument_code)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount
