"""InstrumentPrice model: one price per instrument per day."""

import uuid
from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import (
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Numeric,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from portfolio.db.base import Base, utc_now


class InstrumentPrice(Base):
    """Daily price of an instrument.

    Unique per ``(instrument_code, price_date)``; writing the same day again
    overwrites the row. ``as_of`` records when the quote was observed and
    ``created_at`` when the row was last written, both used to order rows
    that share a date.
    """

    __tablename__ = "instrument_prices"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    instrument_code: Mapped[str] = mapped_column(
        String(50), ForeignKey("instruments.code", ondelete="CASCADE")
    )
    price_date: Mapped[date] = mapped_column(Date)
    price: Mapped[Decimal] = mapped_column(Numeric(20, 8))
    currency_code: Mapped[str] = mapped_column(String(10))
    as_of: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now)

    __table_args__ = (
        UniqueConstraint("instrument_code", "price_date", name="uq_instrument_price_date"),
        CheckConstraint("price > 0", name="ck_instrument_price_positive"),
        Index("idx_instrument_price_recent", "instrument_code", "price_date"),
    )
