"""Instrument model: anything a balance can be held in."""

from sqlalchemy import ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from portfolio.db.base import Base, TimestampMixin
from portfolio.models.instrument_type import InstrumentType


class Instrument(Base, TimestampMixin):
    """Tradable or cash instrument.

    Attributes:
        code: Unique instrument code used by transactions (e.g. "AL30", "USD",
            or a currency pair such as "USD/ARS")
        instrument_type_code: Category, see InstrumentType
        name: Display name
        external_symbol: Ticker queried on the market data provider; the
            code is used when absent
        description: Free-form notes
    """

    __tablename__ = "instruments"

    code: Mapped[str] = mapped_column(String(50), primary_key=True)
    instrument_type_code: Mapped[str] = mapped_column(
        String(20), ForeignKey("instrument_types.code", ondelete="RESTRICT"), index=True
    )
    name: Mapped[str] = mapped_column(String(255))
    external_symbol: Mapped[str | None] = mapped_column(String(50), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    instrument_type: Mapped[InstrumentType] = relationship(InstrumentType, lazy="joined")
