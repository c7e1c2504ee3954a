"""Instrument type reference data (cash, bond, stock, other)."""

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from portfolio.db.base import Base, TimestampMixin


class InstrumentType(Base, TimestampMixin):
    """Category of instrument, keyed by a lower-case code."""

    __tablename__ = "instrument_types"

    code: Mapped[str] = mapped_column(String(20), primary_key=True)
    name: Mapped[str] = mapped_column(String(100))
