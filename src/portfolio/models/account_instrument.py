"""AccountInstrument model: the per-(user, account, instrument) balance."""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import DateTime, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from portfolio.db.base import Base, utc_now


class AccountInstrument(Base):
    """Cached aggregate of the transaction log.

    ``quantity`` always equals the sum of signed quantities of the live
    transactions with the same key. It is only ever changed by atomic
    ``quantity = quantity + delta`` statements issued by the ledger service.
    Negative values are allowed.
    """

    __tablename__ = "account_instruments"

    user_email: Mapped[str] = mapped_column(String(255), primary_key=True)
    account_name: Mapped[str] = mapped_column(String(255), primary_key=True)
    instrument_code: Mapped[str] = mapped_column(String(50), primary_key=True)
    quantity: Mapped[Decimal] = mapped_column(Numeric(20, 6), default=Decimal("0"))
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now
    )
