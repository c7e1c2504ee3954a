"""Transaction model: the append-oriented ledger log."""

import enum
import uuid
from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import Date, DateTime, Enum, ForeignKey, Index, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from portfolio.db.base import Base, truncate_to_millis, utc_now


class TransactionType(str, enum.Enum):
    """Ledger event types."""

    BUY = "buy"
    SELL = "sell"
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"
    DIVIDEND = "dividend"
    INTEREST = "interest"


def _created_now() -> datetime:
    return truncate_to_millis(utc_now())


class Transaction(Base):
    """One ledger event.

    ``id`` is assigned at insert and never changes; ``created_at`` is kept at
    millisecond precision so legacy clients can still address a row by
    ``(account, instrument, created_at)``.
    """

    __tablename__ = "transactions"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    user_email: Mapped[str] = mapped_column(String(255), index=True)
    account_name: Mapped[str] = mapped_column(String(255))
    instrument_code: Mapped[str] = mapped_column(
        String(50), ForeignKey("instruments.code", ondelete="RESTRICT")
    )
    transaction_date: Mapped[date] = mapped_column(Date)
    transaction_type: Mapped[TransactionType] = mapped_column(
        Enum(
            TransactionType,
            name="transaction_type",
            values_callable=lambda members: [m.value for m in members],
        )
    )
    quantity: Mapped[Decimal] = mapped_column(Numeric(20, 6))
    price: Mapped[Decimal | None] = mapped_column(Numeric(20, 8), nullable=True)
    total_amount: Mapped[Decimal | None] = mapped_column(Numeric(20, 8), nullable=True)
    currency_code: Mapped[str] = mapped_column(String(10))
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    imported_file_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("imported_files.id", ondelete="SET NULL"), nullable=True, index=True
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_created_now)

    __table_args__ = (
        Index("idx_transaction_balance_key", "user_email", "account_name", "instrument_code"),
        Index("idx_transaction_user_date", "user_email", "transaction_date"),
    )
