"""Account model for named per-user accounts and nested portfolios."""

import uuid

from sqlalchemy import ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from portfolio.core.constants import AccountTypes
from portfolio.db.base import Base, TimestampMixin


class Account(Base, TimestampMixin):
    """Named account of a user.

    Accounts are addressed by ``(user_email, name)`` everywhere in the API;
    the surrogate id only serves as the row identity. ``parent_account_name``
    points at another account of the same user to group accounts into a
    portfolio (one level deep).
    """

    __tablename__ = "accounts"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    user_email: Mapped[str] = mapped_column(
        String(255), ForeignKey("users.email", ondelete="CASCADE"), index=True
    )
    name: Mapped[str] = mapped_column(String(255))
    account_type: Mapped[str] = mapped_column(String(50), default=AccountTypes.DEFAULT)
    bank_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    parent_account_name: Mapped[str | None] = mapped_column(String(255), nullable=True)

    __table_args__ = (UniqueConstraint("user_email", "name", name="uq_account_user_name"),)
