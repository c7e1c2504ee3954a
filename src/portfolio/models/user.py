"""User model."""

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from portfolio.db.base import Base, TimestampMixin


class User(Base, TimestampMixin):
    """Owner of accounts and transactions, identified by lower-cased email."""

    __tablename__ = "users"

    email: Mapped[str] = mapped_column(String(255), primary_key=True)
    name: Mapped[str] = mapped_column(String(255))
    password_hash: Mapped[str | None] = mapped_column(String(255), nullable=True)
