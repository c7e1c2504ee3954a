"""Dialect-aware INSERT ... ON CONFLICT construction.

PostgreSQL and SQLite both support ``ON CONFLICT`` upserts but expose them
through separate ``insert`` constructs. The ledger relies on them for atomic
balance increments and idempotent ensure-style inserts.
"""

from typing import Any

from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from portfolio.core.exceptions import StorageError


def upsert_insert(db: AsyncSession, table: Any) -> Any:
    """Return an ``insert`` construct supporting ``on_conflict_do_*`` for the bound dialect.

    Args:
        db: Session whose bind determines the dialect
        table: Mapped class or Table to insert into

    Returns:
        A PostgreSQL or SQLite Insert

    Raises:
        StorageError: If the database dialect has no ON CONFLICT support
    """
    dialect = db.get_bind().dialect.name
    if dialect == "postgresql":
        return postgresql.insert(table)
    if dialect == "sqlite":
        return sqlite.insert(table)
    raise StorageError(f"Unsupported database dialect for upserts: {dialect}")
