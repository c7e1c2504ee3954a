"""Repository layer for database operations.

Repositories centralize data access and never commit; services decide the
transaction boundaries.

Repositories:
    - BaseRepository: Generic CRUD operations for any model
    - UserRepository: Users keyed by normalized email
    - AccountRepository: Named accounts per user, idempotent ensure
    - InstrumentTypeRepository / InstrumentRepository: Instrument catalog
    - InstrumentPriceRepository: Daily price upserts and recent-history windows
    - TransactionRepository: Ledger log queries
    - AccountInstrumentRepository: Atomic balance deltas
    - ImportedFileRepository: Uploaded spreadsheets and their processing state

Usage:
    >>> from portfolio.repositories import AccountRepository
    >>> from portfolio.models.account import Account
    >>>
    >>> repo = AccountRepository(Account, db)
    >>> accounts = await repo.get_by_user("ana@example.com")
"""

from portfolio.repositories.account import AccountRepository
from portfolio.repositories.account_instrument import AccountInstrumentRepository
from portfolio.repositories.base import BaseRepository
from portfolio.repositories.imported_file import ImportedFileRepository
from portfolio.repositories.instrument import InstrumentRepository, InstrumentTypeRepository
from portfolio.repositories.instrument_price import InstrumentPriceRepository
from portfolio.repositories.transaction import TransactionRepository
from portfolio.repositories.user import UserRepository

__all__ = [
    "AccountInstrumentRepository",
    "AccountRepository",
    "BaseRepository",
    "ImportedFileRepository",
    "InstrumentPriceRepository",
    "InstrumentRepository",
    "InstrumentTypeRepository",
    "TransactionRepository",
    "UserRepository",
]
