"""ORM models. Importing this package registers every table on Base.metadata."""

from portfolio.models.account import Account
from portfolio.models.account_instrument import AccountInstrument
from portfolio.models.imported_file import ImportedFile, ImportStatus
from portfolio.models.instrument import Instrument
from portfolio.models.instrument_price import InstrumentPrice
from portfolio.models.instrument_type import InstrumentType
from portfolio.models.transaction import Transaction, TransactionType
from portfolio.models.user import User

__all__ = [
    "Account",
    "AccountInstrument",
    "ImportStatus",
    "ImportedFile",
    "Instrument",
    "InstrumentPrice",
    "InstrumentType",
    "Transaction",
    "TransactionType",
    "User",
]
