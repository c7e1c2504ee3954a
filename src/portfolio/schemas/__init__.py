"""Schemas package."""

from portfolio.schemas.account import (
    AccountCreate,
    AccountDeleteResponse,
    AccountResponse,
    AccountUpdate,
)
from portfolio.schemas.auth import AuthConfigResponse, MessageResponse, UserLogin, UserRegister
from portfolio.schemas.holding import (
    AccountTotals,
    HoldingValuation,
    PerformanceEntry,
    RebuildResponse,
)
from portfolio.schemas.imports import (
    ImportedFileResponse,
    ProcessRequest,
    ProcessResponse,
    UploadResponse,
)
from portfolio.schemas.instrument import (
    InstrumentCreate,
    InstrumentResponse,
    InstrumentTypeCreate,
    InstrumentTypeResponse,
    InstrumentTypeUpdate,
    InstrumentUpdate,
)
from portfolio.schemas.price import (
    PriceCorrection,
    PriceResponse,
    PriceSyncResponse,
    PriceUpsert,
    RecentPriceResponse,
)
from portfolio.schemas.transaction import (
    TransactionAmend,
    TransactionInput,
    TransactionLookup,
    TransactionResponse,
)
from portfolio.schemas.user import UserResponse

__all__ = [
    # Account schemas
    "AccountCreate",
    "AccountDeleteResponse",
    "AccountResponse",
    "AccountUpdate",
    # Authentication schemas
    "AuthConfigResponse",
    "MessageResponse",
    "UserLogin",
    "UserRegister",
    "UserResponse",
    # Catalog schemas
    "InstrumentCreate",
    "InstrumentResponse",
    "InstrumentTypeCreate",
    "InstrumentTypeResponse",
    "InstrumentTypeUpdate",
    "InstrumentUpdate",
    # Price schemas
    "PriceCorrection",
    "PriceResponse",
    "PriceSyncResponse",
    "PriceUpsert",
    "RecentPriceResponse",
    # Ledger schemas
    "TransactionAmend",
    "TransactionInput",
    "TransactionLookup",
    "TransactionResponse",
    # Valuation schemas
    "AccountTotals",
    "HoldingValuation",
    "PerformanceEntry",
    "RebuildResponse",
    # Import schemas
    "ImportedFileResponse",
    "ProcessRequest",
    "ProcessResponse",
    "UploadResponse",
]
