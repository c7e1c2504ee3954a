"""Application-wide constants.

Groups the values that shape ledger behaviour and API limits so that routes
and services share one source of truth.
"""


class AccountTypes:
    """Well-known account categories. Account type is free text; these are hints."""

    BANK_ACCOUNT = "bank_account"
    PORTFOLIO = "portfolio"
    GROUPED = "grouped"

    DEFAULT = BANK_ACCOUNT


class InstrumentTypeCodes:
    """Instrument types seeded at startup."""

    CASH = "cash"
    BOND = "bond"
    STOCK = "stock"
    OTHER = "other"

    SEED = {
        CASH: "Cash",
        BOND: "Bonds",
        STOCK: "Stocks",
        OTHER: "Other",
    }


class PriceConstants:
    """Constants for price history and market data sync."""

    # Recent history kept per instrument in the price listing
    RECENT_PRICES_PER_INSTRUMENT = 5
    # Upper bound on instruments represented in the recent listing
    RECENT_PRICES_MAX_INSTRUMENTS = 60

    # yfinance history window used to read the latest close
    QUOTE_HISTORY_PERIOD = "5d"


class APIConstants:
    """Constants for API behavior, limits, and defaults."""

    DEFAULT_TRANSACTION_LIMIT = 100
    DEFAULT_HISTORY_LIMIT = 50
    MAX_PAGE_SIZE = 500


class ImportConstants:
    """Constants for spreadsheet upload and processing."""

    ALLOWED_CONTENT_TYPES = frozenset(
        {
            "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
            "application/vnd.ms-excel",
            "text/csv",
        }
    )
    ALLOWED_EXTENSIONS = frozenset({".xlsx", ".xls", ".csv"})

    # Spreadsheet header (lower-cased) -> transaction field
    COLUMN_ALIASES = {
        "fecha": "date",
        "date": "date",
        "cuenta": "account",
        "account": "account",
        "instrumento": "instrument",
        "instrument": "instrument",
        "tipo": "type",
        "type": "type",
        "cantidad": "quantity",
        "quantity": "quantity",
        "precio": "price",
        "price": "price",
        "total": "total",
        "moneda": "currency",
        "currency": "currency",
        "descripcion": "description",
        "descripción": "description",
        "description": "description",
    }

    # Header occupies the first spreadsheet row; data starts on row 2
    FIRST_DATA_ROW = 2
