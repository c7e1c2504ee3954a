"""Reading transaction rows from uploaded spreadsheets.

Supports ``.xlsx`` workbooks (openpyxl engine) and ``.csv`` files. Headers
are matched case-insensitively against Spanish and English column names.
"""

import io
import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from decimal import Decimal
from pathlib import Path
from typing import Any

import pandas as pd

from portfolio.core.constants import ImportConstants
from portfolio.schemas.transaction import TransactionInput

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = ("account", "instrument", "type", "quantity")
NUMERIC_COLUMNS = ("quantity", "price", "total")
CODE_COLUMNS = ("account", "instrument", "currency")

EXCEL_EPOCH = date(1899, 12, 30)
DATE_FORMATS = ("%Y-%m-%d", "%d/%m/%Y", "%d-%m-%Y", "%Y/%m/%d")


class SpreadsheetError(Exception):
    """Raised when a file cannot be read as a transaction sheet."""

    pass


@dataclass
class SheetRow:
    """One data row, numbered as in the spreadsheet (the header is row 1)."""

    number: int
    values: dict[str, Any]


def _read_frame(content: bytes, filename: str) -> pd.DataFrame:
    suffix = Path(filename).suffix.lower()
    try:
        if content[:2] == b"PK":
            return pd.read_excel(io.BytesIO(content), engine="openpyxl", dtype=object)
        if suffix == ".csv" or suffix == "":
            return pd.read_csv(io.BytesIO(content), dtype=str, skip_blank_lines=True)
    except Exception as e:
        logger.warning(f"Could not parse spreadsheet {filename}: {e}")
        raise SpreadsheetError(f"Could not read '{filename}': {e}") from e
    raise SpreadsheetError(f"Unsupported spreadsheet format for '{filename}'")


def _column_map(columns: list[Any]) -> dict[Any, str]:
    mapping = {}
    for column in columns:
        field = ImportConstants.COLUMN_ALIASES.get(str(column).strip().lower())
        if field and field not in mapping.values():
            mapping[column] = field
    return mapping


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def read_rows(content: bytes, filename: str) -> list[SheetRow]:
    """Parse a spreadsheet into rows keyed by transaction field.

    Blank rows are skipped but keep their numbering.

    Raises:
        SpreadsheetError: If the file is unreadable or lacks required columns
    """
    frame = _read_frame(content, filename)
    mapping = _column_map(list(frame.columns))
    missing = [column for column in REQUIRED_COLUMNS if column not in mapping.values()]
    if missing:
        raise SpreadsheetError(f"Missing required columns: {', '.join(missing)}")

    frame = frame[list(mapping)].rename(columns=mapping)
    rows = []
    for offset, record in enumerate(frame.to_dict(orient="records")):
        values = {key: (None if _is_blank(value) else value) for key, value in record.items()}
        if all(value is None for value in values.values()):
            continue
        rows.append(SheetRow(number=offset + ImportConstants.FIRST_DATA_ROW, values=values))
    return rows


def _cell_date(value: Any) -> Any:
    if isinstance(value, pd.Timestamp):
        return value.date()
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, int | float) and not isinstance(value, bool):
        return EXCEL_EPOCH + timedelta(days=int(value))
    if isinstance(value, str):
        text = value.strip()
        for fmt in DATE_FORMATS:
            try:
                return datetime.strptime(text, fmt).date()
            except ValueError:
                continue
        return text
    return value


def _cell_number(value: Any) -> Any:
    if isinstance(value, float):
        return Decimal(str(value))
    if isinstance(value, str):
        return value.strip()
    return value


def _cell_text(value: Any) -> Any:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if value is None:
        return None
    return str(value).strip()


def to_transaction_input(row: SheetRow) -> TransactionInput:
    """Validate a sheet row as a transaction.

    Raises:
        pydantic.ValidationError: If a field is missing or invalid
    """
    values = row.values
    data: dict[str, Any] = {
        "account_name": _cell_text(values.get("account")),
        "instrument_code": _cell_text(values.get("instrument")),
        "transaction_type": _cell_text(values.get("type")),
        "quantity": _cell_number(values.get("quantity")),
        "price": _cell_number(values.get("price")),
        "total_amount": _cell_number(values.get("total")),
        "currency_code": _cell_text(values.get("currency")),
        "description": _cell_text(values.get("description")),
    }
    if values.get("date") is not None:
        data["transaction_date"] = _cell_date(values["date"])
    return TransactionInput.model_validate(data)
