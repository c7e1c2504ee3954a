"""Two-phase spreadsheet import: store the upload, then process its rows.

Uploads are deduplicated per user by the SHA-256 digest of their bytes.
Processing records each row through the ledger as its own atomic unit and
collects row-level errors instead of stopping. A completed file is never
processed twice; a failed one can be retried, and its earlier transactions
are removed first so nothing is counted twice.
"""

import asyncio
import hashlib
import logging
import uuid
from pathlib import Path

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from portfolio.core.config import settings
from portfolio.core.constants import ImportConstants
from portfolio.core.exceptions import (
    AppException,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from portfolio.db.session import transactional
from portfolio.models.imported_file import ImportedFile, ImportStatus
from portfolio.models.transaction import Transaction
from portfolio.repositories.imported_file import ImportedFileRepository
from portfolio.repositories.transaction import TransactionRepository
from portfolio.schemas.imports import ProcessResponse
from portfolio.schemas.transaction import TransactionLookup
from portfolio.services.ledger_service import record_transaction, remove_transaction
from portfolio.services.spreadsheet import SpreadsheetError, read_rows, to_transaction_input

logger = logging.getLogger(__name__)

EXCEL_CONTENT_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def _extension(filename: str, content_type: str | None) -> str:
    suffix = Path(filename).suffix.lower()
    if suffix in ImportConstants.ALLOWED_EXTENSIONS:
        return suffix
    if content_type in ImportConstants.ALLOWED_CONTENT_TYPES:
        return ".csv" if content_type == "text/csv" else ".xlsx"
    raise ValidationError("Only .xlsx, .xls and .csv files are accepted")


def _write_file(path: Path, content: bytes) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    if not path.exists():
        path.write_bytes(content)


def _format_validation_error(error: PydanticValidationError) -> str:
    parts = []
    for item in error.errors():
        location = ".".join(str(part) for part in item["loc"]) or "row"
        parts.append(f"{location}: {item['msg']}")
    return "; ".join(parts)


async def store_upload(
    db: AsyncSession,
    user_email: str,
    filename: str,
    content_type: str | None,
    content: bytes,
) -> tuple[ImportedFile, bool]:
    """Store an uploaded spreadsheet, reusing the record of identical content.

    Args:
        db: Database session
        user_email: Owner email
        filename: Client file name
        content_type: Declared MIME type
        content: File bytes

    Returns:
        ``(imported_file, already_uploaded)``

    Raises:
        ValidationError: If the file is empty, too large or of another type
    """
    extension = _extension(filename, content_type)
    if not content:
        raise ValidationError("Uploaded file is empty")
    if len(content) > settings.MAX_UPLOAD_BYTES:
        raise ValidationError(f"File exceeds the {settings.MAX_UPLOAD_BYTES} byte limit")

    content_hash = hashlib.sha256(content).hexdigest()
    repo = ImportedFileRepository(ImportedFile, db)

    existing = await repo.get_by_hash(user_email, content_hash)
    if existing is not None:
        logger.info(f"Upload {filename} matches existing file {existing.id} for {user_email}")
        return existing, True

    path = Path(settings.UPLOAD_DIR) / f"{content_hash}{extension}"
    await asyncio.to_thread(_write_file, path, content)

    try:
        async with transactional(db):
            imported = await repo.create(
                obj_in={
                    "user_email": user_email,
                    "filename": filename,
                    "content_hash": content_hash,
                    "file_path": str(path),
                    "status": ImportStatus.PENDING,
                }
            )
    except IntegrityError:
        existing = await repo.get_by_hash(user_email, content_hash)
        if existing is None:
            raise
        return existing, True

    logger.info(f"Stored upload {filename} as {imported.id} for {user_email}")
    return imported, False


async def _discard_previous_attempt(
    db: AsyncSession, user_email: str, file_id: uuid.UUID
) -> int:
    transactions = await TransactionRepository(Transaction, db).get_by_imported_file(file_id)
    ids = [transaction.id for transaction in transactions]
    for transaction_id in ids:
        await remove_transaction(db, user_email, TransactionLookup(id=transaction_id))
    if ids:
        logger.info(f"Removed {len(ids)} transactions from the failed run of file {file_id}")
    return len(ids)


async def _mark_interrupted(
    repo: ImportedFileRepository,
    file_id: uuid.UUID,
    processed: int,
    errors: list[str],
    error: BaseException,
) -> None:
    """Release a claimed file as ``failed`` after processing stopped early.

    Rows recorded before the interruption stay committed; the next attempt
    removes them through ``_discard_previous_attempt`` before starting over.
    """
    details = [*errors, f"Processing interrupted: {type(error).__name__}"]
    try:
        await repo.db.rollback()
        async with transactional(repo.db):
            await repo.finish(
                file_id,
                status=ImportStatus.FAILED,
                rows_processed=processed,
                errors_count=len(details),
                error_details="\n".join(details),
            )
    except SQLAlchemyError as e:
        logger.error(f"Could not release interrupted file {file_id}: {e}")
        return
    logger.warning(f"Processing of file {file_id} interrupted after {processed} rows")


async def process_file(db: AsyncSession, user_email: str, file_id: uuid.UUID) -> ProcessResponse:
    """Record every row of an uploaded spreadsheet as a transaction.

    Args:
        db: Database session
        user_email: Owner email
        file_id: Uploaded file id

    Returns:
        Counts and row errors. ``already_processed`` is True when the file
        had completed before and nothing was done.

    Raises:
        NotFoundError: If the file does not exist or belongs to someone else
        ConflictError: If the file is being processed by another request
    """
    repo = ImportedFileRepository(ImportedFile, db)
    imported = await repo.get_for_user(user_email, file_id)
    if imported is None:
        raise NotFoundError("Imported file not found")

    previous_status = imported.status
    file_path = Path(imported.file_path)
    filename = imported.filename

    if previous_status == ImportStatus.COMPLETED:
        return ProcessResponse(
            file_id=file_id,
            status=previous_status,
            already_processed=True,
            processed=imported.rows_processed,
            errors=imported.errors_count,
            error_details=imported.error_details.split("\n") if imported.error_details else [],
        )

    async with transactional(db):
        claimed = await repo.claim(file_id)
    if not claimed:
        raise ConflictError("File is already being processed")

    processed = 0
    errors: list[str] = []
    try:
        if previous_status == ImportStatus.FAILED:
            await _discard_previous_attempt(db, user_email, file_id)

        try:
            content = await asyncio.to_thread(file_path.read_bytes)
            rows = read_rows(content, filename)
        except (OSError, SpreadsheetError) as e:
            logger.warning(f"Could not read imported file {file_id}: {e}")
            rows = []
            errors.append(f"File could not be read: {e}")

        for row in rows:
            try:
                data = to_transaction_input(row)
            except PydanticValidationError as e:
                errors.append(
                    f"Row {row.number} validation failed: {_format_validation_error(e)}"
                )
                continue

            try:
                await record_transaction(db, user_email, data, imported_file_id=file_id)
            except NotFoundError:
                errors.append(f"Row {row.number}: instrument not found -> {data.instrument_code}")
                continue
            except AppException as e:
                errors.append(f"Row {row.number}: {e.detail}")
                continue
            except SQLAlchemyError as e:
                logger.error(f"Row {row.number} of file {file_id} failed to store: {e}")
                errors.append(f"Row {row.number}: could not be stored")
                continue
            processed += 1
    except BaseException as e:
        await _mark_interrupted(repo, file_id, processed, errors, e)
        raise

    status = ImportStatus.FAILED if errors else ImportStatus.COMPLETED
    async with transactional(db):
        await repo.finish(
            file_id,
            status=status,
            rows_processed=processed,
            errors_count=len(errors),
            error_details="\n".join(errors) if errors else None,
        )

    logger.info(
        f"Processed file {file_id} for {user_email}: {processed} rows, {len(errors)} errors"
    )
    return ProcessResponse(
        file_id=file_id,
        status=status,
        already_processed=False,
        processed=processed,
        errors=len(errors),
        error_details=errors,
    )
