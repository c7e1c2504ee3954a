"""ImportedFile repository: upload records and their processing state."""

import uuid

from sqlalchemy import select, update

from portfolio.db.base import utc_now
from portfolio.models.imported_file import ImportedFile, ImportStatus
from portfolio.repositories.base import BaseRepository


class ImportedFileRepository(BaseRepository[ImportedFile]):
    """Repository for uploaded spreadsheets, unique per ``(user_email, content_hash)``.

    Example:
        >>> repo = ImportedFileRepository(ImportedFile, db)
        >>> existing = await repo.get_by_hash("ana@example.com", digest)
    """

    async def get_for_user(self, user_email: str, file_id: uuid.UUID) -> ImportedFile | None:
        """Get an uploaded file only if it belongs to the user."""
        result = await self.db.execute(
            select(ImportedFile)
            .where(ImportedFile.id == file_id)
            .where(ImportedFile.user_email == user_email)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def get_by_hash(self, user_email: str, content_hash: str) -> ImportedFile | None:
        """Get the user's upload with the given SHA-256 digest."""
        result = await self.db.execute(
            select(ImportedFile)
            .where(ImportedFile.user_email == user_email)
            .where(ImportedFile.content_hash == content_hash)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def claim(self, file_id: uuid.UUID) -> bool:
        """Move a pending or failed file to ``processing``.

        Conditional update, so only one concurrent caller wins.

        Returns:
            True if this call claimed the file
        """
        result = await self.db.execute(
            update(ImportedFile)
            .where(ImportedFile.id == file_id)
            .where(ImportedFile.status.in_([ImportStatus.PENDING, ImportStatus.FAILED]))
            .values(status=ImportStatus.PROCESSING, updated_at=utc_now())
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    async def finish(
        self,
        file_id: uuid.UUID,
        *,
        status: ImportStatus,
        rows_processed: int,
        errors_count: int,
        error_details: str | None,
    ) -> None:
        """Store the outcome of processing."""
        await self.db.execute(
            update(ImportedFile)
            .where(ImportedFile.id == file_id)
            .values(
                status=status,
                rows_processed=rows_processed,
                errors_count=errors_count,
                error_details=error_details,
                updated_at=utc_now(),
            )
            .execution_options(synchronize_session=False)
        )
