"""Spreadsheet import schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel

from portfolio.models.imported_file import ImportStatus


class ImportedFileResponse(BaseModel):
    """Schema for imported file response."""

    id: UUID
    filename: str
    content_hash: str
    status: ImportStatus
    rows_processed: int
    errors_count: int
    error_details: str | None
    created_at: datetime

    model_config = {"from_attributes": True}


class UploadResponse(BaseModel):
    """Stored upload plus its content as base64."""

    file: ImportedFileResponse
    already_uploaded: bool
    buffer: str


class ProcessRequest(BaseModel):
    """Schema for processing an uploaded file."""

    file_id: UUID


class ProcessResponse(BaseModel):
    """Outcome of processing an uploaded file."""

    file_id: UUID
    status: ImportStatus
    already_processed: bool
    processed: int
    errors: int
    error_details: list[str]
