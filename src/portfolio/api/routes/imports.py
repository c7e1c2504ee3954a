"""Spreadsheet import endpoints: upload, then process."""

import base64

from fastapi import APIRouter, UploadFile, status
from fastapi.responses import JSONResponse

from portfolio.core.deps import CurrentUser, DbSession
from portfolio.schemas.imports import (
    ImportedFileResponse,
    ProcessRequest,
    ProcessResponse,
    UploadResponse,
)
from portfolio.services import import_service

router = APIRouter()


@router.post("/upload", response_model=UploadResponse)
async def upload_file(
    file: UploadFile,
    current_user: CurrentUser,
    db: DbSession,
) -> UploadResponse:
    """
    Store a transactions spreadsheet (.xlsx, .xls or .csv).

    Uploading the same bytes again returns the existing record with
    ``already_uploaded`` set.

    Args:
        file: Multipart file
        current_user: The authenticated user (from dependency)
        db: Database session

    Returns:
        The upload record and the file content as base64

    Raises:
        ValidationError: 400 if the file is empty, too large or not a spreadsheet
    """
    content = await file.read()
    imported, already_uploaded = await import_service.store_upload(
        db,
        current_user.email,
        file.filename or "upload",
        file.content_type,
        content,
    )
    return UploadResponse(
        file=ImportedFileResponse.model_validate(imported),
        already_uploaded=already_uploaded,
        buffer=base64.b64encode(content).decode("ascii"),
    )


@router.post(
    "/process-transactions",
    response_model=ProcessResponse,
    responses={207: {"model": ProcessResponse, "description": "Some rows failed"}},
)
async def process_transactions(
    request_data: ProcessRequest,
    current_user: CurrentUser,
    db: DbSession,
) -> ProcessResponse | JSONResponse:
    """
    Record every row of an uploaded spreadsheet as a transaction.

    Returns:
        200 when every row was recorded (or the file had completed before),
        207 with row errors otherwise

    Raises:
        NotFoundError: 404 if the file does not exist
        ConflictError: 409 if the file is being processed already
    """
    result = await import_service.process_file(db, current_user.email, request_data.file_id)
    if result.errors:
        return JSONResponse(
            status_code=status.HTTP_207_MULTI_STATUS,
            content=result.model_dump(mode="json"),
        )
    return result
