"""
Archive Extraction API Router
POST /api/v1/archives/{document_id}/extract

Request lifecycle:
  ┌─────────────────────────────────────────────────────────┐
  │ 1. Read the multipart `archive` upload (size-guarded)    │
  │ 2. Extract markdown.md / text.txt plain text             │
  │ 3. Deliver segments to the webhook, strictly in order    │
  │ 4. UPDATE documents SET extracted_text ... WHERE id      │
  │ 5. Return char count + segments sent                     │
  └─────────────────────────────────────────────────────────┘

Request-level failures (empty or oversized archive) are returned here as
ErrorResponse JSON. Pipeline failures are raised as IngestError and rendered
by the application-level handler (see main.py) using INGEST_ERROR_STATUS.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile, status
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from mineru_ingest.core.config import settings
from mineru_ingest.core.exceptions import (
    ArchiveBoundsExceeded,
    EmptyExtractedText,
    IngestError,
    InvalidConfiguration,
    InvalidInput,
    MalformedArchive,
    NoMatchingContent,
    NoRowsUpdated,
    PersistenceError,
    SegmentDeliveryError,
    UnsupportedArchiveFeature,
    UnsupportedCompressionMethod,
)
from mineru_ingest.db.session import get_db
from mineru_ingest.processing.extractor import ArchiveTextExtractor
from mineru_ingest.schemas.archives import (
    ErrorResponse,
    ExtractionErrors,
    ExtractionResponse,
    PipelineProgressEvent,
)
from mineru_ingest.services.persistence import RecordStore, SqlAlchemyRecordStore
from mineru_ingest.services.pipeline import process_archive_and_persist
from mineru_ingest.services.sender import HttpSegmentSender, SegmentSender

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/archives",
    tags=["Archive Extraction"],
)


# ---------------------------------------------------------------------------
# IngestError → HTTP status
# ---------------------------------------------------------------------------

INGEST_ERROR_STATUS: dict[type[IngestError], int] = {
    MalformedArchive:             status.HTTP_422_UNPROCESSABLE_ENTITY,
    UnsupportedArchiveFeature:    status.HTTP_422_UNPROCESSABLE_ENTITY,
    UnsupportedCompressionMethod: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ArchiveBoundsExceeded:        status.HTTP_422_UNPROCESSABLE_ENTITY,
    NoMatchingContent:            status.HTTP_422_UNPROCESSABLE_ENTITY,
    EmptyExtractedText:           status.HTTP_422_UNPROCESSABLE_ENTITY,
    InvalidInput:                 status.HTTP_400_BAD_REQUEST,
    InvalidConfiguration:         status.HTTP_500_INTERNAL_SERVER_ERROR,
    NoRowsUpdated:                status.HTTP_404_NOT_FOUND,
    SegmentDeliveryError:         status.HTTP_502_BAD_GATEWAY,
    PersistenceError:             status.HTTP_503_SERVICE_UNAVAILABLE,
}


def status_for(exc: IngestError) -> int:
    for cls in type(exc).__mro__:
        if cls in INGEST_ERROR_STATUS:
            return INGEST_ERROR_STATUS[cls]
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def current_request_id(request: Request) -> str | None:
    """ID assigned by the request middleware, else the client header."""
    return getattr(request.state, "request_id", None) or request.headers.get("X-Request-ID")


# ---------------------------------------------------------------------------
# Dependencies (overridden in tests)
# ---------------------------------------------------------------------------

def get_segment_sender() -> SegmentSender:
    return HttpSegmentSender(
        settings.segment_webhook_url,
        token=settings.segment_webhook_token,
        timeout=settings.segment_webhook_timeout,
    )


async def get_record_store(db: AsyncSession = Depends(get_db)) -> RecordStore:
    return SqlAlchemyRecordStore(db, id_column=settings.documents_id_column)


def get_extractor() -> ArchiveTextExtractor:
    return ArchiveTextExtractor(settings.prioritized_archive_files)


async def _log_progress(event: PipelineProgressEvent) -> None:
    logger.debug(
        "Progress | stage=%s chars=%d segment=%d/%d",
        event.stage.value, event.char_count, event.index, event.total,
    )


# ---------------------------------------------------------------------------
# POST /archives/{document_id}/extract
# ---------------------------------------------------------------------------

@router.post(
    "/{document_id}/extract",
    response_model=ExtractionResponse,
    status_code=status.HTTP_200_OK,
    summary="Extract, deliver and persist the plain text of a MinerU archive",
    responses={
        200: {"model": ExtractionResponse, "description": "Text extracted, delivered and stored"},
        400: {"model": ErrorResponse, "description": "Missing or empty archive"},
        404: {"model": ErrorResponse, "description": "No document record matched document_id"},
        413: {"model": ErrorResponse, "description": "Archive exceeds the configured size limit"},
        422: {"model": ErrorResponse, "description": "Malformed archive or no usable text inside"},
        502: {"model": ErrorResponse, "description": "Segment consumer rejected a payload"},
        503: {"model": ErrorResponse, "description": "Record store unavailable"},
    },
)
async def extract_archive(
    request:        Request,
    document_id:    str,
    archive:        UploadFile    = File(..., description="MinerU result archive (ZIP)"),
    segment_length: Optional[int] = Form(None, ge=1, description="Maximum characters per segment"),
    # --- Injected collaborators ---
    sender:    SegmentSender        = Depends(get_segment_sender),
    store:     RecordStore          = Depends(get_record_store),
    extractor: ArchiveTextExtractor = Depends(get_extractor),
):
    request_id = current_request_id(request)
    limit = settings.max_archive_size_bytes

    # Guard: reject oversized requests before reading body
    content_length = request.headers.get("content-length")
    if content_length and content_length.isdigit() and int(content_length) > limit + 4096:  # +4KB for form overhead
        return _too_large(int(content_length), limit, request_id)

    archive_bytes = await archive.read()

    if not archive_bytes:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=ExtractionErrors.missing_archive(request_id).model_dump(mode="json"),
        )

    if len(archive_bytes) > limit:
        return _too_large(len(archive_bytes), limit, request_id)

    logger.info(
        "Extract start | doc=%s file=%s size=%d",
        document_id, archive.filename, len(archive_bytes),
    )

    result = await process_archive_and_persist(
        archive_bytes,
        sender=sender,
        store=store,
        table_name=settings.documents_table,
        document_id=document_id,
        segment_length=segment_length or settings.segment_length,
        extractor=extractor,
        progress_cb=_log_progress,
    )

    return ExtractionResponse(
        document_id=document_id,
        char_count=result.char_count,
        segments_sent=result.segments_sent,
    )


def _too_large(size_bytes: int, limit_bytes: int, request_id: str | None) -> JSONResponse:
    logger.warning("Archive rejected | size=%d limit=%d", size_bytes, limit_bytes)
    return JSONResponse(
        status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
        content=ExtractionErrors.archive_too_large(
            size_bytes, limit_bytes, request_id,
        ).model_dump(mode="json"),
    )
