"""
Archive Extraction — Pydantic Schemas

Covers:
  - the payload delivered to the segment consumer, one per segment
  - the response of POST /api/v1/archives/{document_id}/extract
  - structured error bodies for every 4xx/5xx case
  - pipeline stages reported to progress observers

Design decisions:
  - Segment index is 1-based; `total` is known before the first send, so a
    consumer can tell when it has received the last segment.
  - Error bodies reuse IngestError.error_code verbatim.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field, model_validator


# ---------------------------------------------------------------------------
# Pipeline stages — reported to progress observers
# ---------------------------------------------------------------------------

class PipelineStage(str, Enum):
    ARCHIVE_READ = "archive_read"   # plain text extracted from the archive
    SEGMENT_SENT = "segment_sent"   # one segment acknowledged by the consumer
    PERSISTED    = "persisted"      # full text written to the record store


# ---------------------------------------------------------------------------
# Segment payload — one per delivered chunk
# ---------------------------------------------------------------------------

class SegmentPayload(BaseModel):
    """Delivered strictly in `index` order; segment k always precedes k+1."""
    content: str
    index:   int = Field(..., ge=1, description="1-based position of this segment")
    total:   int = Field(..., ge=1, description="Number of segments in the document")

    @model_validator(mode="after")
    def _index_within_total(self) -> "SegmentPayload":
        if self.index > self.total:
            raise ValueError(f"index {self.index} exceeds total {self.total}")
        return self


# ---------------------------------------------------------------------------
# Extraction response — 200 OK
# ---------------------------------------------------------------------------

class ExtractionResponse(BaseModel):
    document_id:   str
    status:        str = Field("extracted", description="Pipeline outcome")
    char_count:    int = Field(..., description="Characters of extracted plain text")
    segments_sent: int = Field(..., description="Segments delivered to the consumer")


# ---------------------------------------------------------------------------
# Structured error bodies
# ---------------------------------------------------------------------------

class ErrorDetail(BaseModel):
    """Single structured error — may appear in a list."""
    field:   str | None = Field(None, description="Request field that caused the error, if applicable")
    message: str
    code:    str         = Field(..., description="Machine-readable error code for client handling")


class ErrorResponse(BaseModel):
    """
    Uniform error envelope for all 4xx/5xx responses.
    Clients should check `error_code` for programmatic handling.
    """
    error_code: str               = Field(..., description="Stable machine-readable code")
    message:    str               = Field(..., description="Human-readable summary")
    details:    list[ErrorDetail] = Field(default_factory=list)
    request_id: str | None        = Field(None, description="Trace ID for log correlation")


class ExtractionErrors:
    """Factories for the request-level error cases (pipeline errors map 1:1)."""

    @staticmethod
    def missing_archive(request_id: str | None = None) -> ErrorResponse:
        return ErrorResponse(
            error_code="MISSING_ARCHIVE",
            message="No archive was provided in the request.",
            request_id=request_id,
            details=[
                ErrorDetail(
                    field="archive",
                    message="The 'archive' multipart field must contain a non-empty ZIP file.",
                    code="MISSING_ARCHIVE",
                )
            ],
        )

    @staticmethod
    def archive_too_large(size_bytes: int, limit_bytes: int, request_id: str | None = None) -> ErrorResponse:
        return ErrorResponse(
            error_code="ARCHIVE_TOO_LARGE",
            message=f"Uploaded archive exceeds the {limit_bytes:,} byte limit.",
            request_id=request_id,
            details=[
                ErrorDetail(
                    field="archive",
                    message=f"Received {size_bytes:,} bytes; limit is {limit_bytes:,} bytes.",
                    code="ARCHIVE_TOO_LARGE",
                )
            ],
        )

    @staticmethod
    def pipeline_failed(error_code: str, message: str, request_id: str | None = None) -> ErrorResponse:
        return ErrorResponse(
            error_code=error_code,
            message=message,
            request_id=request_id,
        )


# ---------------------------------------------------------------------------
# Progress event payload — passed to the injected progress observer
# ---------------------------------------------------------------------------

class PipelineProgressEvent(BaseModel):
    """
    Emitted at: archive read, every segment sent, persistence done.
    `index`/`total` are only meaningful for SEGMENT_SENT.
    """
    stage:      PipelineStage
    char_count: int = 0
    index:      int = 0
    total:      int = 0
