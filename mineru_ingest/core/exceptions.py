"""
Ingestion error hierarchy.

Every failure in the archive → text → delivery → persistence pipeline is
raised as a subclass of IngestError. Nothing is recovered locally: the first
error aborts the run and reaches the caller unchanged.

Each class carries a stable `error_code` that the HTTP layer copies into
ErrorResponse bodies.
"""

from __future__ import annotations


class IngestError(Exception):
    """Base exception for the ingestion pipeline."""

    error_code: str = "INGEST_ERROR"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


# ---------------------------------------------------------------------------
# Archive structure
# ---------------------------------------------------------------------------

class MalformedArchive(IngestError):
    """Bad signatures, missing end-of-central-directory, truncated records."""

    error_code = "MALFORMED_ARCHIVE"


class UnsupportedArchiveFeature(IngestError):
    """Streaming (data-descriptor) entries."""

    error_code = "UNSUPPORTED_ARCHIVE_FEATURE"


class UnsupportedCompressionMethod(IngestError):
    error_code = "UNSUPPORTED_COMPRESSION_METHOD"

    def __init__(self, method: int) -> None:
        super().__init__(f"Unsupported compression method: {method}")
        self.method = method


class ArchiveBoundsExceeded(IngestError):
    error_code = "ARCHIVE_BOUNDS_EXCEEDED"


# ---------------------------------------------------------------------------
# Extracted content
# ---------------------------------------------------------------------------

class NoMatchingContent(IngestError):
    """None of the prioritized filenames were present in the archive."""

    error_code = "NO_MATCHING_CONTENT"


class EmptyExtractedText(IngestError):
    error_code = "EMPTY_EXTRACTED_TEXT"


# ---------------------------------------------------------------------------
# Caller misuse
# ---------------------------------------------------------------------------

class InvalidInput(IngestError):
    error_code = "INVALID_INPUT"


class InvalidConfiguration(IngestError):
    error_code = "INVALID_CONFIGURATION"


# ---------------------------------------------------------------------------
# Downstream collaborators
# ---------------------------------------------------------------------------

class SegmentDeliveryError(IngestError):
    """The segment consumer rejected a payload or could not be reached."""

    error_code = "SEGMENT_DELIVERY_ERROR"


class PersistenceError(IngestError):
    """The record store reported an error; `message` is the store's own."""

    error_code = "PERSISTENCE_ERROR"


class NoRowsUpdated(IngestError):
    error_code = "NO_ROWS_UPDATED"


__all__ = [
    "IngestError",
    "MalformedArchive",
    "UnsupportedArchiveFeature",
    "UnsupportedCompressionMethod",
    "ArchiveBoundsExceeded",
    "NoMatchingContent",
    "EmptyExtractedText",
    "InvalidInput",
    "InvalidConfiguration",
    "SegmentDeliveryError",
    "PersistenceError",
    "NoRowsUpdated",
]
