"""
Archive Ingestion Pipeline

  1. Extract plain text from the MinerU archive        (CPU-bound, thread pool)
  2. Deliver segments to the consumer, one at a time   (awaited, in order)
  3. Persist the full text on the document record      (awaited)

Fail-fast: the first error from any step propagates unchanged and nothing
after it runs. A failed send therefore never reaches persistence, and no
partial result is reported as success.

Progress is reported through an optional async observer invoked at:
archive read, each segment sent, persistence done.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any

from mineru_ingest.processing.extractor import ArchiveTextExtractor
from mineru_ingest.processing.segmenter import DEFAULT_SEGMENT_LENGTH
from mineru_ingest.schemas.archives import PipelineProgressEvent, PipelineStage
from mineru_ingest.services.persistence import RecordStore, persist_extracted_text
from mineru_ingest.services.sender import ProgressCallback, SegmentSender, send_segments

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PipelineResult:
    plain_text:    str
    char_count:    int
    segments_sent: int


async def process_archive_and_persist(
    archive,
    *,
    sender:            SegmentSender,
    store:             RecordStore,
    table_name:        str,
    document_id:       Any,
    segment_length:    int = DEFAULT_SEGMENT_LENGTH,
    additional_fields: dict[str, Any] | None = None,
    extractor:         ArchiveTextExtractor | None = None,
    progress_cb:       ProgressCallback | None = None,
) -> PipelineResult:
    """
    Run extraction → delivery → persistence for one archive.

    Args:
        archive:           raw archive bytes (any bytes-like object)
        sender:            segment consumer, called once per segment in order
        store:             record store receiving the full text
        table_name:        table/collection holding the document record
        document_id:       identifier of the record to update
        segment_length:    maximum characters per segment
        additional_fields: extra column values written alongside the text
        extractor:         override the default markdown.md → text.txt priority
        progress_cb:       optional async observer for pipeline events
    """
    t0 = time.monotonic()
    extractor = extractor or ArchiveTextExtractor()

    # Extraction is synchronous; keep it off the event loop
    loop = asyncio.get_event_loop()
    plain_text = await loop.run_in_executor(None, extractor.extract, archive)
    if progress_cb:
        await progress_cb(
            PipelineProgressEvent(stage=PipelineStage.ARCHIVE_READ, char_count=len(plain_text))
        )

    segments_sent = await send_segments(
        plain_text,
        sender,
        segment_length,
        progress_cb=progress_cb,
    )

    persisted = await persist_extracted_text(
        store,
        table_name,
        document_id,
        plain_text,
        additional_fields=additional_fields,
        progress_cb=progress_cb,
    )

    logger.info(
        "Pipeline complete | doc=%s chars=%d segments=%d elapsed_ms=%.1f",
        document_id, persisted.char_count, segments_sent,
        (time.monotonic() - t0) * 1000,
    )

    return PipelineResult(
        plain_text=plain_text,
        char_count=persisted.char_count,
        segments_sent=segments_sent,
    )
