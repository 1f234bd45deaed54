"""
Pipeline Services
═════════════════

  sender.py       sequential segment delivery + httpx webhook sender
  persistence.py  extracted-text update against an injected record store
  pipeline.py     extraction → delivery → persistence, fail-fast

Every collaborator is injected; nothing here reads global settings.
"""

from mineru_ingest.services.persistence import (
    PersistResult,
    RecordStore,
    SqlAlchemyRecordStore,
    persist_extracted_text,
)
from mineru_ingest.services.pipeline import PipelineResult, process_archive_and_persist
from mineru_ingest.services.sender import HttpSegmentSender, send_segments

__all__ = [
    "PersistResult",
    "RecordStore",
    "SqlAlchemyRecordStore",
    "persist_extracted_text",
    "PipelineResult",
    "process_archive_and_persist",
    "HttpSegmentSender",
    "send_segments",
]
