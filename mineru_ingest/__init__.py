"""
MinerU Archive Ingest

  archive bytes → central directory → markdown.md / text.txt → plain text
                → ordered fixed-length segments → consumer
                → extracted_text column on the document record
"""

from mineru_ingest.processing.extractor import ArchiveTextExtractor, extract_plain_text
from mineru_ingest.processing.segmenter import build_segments
from mineru_ingest.services.pipeline import PipelineResult, process_archive_and_persist

__all__ = [
    "ArchiveTextExtractor",
    "extract_plain_text",
    "build_segments",
    "PipelineResult",
    "process_archive_and_persist",
]
