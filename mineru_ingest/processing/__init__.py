"""
Text Processing Package
═══════════════════════

  Archive bytes → Plain Text Extraction → Fixed-Length Segmentation

Modules
───────
  extractor.py  prioritized markdown.md / text.txt extraction from a MinerU archive
  segmenter.py  deterministic fixed-length chunking of the extracted text

Both are pure and stateless; nothing here performs I/O.
"""

from mineru_ingest.processing.extractor import (
    PRIORITISED_ARCHIVE_FILES,
    ArchiveTextExtractor,
    CollectedFragment,
    extract_plain_text,
)
from mineru_ingest.processing.segmenter import DEFAULT_SEGMENT_LENGTH, build_segments

__all__ = [
    "PRIORITISED_ARCHIVE_FILES",
    "ArchiveTextExtractor",
    "CollectedFragment",
    "extract_plain_text",
    "DEFAULT_SEGMENT_LENGTH",
    "build_segments",
]
