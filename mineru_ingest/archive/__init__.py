"""
Archive Reader Package
══════════════════════

In-memory ZIP reader for MinerU result archives.

Modules
───────
  binary.py             little-endian integer reads
  central_directory.py  EOCD locator + central-directory parser → ZipEntry list
  entry_decoder.py      stored / raw-deflate payload → UTF-8 text
"""

from mineru_ingest.archive.central_directory import (
    ZipEntry,
    find_end_of_central_directory,
    read_zip_entries,
)
from mineru_ingest.archive.entry_decoder import decode_entry_content

__all__ = [
    "ZipEntry",
    "find_end_of_central_directory",
    "read_zip_entries",
    "decode_entry_content",
]
