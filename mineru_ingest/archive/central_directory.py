"""
ZIP Central Directory Reader
════════════════════════════

Walks the index at the tail of a ZIP archive and produces one ZipEntry per
record, in central-directory order.

Layout (all integers little-endian):

  ┌──────────────────────────┐
  │ local header + payload   │  × N     signature 0x04034b50, 30-byte fixed part
  ├──────────────────────────┤
  │ central directory record │  × N     signature 0x02014b50, 46-byte fixed part
  ├──────────────────────────┤
  │ end of central directory │  × 1     signature 0x06054b50, 22-byte fixed part
  │ (+ optional comment)     │
  └──────────────────────────┘

The EOCD record is located by searching backward from the last position it
could start at, because a variable-length comment may follow it.

Only the features MinerU archives use are supported: no ZIP64, no multi-disk,
no data-descriptor (streaming) entries.
"""

from __future__ import annotations

import logging
import struct
from dataclasses import dataclass

from mineru_ingest.archive.binary import read_u16_le, read_u32_le
from mineru_ingest.core.exceptions import MalformedArchive, UnsupportedArchiveFeature

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Record signatures and fixed sizes
# ---------------------------------------------------------------------------

SIG_EOCD = 0x06054B50   # end of central directory
SIG_CEN  = 0x02014B50   # central directory file header
SIG_LOC  = 0x04034B50   # local file header

_EOCD_MARKER = SIG_EOCD.to_bytes(4, "little")

EOCD_SIZE        = 22
CEN_HEADER_SIZE  = 46
LOC_HEADER_SIZE  = 30

FLAG_DATA_DESCRIPTOR = 0x08   # sizes/CRC follow the payload, unknown at header time


# ---------------------------------------------------------------------------
# Entry descriptor
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ZipEntry:
    """One central-directory record, resolved to its payload position."""
    name:               str
    compressed_size:    int
    uncompressed_size:  int
    compression_method: int   # 0 = stored, 8 = deflate
    data_offset:        int   # absolute offset of the payload in the archive
    is_directory:       bool


# ---------------------------------------------------------------------------
# Locator
# ---------------------------------------------------------------------------

def find_end_of_central_directory(archive) -> int:
    """Return the offset of the EOCD record closest to the end of `archive`."""
    last_start = len(archive) - EOCD_SIZE
    if last_start < 0:
        raise MalformedArchive("End of central directory not found.")

    # the match must start at or before last_start
    offset = bytes(archive).rfind(_EOCD_MARKER, 0, last_start + len(_EOCD_MARKER))
    if offset == -1:
        raise MalformedArchive("End of central directory not found.")
    return offset


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------

def read_zip_entries(archive) -> list[ZipEntry]:
    """
    Parse every central-directory record of `archive`.

    Raises:
        MalformedArchive:          missing EOCD, bad signature, or a record
                                   that runs past the end of the buffer.
        UnsupportedArchiveFeature: an entry written in streaming mode.
    """
    eocd_offset = find_end_of_central_directory(archive)

    try:
        total_entries = read_u16_le(archive, eocd_offset + 10)
        pointer       = read_u32_le(archive, eocd_offset + 16)

        entries: list[ZipEntry] = []
        for _ in range(total_entries):
            entry, pointer = _read_central_record(archive, pointer)
            entries.append(entry)
    except struct.error as exc:
        raise MalformedArchive("Central directory is truncated.") from exc

    logger.debug(
        "Central directory | eocd_offset=%d entries=%d",
        eocd_offset, len(entries),
    )
    return entries


def _read_central_record(archive, pointer: int) -> tuple[ZipEntry, int]:
    """Decode the record at `pointer`; return it with the next record's offset."""
    if read_u32_le(archive, pointer) != SIG_CEN:
        raise MalformedArchive("Invalid central directory signature.")

    general_purpose     = read_u16_le(archive, pointer + 8)
    compression_method  = read_u16_le(archive, pointer + 10)
    compressed_size     = read_u32_le(archive, pointer + 20)
    uncompressed_size   = read_u32_le(archive, pointer + 24)
    file_name_length    = read_u16_le(archive, pointer + 28)
    extra_field_length  = read_u16_le(archive, pointer + 30)
    comment_length      = read_u16_le(archive, pointer + 32)
    local_header_offset = read_u32_le(archive, pointer + 42)

    name_start = pointer + CEN_HEADER_SIZE
    name_end   = name_start + file_name_length
    if name_end > len(archive):
        raise MalformedArchive("Central directory file name exceeds archive bounds.")
    name = bytes(archive[name_start:name_end]).decode("utf-8", errors="replace")

    # local header is validated first: a broken header wins over the streaming flag
    data_offset = _calculate_data_offset(archive, local_header_offset)

    if general_purpose & FLAG_DATA_DESCRIPTOR:
        raise UnsupportedArchiveFeature("Streaming ZIP entries are not supported.")

    entry = ZipEntry(
        name=name,
        compressed_size=compressed_size,
        uncompressed_size=uncompressed_size,
        compression_method=compression_method,
        data_offset=data_offset,
        is_directory=name.endswith("/"),
    )
    return entry, name_end + extra_field_length + comment_length


def _calculate_data_offset(archive, local_header_offset: int) -> int:
    """
    Payload start for the entry whose local header sits at `local_header_offset`.
    Name and extra lengths come from the local header: its extra field may
    differ in length from the central-directory copy.
    """
    if read_u32_le(archive, local_header_offset) != SIG_LOC:
        raise MalformedArchive("Invalid local file header signature.")

    file_name_length   = read_u16_le(archive, local_header_offset + 26)
    extra_field_length = read_u16_le(archive, local_header_offset + 28)

    return local_header_offset + LOC_HEADER_SIZE + file_name_length + extra_field_length
