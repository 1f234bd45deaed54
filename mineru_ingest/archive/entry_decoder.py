"""Turn one ZipEntry into text."""

from __future__ import annotations

import logging
import zlib

from mineru_ingest.archive.central_directory import ZipEntry
from mineru_ingest.core.exceptions import (
    ArchiveBoundsExceeded,
    MalformedArchive,
    UnsupportedCompressionMethod,
)

logger = logging.getLogger(__name__)

METHOD_STORED  = 0
METHOD_DEFLATE = 8

# Negative wbits: raw deflate stream, no zlib/gzip framing
_RAW_DEFLATE_WBITS = -15


def decode_entry_content(entry: ZipEntry, archive) -> str:
    """
    Slice the entry payload out of `archive` and return it as UTF-8 text.

    Stored payloads are not checked against `uncompressed_size`; the header
    values are trusted.
    """
    start = entry.data_offset
    end   = start + entry.compressed_size

    if end > len(archive):
        raise ArchiveBoundsExceeded(f"Archive entry {entry.name} exceeds archive bounds.")

    payload = bytes(archive[start:end])

    if entry.compression_method == METHOD_STORED:
        return _decode_utf8(payload)

    if entry.compression_method == METHOD_DEFLATE:
        try:
            inflated = zlib.decompress(payload, _RAW_DEFLATE_WBITS)
        except zlib.error as exc:
            raise MalformedArchive(
                f"Archive entry {entry.name} could not be inflated: {exc}"
            ) from exc
        logger.debug(
            "Inflated | entry=%s compressed=%d inflated=%d",
            entry.name, len(payload), len(inflated),
        )
        return _decode_utf8(inflated)

    raise UnsupportedCompressionMethod(entry.compression_method)


def _decode_utf8(data: bytes) -> str:
    # utf-8-sig drops a leading BOM; malformed sequences become U+FFFD
    return data.decode("utf-8-sig", errors="replace")
