"""
Fixed-length text segmentation.

The downstream consumer accepts bounded payloads, so the extracted text is
cut into consecutive, non-overlapping windows. No semantic boundaries are
respected: concatenating the segments always reproduces the LF-normalized
input exactly.
"""

from __future__ import annotations

import math
import numbers

from mineru_ingest.core.exceptions import InvalidConfiguration, InvalidInput

DEFAULT_SEGMENT_LENGTH = 8000


def build_segments(text: str, max_segment_length: int = DEFAULT_SEGMENT_LENGTH) -> list[str]:
    """
    Split `text` into windows of at most `max_segment_length` characters.

    CRLF line endings are normalized to LF first. A fractional length is
    floored. Empty text yields no segments.
    """
    if not isinstance(text, str):
        raise InvalidInput("Segment generator expects a plain string input.")

    step = _validate_segment_length(max_segment_length)
    normalised = text.replace("\r\n", "\n")

    return [
        normalised[index:index + step]
        for index in range(0, len(normalised), step)
    ]


def _validate_segment_length(value) -> int:
    if (
        isinstance(value, bool)
        or not isinstance(value, numbers.Real)
        or not math.isfinite(value)
        or value <= 0
    ):
        raise InvalidConfiguration("max_segment_length must be a positive number.")

    step = math.floor(value)
    if step < 1:
        raise InvalidConfiguration("max_segment_length must be at least one character.")
    return step
