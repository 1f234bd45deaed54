"""
Plain Text Extractor
════════════════════

Builds the plain text of a MinerU result archive.

MinerU ships several renditions of the same document; only two carry text
we index:

  priority 0   markdown.md   layout-aware markdown
  priority 1   text.txt      plain OCR text

Selection flow:
  1.  Parse the central directory (directories skipped)
  2.  Match the final path component, case-insensitively, against the
      prioritized filenames; anything else is ignored
  3.  Decode + trim every match, tagging it with (priority, discovery order)
  4.  Sort by (priority, order) and join non-empty fragments with "\n\n"

Ordering never depends on where an entry sits in the archive: markdown
always precedes plain text, and same-name files nested in different
directories keep central-directory order.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence

from mineru_ingest.archive import decode_entry_content, read_zip_entries
from mineru_ingest.core.exceptions import EmptyExtractedText, InvalidInput, NoMatchingContent

logger = logging.getLogger(__name__)

PRIORITISED_ARCHIVE_FILES: tuple[str, ...] = ("markdown.md", "text.txt")

FRAGMENT_SEPARATOR = "\n\n"


@dataclass(frozen=True)
class CollectedFragment:
    priority: int   # index into the prioritized filenames (lower first)
    order:    int   # 1-based discovery counter, tie-break within a priority
    content:  str   # decoded, trimmed text


class ArchiveTextExtractor:
    """
    Stateless extractor: safe to share, and to run on different archives
    concurrently.

    Usage:
        extractor = ArchiveTextExtractor()
        text = extractor.extract(archive_bytes)
    """

    def __init__(self, prioritized_files: Sequence[str] = PRIORITISED_ARCHIVE_FILES) -> None:
        self._prioritized_files = tuple(name.lower() for name in prioritized_files)

    def extract(self, archive) -> str:
        """
        Return the concatenated plain text of `archive` (any bytes-like object).

        Raises:
            InvalidInput:       `archive` is not bytes-like.
            NoMatchingContent:  no prioritized filename present.
            EmptyExtractedText: every matching file was blank.
            Any archive error from the reader, unchanged.
        """
        view = _as_byte_view(archive)
        fragments = self.collect_fragments(view)

        if not fragments:
            raise NoMatchingContent(
                "MinerU archive did not contain "
                + " nor ".join(self._prioritized_files) + "."
            )

        fragments.sort(key=lambda fragment: (fragment.priority, fragment.order))
        combined = FRAGMENT_SEPARATOR.join(
            fragment.content for fragment in fragments if fragment.content
        )

        if not combined.strip():
            raise EmptyExtractedText("MinerU archive plain text is empty.")

        logger.info(
            "Extraction | archive_bytes=%d fragments=%d chars=%d",
            len(view), len(fragments), len(combined),
        )
        return combined

    def collect_fragments(self, archive) -> list[CollectedFragment]:
        """Decode every prioritized entry, in central-directory order."""
        collected: list[CollectedFragment] = []
        order = 0

        for entry in read_zip_entries(archive):
            if entry.is_directory:
                continue

            filename = entry.name.rsplit("/", 1)[-1]
            if not filename:
                continue

            priority = self._priority_of(filename)
            if priority is None:
                continue

            order += 1
            content = decode_entry_content(entry, archive).strip()
            collected.append(CollectedFragment(priority=priority, order=order, content=content))
            logger.debug(
                "Matched entry | name=%s priority=%d order=%d chars=%d",
                entry.name, priority, order, len(content),
            )

        return collected

    def _priority_of(self, filename: str) -> int | None:
        try:
            return self._prioritized_files.index(filename.lower())
        except ValueError:
            return None


def extract_plain_text(archive) -> str:
    """Extract with the default markdown.md → text.txt priority."""
    return ArchiveTextExtractor().extract(archive)


def _as_byte_view(archive) -> memoryview:
    if isinstance(archive, str):
        raise InvalidInput("Archive must be bytes-like, not str.")
    try:
        return memoryview(archive).cast("B")
    except TypeError as exc:
        raise InvalidInput(
            f"Archive must be bytes-like, got {type(archive).__name__}."
        ) from exc
