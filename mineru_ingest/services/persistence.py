"""
Extracted Text Persistence

Writes the full plain text onto the source document record:

  UPDATE <table>
     SET extracted_text = :text,
         extracted_text_char_count = :count,
         <additional fields ...>
   WHERE id = :document_id
  RETURNING id

Outcomes:
  - store raises         → PersistenceError (carries the store's message)
  - zero rows returned   → NoRowsUpdated (the document id matched nothing)
  - otherwise            → PersistResult(record_ids, char_count)

The store is injected through the RecordStore protocol; SqlAlchemyRecordStore
is the production implementation on top of an AsyncSession.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Protocol

from sqlalchemy import column, table, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from mineru_ingest.core.exceptions import NoRowsUpdated, PersistenceError
from mineru_ingest.schemas.archives import PipelineProgressEvent, PipelineStage
from mineru_ingest.services.sender import ProgressCallback

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Store protocol + result
# ---------------------------------------------------------------------------

class RecordStore(Protocol):
    async def update(self, table_name: str, record_id: Any, values: dict[str, Any]) -> list[Any]:
        """Apply `values` to the record; return the ids of affected records."""
        ...


@dataclass(frozen=True)
class PersistResult:
    record_ids: list[Any]
    char_count: int


# ---------------------------------------------------------------------------
# SQLAlchemy implementation
# ---------------------------------------------------------------------------

class SqlAlchemyRecordStore:
    """
    RecordStore over an AsyncSession using lightweight Core constructs, so no
    ORM model is needed for the documents table. Transaction boundaries belong
    to the session owner (see db.session.get_db).
    """

    def __init__(self, session: AsyncSession, id_column: str = "id") -> None:
        self._session   = session
        self._id_column = id_column

    async def update(self, table_name: str, record_id: Any, values: dict[str, Any]) -> list[Any]:
        schema, _, name = table_name.rpartition(".")
        target = table(
            name,
            column(self._id_column),
            *(column(key) for key in values),
            schema=schema or None,
        )
        id_col = target.c[self._id_column]

        stmt = (
            update(target)
            .where(id_col == record_id)
            .values(**values)
            .returning(id_col)
        )

        try:
            result = await self._session.execute(stmt)
        except SQLAlchemyError as exc:
            raise PersistenceError(str(exc)) from exc

        return list(result.scalars().all())


# ---------------------------------------------------------------------------
# Persistence operation
# ---------------------------------------------------------------------------

async def persist_extracted_text(
    store:             RecordStore,
    table_name:        str,
    document_id:       Any,
    plain_text:        str,
    additional_fields: dict[str, Any] | None = None,
    progress_cb:       ProgressCallback | None = None,
) -> PersistResult:
    """Store `plain_text` and its character count on document `document_id`."""
    char_count = len(plain_text)
    update_payload: dict[str, Any] = {
        "extracted_text":            plain_text,
        "extracted_text_char_count": char_count,
        **(additional_fields or {}),
    }

    logger.info("Persist | table=%s doc=%s chars=%d", table_name, document_id, char_count)

    try:
        record_ids = await store.update(table_name, document_id, update_payload)
    except PersistenceError:
        logger.error("Failed to update document %s with extracted text.", document_id)
        raise
    except Exception as exc:
        logger.error(
            "Failed to update document %s with extracted text: %s", document_id, exc,
        )
        raise PersistenceError(
            str(exc) or "Unknown error when updating the record store."
        ) from exc

    if not record_ids:
        raise NoRowsUpdated(f"Record store update did not modify any document (id={document_id}).")

    logger.info(
        "Document %s updated with %d characters of extracted text.",
        record_ids[0], char_count,
    )

    if progress_cb:
        await progress_cb(
            PipelineProgressEvent(stage=PipelineStage.PERSISTED, char_count=char_count)
        )

    return PersistResult(record_ids=record_ids, char_count=char_count)
