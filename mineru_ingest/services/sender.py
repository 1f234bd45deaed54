"""
Segment Delivery

Cuts the extracted text into segments and hands them to the consumer one at
a time:

  for i in 1..N:
      await sender(SegmentPayload(content, index=i, total=N))
      └─ segment i is acknowledged before segment i+1 is issued

Sends are never dispatched concurrently, so a consumer can rely on receiving
segment k before k+1. The first failing send aborts the loop; there is no
retry and no partial-success report.

The sender is injected. Any callable works; if it returns an awaitable the
loop awaits it. HttpSegmentSender is the production implementation (JSON
POST to a webhook via httpx).
"""

from __future__ import annotations

import inspect
import logging
from typing import Awaitable, Callable, Union

import httpx

from mineru_ingest.core.exceptions import (
    InvalidConfiguration,
    InvalidInput,
    SegmentDeliveryError,
)
from mineru_ingest.processing.segmenter import DEFAULT_SEGMENT_LENGTH, build_segments
from mineru_ingest.schemas.archives import PipelineProgressEvent, PipelineStage, SegmentPayload

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Callable type aliases
# ---------------------------------------------------------------------------

# Signature: (payload) -> None | Awaitable[None]
SegmentSender = Callable[[SegmentPayload], Union[Awaitable[None], None]]

# Signature: async (event) -> None
ProgressCallback = Callable[[PipelineProgressEvent], Awaitable[None]]


# ---------------------------------------------------------------------------
# Sequential delivery loop
# ---------------------------------------------------------------------------

async def send_segments(
    text:               str,
    sender:             SegmentSender,
    max_segment_length: int = DEFAULT_SEGMENT_LENGTH,
    progress_cb:        ProgressCallback | None = None,
) -> int:
    """
    Deliver `text` to `sender` segment by segment, strictly in order.

    Returns:
        Number of segments sent.

    Raises:
        InvalidInput:         `text` is not a str, or is empty.
        InvalidConfiguration: `max_segment_length` is not a positive number.
        Whatever `sender` raises, unchanged.
    """
    if not isinstance(text, str):
        raise InvalidInput("Segment delivery expects plain string text.")

    char_count = len(text)
    logger.info("Segment delivery received %d characters of plain text.", char_count)

    if char_count == 0:
        raise InvalidInput("Segment delivery cannot send empty text.")

    segments = build_segments(text, max_segment_length)
    total = len(segments)

    for position, content in enumerate(segments, start=1):
        payload = SegmentPayload(content=content, index=position, total=total)

        result = sender(payload)
        if inspect.isawaitable(result):
            await result

        logger.info("Segment %d/%d delivered", payload.index, payload.total)

        if progress_cb:
            await progress_cb(
                PipelineProgressEvent(
                    stage=PipelineStage.SEGMENT_SENT,
                    char_count=len(content),
                    index=payload.index,
                    total=payload.total,
                )
            )

    return total


# ---------------------------------------------------------------------------
# HTTP webhook sender
# ---------------------------------------------------------------------------

class HttpSegmentSender:
    """
    POSTs each SegmentPayload as JSON to a webhook.

    Constructor args:
        url     : consumer endpoint
        token   : optional bearer token
        timeout : per-request timeout (seconds)
        client  : optional shared httpx.AsyncClient (tests inject a
                  MockTransport-backed client here)

    Usage:
        sender = HttpSegmentSender(settings.segment_webhook_url)
        await send_segments(text, sender)
    """

    def __init__(
        self,
        url:     str,
        token:   str = "",
        timeout: float = 30.0,
        client:  httpx.AsyncClient | None = None,
    ) -> None:
        if not url:
            raise InvalidConfiguration("Segment webhook URL is not configured.")
        self._url     = url
        self._timeout = timeout
        self._client  = client
        self._headers = {"Content-Type": "application/json"}
        if token:
            self._headers["Authorization"] = f"Bearer {token}"

    async def __call__(self, payload: SegmentPayload) -> None:
        body = payload.model_dump()
        try:
            if self._client is not None:
                resp = await self._client.post(self._url, json=body, headers=self._headers)
            else:
                async with httpx.AsyncClient(timeout=self._timeout) as http:
                    resp = await http.post(self._url, json=body, headers=self._headers)
            resp.raise_for_status()
        except httpx.HTTPStatusError as exc:
            logger.error(
                "Segment delivery rejected | segment=%d/%d status=%d",
                payload.index, payload.total, exc.response.status_code,
            )
            raise SegmentDeliveryError(
                f"Segment {payload.index}/{payload.total} rejected with "
                f"HTTP {exc.response.status_code}."
            ) from exc
        except httpx.RequestError as exc:
            logger.error(
                "Segment delivery network error | segment=%d/%d error=%s",
                payload.index, payload.total, exc,
            )
            raise SegmentDeliveryError(
                f"Segment {payload.index}/{payload.total} could not be delivered: {exc}"
            ) from exc
