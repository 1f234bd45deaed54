"""
Unit Tests — Segment delivery
═════════════════════════════
Coverage targets:
  ✅ segments delivered in order with 1-based index and constant total
  ✅ next send not issued before the previous one completes
  ✅ sync and async senders both accepted
  ✅ progress event per delivered segment
  ✅ first sender failure aborts the loop, error propagates unchanged
  ✅ empty / non-string text → InvalidInput, sender never called
  ✅ HttpSegmentSender: JSON body, bearer header, HTTP + network errors
"""

from __future__ import annotations

import asyncio
import json
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from mineru_ingest.core.exceptions import (
    InvalidConfiguration,
    InvalidInput,
    SegmentDeliveryError,
)
from mineru_ingest.schemas.archives import PipelineStage, SegmentPayload
from mineru_ingest.services.sender import HttpSegmentSender, send_segments


@pytest.mark.unit
@pytest.mark.pipeline
class TestSendSegments:

    async def test_payloads_in_order(self, recording_sender):
        sent = await send_segments("abcdefghij", recording_sender, 4)

        assert sent == 3
        assert [(p.content, p.index, p.total) for p in recording_sender.payloads] == [
            ("abcd", 1, 3),
            ("efgh", 2, 3),
            ("ij",   3, 3),
        ]

    async def test_sends_are_strictly_sequential(self):
        in_flight = 0
        peak      = 0

        async def slow_sender(payload):
            nonlocal in_flight, peak
            in_flight += 1
            peak = max(peak, in_flight)
            await asyncio.sleep(0)
            in_flight -= 1

        await send_segments("x" * 10, slow_sender, 2)
        assert peak == 1

    async def test_sync_sender_accepted(self):
        received = []
        sent = await send_segments("abc", received.append, 1)

        assert sent == 3
        assert [p.content for p in received] == ["a", "b", "c"]

    async def test_crlf_normalised_in_payloads(self, recording_sender):
        await send_segments("a\r\nb", recording_sender, 10)
        assert recording_sender.payloads[0].content == "a\nb"

    async def test_progress_event_per_segment(self, recording_sender):
        progress = AsyncMock()
        await send_segments("abcde", recording_sender, 2, progress_cb=progress)

        events = [c.args[0] for c in progress.await_args_list]
        assert [e.stage for e in events] == [PipelineStage.SEGMENT_SENT] * 3
        assert [(e.index, e.total, e.char_count) for e in events] == [
            (1, 3, 2), (2, 3, 2), (3, 3, 1),
        ]

    async def test_failure_aborts_remaining_sends(self):
        sender = AsyncMock(side_effect=[None, RuntimeError("consumer down"), None])

        with pytest.raises(RuntimeError, match="consumer down"):
            await send_segments("abcdef", sender, 2)

        assert sender.await_count == 2

    async def test_empty_text_rejected_before_sending(self):
        sender = MagicMock()
        with pytest.raises(InvalidInput, match="empty"):
            await send_segments("", sender, 5)
        sender.assert_not_called()

    @pytest.mark.parametrize("text", [None, 42, b"bytes"])
    async def test_non_string_rejected(self, text):
        sender = MagicMock()
        with pytest.raises(InvalidInput):
            await send_segments(text, sender, 5)
        sender.assert_not_called()

    async def test_invalid_length_rejected_before_sending(self):
        sender = MagicMock()
        with pytest.raises(InvalidConfiguration):
            await send_segments("abc", sender, 0)
        sender.assert_not_called()


@pytest.mark.unit
@pytest.mark.pipeline
class TestHttpSegmentSender:

    @staticmethod
    def _client(handler) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(handler))

    async def test_posts_payload_as_json(self):
        captured = []

        def handler(request: httpx.Request) -> httpx.Response:
            captured.append(request)
            return httpx.Response(204)

        async with self._client(handler) as client:
            sender = HttpSegmentSender("https://consumer.test/segments", client=client)
            await sender(SegmentPayload(content="chunk", index=1, total=2))

        (request,) = captured
        assert request.method == "POST"
        assert str(request.url) == "https://consumer.test/segments"
        assert json.loads(request.content) == {"content": "chunk", "index": 1, "total": 2}
        assert "authorization" not in request.headers

    async def test_bearer_token_header(self):
        captured = []

        def handler(request: httpx.Request) -> httpx.Response:
            captured.append(request)
            return httpx.Response(200)

        async with self._client(handler) as client:
            sender = HttpSegmentSender("https://consumer.test/s", token="s3cret", client=client)
            await sender(SegmentPayload(content="x", index=1, total=1))

        assert captured[0].headers["authorization"] == "Bearer s3cret"

    async def test_http_error_status(self):
        async with self._client(lambda request: httpx.Response(500)) as client:
            sender = HttpSegmentSender("https://consumer.test/s", client=client)
            with pytest.raises(SegmentDeliveryError, match="Segment 2/3 rejected with HTTP 500"):
                await sender(SegmentPayload(content="x", index=2, total=3))

    async def test_network_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        async with self._client(handler) as client:
            sender = HttpSegmentSender("https://consumer.test/s", client=client)
            with pytest.raises(SegmentDeliveryError, match="could not be delivered"):
                await sender(SegmentPayload(content="x", index=1, total=1))

    def test_missing_url(self):
        with pytest.raises(InvalidConfiguration):
            HttpSegmentSender("")

    async def test_http_failure_stops_delivery_loop(self):
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(json.loads(request.content)["index"])
            return httpx.Response(503 if len(calls) == 2 else 200)

        async with self._client(handler) as client:
            sender = HttpSegmentSender("https://consumer.test/s", client=client)
            with pytest.raises(SegmentDeliveryError):
                await send_segments("abcdef", sender, 2)

        assert calls == [1, 2]
