"""Unit tests for the HTTP event dispatcher."""

import json

import httpx
import pytest

from chronos.commons.telemetry import set_correlation_id
from chronos.domain.pipeline import PipelineEvent
from chronos.infrastructure.events.base import EventDispatchError
from chronos.infrastructure.events.http_dispatcher import HttpEventDispatcher


def _dispatcher(handler) -> HttpEventDispatcher:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return HttpEventDispatcher(
        base_url="http://queue.local/",
        event_key="test-key",
        client=client,
    )


class TestHttpEventDispatcher:
    """Tests for HttpEventDispatcher."""

    async def test_send_posts_event(self):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"ids": ["evt-1"], "status": 200})

        set_correlation_id("corr-1")
        dispatcher = _dispatcher(handler)

        ids = await dispatcher.send(
            PipelineEvent.transcription_completed("video-1", "creator-1", "text")
        )

        assert ids == ["evt-1"]
        request = seen[0]
        assert str(request.url) == "http://queue.local/e/test-key"
        assert request.headers["X-Correlation-ID"] == "corr-1"
        body = json.loads(request.content)
        assert len(body) == 1
        assert body[0]["name"] == "video/transcription.completed"
        assert body[0]["data"]["video_id"] == "video-1"
        assert body[0]["data"]["skip_if_exists"] is False
        assert len(body[0]["id"]) == 32
        await dispatcher.close()

    async def test_send_many_single_request(self):
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(json.loads(request.content))
            return httpx.Response(200, json={"ids": ["a", "b"]})

        dispatcher = _dispatcher(handler)

        ids = await dispatcher.send_many(
            [
                PipelineEvent.chunks_requested("v1", "c1", "t"),
                PipelineEvent.embeddings_requested("v2", "c1", "t"),
            ]
        )

        assert ids == ["a", "b"]
        assert len(calls) == 1
        assert [e["name"] for e in calls[0]] == [
            "video/chunks.requested",
            "video/embeddings.requested",
        ]

    async def test_send_many_empty(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise AssertionError("no request expected")

        assert await _dispatcher(handler).send_many([]) == []

    async def test_rejected_event(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(401, json={"error": "bad key"})

        dispatcher = _dispatcher(handler)

        with pytest.raises(EventDispatchError) as exc_info:
            await dispatcher.send(PipelineEvent.transcribe_requested("v1", "c1", None))

        assert exc_info.value.event_name == "video/transcribe.requested"

    async def test_unreachable_queue(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        dispatcher = _dispatcher(handler)

        with pytest.raises(EventDispatchError, match="connection refused"):
            await dispatcher.send(PipelineEvent.transcribe_requested("v1", "c1", None))
