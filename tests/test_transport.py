"""Tests for the httpx-backed SSE transport."""

import asyncio

import httpx
import orjson
import pytest

from chatstream.exceptions import StreamTransportError
from chatstream.streaming.frames import NamedEvent
from chatstream.streaming.session import StreamingSession, StreamState
from chatstream.surface import TextBuffer
from chatstream.transport.sse import SSETransport
from tests.conftest import delta_chunk

URL = "https://api.example.test/v1/chat/completions"
EVENT_NAMES = ("open", "message", "error", "abort")


def make_client(handler):
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def sse_response(*chunks):
    body = "".join(chunk + "\n\n" for chunk in chunks)
    return httpx.Response(200, headers={"content-type": "text/event-stream"}, content=body.encode())


def record_events(transport):
    events = []
    for name in EVENT_NAMES:
        transport.add_event_listener(name, events.append)
    return events


@pytest.mark.asyncio
async def test_events_dispatched_in_order():
    client = make_client(lambda request: sse_response(delta_chunk("Hi"), "data: [DONE]"))
    transport = SSETransport(URL, body=b"{}", client=client)
    events = record_events(transport)

    await transport.stream()
    await asyncio.sleep(0)

    assert [e.name for e in events] == ["open", "message", "message", "abort"]
    assert events[2].data == "[DONE]"
    assert transport.closed
    await client.aclose()


@pytest.mark.asyncio
async def test_request_uses_method_headers_and_body():
    seen = {}

    def handler(request):
        seen["method"] = request.method
        seen["auth"] = request.headers["authorization"]
        seen["body"] = request.content
        return sse_response("data: [DONE]")

    client = make_client(handler)
    transport = SSETransport(
        URL, headers={"Authorization": "Bearer sk-test"}, body=b'{"stream": true}', client=client
    )
    await transport.stream()

    assert seen == {"method": "POST", "auth": "Bearer sk-test", "body": b'{"stream": true}'}
    await client.aclose()


@pytest.mark.asyncio
async def test_error_status_dispatches_error_with_body():
    client = make_client(lambda request: httpx.Response(429, content=b'{"message": "rate limited"}'))
    transport = SSETransport(URL, client=client)
    events = record_events(transport)

    await transport.stream()

    assert events[0] == NamedEvent(name="error", data='{"message": "rate limited"}')
    assert "open" not in [e.name for e in events]
    await client.aclose()


@pytest.mark.asyncio
async def test_connection_error_dispatches_error():
    def handler(request):
        raise httpx.ConnectError("connection refused")

    client = make_client(handler)
    transport = SSETransport(URL, client=client)
    events = record_events(transport)

    await transport.stream()

    assert events[0].name == "error"
    assert "connection refused" in events[0].data
    await client.aclose()


@pytest.mark.asyncio
async def test_injected_parser_is_used():
    client = make_client(lambda request: sse_response("data: one", "data: two"))
    seen = []

    def parser(chunk):
        seen.append(chunk)
        return None

    transport = SSETransport(URL, client=client, parse_chunk=parser)
    await transport.stream()

    assert seen == ["data: one", "data: two"]
    await client.aclose()


@pytest.mark.asyncio
async def test_close_is_idempotent_and_aborts_once():
    client = make_client(lambda request: sse_response("data: [DONE]"))
    transport = SSETransport(URL, client=client)
    events = record_events(transport)

    transport.close()
    transport.close()
    await asyncio.sleep(0)

    assert events == [NamedEvent(name="abort")]
    await client.aclose()


@pytest.mark.asyncio
async def test_session_over_http_stream():
    chunks = [
        'data: {"choices": [{"delta": {"role": "assistant"}}]}',
        delta_chunk("Hello"),
        delta_chunk(" world"),
        "data: [DONE]",
    ]
    client = make_client(lambda request: sse_response(*chunks))
    buffer = TextBuffer("Q")
    transport = SSETransport(URL, client=client)
    session = StreamingSession(buffer, transport)

    assert await session.start() == "Hello world"
    assert buffer.text.endswith("role::assistant\n\nHello world")
    # Delivery stops once the session has closed the transport
    await transport.stream()
    assert transport.closed
    await client.aclose()


@pytest.mark.asyncio
async def test_session_rejects_on_http_error():
    body = orjson.dumps({"error": {"message": "bad key"}})
    client = make_client(lambda request: httpx.Response(401, content=body))
    session = StreamingSession(TextBuffer(), SSETransport(URL, client=client))

    with pytest.raises(StreamTransportError) as exc_info:
        await session.start()
    assert exc_info.value.payload == {"error": {"message": "bad key"}}
    await client.aclose()


class RefusingBuffer(TextBuffer):
    """Host document that rejects every edit."""

    def replace_range(self, text, start, end=None):
        raise RuntimeError("host refused edit")


@pytest.mark.asyncio
async def test_session_rejects_when_listener_fails():
    client = make_client(lambda request: sse_response(delta_chunk("Hi"), "data: [DONE]"))
    transport = SSETransport(URL, client=client)
    session = StreamingSession(RefusingBuffer("Q"), transport)

    with pytest.raises(StreamTransportError) as exc_info:
        await asyncio.wait_for(session.start(), 1.0)
    assert exc_info.value.payload == NamedEvent(name="error", data="host refused edit")
    assert session.settled
    await transport.stream()
    assert transport.closed
    await client.aclose()


@pytest.mark.asyncio
async def test_session_rejects_on_invalid_url():
    transport = SSETransport("http://exa mple.test:abc/")
    session = StreamingSession(TextBuffer(), transport)

    with pytest.raises(StreamTransportError) as exc_info:
        await asyncio.wait_for(session.start(), 1.0)
    assert exc_info.value.payload.name == "error"
    assert session.state is StreamState.ERRORED
    # The reader task finished cleanly instead of dying with the error
    await transport.stream()


@pytest.mark.asyncio
async def test_session_rejects_on_stream_error():
    def parser(chunk):
        raise httpx.StreamError("stream consumed twice")

    client = make_client(lambda request: sse_response("data: [DONE]"))
    transport = SSETransport(URL, client=client, parse_chunk=parser)
    session = StreamingSession(TextBuffer(), transport)

    with pytest.raises(StreamTransportError) as exc_info:
        await asyncio.wait_for(session.start(), 1.0)
    assert exc_info.value.payload == NamedEvent(name="error", data="stream consumed twice")
    await transport.stream()
    await client.aclose()
