"""Shared fixtures for streaming tests."""

import orjson
import pytest

from chatstream.streaming.frames import NamedEvent
from chatstream.streaming.session import StreamingSession
from chatstream.surface import Position, TextBuffer


class FakeTransport:
    """Transport double: tests deliver events by hand."""

    def __init__(self, *args, **kwargs):
        self.args = args
        self.kwargs = kwargs
        self.listeners = {}
        self.streamed = False
        self.close_calls = 0

    def add_event_listener(self, name, listener):
        self.listeners.setdefault(name, []).append(listener)

    def stream(self):
        self.streamed = True

    def close(self):
        self.close_calls += 1

    def emit(self, name, data=""):
        for listener in self.listeners.get(name, []):
            listener(NamedEvent(name=name, data=data))

    def emit_delta(self, content):
        payload = {"choices": [{"index": 0, "delta": {"content": content}}]}
        self.emit("message", orjson.dumps(payload).decode())


def delta_chunk(content):
    """Raw SSE chunk carrying a chat completion delta."""
    payload = {"choices": [{"index": 0, "delta": {"content": content}}]}
    return "data: " + orjson.dumps(payload).decode()


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def buffer():
    return TextBuffer("# Chat\n\nHello?", cursor=Position(2, 6))


@pytest.fixture
def notices():
    return []


@pytest.fixture
def session(buffer, transport, notices):
    return StreamingSession(buffer, transport, notify=notices.append)
