from chatstream.exceptions import (
    ChatStreamError,
    SessionActiveError,
    StreamTransportError,
    UnknownAbortError,
)
from chatstream.streaming.fences import repair
from chatstream.streaming.frames import EventFrame, NamedEvent, parse_chunk
from chatstream.streaming.manager import StreamManager
from chatstream.streaming.session import StreamingSession, StreamState
from chatstream.surface import Position, TextBuffer, TextSurface
from chatstream.transport.sse import SSETransport

__all__ = [
    "ChatStreamError",
    "EventFrame",
    "NamedEvent",
    "Position",
    "SSETransport",
    "SessionActiveError",
    "StreamManager",
    "StreamState",
    "StreamTransportError",
    "StreamingSession",
    "TextBuffer",
    "TextSurface",
    "UnknownAbortError",
    "parse_chunk",
    "repair",
]
