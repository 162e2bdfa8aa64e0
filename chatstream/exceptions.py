"""
Error taxonomy for streaming sessions.

Usage:
    from chatstream.exceptions import StreamTransportError

    try:
        text = await manager.stream_sse(...)
    except StreamTransportError as e:
        show_error(e.payload)

Malformed or unrecognized protocol lines are not errors: they are skipped
by the frame parser and never reach this module.
"""

from typing import Any


class ChatStreamError(Exception):
    """Base class for all chatstream errors."""


class StreamTransportError(ChatStreamError):
    """The transport signaled an error; the session was rejected.

    ``payload`` is the JSON-decoded error body when it could be parsed,
    otherwise the raw event, or ``None`` when no payload exists.
    """

    def __init__(self, payload: Any = None, message: str = "Stream transport error"):
        super().__init__(message)
        self.payload = payload


class UnknownAbortError(StreamTransportError):
    """The stream was aborted without a prior manual close."""

    def __init__(self):
        super().__init__(None, "Stream aborted unexpectedly")


class SessionActiveError(ChatStreamError):
    """A stream was started while another one is still running."""


class SessionNotStartedError(ChatStreamError):
    """The session was awaited before it was started."""
