"""
Event router: maps transport events to semantic session actions.

The router is pure. It reads the session's ``manual_close`` flag but
never mutates session state; the session applies the returned action.
"""

import logging
from dataclasses import dataclass
from typing import Any, Optional, Union

import orjson

from chatstream.streaming.frames import NamedEvent

logger = logging.getLogger(__name__)

# Constants
DONE_SENTINEL = "[DONE]"


@dataclass(frozen=True)
class OpenInsertedHeader:
    """Connection opened; insert the role header and re-anchor."""


@dataclass(frozen=True)
class AppendDelta:
    """Incremental text fragment to stream into the document."""

    text: str


@dataclass(frozen=True)
class Terminal:
    """Terminal sentinel received; finalize the document."""


@dataclass(frozen=True)
class TransportError:
    """Server or network error; reject with ``payload``."""

    payload: Any = None
    unknown_abort: bool = False


@dataclass(frozen=True)
class ManualAbort:
    """Abort requested by the caller; resolve with accumulated text."""


Action = Union[OpenInsertedHeader, AppendDelta, Terminal, TransportError, ManualAbort]

TERMINAL_ACTIONS = (Terminal, TransportError, ManualAbort)


def is_terminal(action: Optional[Action]) -> bool:
    return isinstance(action, TERMINAL_ACTIONS)


def extract_delta(payload: Any) -> Optional[str]:
    """Extract ``choices[0].delta.content`` from a chat completion chunk."""
    try:
        content = payload["choices"][0]["delta"].get("content")
    except (KeyError, IndexError, TypeError, AttributeError):
        return None
    return content if isinstance(content, str) else None


def _route_message(event: NamedEvent) -> Optional[Action]:
    if event.data == DONE_SENTINEL:
        return Terminal()

    try:
        payload = orjson.loads(event.data)
    except orjson.JSONDecodeError as e:
        logger.debug(f"Skipping non-JSON message payload: {e}")
        return None

    text = extract_delta(payload)
    # Role-only and finish chunks carry no content
    if not text:
        return None
    return AppendDelta(text)


def _route_error(event: NamedEvent) -> Action:
    try:
        return TransportError(orjson.loads(event.data))
    except orjson.JSONDecodeError:
        return TransportError(event)


def route(event: NamedEvent, manual_close: bool = False) -> Optional[Action]:
    """
    Map a transport event to a session action.

    Args:
        event: Named event delivered by the transport
        manual_close: Whether the caller requested the stream to stop

    Returns:
        The action to apply, or None when the event carries nothing to do
    """
    if event.name == "open":
        return OpenInsertedHeader()
    if event.name == "message":
        return _route_message(event)
    if event.name == "error":
        return _route_error(event)
    if event.name == "abort":
        if manual_close:
            return ManualAbort()
        return TransportError(None, unknown_abort=True)

    logger.debug(f"Ignoring unrecognized event '{event.name}'")
    return None
