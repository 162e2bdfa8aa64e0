"""
Streaming session state machine.

A session is driven entirely by transport events. Each handler runs to
completion before the next event is delivered; there is no background
work of its own. The completion future is settled exactly once, by the
first terminal action, and every event after that is discarded.

States:
    IDLE -> OPEN -> STREAMING -> CLOSED | ERRORED | ABORTED
    CLOSING is entered when the caller cancels and lasts until the
    transport delivers the matching abort event; any other event in that
    state is dropped.
"""

import asyncio
import logging
from enum import Enum
from typing import Callable, Optional

from chatstream.exceptions import (
    SessionNotStartedError,
    StreamTransportError,
    UnknownAbortError,
)
from chatstream.streaming.cursor import CursorTracker
from chatstream.streaming.frames import NamedEvent
from chatstream.streaming.router import (
    Action,
    AppendDelta,
    ManualAbort,
    OpenInsertedHeader,
    Terminal,
    TransportError,
    route,
)
from chatstream.surface.base import TextSurface
from chatstream.transport.base import Transport

logger = logging.getLogger(__name__)

MANUAL_CLOSE_NOTICE = "Stream stopped. The response so far was kept."
CURSOR_ARTIFACT_NOTICE = (
    "Text pasted at cursor may leave artifacts. Content after the response "
    "was removed; please check the document."
)

TRANSPORT_EVENTS = ("open", "message", "error", "abort")


def log_notice(message: str) -> None:
    """Default notifier: report user-facing notices through logging."""
    logging.getLogger("chatstream").warning(message)


class StreamState(str, Enum):
    IDLE = "idle"
    OPEN = "open"
    STREAMING = "streaming"
    CLOSING = "closing"
    CLOSED = "closed"
    ERRORED = "errored"
    ABORTED = "aborted"

    @property
    def is_terminal(self) -> bool:
        return self in (StreamState.CLOSED, StreamState.ERRORED, StreamState.ABORTED)


class StreamingSession:
    """Streams one chat completion into a TextSurface."""

    def __init__(
        self,
        surface: TextSurface,
        transport: Transport,
        set_at_cursor: bool = False,
        heading_prefix: str = "",
        notify: Optional[Callable[[str], None]] = None,
    ):
        self.transport = transport
        self.tracker = CursorTracker(surface, heading_prefix, set_at_cursor)
        self.notify = notify or log_notice
        self.state = StreamState.IDLE
        self.accumulated_text = ""
        self.manual_close = False
        self._future: Optional[asyncio.Future] = None

        for name in TRANSPORT_EVENTS:
            transport.add_event_listener(name, self.handle_event)

    @property
    def settled(self) -> bool:
        return self.state.is_terminal

    @property
    def future(self) -> asyncio.Future:
        if self._future is None:
            self._future = asyncio.get_running_loop().create_future()
        return self._future

    def start(self) -> asyncio.Future:
        """Begin event delivery and return the completion future."""
        future = self.future
        self.transport.stream()
        return future

    async def wait(self) -> str:
        """Wait for the session to settle and return the final text."""
        if self._future is None:
            raise SessionNotStartedError("Session was never started")
        return await self._future

    def cancel(self) -> None:
        """Request a manual close; settlement follows the abort event."""
        if self.settled or self.manual_close:
            return
        self.manual_close = True
        self.state = StreamState.CLOSING
        self.transport.close()
        logger.info("Stream manually closed")
        self.notify(MANUAL_CLOSE_NOTICE)

    def handle_event(self, event: NamedEvent) -> None:
        """Transport listener for every event type."""
        if self.settled:
            logger.debug(f"Discarding '{event.name}' event after settlement")
            return
        action = route(event, self.manual_close)
        if action is None:
            return
        # After a manual close only the confirming abort is applied
        if self.state is StreamState.CLOSING and not isinstance(action, ManualAbort):
            logger.debug(f"Dropping '{event.name}' event while closing")
            return
        self.apply(action)

    def apply(self, action: Action) -> None:
        if isinstance(action, OpenInsertedHeader):
            self._on_open()
        elif isinstance(action, AppendDelta):
            self._on_delta(action.text)
        elif isinstance(action, Terminal):
            self._on_terminal()
        elif isinstance(action, ManualAbort):
            logger.info("Stream closed after manual stop")
            self._resolve(StreamState.ABORTED, self.accumulated_text)
        elif isinstance(action, TransportError):
            self._on_error(action)

    def _on_open(self) -> None:
        if self.state is not StreamState.IDLE:
            logger.debug(f"Ignoring open event in state {self.state.value}")
            return
        logger.info("Stream opened")
        self.tracker.on_open()
        self.state = StreamState.OPEN

    def _on_delta(self, text: str) -> None:
        self.accumulated_text += text
        self.tracker.on_delta(text)
        self.state = StreamState.STREAMING

    def _on_terminal(self) -> None:
        self.transport.close()
        logger.info("Stream closed")

        text, trailing_deleted = self.tracker.on_terminal(self.accumulated_text)
        self.accumulated_text = text
        if trailing_deleted:
            self.notify(CURSOR_ARTIFACT_NOTICE)
        self._resolve(StreamState.CLOSED, text)

    def _on_error(self, action: TransportError) -> None:
        self.transport.close()
        if action.unknown_abort:
            logger.warning("Stream aborted without a manual stop")
            self._reject(StreamState.ABORTED, UnknownAbortError())
        else:
            logger.error(f"Stream error: {action.payload}")
            self._reject(StreamState.ERRORED, StreamTransportError(action.payload))

    def _resolve(self, state: StreamState, text: str) -> None:
        self.state = state
        if not self.future.done():
            self.future.set_result(text)

    def _reject(self, state: StreamState, error: Exception) -> None:
        self.state = state
        if not self.future.done():
            self.future.set_exception(error)
