"""
Server-sent events transport built on httpx.

The transport owns the HTTP connection and turns the response body into
named events for its listeners. Framing is split in two: the transport
cuts the body into chunks at blank lines, and an injected ``parse_chunk``
callable turns each chunk into an event.
"""

import asyncio
import logging
import re
from collections import defaultdict
from typing import Callable, Dict, List, Optional, Union

import httpx

from chatstream.streaming.frames import NamedEvent, parse_chunk as default_parse_chunk
from chatstream.transport.base import Listener

logger = logging.getLogger(__name__)

_CHUNK_BOUNDARY = re.compile(r"\r\n\r\n|\n\n|\r\r")

ChunkParser = Callable[[str], Optional[NamedEvent]]


class SSETransport:
    """Streams a request and dispatches ``open``/``message``/``error``/``abort``."""

    def __init__(
        self,
        url: str,
        headers: Optional[Dict[str, str]] = None,
        method: str = "POST",
        body: Optional[Union[str, bytes]] = None,
        parse_chunk: ChunkParser = default_parse_chunk,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 60.0,
    ):
        self.url = url
        self.headers = headers or {}
        self.method = method
        self.body = body
        self.parse_chunk = parse_chunk
        self.timeout = timeout
        self._client = client
        self._owns_client = client is None
        self._listeners: Dict[str, List[Listener]] = defaultdict(list)
        self._task: Optional[asyncio.Task] = None
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def add_event_listener(self, name: str, listener: Listener) -> None:
        self._listeners[name].append(listener)

    def dispatch(self, event: NamedEvent) -> None:
        for listener in list(self._listeners.get(event.name, ())):
            listener(event)

    def stream(self) -> asyncio.Task:
        """Start delivering events on the running loop."""
        if self._task is None:
            self._task = asyncio.get_running_loop().create_task(self._run())
        return self._task

    start = stream

    def close(self) -> None:
        """Stop delivery and schedule a single ``abort`` event."""
        if self._closed:
            return
        self._closed = True
        if self._task is not None and self._task is not asyncio.current_task():
            self._task.cancel()
        asyncio.get_running_loop().call_soon(self.dispatch, NamedEvent(name="abort"))

    def _emit_chunk(self, chunk: str) -> None:
        event = self.parse_chunk(chunk)
        if event is not None:
            self.dispatch(event)

    async def _run(self) -> None:
        client = self._client or httpx.AsyncClient(timeout=self.timeout)
        try:
            async with client.stream(
                self.method, self.url, headers=self.headers, content=self.body
            ) as response:
                if response.is_error:
                    body = (await response.aread()).decode("utf-8", errors="replace")
                    logger.warning(f"Stream request failed with status {response.status_code}")
                    self.dispatch(NamedEvent(name="error", data=body))
                    return

                self.dispatch(NamedEvent(name="open"))
                buffer = ""
                async for text in response.aiter_text():
                    buffer += text
                    chunks = _CHUNK_BOUNDARY.split(buffer)
                    buffer = chunks.pop()
                    for chunk in chunks:
                        if self._closed:
                            return
                        self._emit_chunk(chunk)
                    if self._closed:
                        return
                if buffer.strip() and not self._closed:
                    self._emit_chunk(buffer)

        except httpx.HTTPError as e:
            if not self._closed:
                logger.warning(f"Stream connection error: {e}")
                self.dispatch(NamedEvent(name="error", data=str(e)))
        except Exception as e:
            # Invalid URLs, stream misuse, and listeners failing mid-dispatch
            if not self._closed:
                logger.exception(f"Stream delivery failed: {e}")
                self.dispatch(NamedEvent(name="error", data=str(e)))
        finally:
            if self._owns_client:
                await client.aclose()

        # Body ended without anyone closing the stream
        if not self._closed:
            self.close()
