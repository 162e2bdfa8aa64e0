import logging
from typing import Callable, Dict, Optional

from chatstream.config import Settings, settings as default_settings
from chatstream.exceptions import SessionActiveError
from chatstream.models.payload import OpenAIStreamPayload
from chatstream.streaming.session import StreamingSession
from chatstream.surface.base import TextSurface
from chatstream.transport.base import Transport
from chatstream.transport.sse import SSETransport

logger = logging.getLogger(__name__)

TransportFactory = Callable[..., Transport]


class StreamManager:
    """Runs at most one streaming session at a time for a plugin instance."""

    def __init__(
        self,
        transport_factory: TransportFactory = SSETransport,
        notify: Optional[Callable[[str], None]] = None,
        timeout: Optional[float] = None,
        settings: Optional[Settings] = None,
    ):
        self.transport_factory = transport_factory
        self.notify = notify
        self.settings = settings or default_settings
        self.timeout = float(self.settings.provider_timeout) if timeout is None else timeout
        self.session: Optional[StreamingSession] = None

    @property
    def is_streaming(self) -> bool:
        return self.session is not None and not self.session.settled

    @staticmethod
    def build_headers(api_key: Optional[str]) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if api_key:
            headers["Authorization"] = f"Bearer {api_key}"
        return headers

    async def stream_sse(
        self,
        surface: TextSurface,
        payload: OpenAIStreamPayload,
        api_key: Optional[str] = None,
        url: Optional[str] = None,
        set_at_cursor: Optional[bool] = None,
        heading_prefix: Optional[str] = None,
    ) -> str:
        """
        Stream a chat completion into ``surface``.

        Arguments left as None fall back to the manager's settings.

        Args:
            surface: Document to write the response into
            payload: Request payload; must have ``stream`` set
            api_key: Bearer token for the API
            url: Chat completions endpoint
            set_at_cursor: Insert at the original cursor and drop trailing content
            heading_prefix: Markdown heading prefix for the role marker

        Returns:
            Final response text as written to the document

        Raises:
            SessionActiveError: If another stream is still running
            StreamTransportError: If the stream failed or was aborted unexpectedly
        """
        if self.is_streaming:
            raise SessionActiveError("A response is already streaming")

        if api_key is None:
            api_key = self.settings.api_key
        if url is None:
            url = self.settings.url
        if set_at_cursor is None:
            set_at_cursor = self.settings.set_at_cursor
        if heading_prefix is None:
            heading_prefix = self.settings.heading_prefix

        logger.info(f"Streaming {payload.model} response from {url}")
        transport = self.transport_factory(
            url,
            headers=self.build_headers(api_key),
            method="POST",
            body=payload.to_json(),
            timeout=self.timeout,
        )
        session = StreamingSession(
            surface,
            transport,
            set_at_cursor=set_at_cursor,
            heading_prefix=heading_prefix,
            notify=self.notify,
        )
        self.session = session
        try:
            return await session.start()
        finally:
            # Caller went away before the stream settled
            if not session.settled:
                session.cancel()
            if self.session is session:
                self.session = None

    def stop_streaming(self) -> None:
        """Manually stop the active stream, keeping the text received so far.

        The session stays active until the transport confirms the close.
        """
        if self.session is None:
            return
        self.session.cancel()
