from typing import Callable, Protocol

from chatstream.streaming.frames import NamedEvent

Listener = Callable[[NamedEvent], None]


class Transport(Protocol):
    """Event source delivering ``open``, ``message``, ``error`` and ``abort``."""

    def add_event_listener(self, name: str, listener: Listener) -> None:
        ...

    def stream(self) -> object:
        ...

    def close(self) -> None:
        ...
