"""
Frame parser for the server-sent event protocol.

Each raw chunk is treated as one complete frame. Field lines overwrite
their slot instead of accumulating, so a chunk carrying two ``data:`` lines
yields only the second value. Only ``id``, ``retry``, ``data`` and
``event`` are recognized; every other field is dropped.
"""

import re
from dataclasses import dataclass
from typing import Optional

FIELD_SEPARATOR = ":"
DEFAULT_EVENT = "message"
RECOGNIZED_FIELDS = ("id", "retry", "data", "event")

_LINE_BREAK = re.compile(r"\r\n|\n|\r")


@dataclass
class EventFrame:
    """Resolved protocol fields of a single chunk"""

    id: Optional[str] = None
    retry: Optional[str] = None
    data: str = ""
    event: str = DEFAULT_EVENT


@dataclass
class NamedEvent:
    """Event handed to transport listeners"""

    name: str
    data: str = ""
    id: Optional[str] = None


def parse_frame(raw: str) -> EventFrame:
    """Resolve the protocol fields of ``raw`` into an EventFrame."""
    frame = EventFrame()
    for line in _LINE_BREAK.split(raw):
        line = line.rstrip()
        index = line.find(FIELD_SEPARATOR)
        # No separator, or a comment line starting with the separator
        if index <= 0:
            continue
        field = line[:index]
        if field not in RECOGNIZED_FIELDS:
            continue
        value = line[index + 1:]
        if value[:1].isspace():
            value = value[1:]
        setattr(frame, field, value)
    return frame


def parse_chunk(raw: str) -> Optional[NamedEvent]:
    """
    Parse a raw transport chunk into a named event.

    Args:
        raw: One chunk of text as delivered by the transport

    Returns:
        NamedEvent built from the chunk, or None for an empty chunk
    """
    if not raw or not raw.strip():
        return None
    frame = parse_frame(raw)
    return NamedEvent(name=frame.event, data=frame.data, id=frame.id)
