import logging

from chatstream.streaming.fences import repair
from chatstream.surface.base import Position, TextSurface

logger = logging.getLogger(__name__)

SEPARATOR = '<hr class="__chatgpt_plugin">'
ROLE_MARKER = "role::"


def role_header(heading_prefix: str = "", role: str = "assistant") -> str:
    """Separator block inserted before a streamed response."""
    return f"\n\n{SEPARATOR}\n\n{heading_prefix}{ROLE_MARKER}{role}\n\n"


class CursorTracker:
    """Applies streamed text to a TextSurface.

    Deltas are inserted at the live cursor as they arrive. The anchor marks
    where the response starts; on completion the whole region from the
    anchor to the live cursor is replaced with the final text, which is the
    only write trusted to be correct.
    """

    def __init__(
        self,
        surface: TextSurface,
        heading_prefix: str = "",
        set_at_cursor: bool = False,
    ):
        self.surface = surface
        self.heading_prefix = heading_prefix
        self.set_at_cursor = set_at_cursor
        self.anchor: Position = surface.get_cursor()

    def _advance(self, start: Position, text: str) -> Position:
        offset = self.surface.pos_to_offset(start) + len(text)
        position = self.surface.offset_to_pos(offset)
        self.surface.set_cursor(position)
        return position

    def on_open(self) -> Position:
        """Insert the role header at the live cursor and anchor after it."""
        header = role_header(self.heading_prefix)
        cursor = self.surface.get_cursor()
        self.surface.replace_range(header, cursor)
        self.anchor = self._advance(cursor, header)
        return self.anchor

    def on_delta(self, fragment: str) -> Position:
        """Insert ``fragment`` at the live cursor and move past it."""
        cursor = self.surface.get_cursor()
        self.surface.insert_at_offset(self.surface.pos_to_offset(cursor), fragment)
        return self._advance(cursor, fragment)

    def on_terminal(self, accumulated: str) -> tuple[str, bool]:
        """
        Replace the streamed region with the repaired final text.

        In insert-at-cursor mode everything after the replacement is deleted
        as well, since live inserts may have left duplicate content behind.
        That delete is destructive and callers should surface it.

        Args:
            accumulated: Full text received during the stream

        Returns:
            Tuple of (final text, whether trailing content was deleted)
        """
        text = repair(accumulated)
        cursor = self.surface.get_cursor()
        self.surface.replace_range(text, self.anchor, cursor)
        end = self._advance(self.anchor, text)

        if not self.set_at_cursor:
            return text, False

        document_end = self.surface.end_position()
        if document_end != end:
            logger.info("Removing trailing content after streamed response")
        self.surface.replace_range("", end, document_end)
        self.surface.set_cursor(end)
        return text, True
