from typing import Optional

from chatstream.surface.base import Position


class TextBuffer:
    """In-memory TextSurface.

    Positions are clamped to the document, so a range ending past the last
    line addresses the end of the document.
    """

    def __init__(self, text: str = "", cursor: Optional[Position] = None):
        self._text = text
        self._cursor = self.clamp(cursor) if cursor else self.end_position()

    @property
    def text(self) -> str:
        return self._text

    @property
    def lines(self) -> list[str]:
        return self._text.split("\n")

    def clamp(self, position: Position) -> Position:
        """Clamp ``position`` into the document."""
        lines = self.lines
        line = min(max(position.line, 0), len(lines) - 1)
        column = min(max(position.column, 0), len(lines[line]))
        return Position(line, column)

    def end_position(self) -> Position:
        lines = self.lines
        return Position(len(lines) - 1, len(lines[-1]))

    def get_cursor(self) -> Position:
        return self._cursor

    def set_cursor(self, position: Position) -> None:
        self._cursor = self.clamp(position)

    def pos_to_offset(self, position: Position) -> int:
        position = self.clamp(position)
        lines = self.lines
        # +1 per line for the newline separator
        return sum(len(line) + 1 for line in lines[: position.line]) + position.column

    def offset_to_pos(self, offset: int) -> Position:
        offset = min(max(offset, 0), len(self._text))
        before = self._text[:offset]
        line = before.count("\n")
        column = offset - (before.rfind("\n") + 1)
        return Position(line, column)

    def insert_at_offset(self, offset: int, text: str) -> None:
        """Insert ``text`` at ``offset``, keeping the cursor on its character."""
        offset = min(max(offset, 0), len(self._text))
        cursor_offset = self.pos_to_offset(self._cursor)
        self._text = self._text[:offset] + text + self._text[offset:]
        if cursor_offset > offset:
            self._cursor = self.offset_to_pos(cursor_offset + len(text))

    def replace_range(
        self, text: str, start: Position, end: Optional[Position] = None
    ) -> None:
        start_offset = self.pos_to_offset(start)
        end_offset = self.pos_to_offset(end) if end is not None else start_offset
        if end_offset < start_offset:
            start_offset, end_offset = end_offset, start_offset

        cursor_offset = self.pos_to_offset(self._cursor)
        self._text = self._text[:start_offset] + text + self._text[end_offset:]

        # Cursors after the replaced range shift with it
        if cursor_offset >= end_offset:
            cursor_offset += len(text) - (end_offset - start_offset)
        elif cursor_offset > start_offset:
            cursor_offset = start_offset
        self._cursor = self.offset_to_pos(cursor_offset)
