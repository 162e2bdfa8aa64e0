"""
Text surface contract.

A TextSurface is the host document a stream is written into. It is owned
by the host and may be edited by the user at any time; the streaming core
only touches it through the operations below.
"""

from dataclasses import dataclass
from typing import Optional, Protocol, runtime_checkable


@dataclass(frozen=True, order=True)
class Position:
    """Line/column position in a document (both zero-based)."""

    line: int
    column: int


@runtime_checkable
class TextSurface(Protocol):
    def get_cursor(self) -> Position:
        ...

    def set_cursor(self, position: Position) -> None:
        ...

    def replace_range(
        self, text: str, start: Position, end: Optional[Position] = None
    ) -> None:
        """Replace ``start..end`` with ``text``; insert at ``start`` if no end."""
        ...

    def pos_to_offset(self, position: Position) -> int:
        ...

    def offset_to_pos(self, offset: int) -> Position:
        ...

    def insert_at_offset(self, offset: int, text: str) -> None:
        """Low-level insert used for live typing, bypassing range bookkeeping."""
        ...

    def end_position(self) -> Position:
        ...
