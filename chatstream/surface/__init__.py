from chatstream.surface.base import Position, TextSurface
from chatstream.surface.buffer import TextBuffer

__all__ = ["Position", "TextSurface", "TextBuffer"]
