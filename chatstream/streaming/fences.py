"""Closing of unterminated fenced code blocks in streamed markdown."""

CODE_FENCE = "```"


def unfinished_code_block(text: str) -> bool:
    """Return True if ``text`` has an odd number of code fences."""
    return text.count(CODE_FENCE) % 2 == 1


def repair(text: str) -> str:
    """Append a closing fence when ``text`` ends inside a code block."""
    if unfinished_code_block(text):
        return text + "\n" + CODE_FENCE
    return text
