"""
Scrollable transcript view.
"""
import textwrap
from typing import Iterable

from rich.text import Text
from textual.widgets import RichLog

from chatterm.models import TranscriptEntry

CONTINUATION_INDENT = "     "
DEFAULT_WIDTH = 80


def wrap_line(line: str, width: int) -> list[str]:
    """
    Wrap ``line`` to ``width`` columns, reserving room for the five space
    indent that marks continuation lines.
    """
    wrap_width = width - len(CONTINUATION_INDENT) if width > len(CONTINUATION_INDENT) + 1 else width
    wrapped = textwrap.wrap(line, wrap_width) or [""]
    return [wrapped[0]] + [CONTINUATION_INDENT + rest for rest in wrapped[1:]]


class ChatLog(RichLog):
    """
    The display buffer: every exchange rendered as wrapped ``You:``/``Bot:``
    lines. Mouse scrolling is handled by the log itself.
    """

    DEFAULT_CSS = """
    ChatLog {
        border: round $primary;
        border-title-align: left;
        height: 1fr;
    }
    """

    def __init__(self, **kwargs) -> None:
        super().__init__(wrap=False, markup=False, **kwargs)
        self.border_title = "Chat Log"
        self.transcript_lines: list[str] = []

    def _wrap_width(self) -> int:
        width = self.scrollable_content_region.width
        return width if width > 0 else DEFAULT_WIDTH

    def _add_line(self, line: str) -> None:
        for wrapped in wrap_line(line, self._wrap_width()):
            self.transcript_lines.append(wrapped)
            self.write(Text(wrapped))

    def add_entry(self, entry: TranscriptEntry) -> None:
        self._add_line(f"You: {entry.message}")
        self._add_line(f"Bot: {entry.response}")

    def load_entries(self, entries: Iterable[TranscriptEntry]) -> None:
        """Rebuild the buffer from a whole transcript."""
        self.clear_log()
        for entry in entries:
            self.add_entry(entry)

    def clear_log(self) -> None:
        self.transcript_lines = []
        self.clear()
