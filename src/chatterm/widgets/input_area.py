"""
Single line message input for the chatterm application.
"""
from typing import Optional

from rich.markup import escape
from textual.widgets import Input
from textual.message import Message


class InputArea(Input):
    DEFAULT_CSS = """
    InputArea {
        height: 3;
        border: round $secondary;
        border-title-align: left;
    }
    InputArea:focus {
        border: round $accent;
    }
    InputArea.-error, InputArea.-error:focus {
        border: round $error;
        border-title-color: $error;
    }
    """

    error: Optional[str] = None

    class Submit(Message, bubble=True):
        def __init__(self, value: str) -> None:
            super().__init__()
            self.value = value

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.set_error(None)

    async def on_key(self, event) -> None:
        self.set_error(None)
        # legacy terminals report Ctrl+M as "enter"; only extended key reporting
        # delivers "ctrl+m" on its own, and it must neither submit nor edit
        if event.key == "ctrl+m":
            event.prevent_default()
            event.stop()

    async def action_submit(self) -> None:
        text = self.value.strip()
        self.value = ""
        if text:
            self.post_message(self.Submit(text))

    def set_error(self, error: Optional[str]) -> None:
        """Show ``error`` in the border title, or restore the plain title."""
        self.error = error or None
        if self.error:
            self.border_title = escape(f"Input: {self.error}")
            self.add_class("-error")
        else:
            self.border_title = "Input"
            self.remove_class("-error")
