from rich.markup import escape
from textual.widgets import Static

HELP_TEXT = "Press [b]Esc[/b] to quit, [b]^S[/b] to save session, [b]^N[/b] for a new session"


class StatusLine(Static):
    """One line footer: key help, or the outcome of the last save."""

    DEFAULT_CSS = """
    StatusLine {
        height: 1;
        padding: 0 1;
    }
    """

    def __init__(self, **kwargs) -> None:
        super().__init__(HELP_TEXT, markup=True, **kwargs)
        self.message = ""

    def show(self, message: str) -> None:
        self.message = message
        self.update(escape(message))

    def clear(self) -> None:
        if self.message:
            self.message = ""
            self.update(HELP_TEXT)
