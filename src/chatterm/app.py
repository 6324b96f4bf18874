"""
chatterm terminal application
"""

import asyncio
import logging

from textual import work
from textual.app import App, ComposeResult
from textual.binding import Binding

from chatterm.core.domain import UiEvent
from chatterm.core.errors import TransportError
from chatterm.core.session import ChatSession
from chatterm.models import TranscriptEntry
from chatterm.widgets import ChatLog, InputArea, StatusLine

logger = logging.getLogger(__name__)


class ChatTermApp(App):
    TITLE = "chatterm"
    BINDINGS = [
        Binding("escape", "ui_event('quit')", "Quit", priority=True),
        Binding("ctrl+s", "ui_event('save_session')", "Save session", priority=True),
        Binding("ctrl+n", "ui_event('new_session')", "New session", priority=True),
    ]

    def __init__(self, session: ChatSession):
        """Initialize the application around an already created session."""
        super().__init__()
        self.session = session
        self.awaiting_reply = False

    def compose(self) -> ComposeResult:
        yield ChatLog(id="chat_log")
        yield InputArea(id="input_text", placeholder="Type a message and press Enter")
        yield StatusLine(id="status")

    def on_mount(self) -> None:
        self.query_one("#chat_log", ChatLog).load_entries(self.session.transcript)
        self.query_one("#input_text", InputArea).focus()

    def action_ui_event(self, kind: str) -> None:
        self.dispatch_ui_event({'type': kind})

    def on_input_area_submit(self, message: InputArea.Submit) -> None:
        self.dispatch_ui_event({'type': 'send_message', 'text': message.value})

    def on_input_changed(self, event: InputArea.Changed) -> None:
        self.query_one("#status", StatusLine).clear()

    def dispatch_ui_event(self, ev: UiEvent) -> None:
        """
        Apply one UI event.

        Event types handled:
        - 'send_message': send the text through the session, unless a reply is pending
        - 'save_session': save the transcript, report the outcome in the status line
        - 'new_session': reset the session and clear the chat log
        - 'quit': save a bound session and exit
        """
        type = ev.get('type', '')
        status = self.query_one("#status", StatusLine)

        if type == 'send_message':
            text = ev.get('text', '').strip()
            if not text:
                return
            if self.awaiting_reply:
                self.query_one("#input_text", InputArea).set_error("still waiting for the previous reply")
                return
            self.awaiting_reply = True
            status.show("Waiting for reply...")
            self.send_message(text)

        elif type == 'save_session':
            try:
                filename = self.session.save()
            except OSError as e:
                logger.warning("Saving session failed: %s", e)
                status.show(f"Error: {e}")
            else:
                status.show(f"Saved session to {filename}")

        elif type == 'new_session':
            if self.awaiting_reply:
                status.show("Cannot start a new session while waiting for a reply")
                return
            self.session.reset()
            self.query_one("#chat_log", ChatLog).clear_log()
            status.show(f"Started new session {self.session.name}")

        elif type == 'quit':
            self._save_on_exit()
            self.exit()

    def _save_on_exit(self) -> None:
        if self.session.path is None or not self.session.transcript:
            return
        try:
            self.session.save()
        except OSError as e:
            logger.error("Could not save session to %s on exit: %s", self.session.path, e)

    @work(exclusive=True, group='send')
    async def send_message(self, text: str) -> None:
        """
        Run the blocking send in a thread; the UI keeps handling input meanwhile.
        """
        chat_log = self.query_one("#chat_log", ChatLog)
        input_area = self.query_one("#input_text", InputArea)
        status = self.query_one("#status", StatusLine)

        try:
            entry: TranscriptEntry = await asyncio.to_thread(self.session.send, text)
        except TransportError as e:
            input_area.set_error(f"Error: {e}")
        else:
            chat_log.add_entry(entry)
        finally:
            self.awaiting_reply = False
            status.clear()
