"""
Conversation session: the transcript, the token budget, and the request window
built from them for every outgoing message.
"""

import json
import logging
import threading
from datetime import datetime
from pathlib import Path
from typing import Iterable, Optional, Protocol, Union

from chatterm.core.errors import TranscriptFormatError
from chatterm.models import ChatMessage, TranscriptEntry

logger = logging.getLogger(__name__)

_ENTRY_FIELDS = {
    'message': str,
    'response': str,
    'num_tokens_message': int,
    'num_tokens_response': int,
}


class Transport(Protocol):
    def send_request(self, messages: list[ChatMessage]) -> TranscriptEntry:
        ...


def estimate_tokens(text: str) -> int:
    """Rough local token count: the number of whitespace separated words."""
    return len(text.split())


def generate_session_name(now: Optional[datetime] = None) -> str:
    now = now or datetime.now()
    return f"chatlog_{now.year}{now.month}{now.day}{now.hour}{now.minute}{now.second}"


def parse_entries(data) -> list[TranscriptEntry]:
    """
    Validate decoded transcript JSON and turn it into entries.

    Raises:
        TranscriptFormatError: if ``data`` is not a list of objects carrying
            the four transcript fields with the right types.
    """
    if not isinstance(data, list):
        raise TranscriptFormatError("transcript must be a JSON array")

    entries = []
    for idx, item in enumerate(data):
        if not isinstance(item, dict):
            raise TranscriptFormatError(f"entry {idx} is not an object")
        for key, kind in _ENTRY_FIELDS.items():
            if key not in item:
                raise TranscriptFormatError(f"entry {idx} is missing '{key}'")
            value = item[key]
            # bool is an int subclass, but never a valid token count
            if not isinstance(value, kind) or isinstance(value, bool):
                raise TranscriptFormatError(f"entry {idx}: '{key}' must be {kind.__name__}")
            if kind is int and value < 0:
                raise TranscriptFormatError(f"entry {idx}: '{key}' must not be negative")
        entries.append(TranscriptEntry(**{key: item[key] for key in _ENTRY_FIELDS}))
    return entries


def dump_entries(entries: Iterable[TranscriptEntry]) -> str:
    return json.dumps([e.to_dict() for e in entries], indent=2, ensure_ascii=False)


class ChatSession:
    """
    Owns the ordered transcript of a conversation and decides which prior
    exchanges are replayed with each new message.
    """

    def __init__(self, client: Transport, token_budget: int, path: Union[str, Path, None] = None):
        self.client = client
        self._token_budget = token_budget
        self.path: Optional[Path] = Path(path) if path is not None else None
        self.name = generate_session_name()
        self._transcript: list[TranscriptEntry] = []
        # guards the transcript; never held across a network call
        self._lock = threading.Lock()
        # held for a whole send so sends never overlap
        self._send_lock = threading.Lock()

    @classmethod
    def from_file(cls, client: Transport, token_budget: int, path: Union[str, Path]) -> "ChatSession":
        """Create a session bound to ``path`` with the transcript stored there."""
        session = cls(client, token_budget, path=path)
        session.load_file(path)
        return session

    @property
    def token_budget(self) -> int:
        return self._token_budget

    @property
    def transcript(self) -> tuple[TranscriptEntry, ...]:
        return tuple(self._transcript)

    def build_window(self, user_text: str) -> list[ChatMessage]:
        """
        Build the request for ``user_text``.

        Walks the transcript from the newest exchange backwards, adding the
        reply and then the prompt of each one while the running token count
        stays within the budget. Scanning stops at the first item that does
        not fit, so an exchange may contribute only its reply. The new message
        is always the last item, even when it alone exceeds the budget.
        """
        window: list[ChatMessage] = []
        num_tokens = estimate_tokens(user_text)

        with self._lock:
            transcript = list(self._transcript)

        for entry in reversed(transcript):
            if num_tokens + entry.num_tokens_response > self._token_budget:
                break
            window.append(ChatMessage('assistant', entry.response))
            num_tokens += entry.num_tokens_response

            if num_tokens + entry.num_tokens_message > self._token_budget:
                break
            window.append(ChatMessage('user', entry.message))
            num_tokens += entry.num_tokens_message

        window.reverse()
        window.append(ChatMessage('user', user_text))
        logger.debug("Built window of %d messages, ~%d tokens", len(window), num_tokens)
        return window

    def send(self, user_text: str) -> TranscriptEntry:
        """
        Send ``user_text`` with as much history as the budget allows and
        record the exchange.

        Raises:
            TransportError: the transcript is left unchanged.
        """
        with self._send_lock:
            window = self.build_window(user_text)
            entry = self.client.send_request(window)
            with self._lock:
                self._transcript.append(entry)
        logger.info(
            "Exchange recorded (%d prompt tokens, %d reply tokens, %d entries)",
            entry.num_tokens_message, entry.num_tokens_response, len(self._transcript),
        )
        return entry

    def reset(self) -> None:
        with self._lock:
            self._transcript = []
            self.name = generate_session_name()
        logger.info("Session reset, new name %s", self.name)

    def load(self, entries: Iterable[TranscriptEntry]) -> None:
        entries = list(entries)
        with self._lock:
            self._transcript = entries
        logger.info("Loaded %d transcript entries", len(entries))

    def load_file(self, path: Union[str, Path]) -> None:
        """
        Replace the transcript with the one stored at ``path``.

        Raises:
            OSError: the file cannot be read.
            TranscriptFormatError: the file is not a valid transcript.
        """
        text = Path(path).read_text(encoding='utf-8')
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise TranscriptFormatError(f"{path}: invalid JSON: {e}") from e
        self.load(parse_entries(data))

    def save(self) -> str:
        """Save to the bound file, or to ``<name>.json`` in the working directory."""
        filename = str(self.path) if self.path is not None else f"{self.name}.json"
        self.save_to(filename)
        return filename

    def save_to(self, path: Union[str, Path]) -> None:
        with self._lock:
            payload = dump_entries(self._transcript)
        Path(path).write_text(payload, encoding='utf-8')
        logger.info("Saved session to %s", path)
