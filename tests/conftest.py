import threading

import pytest

from chatterm.core.errors import TransportError
from chatterm.models import ChatMessage, TranscriptEntry


class FakeTransport:
    """Records every request window and answers with a canned reply."""

    def __init__(self, reply: str = "ok", prompt_tokens: int = 4, reply_tokens: int = 2):
        self.reply = reply
        self.prompt_tokens = prompt_tokens
        self.reply_tokens = reply_tokens
        self.windows: list[list[ChatMessage]] = []
        self.error: str | None = None

    def send_request(self, messages: list[ChatMessage]) -> TranscriptEntry:
        self.windows.append(list(messages))
        if self.error:
            raise TransportError(self.error)
        return TranscriptEntry(
            message=messages[-1].content,
            response=self.reply,
            num_tokens_message=self.prompt_tokens,
            num_tokens_response=self.reply_tokens,
        )


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


class BlockingTransport(FakeTransport):
    """Holds every request until ``release`` is set."""

    def __init__(self):
        super().__init__()
        self.started = threading.Event()
        self.release = threading.Event()

    def send_request(self, messages: list[ChatMessage]) -> TranscriptEntry:
        self.started.set()
        self.release.wait(5)
        return super().send_request(messages)


@pytest.fixture
def blocking_transport():
    transport = BlockingTransport()
    yield transport
    transport.release.set()
