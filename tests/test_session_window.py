import threading
import time

import pytest

from chatterm.core.errors import TransportError
from chatterm.core.session import ChatSession, estimate_tokens
from chatterm.models import ChatMessage, TranscriptEntry


def _entry(i: int, mt: int = 5, rt: int = 5) -> TranscriptEntry:
    return TranscriptEntry(f"q{i}", f"a{i}", mt, rt)


def _session(transport, budget: int, entries=()) -> ChatSession:
    session = ChatSession(transport, budget)
    session.load(entries)
    return session


def test_estimate_tokens_counts_words() -> None:
    assert estimate_tokens("one two  three") == 3
    assert estimate_tokens("hi") == 1


def test_reply_fits_but_prompt_does_not(transport) -> None:
    session = _session(transport, 8, [TranscriptEntry("a", "b", 5, 5)])

    window = session.build_window("x y z")

    assert window == [ChatMessage("assistant", "b"), ChatMessage("user", "x y z")]


def test_whole_history_fits(transport) -> None:
    entries = [_entry(1), _entry(2)]
    session = _session(transport, 100, entries)

    window = session.build_window("hello")

    assert [(m.role, m.content) for m in window] == [
        ("user", "q1"), ("assistant", "a1"),
        ("user", "q2"), ("assistant", "a2"),
        ("user", "hello"),
    ]


def test_scan_stops_at_first_entry_that_does_not_fit(transport) -> None:
    # the oversized middle entry blocks older ones even though they are small
    entries = [_entry(1, 1, 1), _entry(2, 50, 50), _entry(3, 2, 2)]
    session = _session(transport, 20, entries)

    window = session.build_window("hi")

    assert [m.content for m in window] == ["q3", "a3", "hi"]


def test_new_message_kept_when_over_budget(transport) -> None:
    session = _session(transport, 2, [_entry(1)])

    window = session.build_window("this message has far too many words")

    assert window == [ChatMessage("user", "this message has far too many words")]


@pytest.mark.parametrize("budget", range(0, 40))
def test_window_never_has_prompt_without_reply(transport, budget) -> None:
    entries = [_entry(i, mt=i + 1, rt=2 * i + 1) for i in range(6)]
    session = _session(transport, budget, entries)

    window = session.build_window("new message")

    assert window[-1] == ChatMessage("user", "new message")
    history = window[:-1]
    if history and history[0].role == "assistant":
        # reply-only boundary for the oldest included exchange
        history = history[1:]
    assert len(history) % 2 == 0
    for prompt, reply in zip(history[::2], history[1::2]):
        assert prompt.role == "user"
        assert reply.role == "assistant"
        assert prompt.content[1:] == reply.content[1:]


def test_larger_budget_never_drops_messages(transport) -> None:
    entries = [_entry(i, mt=3, rt=4) for i in range(10)]
    previous: set[str] = set()
    for budget in range(0, 80, 3):
        session = _session(transport, budget, entries)
        included = {m.content for m in session.build_window("now")}
        assert previous <= included
        previous = included


def test_send_appends_entry(transport) -> None:
    session = _session(transport, 100, [_entry(1)])

    entry = session.send("how are you")

    assert entry.response == "ok"
    assert session.transcript[-1] == entry
    assert len(session.transcript) == 2
    assert transport.windows[0][-1] == ChatMessage("user", "how are you")


def test_reset_then_send_has_single_message(transport) -> None:
    session = _session(transport, 100, [_entry(1), _entry(2)])

    session.reset()
    session.send("hi")

    assert transport.windows == [[ChatMessage("user", "hi")]]
    assert len(session.transcript) == 1


def test_reset_renames_session(transport, monkeypatch) -> None:
    session = ChatSession(transport, 10)
    monkeypatch.setattr("chatterm.core.session.generate_session_name", lambda: "chatlog_new")

    session.reset()

    assert session.name == "chatlog_new"
    assert session.token_budget == 10


def test_transport_error_leaves_transcript(transport) -> None:
    session = _session(transport, 100, [_entry(1)])
    transport.error = "rate limited"

    with pytest.raises(TransportError, match="rate limited"):
        session.send("hello")

    assert session.transcript == (_entry(1),)


def test_save_does_not_wait_for_pending_send(blocking_transport, tmp_path) -> None:
    transport = blocking_transport
    session = _session(transport, 100, [_entry(1)])
    sender = threading.Thread(target=session.send, args=("hello",))
    sender.start()
    try:
        assert transport.started.wait(2)

        t0 = time.monotonic()
        session.save_to(tmp_path / "log.json")
        session.build_window("another")

        assert time.monotonic() - t0 < 1
        assert len(session.transcript) == 1
    finally:
        transport.release.set()
        sender.join(5)
    assert len(session.transcript) == 2
