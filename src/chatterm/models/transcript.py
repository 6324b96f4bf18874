"""
Data models for the chatterm application.
"""
from dataclasses import dataclass, asdict
from typing import Literal


Role = Literal['user', 'assistant']


@dataclass(frozen=True)
class TranscriptEntry:
    """
    One completed exchange: the prompt that was sent, the reply that came
    back, and the token counts the service reported for each.
    """
    message: str
    response: str
    num_tokens_message: int = 0
    num_tokens_response: int = 0

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class ChatMessage:
    """A single role-tagged message of an outgoing request."""
    role: Role
    content: str
