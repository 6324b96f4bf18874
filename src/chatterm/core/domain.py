"""
UI events produced by the widgets and key bindings, consumed by the controller's dispatch.
"""

from typing import Literal, TypedDict, Union


class QuitEvent(TypedDict):
    type: Literal['quit']


class SendMessageEvent(TypedDict):
    type: Literal['send_message']
    text: str


class SaveSessionEvent(TypedDict):
    type: Literal['save_session']


class NewSessionEvent(TypedDict):
    type: Literal['new_session']


UiEvent = Union[
    QuitEvent, SendMessageEvent, SaveSessionEvent, NewSessionEvent,
]
