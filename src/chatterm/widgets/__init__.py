"""
Custom UI widgets for the chatterm application.
"""
from .input_area import InputArea
from .chat_log import ChatLog
from .status_line import StatusLine

__all__ = ["InputArea", "ChatLog", "StatusLine"]
