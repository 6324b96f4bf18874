"""
Data models for the chatterm application.
"""
from .transcript import ChatMessage, TranscriptEntry

__all__ = ["ChatMessage", "TranscriptEntry"]
