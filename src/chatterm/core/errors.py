"""
Exceptions raised by the chatterm core.
"""


class ChatTermError(Exception):
    """Base class for chatterm errors."""


class TransportError(ChatTermError):
    """The completion service could not be reached or answered with an error."""


class TranscriptFormatError(ChatTermError, ValueError):
    """A transcript file does not hold a list of valid entries."""


class ConfigError(ChatTermError):
    """The configuration file or environment holds invalid values."""
