"""
chatterm - a terminal chat client for OpenAI-compatible completion services.
"""

__version__ = "0.1.0"
