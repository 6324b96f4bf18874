"""
Session management and transport for chatterm.
"""
