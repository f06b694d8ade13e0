"""Parley: terminal AI chat session."""

__version__ = "0.1.0"
