"""Fallback-aware chat-completion relay."""

__version__ = "0.1.0"
