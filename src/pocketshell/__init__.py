"""PocketShell: text commands and multi-turn conversations for phone control."""

__version__ = "0.1.0"
