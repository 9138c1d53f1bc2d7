"""Keyswitch assistant API: markdown-to-structured-response service."""

__version__ = "1.0.0"
