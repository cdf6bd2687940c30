"""Multipart file intake: sniff, name and store uploaded files."""

__version__ = "0.1.0"
