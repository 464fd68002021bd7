"""Pinata: streaming Pinterest image search with encrypted cookie bookmarks."""

__version__ = "1.0.0"
