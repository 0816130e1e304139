"""Incremental mirror of QZone photo albums to local storage."""

__version__ = "0.1.0"
