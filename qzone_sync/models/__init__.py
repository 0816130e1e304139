"""
Data Models Layer.

This package contains the Pydantic models and dataclasses that define the core
data structures used throughout the application: configuration, albums, items,
track records and run statistics.
"""

from .album import Album, Item
from .config import SyncConfig
from .stats import SyncStats
from .track import NEVER_SYNCED, AlbumTrackRecord, TrackFile

__all__ = [
    "NEVER_SYNCED",
    "Album",
    "AlbumTrackRecord",
    "Item",
    "SyncConfig",
    "SyncStats",
    "TrackFile",
]
