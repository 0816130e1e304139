"""
Core sync engine.

This package contains the primary logic. The `SyncDriver` walks the album
listing and delegates each selected album to the `AlbumSyncEngine`, which
schedules downloads through the `BoundedScheduler`.
"""

from .album_sync import AlbumSyncEngine
from .scheduler import BoundedScheduler
from .sync_driver import SyncDriver, build_selector

__all__ = ["AlbumSyncEngine", "BoundedScheduler", "SyncDriver", "build_selector"]
