"""
Dataclass for tracking sync session statistics.
"""

import time
from dataclasses import dataclass, field


@dataclass
class SyncStats:
    """Counters for one sync run, shared by the driver and the album engine."""

    albums_synced: int = 0
    albums_unchanged: int = 0
    albums_failed: int = 0
    items_downloaded: int = 0
    items_failed: int = 0
    bytes_downloaded: int = 0
    failed_albums: list[str] = field(default_factory=list)
    started_at: float = field(default_factory=time.monotonic, repr=False)

    @property
    def elapsed(self) -> float:
        return time.monotonic() - self.started_at

    def record_download(self, size: int) -> None:
        self.items_downloaded += 1
        self.bytes_downloaded += size
