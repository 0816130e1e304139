"""
Walks the account's album listing and syncs the selected albums one after
another.
"""

import asyncio
import logging
from collections.abc import Callable, Iterable

import aiohttp
from rich.markup import escape

from qzone_sync.api.source import RemoteAlbumSource
from qzone_sync.exceptions import QzoneSyncError
from qzone_sync.models.album import Album
from qzone_sync.models.config import SyncConfig
from qzone_sync.models.stats import SyncStats
from qzone_sync.storage.track_store import TrackStore

from .album_sync import AlbumSyncEngine

log = logging.getLogger(__name__)

AlbumSelector = Callable[[Album], bool]


def select_all(album: Album) -> bool:
    return True


def build_selector(
    names: Iterable[str] = (), album_ids: Iterable[str] = ()
) -> AlbumSelector:
    """
    Builds a predicate matching albums by exact name or by id. With neither
    given, every album is selected.
    """
    wanted_names = set(names)
    wanted_ids = set(album_ids)
    if not wanted_names and not wanted_ids:
        return select_all

    def selector(album: Album) -> bool:
        return album.id in wanted_ids or album.name in wanted_names

    return selector


class SyncDriver:
    """
    Lists albums page by page and runs the album engine for each selected one.

    Albums are processed strictly in sequence: one album's downloads have
    finished and its record is saved before the next album starts.
    """

    def __init__(
        self,
        source: RemoteAlbumSource,
        engine: AlbumSyncEngine,
        track_store: TrackStore,
        selector: AlbumSelector = select_all,
        page_size: int = 20,
    ):
        self.source = source
        self.engine = engine
        self.track_store = track_store
        self.selector = selector
        self.page_size = page_size

    @classmethod
    def from_config(
        cls,
        config: SyncConfig,
        source: RemoteAlbumSource,
        engine: AlbumSyncEngine,
        track_store: TrackStore,
    ) -> "SyncDriver":
        return cls(
            source,
            engine,
            track_store,
            selector=build_selector(config.albums, config.album_ids),
            page_size=config.page_size,
        )

    @property
    def stats(self) -> SyncStats:
        return self.engine.stats

    async def run(self) -> SyncStats:
        """
        Syncs every selected album and returns the run statistics. The track
        store is saved once more on the way out, whatever happened.
        """
        seen: set[str] = set()
        offset = 0
        try:
            while True:
                albums = await self.source.list_albums(offset, self.page_size)
                if not albums:
                    break

                for album in albums:
                    if album.id in seen or not self.selector(album):
                        continue
                    seen.add(album.id)
                    await self._sync_album(album)

                offset += self.page_size
        finally:
            self.track_store.save()

        if not seen:
            log.warning("[yellow]No albums matched the selection.[/yellow]")
        return self.stats

    async def _sync_album(self, album: Album) -> None:
        try:
            changed = await self.engine.sync(album)
        except (
            QzoneSyncError, aiohttp.ClientError, asyncio.TimeoutError, OSError
        ) as e:
            self.stats.albums_failed += 1
            self.stats.failed_albums.append(album.name)
            log.error(f"[red]✗ Sync of album '{escape(album.name)}' aborted: {e}[/red]")
            return

        if changed:
            self.stats.albums_synced += 1
        else:
            self.stats.albums_unchanged += 1
