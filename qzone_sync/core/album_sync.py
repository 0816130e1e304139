"""
Incremental sync of a single album: rename reconciliation, the unchanged-album
short circuit, cursor pagination up to the resume boundary, and the bounded
download fan-out.
"""

import logging
from pathlib import Path

from rich.markup import escape

from qzone_sync.api.source import RemoteAlbumSource
from qzone_sync.exceptions import SyncStalledError
from qzone_sync.media.store import LocalMediaStore
from qzone_sync.models.album import Album, Item
from qzone_sync.models.stats import SyncStats
from qzone_sync.models.track import NEVER_SYNCED, AlbumTrackRecord
from qzone_sync.storage.track_store import TrackStore
from qzone_sync.utils.path import album_dir, item_filename, media_extension

from .scheduler import BoundedScheduler

log = logging.getLogger(__name__)


class AlbumSyncEngine:
    """
    Mirrors one album at a time into ``save_root``.

    Items are assumed to be listed newest first and local file names embed the
    item id, so the first listed item already present on disk marks where the
    previous run stopped; nothing older is requested.
    """

    def __init__(
        self,
        source: RemoteAlbumSource,
        media_store: LocalMediaStore,
        track_store: TrackStore,
        save_root: Path,
        max_workers: int = 8,
        page_size: int = 20,
        stats: SyncStats | None = None,
    ):
        self.source = source
        self.media_store = media_store
        self.track_store = track_store
        self.save_root = save_root
        self.max_workers = max_workers
        self.page_size = page_size
        self.stats = stats or SyncStats()

    async def sync(self, album: Album) -> bool:
        """
        Syncs ``album`` and persists its track record.

        Returns:
            False when the album was unchanged upstream and no pages were
            fetched, True otherwise.

        Raises:
            QzoneSyncError, aiohttp.ClientError: on a fatal listing error. The
            track record is left at its previous value in that case.
        """
        log.info(f"[bold cyan]▶ Album:[/] {escape(album.name)}")
        record = self.track_store.get(album.id) or AlbumTrackRecord(
            name=album.name, last_synced_at=NEVER_SYNCED
        )

        target_dir = await self.reconcile_name(record, album)

        if album.last_modified_at <= record.last_synced_at:
            log.info("  [dim]○ Unchanged since last sync.[/dim]")
            self.track_store.put(album.id, record)
            return False

        await self._download_new_items(album, target_dir)

        record.last_synced_at = album.last_modified_at
        self.track_store.put(album.id, record)
        self.track_store.save()
        return True

    async def reconcile_name(self, record: AlbumTrackRecord, album: Album) -> Path:
        """
        Moves the album directory from the recorded name to the current one,
        updates ``record.name`` and makes sure the directory exists.
        """
        new_dir = album_dir(self.save_root, album.name)
        if record.name != album.name:
            old_dir = album_dir(self.save_root, record.name)
            if old_dir != new_dir and await self.media_store.exists(old_dir):
                if await self.media_store.exists(new_dir):
                    log.warning(
                        f"[yellow]Album renamed to '{escape(album.name)}' but "
                        f"'{escape(new_dir.name)}' already exists; leaving "
                        f"'{escape(old_dir.name)}' in place.[/yellow]"
                    )
                else:
                    log.info(
                        f"  Album renamed: '{escape(record.name)}' → "
                        f"'{escape(album.name)}'"
                    )
                    await self.media_store.rename(old_dir, new_dir)
            record.name = album.name

        await self.media_store.ensure_dir(new_dir)
        return new_dir

    async def _download_new_items(self, album: Album, target_dir: Path) -> None:
        existing = await self.media_store.list_entries(target_dir)
        scheduler = BoundedScheduler(self.max_workers)
        submitted: set[str] = set()
        cursor: str | None = None
        position = 0

        try:
            while True:
                items = await self.source.list_items(album.id, cursor, self.page_size)
                if not items:
                    break

                fresh = [item for item in items if item.id not in submitted]
                if not fresh or items[-1].id == cursor:
                    raise SyncStalledError(
                        f"Item listing for album '{album.name}' made no progress "
                        f"past cursor {cursor!r}."
                    )

                reached_boundary = False
                for item in fresh:
                    if any(item.id in name for name in existing):
                        log.info(
                            f"  [dim]Reached previously downloaded item {escape(item.id)}; "
                            "stopping.[/dim]"
                        )
                        reached_boundary = True
                        break
                    submitted.add(item.id)
                    position += 1
                    await scheduler.submit(
                        self._download_item, album, item, target_dir, position
                    )

                if reached_boundary:
                    break
                cursor = items[-1].id
        finally:
            failures = await scheduler.drain()

        if failures:
            log.warning(
                f"  [yellow]⚠ {len(failures)} item(s) of '{escape(album.name)}' "
                "failed to download.[/yellow]"
            )

    async def _download_item(
        self, album: Album, item: Item, target_dir: Path, position: int
    ) -> None:
        """Streams one item to ``<time>.<id>.<ext>`` inside ``target_dir``."""
        try:
            async with self.source.open_stream(item.download_url) as stream:
                extension = media_extension(stream.content_type)
                path = target_dir / item_filename(item, extension)
                log.info(
                    f"  [{position}/{album.item_count}] Downloading "
                    f"[dim]{escape(path.name)}[/dim]"
                )
                size = await self.media_store.write_stream(path, stream.iter_chunks())
        except Exception as e:
            self.stats.items_failed += 1
            log.error(f"[red]  ✗ Failed to download item {escape(item.id)}: {e}[/red]")
            raise
        self.stats.record_download(size)
