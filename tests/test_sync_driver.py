"""Tests for the album listing walk and per-album orchestration."""

import pytest

from conftest import FakeSource, make_album, make_item
from qzone_sync.core.album_sync import AlbumSyncEngine
from qzone_sync.core.sync_driver import SyncDriver, build_selector, select_all
from qzone_sync.exceptions import RemoteAPIError
from qzone_sync.media.store import LocalMediaStore
from qzone_sync.models.track import AlbumTrackRecord

pytestmark = pytest.mark.asyncio


def build_driver(source, media_store, track_store, selector=select_all, page_size=2):
    engine = AlbumSyncEngine(
        source, media_store, track_store, track_store.path.parent, page_size=page_size
    )
    return SyncDriver(
        source, engine, track_store, selector=selector, page_size=page_size
    )


async def test_listing_stops_at_first_empty_page(media_store, track_store):
    source = FakeSource(
        album_pages=[
            [make_album("A1", "One"), make_album("A2", "Two")],
            [make_album("A3", "Three")],
        ]
    )

    stats = await build_driver(source, media_store, track_store).run()

    assert source.album_calls == [0, 2, 4]
    assert stats.albums_synced == 3
    assert {album_id for album_id, _ in track_store.items()} == {"A1", "A2", "A3"}


async def test_selector_limits_synced_albums(media_store, track_store):
    source = FakeSource(
        album_pages=[[make_album("A1", "One"), make_album("A2", "Two")]],
        item_pages={"A1": [[make_item("x1")]], "A2": [[make_item("y1")]]},
    )
    selector = build_selector(names=["Two"])

    await build_driver(source, media_store, track_store, selector).run()

    assert {call[0] for call in source.item_calls} == {"A2"}
    assert track_store.get("A1") is None


async def test_album_repeated_across_pages_is_synced_once(media_store, track_store):
    source = FakeSource(
        album_pages=[
            [make_album("A1", "One"), make_album("A2", "Two")],
            [make_album("A2", "Two")],
        ]
    )

    stats = await build_driver(source, media_store, track_store).run()

    assert stats.albums_synced == 2


async def test_unchanged_albums_are_counted(media_store, track_store):
    track_store.put("A1", AlbumTrackRecord(name="One", last_synced_at=100))
    source = FakeSource(album_pages=[[make_album("A1", "One")]])

    stats = await build_driver(source, media_store, track_store).run()

    assert stats.albums_unchanged == 1
    assert stats.albums_synced == 0
    assert track_store.path.is_file()


async def test_failed_album_does_not_stop_the_run(media_store, track_store):
    source = FakeSource(
        album_pages=[[make_album("A1", "One"), make_album("A2", "Two")]],
        item_pages={"A2": [[make_item("y1")]]},
    )
    source.listing_errors["A1"] = RemoteAPIError("forbidden", code=-3000)

    stats = await build_driver(source, media_store, track_store).run()

    assert stats.albums_failed == 1
    assert stats.failed_albums == ["One"]
    assert stats.albums_synced == 1
    assert track_store.get("A1") is None
    assert track_store.get("A2").last_synced_at == 100


async def test_track_store_saved_when_listing_fails(media_store, track_store):
    track_store.put("A9", AlbumTrackRecord(name="Kept", last_synced_at=5))

    class BrokenSource(FakeSource):
        async def list_albums(self, offset, page_size):
            raise RemoteAPIError("expired", code=-3000)

    with pytest.raises(RemoteAPIError):
        await build_driver(BrokenSource(), media_store, track_store).run()

    assert "Kept" in track_store.path.read_text(encoding="utf-8")


async def test_build_selector_matches_ids_and_names():
    selector = build_selector(names=["Trip"], album_ids=["A7"])

    assert selector(make_album("A1", "Trip"))
    assert selector(make_album("A7", "Other"))
    assert not selector(make_album("A2", "Trip2025"))
    assert build_selector() is select_all


async def test_local_filesystem_error_does_not_stop_the_run(track_store):
    class ReadOnlyAlbumStore(LocalMediaStore):
        async def ensure_dir(self, path):
            if path.name == "One":
                raise PermissionError(13, "Permission denied", str(path))
            await super().ensure_dir(path)

    source = FakeSource(
        album_pages=[[make_album("A1", "One"), make_album("A2", "Two")]],
        item_pages={"A1": [[make_item("x1")]], "A2": [[make_item("y1")]]},
    )

    stats = await build_driver(source, ReadOnlyAlbumStore(), track_store).run()

    assert stats.albums_failed == 1
    assert stats.failed_albums == ["One"]
    assert stats.albums_synced == 1
    assert track_store.get("A1") is None
    assert track_store.get("A2").last_synced_at == 100
