"""Shared fakes for the remote photo service and helpers to build models."""

from contextlib import asynccontextmanager
from datetime import datetime, timedelta

import pytest

from qzone_sync.media.store import LocalMediaStore
from qzone_sync.models.album import Album, Item
from qzone_sync.storage.track_store import TrackStore

BASE_TIME = datetime(2024, 8, 15, 12, 0, 0)


def make_album(album_id="A1", name="Trip", last_modified_at=100, item_count=3):
    return Album(
        id=album_id, name=name, last_modified_at=last_modified_at, item_count=item_count
    )


def make_item(item_id, minutes_ago=0, captured=True):
    when = BASE_TIME - timedelta(minutes=minutes_ago)
    return Item(
        id=item_id,
        captured_at=when if captured else None,
        uploaded_at=when + timedelta(days=1),
        download_url=f"https://cdn.example/{item_id}",
    )


class FakeStream:
    def __init__(self, content_type, chunks):
        self.content_type = content_type
        self._chunks = chunks

    async def iter_chunks(self):
        for chunk in self._chunks:
            yield chunk


class FakeSource:
    """
    In-memory photo service. ``item_pages`` maps an album id to a list of
    pages; a page is requested by the cursor it follows (None for the first).
    """

    def __init__(self, album_pages=None, item_pages=None):
        self.album_pages = album_pages or []
        self.item_pages = item_pages or {}
        self.album_calls = []
        self.item_calls = []
        self.opened = []
        self.failing_urls = set()
        self.listing_errors = {}
        self.echo = False

    async def list_albums(self, offset, page_size):
        self.album_calls.append(offset)
        index = offset // page_size
        return list(self.album_pages[index]) if index < len(self.album_pages) else []

    async def list_items(self, album_id, cursor, page_size):
        self.item_calls.append((album_id, cursor))
        if album_id in self.listing_errors:
            raise self.listing_errors[album_id]
        pages = self.item_pages.get(album_id, [])
        if self.echo and pages:
            return list(pages[0])
        if cursor is None:
            return list(pages[0]) if pages else []
        for index, page in enumerate(pages):
            if page and page[-1].id == cursor:
                return list(pages[index + 1]) if index + 1 < len(pages) else []
        return []

    @asynccontextmanager
    async def open_stream(self, url):
        self.opened.append(url)
        if url in self.failing_urls:
            raise ConnectionError(f"boom: {url}")
        yield FakeStream("image/jpeg", [b"abc", b"def"])


@pytest.fixture
def media_store():
    return LocalMediaStore()


@pytest.fixture
def track_store(tmp_path):
    store = TrackStore(tmp_path / "save" / "track.json")
    store.load()
    return store
