"""
Interfaces the sync engine consumes from the remote side. ``QzoneAPIClient``
implements them for the real service; tests provide in-memory fakes.
"""

from collections.abc import AsyncIterator
from contextlib import AbstractAsyncContextManager
from typing import Protocol

from qzone_sync.models.album import Album, Item


class MediaStream(Protocol):
    """An open download: its Content-Type and a chunked byte stream."""

    @property
    def content_type(self) -> str | None: ...

    def iter_chunks(self) -> AsyncIterator[bytes]: ...


class RemoteAlbumSource(Protocol):
    """
    Paginated album and item listings. An empty list means "no more pages";
    failures are raised, never reported as empty.
    """

    async def list_albums(self, offset: int, page_size: int) -> list[Album]: ...

    async def list_items(
        self, album_id: str, cursor: str | None, page_size: int
    ) -> list[Item]: ...

    def open_stream(self, url: str) -> AbstractAsyncContextManager[MediaStream]: ...
