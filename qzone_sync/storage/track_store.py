"""
Manages the JSON track file that records, per album, the name and upstream
timestamp seen at the last successful sync.
"""

import json
import logging
import os
import tempfile
from contextlib import suppress
from pathlib import Path

from pydantic import ValidationError

from qzone_sync.exceptions import TrackStoreError
from qzone_sync.models.track import AlbumTrackRecord, TrackFile

log = logging.getLogger(__name__)


class TrackStore:
    """
    In-memory map of album id to :class:`AlbumTrackRecord`, persisted as a
    whole snapshot.

    ``save()`` writes to a temporary file in the same directory and swaps it
    into place with ``os.replace``, so the file on disk is always either the
    previous snapshot or the new one.
    """

    def __init__(self, path: Path):
        self.path = path
        self._albums: dict[str, AlbumTrackRecord] = {}

    def __len__(self) -> int:
        return len(self._albums)

    def items(self) -> list[tuple[str, AlbumTrackRecord]]:
        return list(self._albums.items())

    def load(self) -> None:
        """Loads the snapshot from disk; a missing file means an empty store."""
        if not self.path.is_file():
            log.debug(f"No track file at '{self.path}', starting empty.")
            self._albums = {}
            return

        try:
            raw = self.path.read_text(encoding="utf-8")
            track_file = TrackFile.model_validate_json(raw)
        except (OSError, ValidationError) as e:
            raise TrackStoreError(
                f"Could not read track file '{self.path}': {e}"
            ) from e

        self._albums = dict(track_file.albums)
        log.debug(f"Loaded {len(self._albums)} album records from '{self.path}'.")

    def get(self, album_id: str) -> AlbumTrackRecord | None:
        return self._albums.get(album_id)

    def put(self, album_id: str, record: AlbumTrackRecord) -> None:
        self._albums[album_id] = record

    def save(self) -> None:
        """Serializes the full map and atomically replaces the track file."""
        snapshot = TrackFile(albums=dict(self._albums)).model_dump(
            mode="json", by_alias=True
        )
        payload = json.dumps(snapshot, indent=2, ensure_ascii=False)

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(payload)
                    f.flush()
                    os.fsync(f.fileno())
                os.replace(tmp_name, self.path)
            except BaseException:
                with suppress(OSError):
                    os.unlink(tmp_name)
                raise
        except OSError as e:
            raise TrackStoreError(
                f"Could not write track file '{self.path}': {e}"
            ) from e
        log.debug(f"Saved {len(self._albums)} album records to '{self.path}'.")
