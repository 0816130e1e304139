"""Tests for the JSON track file."""

import json

import pytest

from qzone_sync.exceptions import TrackStoreError
from qzone_sync.models.track import NEVER_SYNCED, AlbumTrackRecord
from qzone_sync.storage.track_store import TrackStore


def test_missing_file_loads_empty(tmp_path):
    store = TrackStore(tmp_path / "track.json")
    store.load()

    assert len(store) == 0
    assert store.get("A1") is None


def test_save_then_load_round_trips(tmp_path):
    path = tmp_path / "nested" / "track.json"
    store = TrackStore(path)
    store.put("A1", AlbumTrackRecord(name="Trip", last_synced_at=100))
    store.put("A2", AlbumTrackRecord(name="长沙花样汇店"))
    store.save()

    reloaded = TrackStore(path)
    reloaded.load()

    assert dict(reloaded.items()) == dict(store.items())
    assert reloaded.get("A2").last_synced_at == NEVER_SYNCED


def test_snapshot_is_human_readable_json(tmp_path):
    path = tmp_path / "track.json"
    store = TrackStore(path)
    store.put("A1", AlbumTrackRecord(name="长沙", last_synced_at=100))
    store.save()

    text = path.read_text(encoding="utf-8")
    assert json.loads(text) == {"albums": {"A1": {"name": "长沙", "lastSyncedAt": 100}}}
    assert "长沙" in text
    assert "\n  " in text


def test_save_overwrites_whole_snapshot_without_leftovers(tmp_path):
    path = tmp_path / "track.json"
    store = TrackStore(path)
    store.put("A1", AlbumTrackRecord(name="Trip", last_synced_at=1))
    store.save()
    store.put("A1", AlbumTrackRecord(name="Trip", last_synced_at=2))
    store.save()

    assert json.loads(path.read_text(encoding="utf-8"))["albums"]["A1"]["lastSyncedAt"] == 2
    assert sorted(p.name for p in tmp_path.iterdir()) == ["track.json"]


def test_reads_legacy_last_upload_time(tmp_path):
    path = tmp_path / "track.json"
    path.write_text(
        json.dumps({"albums": {"A1": {"name": "Trip", "lastUploadTime": 42}}}),
        encoding="utf-8",
    )
    store = TrackStore(path)
    store.load()

    assert store.get("A1") == AlbumTrackRecord(name="Trip", last_synced_at=42)


def test_corrupt_file_raises(tmp_path):
    path = tmp_path / "track.json"
    path.write_text("{not json", encoding="utf-8")

    with pytest.raises(TrackStoreError):
        TrackStore(path).load()
