"""
Pydantic models for the persisted track file.
"""

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

NEVER_SYNCED = -1


class AlbumTrackRecord(BaseModel):
    """Per-album checkpoint: the album name and upstream timestamp at last sync."""

    model_config = ConfigDict(validate_assignment=True)

    name: str
    last_synced_at: int = Field(
        default=NEVER_SYNCED,
        validation_alias=AliasChoices("lastSyncedAt", "lastUploadTime", "last_synced_at"),
        serialization_alias="lastSyncedAt",
    )


class TrackFile(BaseModel):
    """The on-disk snapshot: ``{"albums": {<album id>: {name, lastSyncedAt}}}``."""

    albums: dict[str, AlbumTrackRecord] = Field(default_factory=dict)
