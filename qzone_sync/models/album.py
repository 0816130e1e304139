"""
Pydantic models for the albums and items listed by the photo service.

The models read the service's own field names (``lloc``, ``shootTime``,
``lastuploadtime`` ...) through aliases, and can also be built by field name.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


def _to_datetime(value: Any) -> datetime:
    """Converts unix seconds or a 'YYYY-MM-DD HH:MM:SS' string to a local datetime."""
    if isinstance(value, datetime):
        return value
    if isinstance(value, (int, float)) or (
        isinstance(value, str) and value.strip().isdigit()
    ):
        return datetime.fromtimestamp(int(value))
    if isinstance(value, str):
        return datetime.fromisoformat(value.strip())
    raise ValueError(f"Unsupported timestamp value: {value!r}")


class Album(BaseModel):
    """A remote album as returned by one page of the album listing."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)

    id: str
    name: str
    last_modified_at: int = Field(alias="lastuploadtime")
    item_count: int = Field(default=0, alias="total")


class Item(BaseModel):
    """A single photo or video inside an album page."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)

    id: str = Field(alias="lloc")
    captured_at: datetime | None = Field(default=None, alias="shootTime")
    uploaded_at: datetime = Field(alias="uploadTime")
    download_url: str = Field(alias="url")

    @model_validator(mode="before")
    @classmethod
    def prefer_video_url(cls, data: Any) -> Any:
        """Videos carry their real media under video_info.download_url."""
        if isinstance(data, dict):
            video_info = data.get("video_info") or {}
            if isinstance(video_info, dict) and video_info.get("download_url"):
                data = {**data, "url": video_info["download_url"]}
        return data

    @field_validator("captured_at", mode="before")
    @classmethod
    def parse_captured_at(cls, v: Any) -> datetime | None:
        # The service reports a missing capture time as 0.
        if v in (None, "", 0, "0"):
            return None
        return _to_datetime(v)

    @field_validator("uploaded_at", mode="before")
    @classmethod
    def parse_uploaded_at(cls, v: Any) -> datetime:
        return _to_datetime(v)

    @property
    def timestamp(self) -> datetime:
        """Capture time when known, upload time otherwise."""
        return self.captured_at or self.uploaded_at
