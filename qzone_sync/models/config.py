"""
Pydantic model for application configuration.
Provides robust validation for all settings.
"""

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from qzone_sync.api.auth import CookieCredentials
from qzone_sync.exceptions import AuthenticationError

TRACK_FILE_NAME = "track.json"


class SyncConfig(BaseModel):
    """A validated configuration model for the application."""

    model_config = ConfigDict(validate_assignment=True, str_strip_whitespace=True)

    # Authentication
    cookie: str = ""

    # Sync Settings
    save_path: str = ""
    max_workers: int = 8
    page_size: int = 20
    max_retries: int = 5

    # Album selection (empty selects every album)
    albums: list[str] = Field(default_factory=list)
    album_ids: list[str] = Field(default_factory=list)

    # Internal fields not loaded from INI file
    config_path: str = Field("", repr=False)

    @field_validator("max_workers")
    @classmethod
    def validate_workers(cls, v: int) -> int:
        """Ensures a reasonable number of workers."""
        if v < 1 or v > 32:
            raise ValueError("Max workers must be between 1 and 32.")
        return v

    @field_validator("page_size")
    @classmethod
    def validate_page_size(cls, v: int) -> int:
        if v < 1 or v > 100:
            raise ValueError("Page size must be between 1 and 100.")
        return v

    @field_validator("max_retries")
    @classmethod
    def validate_retries(cls, v: int) -> int:
        if v < 0 or v > 10:
            raise ValueError("Max retries must be between 0 and 10.")
        return v

    @model_validator(mode="after")
    def validate_auth_and_paths(self) -> "SyncConfig":
        """Validates that the cookie identifies an account and a save path is set."""
        if not self.cookie:
            raise ValueError(
                "Authentication not configured. Provide the QZone cookie "
                "(config 'cookie' or QZONE_COOKIE)."
            )
        try:
            CookieCredentials.from_cookie_header(self.cookie).uin
        except AuthenticationError as e:
            raise ValueError(str(e)) from e

        if not self.save_path:
            raise ValueError(
                "Save path not configured (config 'save_path' or QZONE_SAVE_PATH)."
            )
        return self

    @property
    def credentials(self) -> CookieCredentials:
        return CookieCredentials.from_cookie_header(self.cookie)

    @property
    def save_root(self) -> Path:
        """Per-account root directory: ``<save_path>/<uin>``."""
        return Path(self.save_path).expanduser() / self.credentials.uin

    @property
    def track_file_path(self) -> Path:
        return self.save_root / TRACK_FILE_NAME

    @classmethod
    def get_ini_keys(cls) -> set[str]:
        """Returns a set of all keys that are expected in the INI file."""
        internal_fields = {"config_path"}
        return {key for key in cls.model_fields if key not in internal_fields}
