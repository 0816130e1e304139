"""
Manages loading, validation, and migration of the INI configuration file.
"""

import configparser
import logging
import os
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from qzone_sync.exceptions import ConfigurationError
from qzone_sync.models.config import SyncConfig

log = logging.getLogger(__name__)

# Environment variables understood in addition to the INI file.
ENV_OVERRIDES = {
    "QZONE_COOKIE": "cookie",
    "QZONE_SAVE_PATH": "save_path",
    "QZONE_DOWNLOAD_CONCURRENT": "max_workers",
}


def _split_list(value: str) -> list[str]:
    return [s.strip() for s in value.split(",") if s.strip()]


class ConfigManager:
    """Handles all operations related to the application's INI config file."""

    def __init__(self, config_file_path: Path, environ: dict[str, str] | None = None):
        self.config_file_path = config_file_path
        self._environ = os.environ if environ is None else environ
        # Cookies contain '%' which would otherwise be read as interpolation.
        self._parser = configparser.ConfigParser(interpolation=None)

    def load_config(self, cli_options: dict[str, Any] | None = None) -> SyncConfig:
        """
        Loads configuration from the INI file, applies environment and CLI
        overrides, and validates it.

        Args:
            cli_options: A dictionary of options provided via the command line.

        Returns:
            A validated SyncConfig object.

        Raises:
            ConfigurationError: If no configuration source exists, the file is
            invalid, or validation fails.
        """
        env_options = self._get_env_overrides()

        if self.config_file_path.is_file():
            try:
                self._parser.read(self.config_file_path, encoding="utf-8")
            except configparser.Error as e:
                raise ConfigurationError(
                    f"Error parsing configuration file: {e}"
                ) from e

            if self._migrate_if_needed():
                log.info(
                    "[yellow]Configuration file was updated with new default values."
                    "[/yellow]"
                )
            config_data = self._get_config_as_dict()
        elif "cookie" in env_options:
            log.debug("No configuration file found; using environment variables.")
            config_data = {}
        else:
            raise ConfigurationError(
                f"Configuration file not found at '{self.config_file_path}'. "
                "Please run 'qzone-sync init' first or set QZONE_COOKIE."
            )

        config_data.update(env_options)
        if cli_options:
            config_data.update(cli_options)

        try:
            config_dir = self.config_file_path.parent
            return SyncConfig(**config_data, config_path=str(config_dir))
        except ValidationError as e:
            raise ConfigurationError(f"Configuration validation failed:\n{e}") from e

    def save_new_config(self, settings: dict[str, Any]) -> None:
        """
        Creates and saves a new configuration file.

        Args:
            settings: A dictionary of settings to save.
        """
        config = configparser.ConfigParser(interpolation=None)
        config["DEFAULT"] = {}

        # Get all possible keys from the model to create a complete default config
        defaults = SyncConfig.model_construct()
        for key in sorted(SyncConfig.get_ini_keys()):
            value = settings.get(key, getattr(defaults, key, None))
            if isinstance(value, list):
                config["DEFAULT"][key] = ",".join(map(str, value))
            elif value is not None:
                config["DEFAULT"][key] = str(value)

        try:
            self.config_file_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.config_file_path, "w", encoding="utf-8") as configfile:
                config.write(configfile)
        except OSError as e:
            raise ConfigurationError(f"Failed to save configuration file: {e}") from e

    def read_config_dict(self) -> dict[str, Any]:
        """Reads the INI file as-is, without overrides or validation."""
        try:
            self._parser.read(self.config_file_path, encoding="utf-8")
        except configparser.Error as e:
            raise ConfigurationError(f"Error parsing configuration file: {e}") from e
        return self._get_config_as_dict()

    def _get_env_overrides(self) -> dict[str, Any]:
        options: dict[str, Any] = {}
        for env_key, field_name in ENV_OVERRIDES.items():
            if value := self._environ.get(env_key, "").strip():
                options[field_name] = value
        return options

    def _get_config_as_dict(self) -> dict[str, Any]:
        """Reads the 'DEFAULT' section of the INI file into a dictionary."""
        section = self._parser["DEFAULT"]
        try:
            return {
                "cookie": section.get("cookie", ""),
                "save_path": section.get("save_path", ""),
                "max_workers": section.getint("max_workers", 8),
                "page_size": section.getint("page_size", 20),
                "max_retries": section.getint("max_retries", 5),
                "albums": _split_list(section.get("albums", "")),
                "album_ids": _split_list(section.get("album_ids", "")),
            }
        except ValueError as e:
            raise ConfigurationError(f"Invalid value in configuration file: {e}") from e

    def _migrate_if_needed(self) -> bool:
        """Adds missing default values to an existing config file."""
        defaults = SyncConfig.model_construct()
        needs_saving = False

        config_section = self._parser["DEFAULT"]

        for key in sorted(SyncConfig.get_ini_keys()):
            if key not in config_section:
                default_value = getattr(defaults, key)
                if isinstance(default_value, list):
                    config_section[key] = ",".join(map(str, default_value))
                else:
                    config_section[key] = str(default_value)

                needs_saving = True
                log.debug(
                    f"Migrating config: added missing key '{key}' with "
                    f"value '{config_section[key]}'."
                )

        if needs_saving:
            try:
                with open(self.config_file_path, "w", encoding="utf-8") as f:
                    self._parser.write(f)
            except OSError as e:
                log.error(f"Could not save migrated configuration file: {e}")
                return False

        return needs_saving
