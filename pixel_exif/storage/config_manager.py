"""
Manages loading, validation, and migration of the INI configuration file.
"""

import configparser
import logging
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from pixel_exif.exceptions import ConfigurationError
from pixel_exif.models.config import ExtractorConfig

log = logging.getLogger(__name__)


def _to_ini_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, list):
        return ",".join(map(str, value))
    return "" if value is None else str(value)


class ConfigManager:
    """Handles all operations related to the application's INI config file."""

    def __init__(self, config_file_path: Path):
        self.config_file_path = config_file_path
        self._parser = configparser.ConfigParser()

    def load_config(self, cli_options: dict[str, Any] | None = None) -> ExtractorConfig:
        """
        Loads configuration from the INI file, applies CLI overrides, and validates it.

        A missing file is not an error: defaults are used.

        Raises:
            ConfigurationError: If the file is unreadable or validation fails.
        """
        config_from_file: dict[str, Any] = {}
        if self.config_file_path.is_file():
            try:
                self._parser.read(self.config_file_path, encoding="utf-8")
            except configparser.Error as e:
                raise ConfigurationError(f"Error parsing configuration file: {e}") from e

            if self._migrate_if_needed():
                log.info(
                    "[yellow]Configuration file was updated with new default values."
                    "[/yellow]"
                )
            config_from_file = self.get_config_as_dict()
        else:
            log.debug(f"No config file at '{self.config_file_path}', using defaults.")

        if cli_options:
            config_from_file.update(cli_options)

        try:
            return ExtractorConfig(**config_from_file)
        except ValidationError as e:
            raise ConfigurationError(f"Configuration validation failed:\n{e}") from e

    def save_new_config(self, settings: dict[str, Any] | None = None) -> None:
        """Writes a complete config file from defaults plus the given settings."""
        settings = settings or {}
        defaults = ExtractorConfig()
        config = configparser.ConfigParser()
        config["DEFAULT"] = {
            key: _to_ini_value(settings.get(key, getattr(defaults, key)))
            for key in sorted(ExtractorConfig.get_ini_keys())
        }

        try:
            self.config_file_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.config_file_path, "w", encoding="utf-8") as configfile:
                config.write(configfile)
        except OSError as e:
            raise ConfigurationError(f"Failed to save configuration file: {e}") from e

    def get_config_as_dict(self) -> dict[str, Any]:
        """Reads the 'DEFAULT' section of the INI file into a dictionary."""
        section = self._parser["DEFAULT"]
        defaults = ExtractorConfig()
        try:
            return {
                "ascii_width": section.getint("ascii_width", defaults.ascii_width),
                "max_workers": section.getint("max_workers", defaults.max_workers),
                "digest_algorithms": [
                    s.strip()
                    for s in section.get("digest_algorithms", "").split(",")
                    if s.strip()
                ]
                or defaults.digest_algorithms,
                "log_dir": section.get("log_dir", defaults.log_dir),
                "json_logs": section.getboolean("json_logs", defaults.json_logs),
            }
        except ValueError as e:
            raise ConfigurationError(f"Invalid value in configuration file: {e}") from e

    def _migrate_if_needed(self) -> bool:
        """Adds missing default values to an existing config file."""
        defaults = ExtractorConfig()
        section = self._parser["DEFAULT"]
        missing = [k for k in sorted(ExtractorConfig.get_ini_keys()) if k not in section]
        if not missing:
            return False

        for key in missing:
            section[key] = _to_ini_value(getattr(defaults, key))
            log.debug(f"Migrating config: added missing key '{key}' = '{section[key]}'.")

        try:
            with open(self.config_file_path, "w", encoding="utf-8") as f:
                self._parser.write(f)
        except OSError as e:
            log.error(f"Could not save migrated configuration file: {e}")
            return False
        return True
