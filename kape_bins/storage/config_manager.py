"""
Manages loading and validation of the optional INI configuration file.
"""

import configparser
import logging
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from kape_bins.exceptions import ConfigurationError
from kape_bins.models.config import CopyMapping, SyncConfig

log = logging.getLogger(__name__)

DEFAULT_CONFIG_NAME = "kape-bins.ini"


class ConfigManager:
    """Handles all operations related to the application's INI config file."""

    def __init__(self, config_file_path: Path):
        self.config_file_path = config_file_path
        self._parser = configparser.ConfigParser(interpolation=None)

    @classmethod
    def for_root(cls, root_dir: Path) -> "ConfigManager":
        """Returns a manager for the default config file location in `root_dir`."""
        return cls(root_dir / DEFAULT_CONFIG_NAME)

    def load_config(
        self,
        root_dir: Path,
        cli_options: dict[str, Any] | None = None,
        required: bool = False,
    ) -> SyncConfig:
        """
        Loads configuration from the INI file, applies CLI overrides, and validates it.

        Args:
            root_dir: The directory to scan for module files.
            cli_options: A dictionary of options provided via the command line.
            required: Whether a missing config file is an error. Without it the
                defaults are used.

        Returns:
            A validated SyncConfig object.

        Raises:
            ConfigurationError: If the config file is unreadable or validation fails.
        """
        config_from_file: dict[str, Any] = {}
        if self.config_file_path.is_file():
            try:
                self._parser.read(self.config_file_path, encoding="utf-8")
            except configparser.Error as e:
                raise ConfigurationError(f"Error parsing configuration file: {e}") from e
            config_from_file = self._get_config_as_dict()
            log.debug(f"Loaded configuration from {self.config_file_path}")
        elif required:
            raise ConfigurationError(
                f"Configuration file not found at '{self.config_file_path}'."
            )

        # Override with CLI options
        if cli_options:
            config_from_file.update(cli_options)

        try:
            return SyncConfig(
                **config_from_file,
                root_dir=root_dir,
                config_path=str(self.config_file_path),
            )
        except ValidationError as e:
            raise ConfigurationError(f"Configuration validation failed:\n{e}") from e

    def save_new_config(self, settings: dict[str, Any] | None = None) -> None:
        """
        Creates and saves a new configuration file populated with defaults.

        Args:
            settings: Values to use instead of the defaults.
        """
        settings = settings or {}
        config = configparser.ConfigParser(interpolation=None)
        config["DEFAULT"] = {}

        defaults = SyncConfig.model_construct()
        for key in sorted(SyncConfig.get_ini_keys()):
            value = settings.get(key, getattr(defaults, key, None))

            if key == "copy_mappings":
                config["DEFAULT"][key] = ", ".join(
                    m.source if isinstance(m, CopyMapping) else str(m) for m in value
                )
            elif isinstance(value, bool):
                config["DEFAULT"][key] = "true" if value else "false"
            elif value is not None:
                config["DEFAULT"][key] = str(value)

        try:
            self.config_file_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.config_file_path, "w", encoding="utf-8") as configfile:
                config.write(configfile)
        except OSError as e:
            raise ConfigurationError(f"Failed to save configuration file: {e}") from e

    def _get_config_as_dict(self) -> dict[str, Any]:
        """Reads the keys present in the 'DEFAULT' section into a dictionary."""
        section = self._parser["DEFAULT"]
        unknown = set(section) - SyncConfig.get_ini_keys()
        if unknown:
            log.warning(
                f"[yellow]Ignoring unknown configuration keys: "
                f"{', '.join(sorted(unknown))}[/yellow]"
            )

        values: dict[str, Any] = {}
        try:
            for key in ("cache_dir_name", "module_extension", "url_prefix"):
                if key in section:
                    values[key] = section.get(key)
            for key in ("connect_timeout", "read_timeout"):
                if key in section:
                    values[key] = section.getfloat(key)
            if "promote" in section:
                values["promote"] = section.getboolean("promote")
        except ValueError as e:
            raise ConfigurationError(f"Invalid value in configuration file: {e}") from e

        if "copy_mappings" in section:
            values["copy_mappings"] = [
                {"source": s.strip()}
                for s in section.get("copy_mappings", "").split(",")
                if s.strip()
            ]
        return values
