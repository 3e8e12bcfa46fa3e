"""
------------------------------------------------------------------------------
Project:        AnnotaLoop
File:           annotaloop/config.py
Version:        1.0.0
Producer:       AnnotaLoop Archive maintainers
Description:    Manages application configuration using QSettings. Standardizes
                paths for configuration and data across different platforms
                (XDG standards on Linux).
------------------------------------------------------------------------------
"""

import json
from pathlib import Path
from typing import Any, Dict, Optional

from PyQt6.QtCore import QSettings, QStandardPaths

from annotaloop.codec import DEFAULT_COMPRESSION_LEVEL


class AppConfig:
    """
    Manages application configuration using QSettings.
    Singleton-like usage via class methods or single instance.
    """

    KEY_VAULT_PATH: str = "vault_path"
    KEY_DATABASE_PATH: str = "database_path"
    KEY_EXPORT_DIR: str = "export_dir"
    KEY_COMPRESSION_LEVEL: str = "compression_level"
    KEY_LOG_LEVEL: str = "log_level"
    KEY_LOG_COMPONENTS: str = "log_components"

    DEFAULT_LOG_LEVEL: str = "WARNING"

    APP_ID: str = "annotaloop"
    _active_profile: Optional[str] = None

    def __init__(self, profile: Optional[str] = None) -> None:
        """
        Initializes the configuration manager.
        Ensures a flat structure by explicitly naming the application and organization.

        Args:
            profile: Optional profile name (e.g. 'dev', 'test').
                    If provided, all paths and settings will be isolated (e.g. annotaloop-dev).
        """
        # If no profile provided, use the last active one
        if profile is None:
            profile = AppConfig._active_profile
        else:
            AppConfig._active_profile = profile

        self.profile = profile
        self.active_id = self.APP_ID
        if profile:
            self.active_id = f"{self.APP_ID}-{profile}"

        self.settings = QSettings(self.active_id, self.active_id)

    def get_config_dir(self) -> Path:
        """
        Returns the path to the application configuration directory.
        Forces a flat structure: ~/.config/annotaloop[-profile]/
        """
        base_path = QStandardPaths.writableLocation(QStandardPaths.StandardLocation.ConfigLocation)
        config_dir = Path(base_path) / self.active_id
        config_dir.mkdir(parents=True, exist_ok=True)
        return config_dir

    def get_data_dir(self) -> Path:
        """
        Returns the path to the application data directory.
        Forces a flat structure: ~/.local/share/annotaloop[-profile]/
        """
        base_path = QStandardPaths.writableLocation(QStandardPaths.StandardLocation.GenericDataLocation)
        data_dir = Path(base_path) / self.active_id
        data_dir.mkdir(parents=True, exist_ok=True)
        return data_dir

    def _get_setting(self, group: str, key: str, default: Any = None) -> Any:
        """
        Helper to retrieve a setting value from a specific group.

        Args:
            group: The configuration group name.
            key: The setting key.
            default: The default value if not found.

        Returns:
            The retrieved value or default.
        """
        if group:
            self.settings.beginGroup(group)
        val = self.settings.value(key, default)
        if group:
            self.settings.endGroup()
        return val

    def _set_setting(self, group: str, key: str, value: Any) -> None:
        """
        Helper to save a setting value into a specific group.

        Args:
            group: The configuration group name.
            key: The setting key.
            value: The value to save.
        """
        if isinstance(value, str):
            value = value.strip()

        if group:
            self.settings.beginGroup(group)
        self.settings.setValue(key, value)
        if group:
            self.settings.endGroup()

    # --- Storage ---

    def get_vault_path(self) -> str:
        """
        Retrieves the path to the document vault.

        Returns:
            The vault path string. Defaults to 'vault' inside the data directory.
        """
        val = str(self._get_setting("Storage", self.KEY_VAULT_PATH, "") or "")
        return val if val else str(self.get_data_dir() / "vault")

    def set_vault_path(self, path: str) -> None:
        """
        Saves the path to the document vault.

        Args:
            path: The vault path string.
        """
        self._set_setting("Storage", self.KEY_VAULT_PATH, path)

    def get_database_path(self) -> str:
        """Retrieves the SQLite database path. Defaults to '<data dir>/<app id>.db'."""
        val = str(self._get_setting("Storage", self.KEY_DATABASE_PATH, "") or "")
        return val if val else str(self.get_data_dir() / f"{self.active_id}.db")

    def set_database_path(self, path: str) -> None:
        self._set_setting("Storage", self.KEY_DATABASE_PATH, path)

    # --- Archive ---

    def get_export_dir(self) -> str:
        """
        Retrieves the default directory for exported archives.

        Returns:
            The configured directory, or the user's documents folder.
        """
        val = str(self._get_setting("Archive", self.KEY_EXPORT_DIR, "") or "")
        if val:
            return val
        return QStandardPaths.writableLocation(QStandardPaths.StandardLocation.DocumentsLocation)

    def set_export_dir(self, path: str) -> None:
        self._set_setting("Archive", self.KEY_EXPORT_DIR, path)

    def get_compression_level(self) -> int:
        """Retrieves the deflate level (0-9) used for archive containers."""
        val = self._get_setting("Archive", self.KEY_COMPRESSION_LEVEL, DEFAULT_COMPRESSION_LEVEL)
        try:
            level = int(val)
        except (TypeError, ValueError):
            return DEFAULT_COMPRESSION_LEVEL
        return min(max(level, 0), 9)

    def set_compression_level(self, level: int) -> None:
        if not 0 <= int(level) <= 9:
            raise ValueError(f"Compression level must be between 0 and 9, got {level}")
        self._set_setting("Archive", self.KEY_COMPRESSION_LEVEL, int(level))

    # --- Logging ---

    def get_log_level(self) -> str:
        """Retrieves the global log level."""
        return str(self._get_setting("Logging", self.KEY_LOG_LEVEL, self.DEFAULT_LOG_LEVEL))

    def set_log_level(self, level: str) -> None:
        """Saves the global log level."""
        self._set_setting("Logging", self.KEY_LOG_LEVEL, level.upper())

    def get_log_components(self) -> Dict[str, str]:
        """Retrieves a dictionary of component-specific log levels."""
        raw = str(self._get_setting("Logging", self.KEY_LOG_COMPONENTS, "{}"))
        try:
            components = json.loads(raw)
        except json.JSONDecodeError:
            return {}
        return components if isinstance(components, dict) else {}

    def set_log_components(self, components: Dict[str, str]) -> None:
        """Saves a dictionary of component-specific log levels."""
        self._set_setting("Logging", self.KEY_LOG_COMPONENTS, json.dumps(components))

    def get_log_file_path(self) -> Path:
        """Returns the absolute path to the log file."""
        return self.get_data_dir() / "app.log"
