"""
------------------------------------------------------------------------------
Project:        AnnotaLoop
File:           annotaloop/sink.py
Version:        1.0.0
Producer:       AnnotaLoop Archive maintainers
Description:    Destinations for finished exports. A sink picks the target
                path (or declines, which cancels the export) and persists
                the bytes.
------------------------------------------------------------------------------
"""

import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional, Union

from annotaloop.errors import StorageError
from annotaloop.logger import get_logger
from annotaloop.naming import unique_name

logger = get_logger("sink")


class DestinationSink(ABC):
    """Where export bytes end up."""

    @abstractmethod
    def choose_path(self, suggested_name: str, extension_filter: str) -> Optional[str]:
        """
        Resolves the target for an export.

        Args:
            suggested_name: Proposed file name, including the archive extension.
            extension_filter: The archive extension, e.g. '.alproj'.

        Returns:
            The chosen path, or None if the user cancelled.
        """
        pass

    @abstractmethod
    def write_bytes(self, path: str, data: bytes) -> None:
        pass


def sanitize_filename(name: str) -> str:
    """Replaces characters that would create sub directories."""
    cleaned = name.replace("/", "_").replace("\\", "_").replace(os.sep, "_").strip()
    return cleaned or "export"


class DirectorySink(DestinationSink):
    """
    Writes exports into a fixed directory.
    Existing files are kept unless overwrite is set; the new file then gets a " (n)" suffix.
    """

    def __init__(self, directory: Union[str, Path], overwrite: bool = False) -> None:
        self.directory = Path(directory)
        self.overwrite = overwrite

    def choose_path(self, suggested_name: str, extension_filter: str) -> Optional[str]:
        name = sanitize_filename(suggested_name)
        if extension_filter and not name.endswith(extension_filter):
            name += extension_filter

        if not self.overwrite and self.directory.is_dir():
            name = unique_name(name, set(os.listdir(self.directory)))
        return str(self.directory / name)

    def write_bytes(self, path: str, data: bytes) -> None:
        target = Path(path)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(data)
        except OSError as e:
            logger.error(f"Failed to write export to {target}: {e}")
            raise StorageError(f"Failed to write {target}: {e}") from e
        logger.info(f"Wrote {len(data)} bytes to {target}")
