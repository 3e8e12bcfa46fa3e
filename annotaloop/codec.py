"""
------------------------------------------------------------------------------
Project:        AnnotaLoop
File:           annotaloop/codec.py
Version:        1.0.0
Producer:       AnnotaLoop Archive maintainers
Description:    Container codec for archives. Maps forward-slash paths to byte
                payloads and stores them in a deflated ZIP file. Parsing is
                lazy so a single damaged entry only fails when it is read.
------------------------------------------------------------------------------
"""

import io
import zipfile
import zlib
from collections.abc import Mapping
from typing import Iterable, Iterator, List, Optional, Tuple, Union

from annotaloop.errors import FormatError
from annotaloop.logger import get_logger

logger = get_logger("archive.codec")

# Every ZIP local file header starts with these two bytes
ZIP_MAGIC = b"PK"
DEFAULT_COMPRESSION_LEVEL = 6

EntrySource = Union[Mapping, Iterable[Tuple[str, bytes]]]


def is_container(data: bytes) -> bool:
    """True if the buffer starts with the plain container signature."""
    return data[:2] == ZIP_MAGIC


def validate_entry_path(path: str) -> None:
    """
    Rejects entry paths that are not plain relative forward-slash paths.

    Raises:
        ValueError: For empty, absolute, backslashed or '..' paths.
    """
    if not path:
        raise ValueError("Entry path must not be empty")
    if "\\" in path:
        raise ValueError(f"Entry path must use forward slashes: {path!r}")
    if path.startswith("/"):
        raise ValueError(f"Entry path must be relative: {path!r}")
    if path.endswith("/"):
        raise ValueError(f"Entry path must name a file: {path!r}")
    if ".." in path.split("/"):
        raise ValueError(f"Entry path must not contain '..': {path!r}")


class ArchiveContents(Mapping):
    """
    Read-only view of a parsed container (path -> bytes).
    Payloads are decompressed on access.
    """

    def __init__(self, zf: zipfile.ZipFile) -> None:
        self._zf = zf
        # Preserve archive order, drop directory entries and duplicate names
        seen = set()
        self._paths: List[str] = []
        for info in zf.infolist():
            if info.is_dir() or info.filename in seen:
                continue
            seen.add(info.filename)
            self._paths.append(info.filename)
        self._path_set = frozenset(self._paths)

    def __getitem__(self, path: str) -> bytes:
        if path not in self._path_set:
            raise KeyError(path)
        try:
            return self._zf.read(path)
        except (zipfile.BadZipFile, zlib.error, EOFError, NotImplementedError, RuntimeError) as e:
            raise FormatError(f"Archive entry '{path}' is damaged: {e}") from e

    def __enter__(self) -> "ArchiveContents":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def close(self) -> None:
        """Releases the underlying ZIP reader. Entries can no longer be read."""
        self._zf.close()

    def __iter__(self) -> Iterator[str]:
        return iter(self._paths)

    def __len__(self) -> int:
        return len(self._paths)

    def __contains__(self, path: object) -> bool:
        return path in self._path_set

    @property
    def paths(self) -> List[str]:
        return list(self._paths)

    def list_prefix(self, prefix: str) -> List[str]:
        """
        Enumerates all entries below a synthetic directory.

        Args:
            prefix: Directory prefix such as 'files/'. A missing trailing slash is added.

        Returns:
            Entry paths in archive order.
        """
        if prefix and not prefix.endswith("/"):
            prefix += "/"
        return [p for p in self._paths if p.startswith(prefix)]

    def read_text(self, path: str) -> Optional[str]:
        """Returns a UTF-8 entry as text, or None if absent."""
        if path not in self:
            return None
        try:
            return self[path].decode("utf-8")
        except UnicodeDecodeError as e:
            raise FormatError(f"Archive entry '{path}' is not UTF-8 text") from e


class ArchiveCodec:
    """Builds and parses archive containers."""

    @staticmethod
    def build(entries: EntrySource, compression_level: int = DEFAULT_COMPRESSION_LEVEL) -> bytes:
        """
        Packs entries into a container.

        Args:
            entries: Mapping or sequence of (path, payload) pairs.
            compression_level: Deflate level 0-9.

        Returns:
            The container bytes.

        Raises:
            ValueError: On duplicate or malformed paths.
            TypeError: If a payload is not bytes.
        """
        items = entries.items() if isinstance(entries, Mapping) else entries

        buffer = io.BytesIO()
        seen = set()
        with zipfile.ZipFile(buffer, "w", zipfile.ZIP_DEFLATED, compresslevel=compression_level) as zf:
            for path, payload in items:
                validate_entry_path(path)
                if path in seen:
                    raise ValueError(f"Duplicate entry path: {path!r}")
                if not isinstance(payload, (bytes, bytearray, memoryview)):
                    raise TypeError(f"Payload for {path!r} must be bytes, got {type(payload).__name__}")
                seen.add(path)
                zf.writestr(path, bytes(payload))

        logger.debug(f"Built container with {len(seen)} entries")
        return buffer.getvalue()

    @staticmethod
    def parse(data: bytes) -> ArchiveContents:
        """
        Opens a container for reading.

        Raises:
            FormatError: If the bytes are not a readable container.
        """
        if not is_container(data):
            raise FormatError("Not an archive container (missing ZIP signature)")
        try:
            zf = zipfile.ZipFile(io.BytesIO(data), "r")
        except (zipfile.BadZipFile, zlib.error, EOFError, ValueError) as e:
            raise FormatError(f"Not a valid archive container: {e}") from e
        return ArchiveContents(zf)
