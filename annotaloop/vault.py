"""
------------------------------------------------------------------------------
Project:        AnnotaLoop
File:           annotaloop/vault.py
Version:        1.0.0
Producer:       AnnotaLoop Archive maintainers
Description:    Manages physical storage of document files in the vault.
                Original and annotated copies live in separate folders and are
                named after the document's storage id.
------------------------------------------------------------------------------
"""

from pathlib import Path
from typing import Optional, Union

from annotaloop.errors import BlobNotFound, StorageError
from annotaloop.logger import get_logger
from annotaloop.models.types import BlobVariant
from annotaloop.storage import StorageAdapter, VariantLike

logger = get_logger("storage.vault")

VARIANT_FOLDERS = {
    BlobVariant.ORIGINAL: "originals",
    BlobVariant.ANNOTATED: "annotated",
}


class DocumentVault(StorageAdapter):
    """
    Filesystem backend for document blobs.
    Layout: <base>/originals/<storage_id><ext> and <base>/annotated/<storage_id><ext>.
    """

    def __init__(self, base_path: Union[str, Path] = "vault") -> None:
        """
        Initializes the DocumentVault.

        Args:
            base_path: The directory path where files should be stored.
        """
        self.base_path: Path = Path(base_path).absolute()
        self._ensure_vault_exists()

    def _ensure_vault_exists(self) -> None:
        """Create the vault folders if they don't exist."""
        for folder in VARIANT_FOLDERS.values():
            (self.base_path / folder).mkdir(parents=True, exist_ok=True)

    def get_file_path(self, storage_id: str, ext: str, variant: VariantLike = BlobVariant.ORIGINAL) -> Optional[Path]:
        """
        Returns the absolute path for a stored blob.

        Args:
            storage_id: The document's storage id.
            ext: File extension including the dot.
            variant: Original or annotated copy.

        Returns:
            The path, or None if it would resolve outside the vault.
        """
        folder = self.base_path / VARIANT_FOLDERS[BlobVariant(variant)]
        path = folder / f"{storage_id}{ext}"

        # Validate path is inside its folder to prevent traversal attacks
        try:
            if not path.resolve().is_relative_to(folder.resolve()):
                return None
        except (ValueError, OSError):
            return None

        return path

    def _require_path(self, storage_id: str, ext: str, variant: VariantLike) -> Path:
        path = self.get_file_path(storage_id, ext, variant)
        if path is None:
            raise StorageError(f"Storage id escapes the vault: {storage_id!r}", storage_id=storage_id)
        return path

    def get(self, storage_id: str, ext: str, variant: VariantLike) -> bytes:
        path = self._require_path(storage_id, ext, variant)
        if not path.is_file():
            raise BlobNotFound(storage_id, ext, BlobVariant(variant).value)
        try:
            return path.read_bytes()
        except OSError as e:
            raise StorageError(f"Failed to read {path}: {e}", storage_id=storage_id) from e

    def put(self, storage_id: str, ext: str, variant: VariantLike, data: bytes) -> None:
        path = self._require_path(storage_id, ext, variant)
        try:
            path.write_bytes(data)
        except OSError as e:
            raise StorageError(f"Failed to write {path}: {e}", storage_id=storage_id) from e
        logger.debug(f"Saved file: {path.relative_to(self.base_path)} ({len(data)} bytes)")

    def exists(self, storage_id: str, ext: str, variant: VariantLike) -> bool:
        path = self.get_file_path(storage_id, ext, variant)
        return path is not None and path.is_file()

    def delete(self, storage_id: str, ext: str, variant: VariantLike) -> bool:
        """
        Deletes a stored blob.

        Returns:
            True if the file was deleted successfully, False otherwise.
        """
        path = self.get_file_path(storage_id, ext, variant)
        if path is None or not path.exists():
            return False
        try:
            path.unlink()
            return True
        except OSError:
            return False
