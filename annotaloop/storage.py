"""
------------------------------------------------------------------------------
Project:        AnnotaLoop
File:           annotaloop/storage.py
Version:        1.0.0
Producer:       AnnotaLoop Archive maintainers
Description:    Storage adapter interface for document blobs and the mirrored
                adapter that keeps several backends in sync behind a single
                contract.
------------------------------------------------------------------------------
"""

from abc import ABC, abstractmethod
from typing import Dict, List, Tuple, Union

from annotaloop.errors import BlobNotFound, StorageError
from annotaloop.logger import get_logger
from annotaloop.models.types import BlobVariant

logger = get_logger("storage")

VariantLike = Union[BlobVariant, str]


class StorageAdapter(ABC):
    """Durable blob storage keyed by (storage id, extension, variant)."""

    @abstractmethod
    def get(self, storage_id: str, ext: str, variant: VariantLike) -> bytes:
        """Returns the payload or raises BlobNotFound."""
        pass

    @abstractmethod
    def put(self, storage_id: str, ext: str, variant: VariantLike, data: bytes) -> None:
        """Stores a payload, replacing any previous one."""
        pass

    @abstractmethod
    def exists(self, storage_id: str, ext: str, variant: VariantLike) -> bool:
        pass

    @abstractmethod
    def delete(self, storage_id: str, ext: str, variant: VariantLike) -> bool:
        """Removes a payload. Returns True if something was deleted."""
        pass


class MemoryStorage(StorageAdapter):
    """Process-local storage. Used for previews and tests."""

    def __init__(self) -> None:
        self.blobs: Dict[Tuple[str, str, str], bytes] = {}

    @staticmethod
    def _key(storage_id: str, ext: str, variant: VariantLike) -> Tuple[str, str, str]:
        return (storage_id, ext, BlobVariant(variant).value)

    def get(self, storage_id: str, ext: str, variant: VariantLike) -> bytes:
        try:
            return self.blobs[self._key(storage_id, ext, variant)]
        except KeyError:
            raise BlobNotFound(storage_id, ext, BlobVariant(variant).value) from None

    def put(self, storage_id: str, ext: str, variant: VariantLike, data: bytes) -> None:
        self.blobs[self._key(storage_id, ext, variant)] = bytes(data)

    def exists(self, storage_id: str, ext: str, variant: VariantLike) -> bool:
        return self._key(storage_id, ext, variant) in self.blobs

    def delete(self, storage_id: str, ext: str, variant: VariantLike) -> bool:
        return self.blobs.pop(self._key(storage_id, ext, variant), None) is not None


class MirroredStorage(StorageAdapter):
    """
    Writes every blob to a primary backend and any number of mirrors.

    Reads try the primary first and fall back to the mirrors, so blobs that
    only reached one backend stay reachable. A failing mirror write is logged
    and does not fail the put.
    """

    def __init__(self, primary: StorageAdapter, *mirrors: StorageAdapter) -> None:
        self.primary = primary
        self.mirrors: List[StorageAdapter] = list(mirrors)

    @property
    def backends(self) -> List[StorageAdapter]:
        return [self.primary, *self.mirrors]

    def get(self, storage_id: str, ext: str, variant: VariantLike) -> bytes:
        for backend in self.backends:
            try:
                return backend.get(storage_id, ext, variant)
            except BlobNotFound:
                continue
            except StorageError as e:
                logger.warning(f"{type(backend).__name__} failed to read {storage_id}{ext}: {e}")
        raise BlobNotFound(storage_id, ext, BlobVariant(variant).value)

    def put(self, storage_id: str, ext: str, variant: VariantLike, data: bytes) -> None:
        self.primary.put(storage_id, ext, variant, data)
        for mirror in self.mirrors:
            try:
                mirror.put(storage_id, ext, variant, data)
            except StorageError as e:
                logger.warning(f"Could not mirror {storage_id}{ext} to {type(mirror).__name__}: {e}")

    def exists(self, storage_id: str, ext: str, variant: VariantLike) -> bool:
        return any(b.exists(storage_id, ext, variant) for b in self.backends)

    def delete(self, storage_id: str, ext: str, variant: VariantLike) -> bool:
        deleted = False
        for backend in self.backends:
            deleted = backend.delete(storage_id, ext, variant) or deleted
        return deleted
