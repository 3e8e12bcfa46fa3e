import sqlite3

from annotaloop.errors import BlobNotFound, StorageError
from annotaloop.models.types import BlobVariant
from annotaloop.storage import StorageAdapter, VariantLike
from .base import BaseRepository


class BlobRepository(BaseRepository, StorageAdapter):
    """
    Stores document blobs inside the 'blobs' table.
    Serves as the database mirror of the file vault.
    """

    def get(self, storage_id: str, ext: str, variant: VariantLike) -> bytes:
        sql = "SELECT data FROM blobs WHERE storage_id = ? AND variant = ? AND ext = ?"
        try:
            row = self.conn.execute(sql, (storage_id, BlobVariant(variant).value, ext)).fetchone()
        except sqlite3.Error as e:
            raise StorageError(f"Blob lookup failed: {e}", storage_id=storage_id) from e
        if row is None:
            raise BlobNotFound(storage_id, ext, BlobVariant(variant).value)
        return bytes(row["data"])

    def put(self, storage_id: str, ext: str, variant: VariantLike, data: bytes) -> None:
        sql = "INSERT OR REPLACE INTO blobs (storage_id, variant, ext, data) VALUES (?, ?, ?, ?)"
        try:
            with self.conn:
                self.conn.execute(sql, (storage_id, BlobVariant(variant).value, ext, sqlite3.Binary(data)))
        except sqlite3.Error as e:
            raise StorageError(f"Blob write failed: {e}", storage_id=storage_id) from e

    def exists(self, storage_id: str, ext: str, variant: VariantLike) -> bool:
        sql = "SELECT 1 FROM blobs WHERE storage_id = ? AND variant = ? AND ext = ?"
        return self.conn.execute(sql, (storage_id, BlobVariant(variant).value, ext)).fetchone() is not None

    def delete(self, storage_id: str, ext: str, variant: VariantLike) -> bool:
        sql = "DELETE FROM blobs WHERE storage_id = ? AND variant = ? AND ext = ?"
        with self.conn:
            cursor = self.conn.execute(sql, (storage_id, BlobVariant(variant).value, ext))
        return cursor.rowcount > 0
