import pytest

from annotaloop.errors import BlobNotFound, StorageError
from annotaloop.models.types import BlobVariant
from annotaloop.storage import MemoryStorage, MirroredStorage


class FailingStorage(MemoryStorage):
    def put(self, storage_id, ext, variant, data):
        raise StorageError("read-only", storage_id=storage_id)

    def get(self, storage_id, ext, variant):
        raise StorageError("unreachable", storage_id=storage_id)


def test_memory_storage_round_trip(memory_storage):
    memory_storage.put("s1", ".pdf", BlobVariant.ORIGINAL, b"data")
    assert memory_storage.get("s1", ".pdf", "original") == b"data"
    assert memory_storage.exists("s1", ".pdf", "original")
    assert not memory_storage.exists("s1", ".pdf", "annotated")
    assert memory_storage.delete("s1", ".pdf", "original")
    assert not memory_storage.delete("s1", ".pdf", "original")


def test_memory_storage_not_found(memory_storage):
    with pytest.raises(BlobNotFound) as exc_info:
        memory_storage.get("nope", ".pdf", BlobVariant.ANNOTATED)
    assert exc_info.value.variant == "annotated"


def test_mirrored_put_writes_all_backends():
    primary, mirror = MemoryStorage(), MemoryStorage()
    storage = MirroredStorage(primary, mirror)
    storage.put("s1", ".pdf", "original", b"x")
    assert primary.get("s1", ".pdf", "original") == b"x"
    assert mirror.get("s1", ".pdf", "original") == b"x"


def test_mirrored_get_falls_back_to_mirror():
    primary, mirror = MemoryStorage(), MemoryStorage()
    mirror.put("s1", ".pdf", "original", b"only in mirror")
    storage = MirroredStorage(primary, mirror)
    assert storage.get("s1", ".pdf", "original") == b"only in mirror"
    assert storage.exists("s1", ".pdf", "original")


def test_mirrored_get_survives_broken_primary():
    mirror = MemoryStorage()
    mirror.put("s1", ".pdf", "original", b"x")
    assert MirroredStorage(FailingStorage(), mirror).get("s1", ".pdf", "original") == b"x"


def test_mirrored_get_not_found():
    with pytest.raises(BlobNotFound):
        MirroredStorage(MemoryStorage(), MemoryStorage()).get("s1", ".pdf", "original")


def test_mirror_failure_does_not_fail_put():
    primary = MemoryStorage()
    MirroredStorage(primary, FailingStorage()).put("s1", ".pdf", "original", b"x")
    assert primary.exists("s1", ".pdf", "original")


def test_primary_failure_propagates():
    with pytest.raises(StorageError):
        MirroredStorage(FailingStorage(), MemoryStorage()).put("s1", ".pdf", "original", b"x")


def test_mirrored_delete():
    primary, mirror = MemoryStorage(), MemoryStorage()
    storage = MirroredStorage(primary, mirror)
    storage.put("s1", ".pdf", "original", b"x")
    assert storage.delete("s1", ".pdf", "original")
    assert not primary.exists("s1", ".pdf", "original")
    assert not mirror.exists("s1", ".pdf", "original")
