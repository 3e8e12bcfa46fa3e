import itertools
from datetime import datetime, timezone

import pytest

from annotaloop.database import DatabaseManager
from annotaloop.models import Document, DocumentStatus, Label, Project, Rule
from annotaloop.models.types import BlobVariant
from annotaloop.storage import MemoryStorage

FIXED_NOW = datetime(2024, 5, 1, 9, 30, 0, tzinfo=timezone.utc)


@pytest.fixture
def memory_storage():
    return MemoryStorage()


@pytest.fixture
def memory_db():
    db = DatabaseManager(":memory:")
    yield db
    db.close()


@pytest.fixture
def fixed_clock():
    return lambda: FIXED_NOW


@pytest.fixture
def sid_factory():
    """Deterministic storage ids: sid-1, sid-2, ..."""
    counter = itertools.count(1)
    return lambda: f"sid-{next(counter)}"


@pytest.fixture
def sample_project():
    return Project(
        id=7,
        name="Contracts",
        desc="Supplier contracts",
        date="2024-01-15T10:00:00.000Z",
        doc_count=2,
        labels=[Label(id="l1", name="Party", color="#ff0000")],
        rules=[Rule(id="r1", name="Has term", logic="term exists")],
    )


@pytest.fixture
def sample_documents():
    return [
        Document(id=11, name="report.pdf", project_id=7, storage_id="old-a",
                 status=DocumentStatus.ANNOTATED, size="1.2 MB", date="2024-01-16"),
        Document(id=12, name="notes.txt", project_id=7, storage_id="old-b",
                 status=DocumentStatus.READY, size="2 KB", date="2024-01-17"),
    ]


@pytest.fixture
def filled_storage(memory_storage):
    memory_storage.put("old-a", ".pdf", BlobVariant.ORIGINAL, b"%PDF original")
    memory_storage.put("old-a", ".pdf", BlobVariant.ANNOTATED, b"%PDF annotated")
    memory_storage.put("old-b", ".txt", BlobVariant.ORIGINAL, b"plain notes")
    return memory_storage
