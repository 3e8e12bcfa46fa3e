import sqlite3

import pytest

from annotaloop.errors import BlobNotFound
from annotaloop.models import Document, Label, Project
from annotaloop.repositories import BlobRepository, DocumentRepository, ProjectRepository


@pytest.fixture
def project_repo(memory_db):
    return ProjectRepository(memory_db)


@pytest.fixture
def document_repo(memory_db):
    return DocumentRepository(memory_db)


def test_init_db(memory_db):
    cursor = memory_db.connection.cursor()
    cursor.execute("SELECT name FROM sqlite_master WHERE type = 'table'")
    tables = {row[0] for row in cursor.fetchall()}
    assert {"projects", "documents", "blobs"} <= tables


def test_project_round_trip(project_repo, sample_project):
    project_repo.save(sample_project)
    loaded = project_repo.get(7)
    assert loaded == sample_project
    assert project_repo.get_names() == ["Contracts"]
    assert project_repo.get_ids() == [7]
    assert project_repo.get(8) is None


def test_project_without_id_is_rejected(project_repo):
    with pytest.raises(ValueError):
        project_repo.save(Project(name="Nameless"))


def test_document_round_trip(project_repo, document_repo, sample_project, sample_documents):
    project_repo.save(sample_project)
    document_repo.save_many(sample_documents)

    assert document_repo.get(11) == sample_documents[0]
    assert [d.id for d in document_repo.list_by_project(7)] == [11, 12]
    assert sorted(document_repo.get_names(7)) == ["notes.txt", "report.pdf"]
    assert document_repo.get_names(99) == []
    assert document_repo.count_by_project(7) == 2
    assert [d.id for d in document_repo.get_many([12, 404, 11])] == [12, 11]


def test_updating_project_keeps_documents(project_repo, document_repo, sample_project, sample_documents):
    project_repo.save(sample_project)
    document_repo.save_many(sample_documents)

    updated = sample_project.model_copy(update={"labels": [Label(id="l2", name="Date", color="#00f")]})
    project_repo.save(updated)

    assert project_repo.get(7).labels[0].name == "Date"
    assert document_repo.count_by_project(7) == 2


def test_deleting_project_cascades(project_repo, document_repo, sample_project, sample_documents):
    project_repo.save(sample_project)
    document_repo.save_many(sample_documents)
    assert project_repo.delete(7)
    assert document_repo.get_ids() == []


def test_blob_repository(memory_db):
    blobs = BlobRepository(memory_db)
    blobs.put("s1", ".pdf", "original", b"\x00\x01binary")
    assert blobs.get("s1", ".pdf", "original") == b"\x00\x01binary"
    assert blobs.exists("s1", ".pdf", "original")

    with pytest.raises(BlobNotFound):
        blobs.get("s1", ".pdf", "annotated")

    assert blobs.delete("s1", ".pdf", "original")
    assert not blobs.exists("s1", ".pdf", "original")


def test_document_with_unknown_project_fails(document_repo):
    with pytest.raises(sqlite3.IntegrityError):
        document_repo.save(Document(id=1, name="orphan.pdf", project_id=123))
