import pytest
from pydantic import ValidationError

from annotaloop.models import ArchiveKind, Document, DocumentStatus, Label, Project, Rule
from annotaloop.models.archive import ExportResult, document_blob_path, project_blob_path
from annotaloop.models.types import BlobVariant


def test_document_uses_camel_case_aliases():
    doc = Document.model_validate({
        "id": 3,
        "name": "scan.png",
        "projectId": 1,
        "storageId": "abc",
        "tokenCount": 120,
        "status": "In Progress",
        "reviewData": {"fields": [1, 2]},
    })
    assert doc.project_id == 1
    assert doc.status == DocumentStatus.IN_PROGRESS
    dumped = doc.to_json_dict()
    assert dumped["projectId"] == 1
    assert dumped["storageId"] == "abc"
    assert dumped["reviewData"] == {"fields": [1, 2]}
    assert "fileUrl" not in dumped


def test_document_rejects_unknown_fields():
    with pytest.raises(ValidationError):
        Document.model_validate({"id": 1, "name": "a", "projectId": 1, "color": "red"})


def test_document_requires_name():
    with pytest.raises(ValidationError):
        Document(id=1, name="", project_id=1)


@pytest.mark.parametrize("status, processed", [
    (DocumentStatus.READY, False),
    (DocumentStatus.IN_PROGRESS, False),
    (DocumentStatus.ERROR, False),
    (DocumentStatus.PROCESSED, True),
    (DocumentStatus.REVIEW, True),
    (DocumentStatus.ANNOTATED, True),
])
def test_is_processed(status, processed):
    assert Document(id=1, name="a.pdf", project_id=1, status=status).is_processed is processed


def test_document_file_extension():
    assert Document(id=1, name="a.b.pdf", project_id=1).file_extension == ".pdf"
    assert Document(id=1, name="README", project_id=1).file_extension == ""


def test_project_defaults():
    project = Project(name="P")
    assert project.id is None
    assert project.labels == [] and project.rules == []
    assert project.to_json_dict() == {"name": "P", "docCount": 0, "labels": [], "rules": []}


def test_label_and_rule_content_keys():
    a = Label(id="1", name="Party", color="#f00")
    b = Label(id=2, name="Party", color="#f00")
    assert b.id == "2"
    assert a.content_key() == b.content_key()
    assert Rule(id="1", name="R", logic="x").content_key() != Rule(id="1", name="R", logic="y").content_key()


def test_blob_paths():
    assert project_blob_path("abc", BlobVariant.ORIGINAL, ".pdf") == "files/abc_original.pdf"
    assert project_blob_path("abc", "annotated", "") == "files/abc_annotated"
    assert document_blob_path(BlobVariant.ANNOTATED, ".txt") == "annotated.txt"


def test_archive_kinds():
    assert ArchiveKind.PROJECT.file_extension == ".alproj"
    assert ArchiveKind.BATCH.file_extension == ".alproj"
    assert ArchiveKind.DOCUMENT.file_extension == ".aldoc"
    assert not ArchiveKind.LABELS.is_container
    assert ExportResult(ArchiveKind.RULES, b"[]", "x.alrules").file_extension == ".alrules"
