import io
import logging

import pytest
from PyQt6.QtCore import QStandardPaths

import main
from annotaloop.database import DatabaseManager
from annotaloop.repositories import DocumentRepository, ProjectRepository
from annotaloop.service import open_storage


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch):
    QStandardPaths.setTestModeEnabled(True)
    # Non-interactive: never prompt for passwords
    monkeypatch.setattr(main.sys, "stdin", io.StringIO())
    yield
    QStandardPaths.setTestModeEnabled(False)
    root = logging.getLogger("annotaloop")
    for handler in root.handlers[:]:
        root.removeHandler(handler)
        handler.close()
    root.setLevel(logging.NOTSET)


@pytest.fixture
def store(tmp_path, sample_project, sample_documents):
    db_path = str(tmp_path / "store.db")
    vault_path = str(tmp_path / "vault")
    db = DatabaseManager(db_path)
    ProjectRepository(db).save(sample_project)
    DocumentRepository(db).save_many(sample_documents)
    storage = open_storage(vault_path, db)
    storage.put("old-a", ".pdf", "original", b"%PDF original")
    storage.put("old-a", ".pdf", "annotated", b"%PDF annotated")
    storage.put("old-b", ".txt", "original", b"plain notes")
    db.close()
    return ["--db", db_path, "--vault", vault_path]


def test_export_and_import_project(store, tmp_path, capsys):
    out_dir = tmp_path / "out"
    assert main.main(store + ["export-project", "7", "-o", str(out_dir), "--password", "pw"]) == 0
    archive = out_dir / "Contracts.alproj"
    assert archive.exists()
    assert "(encrypted)" in capsys.readouterr().out

    assert main.main(store + ["import-project", str(archive), "--password", "pw"]) == 0
    assert "Imported project 'Contracts (1)' (id 8) with 2 documents" in capsys.readouterr().out

    db = DatabaseManager(store[1])
    try:
        assert [d.name for d in DocumentRepository(db).list_by_project(8)] == ["report.pdf", "notes.txt"]
    finally:
        db.close()


def test_wrong_password_fails_without_prompt(store, tmp_path, capsys):
    out_dir = tmp_path / "out"
    main.main(store + ["export-project", "7", "-o", str(out_dir), "--password", "pw"])
    capsys.readouterr()

    assert main.main(store + ["import-project", str(out_dir / "Contracts.alproj"), "--password", "bad"]) == 1
    assert "Incorrect password" in capsys.readouterr().err


def test_invalid_file(store, tmp_path, capsys):
    bogus = tmp_path / "bogus.alproj"
    bogus.write_bytes(b"definitely not an archive")
    assert main.main(store + ["import-project", str(bogus)]) == 1
    assert "invalid or incompatible file" in capsys.readouterr().err


def test_wrong_kind_is_reported_as_invalid(store, tmp_path, capsys):
    out_dir = tmp_path / "out"
    main.main(store + ["export-document", "11", "-o", str(out_dir)])
    capsys.readouterr()
    assert main.main(store + ["import-project", str(out_dir / "report.aldoc")]) == 1
    assert "invalid or incompatible file" in capsys.readouterr().err


def test_labels_round_trip(store, tmp_path, capsys):
    out_dir = tmp_path / "out"
    assert main.main(store + ["export-labels", "7", "-o", str(out_dir)]) == 0
    assert main.main(store + ["import-labels", str(out_dir / "Contracts_labels.allabels"), "7"]) == 0
    assert "0 labels added" in capsys.readouterr().out


def test_inspect(store, tmp_path, capsys):
    out_dir = tmp_path / "out"
    main.main(store + ["export-project", "7", "-o", str(out_dir)])
    capsys.readouterr()

    assert main.main(store + ["inspect", str(out_dir / "Contracts.alproj")]) == 0
    out = capsys.readouterr().out
    assert "archive: 5 entries" in out
    assert "files/old-a_annotated.pdf" in out


def test_unknown_project(store, tmp_path, capsys):
    assert main.main(store + ["export-project", "404", "-o", str(tmp_path)]) == 1
    assert "Project 404 not found" in capsys.readouterr().err
