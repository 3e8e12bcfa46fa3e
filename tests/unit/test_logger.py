"""
------------------------------------------------------------------------------
Project:        AnnotaLoop
File:           tests/unit/test_logger.py
Version:        1.0.0
Producer:       AnnotaLoop Archive maintainers
Description:    Unit tests for the centralized logging system.
------------------------------------------------------------------------------
"""

import logging

import pytest

from annotaloop.builder import ArchiveBuilder
from annotaloop.logger import get_logger, log_archive_entries, set_component_level, setup_logging
from annotaloop.models import Document, Project
from annotaloop.storage import MemoryStorage


@pytest.fixture(autouse=True)
def reset_logging():
    yield
    root = logging.getLogger("annotaloop")
    for handler in root.handlers[:]:
        root.removeHandler(handler)
        handler.close()
    root.setLevel(logging.NOTSET)
    for name in ("annotaloop.archive", "annotaloop.db"):
        logging.getLogger(name).setLevel(logging.NOTSET)


def flush():
    for handler in logging.getLogger("annotaloop").handlers:
        handler.flush()


def test_logger_namespace():
    """Verify that get_logger returns a child of the annotaloop root."""
    logger = get_logger("archive.builder")
    assert logger.name == "annotaloop.archive.builder"
    assert get_logger("annotaloop.db").name == "annotaloop.db"


def test_logging_to_file(tmp_path):
    """Verify that logs are correctly written to a file."""
    log_file = tmp_path / "app.log"
    setup_logging(level="DEBUG", log_file=str(log_file))

    test_msg = "Logging to file test message"
    get_logger("test").debug(test_msg)
    flush()

    assert log_file.exists()
    assert test_msg in log_file.read_text()


def test_component_level_overrides(tmp_path):
    """Verify that specific components can have different log levels."""
    log_file = tmp_path / "component.log"
    setup_logging(level="INFO", log_file=str(log_file), component_levels={"archive": "DEBUG"})

    get_logger("archive.codec").debug("ARCHIVE DEBUG MESSAGE")
    get_logger("db").debug("DB DEBUG MESSAGE")
    flush()

    content = log_file.read_text()
    assert "ARCHIVE DEBUG MESSAGE" in content
    assert "DB DEBUG MESSAGE" not in content


def test_set_component_level_ignores_unknown_level():
    set_component_level("db", "LOUD")
    assert get_logger("db").level == logging.NOTSET


def test_archive_entries_logged_at_debug(tmp_path):
    log_file = tmp_path / "entries.log"
    setup_logging(level="DEBUG", log_file=str(log_file))
    log_archive_entries("project", ["documents.json", "project.json"])
    flush()
    content = log_file.read_text()
    assert "PROJECT ARCHIVE: 2 entries" in content
    assert "project.json" in content


def test_missing_blob_is_logged_as_warning(caplog):
    project = Project(id=1, name="P")
    doc = Document(id=1, name="lost.pdf", project_id=1, storage_id="gone")
    with caplog.at_level(logging.WARNING, logger="annotaloop"):
        ArchiveBuilder(MemoryStorage()).build_project(project, [doc])
    assert any(r.levelno == logging.WARNING and "lost.pdf" in r.getMessage() for r in caplog.records)
