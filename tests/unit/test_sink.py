from pathlib import Path

from annotaloop.sink import DirectorySink, sanitize_filename


def test_choose_path_adds_extension(tmp_path):
    sink = DirectorySink(tmp_path)
    assert sink.choose_path("Contracts", ".alproj") == str(tmp_path / "Contracts.alproj")
    assert sink.choose_path("Contracts.alproj", ".alproj") == str(tmp_path / "Contracts.alproj")


def test_existing_file_gets_suffix(tmp_path):
    (tmp_path / "Contracts.alproj").write_bytes(b"old")
    sink = DirectorySink(tmp_path)
    assert Path(sink.choose_path("Contracts.alproj", ".alproj")).name == "Contracts (1).alproj"


def test_overwrite_keeps_name(tmp_path):
    (tmp_path / "Contracts.alproj").write_bytes(b"old")
    sink = DirectorySink(tmp_path, overwrite=True)
    path = sink.choose_path("Contracts.alproj", ".alproj")
    sink.write_bytes(path, b"new")
    assert (tmp_path / "Contracts.alproj").read_bytes() == b"new"


def test_write_creates_directory(tmp_path):
    sink = DirectorySink(tmp_path / "a" / "b")
    path = sink.choose_path("x", ".aldoc")
    sink.write_bytes(path, b"data")
    assert Path(path).read_bytes() == b"data"


def test_sanitize_filename():
    assert sanitize_filename("Q1/Q2 report") == "Q1_Q2 report"
    assert sanitize_filename("a\\b") == "a_b"
    assert sanitize_filename("   ") == "export"
