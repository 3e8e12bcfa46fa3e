from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[2]
SOURCES = sorted((ROOT / "annotaloop").rglob("*.py")) + [ROOT / "main.py"]


@pytest.mark.parametrize("path", SOURCES, ids=lambda p: str(p.relative_to(ROOT)))
def test_module_header_names_project_producer(path):
    header = path.read_text(encoding="utf-8")[:600]
    if not header.startswith('"""\n---'):
        pytest.skip("module without header block")
    assert "Project:        AnnotaLoop" in header
    assert "Producer:       AnnotaLoop Archive maintainers" in header
    assert f"File:           {path.relative_to(ROOT).as_posix()}" in header
