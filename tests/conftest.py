"""Shared fixtures."""

import pytest

from manuscript_kb.config import get_settings
from manuscript_kb.store.sqlite import SQLiteStore


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch):
    """Point settings at a throwaway database and clear the settings cache."""
    monkeypatch.setenv("MKB_DATA_DIR", str(tmp_path / "data"))
    monkeypatch.setenv("MKB_STORE_BACKEND", "sqlite")
    monkeypatch.delenv("MKB_DATABASE_PATH", raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def store():
    """An empty in-memory SQLite store."""
    s = SQLiteStore(":memory:")
    yield s
    s.close()


@pytest.fixture
def project(store):
    return store.create_project("Shadow Series", "/books/shadow")


@pytest.fixture
def add_manuscript(store, project):
    """Create a manuscript with one chapter per body."""

    def _add(title: str, bodies: list[str]):
        manuscript = store.create_manuscript(project.id, title, f"{title}.md")
        chapters = [
            store.add_chapter(manuscript.id, f"Chapter {i + 1}", i, body)
            for i, body in enumerate(bodies)
        ]
        return manuscript, chapters

    return _add
