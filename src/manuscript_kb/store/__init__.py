"""Knowledge store backends."""

from ..config import Settings, get_settings
from .base import DETECTED_NOTE, KnowledgeStore, ManuscriptPresence
from .sqlite import SQLiteStore


def open_store(settings: Settings | None = None) -> KnowledgeStore:
    """Open the configured store backend ("sqlite" or "neo4j")."""
    settings = settings or get_settings()
    backend = settings.store_backend.lower()

    if backend == "neo4j":
        from .neo4j import Neo4jStore

        return Neo4jStore(settings.neo4j_uri, settings.neo4j_user, settings.neo4j_password)
    if backend == "sqlite":
        return SQLiteStore(settings.sqlite_path)

    raise ValueError(f"Unknown store backend: {settings.store_backend}")


__all__ = [
    "DETECTED_NOTE",
    "KnowledgeStore",
    "ManuscriptPresence",
    "SQLiteStore",
    "open_store",
]
