"""SQLite knowledge store."""

import json
import logging
import sqlite3
from pathlib import Path
from typing import Any

from ..models import Appearance, Chapter, Entity, EntityType, Manuscript, Project
from .base import DETECTED_NOTE, KnowledgeStore, ManuscriptPresence

logger = logging.getLogger(__name__)

SCHEMA = f"""
CREATE TABLE IF NOT EXISTS project (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL,
    path TEXT NOT NULL DEFAULT '',
    created_at TEXT NOT NULL DEFAULT (datetime('now'))
);

CREATE TABLE IF NOT EXISTS manuscript (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    project_id INTEGER NOT NULL REFERENCES project(id) ON DELETE CASCADE,
    title TEXT NOT NULL,
    file_path TEXT NOT NULL DEFAULT '',
    created_at TEXT NOT NULL DEFAULT (datetime('now'))
);

CREATE TABLE IF NOT EXISTS chapter (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    manuscript_id INTEGER NOT NULL REFERENCES manuscript(id) ON DELETE CASCADE,
    title TEXT NOT NULL,
    order_index INTEGER NOT NULL,
    body TEXT NOT NULL DEFAULT ''
);

CREATE TABLE IF NOT EXISTS entity (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    project_id INTEGER NOT NULL REFERENCES project(id) ON DELETE CASCADE,
    type TEXT NOT NULL CHECK (type IN ('character','location','organization','artifact','concept','event')),
    name TEXT NOT NULL,
    metadata TEXT NOT NULL DEFAULT '{{}}',
    created_at TEXT NOT NULL DEFAULT (datetime('now'))
);

CREATE TABLE IF NOT EXISTS appearance (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    entity_id INTEGER NOT NULL REFERENCES entity(id) ON DELETE CASCADE,
    manuscript_id INTEGER NOT NULL REFERENCES manuscript(id) ON DELETE CASCADE,
    chapter_id INTEGER NOT NULL REFERENCES chapter(id) ON DELETE CASCADE,
    text_range_start INTEGER,
    text_range_end INTEGER,
    notes TEXT
);

CREATE INDEX IF NOT EXISTS idx_manuscript_project ON manuscript(project_id);
CREATE INDEX IF NOT EXISTS idx_chapter_manuscript ON chapter(manuscript_id);
CREATE INDEX IF NOT EXISTS idx_entity_project ON entity(project_id);
CREATE INDEX IF NOT EXISTS idx_appearance_entity ON appearance(entity_id);
CREATE INDEX IF NOT EXISTS idx_appearance_chapter ON appearance(chapter_id);

-- One detected appearance per (entity, chapter)
CREATE UNIQUE INDEX IF NOT EXISTS idx_appearance_detected
    ON appearance(entity_id, chapter_id) WHERE notes = '{DETECTED_NOTE}';
"""


def _load_metadata(raw: str | None) -> dict[str, Any]:
    if not raw:
        return {}
    try:
        value = json.loads(raw)
    except json.JSONDecodeError:
        logger.debug("Ignoring malformed entity metadata: %r", raw)
        return {}
    return value if isinstance(value, dict) else {}


class SQLiteStore(KnowledgeStore):
    """Knowledge store over a single SQLite file (or ":memory:")."""

    def __init__(self, path: Path | str = ":memory:"):
        if str(path) != ":memory:":
            Path(path).parent.mkdir(parents=True, exist_ok=True)
        self.path = str(path)
        self.conn = sqlite3.connect(self.path)
        self.conn.row_factory = sqlite3.Row
        self.conn.execute("PRAGMA foreign_keys = ON")
        self.conn.executescript(SCHEMA)
        logger.debug("Opened SQLite store at %s", self.path)

    def close(self) -> None:
        self.conn.close()

    # --- Authoring ---

    def create_project(self, name: str, path: str = "") -> Project:
        with self.conn:
            cursor = self.conn.execute(
                "INSERT INTO project (name, path) VALUES (?, ?)", (name, path)
            )
        return Project(id=cursor.lastrowid, name=name, path=path)

    def get_project(self, project_id: int) -> Project | None:
        row = self.conn.execute(
            "SELECT id, name, path FROM project WHERE id = ?", (project_id,)
        ).fetchone()
        return Project(**dict(row)) if row else None

    def list_projects(self) -> list[Project]:
        rows = self.conn.execute("SELECT id, name, path FROM project ORDER BY id").fetchall()
        return [Project(**dict(row)) for row in rows]

    def create_manuscript(self, project_id: int, title: str, file_path: str = "") -> Manuscript:
        with self.conn:
            cursor = self.conn.execute(
                "INSERT INTO manuscript (project_id, title, file_path) VALUES (?, ?, ?)",
                (project_id, title, file_path),
            )
        return Manuscript(id=cursor.lastrowid, project_id=project_id, title=title, file_path=file_path)

    def get_manuscript(self, manuscript_id: int) -> Manuscript | None:
        row = self.conn.execute(
            "SELECT id, project_id, title, file_path FROM manuscript WHERE id = ?",
            (manuscript_id,),
        ).fetchone()
        return Manuscript(**dict(row)) if row else None

    def add_chapter(self, manuscript_id: int, title: str, order_index: int, body: str) -> Chapter:
        with self.conn:
            cursor = self.conn.execute(
                "INSERT INTO chapter (manuscript_id, title, order_index, body) VALUES (?, ?, ?, ?)",
                (manuscript_id, title, order_index, body),
            )
        return Chapter(
            id=cursor.lastrowid,
            manuscript_id=manuscript_id,
            order_index=order_index,
            title=title,
            body=body,
        )

    def create_entity(
        self,
        project_id: int,
        name: str,
        entity_type: EntityType | str,
        metadata: dict[str, Any] | None = None,
    ) -> Entity:
        entity_type = EntityType(entity_type)
        metadata = metadata or {}
        with self.conn:
            cursor = self.conn.execute(
                "INSERT INTO entity (project_id, type, name, metadata) VALUES (?, ?, ?, ?)",
                (project_id, entity_type.value, name, json.dumps(metadata)),
            )
        return Entity(
            id=cursor.lastrowid,
            project_id=project_id,
            type=entity_type,
            name=name,
            metadata=metadata,
        )

    def list_appearances(self, entity_id: int | None = None, manuscript_id: int | None = None) -> list[Appearance]:
        query = (
            "SELECT id, entity_id, manuscript_id, chapter_id, text_range_start, text_range_end, notes "
            "FROM appearance"
        )
        clauses: list[str] = []
        params: list[int] = []
        if entity_id is not None:
            clauses.append("entity_id = ?")
            params.append(entity_id)
        if manuscript_id is not None:
            clauses.append("manuscript_id = ?")
            params.append(manuscript_id)
        if clauses:
            query += " WHERE " + " AND ".join(clauses)
        query += " ORDER BY id"
        return [Appearance(**dict(row)) for row in self.conn.execute(query, params)]

    # --- Engine reads ---

    def list_entities(self, project_id: int) -> list[Entity]:
        rows = self.conn.execute(
            "SELECT id, project_id, type, name, metadata FROM entity WHERE project_id = ? ORDER BY name",
            (project_id,),
        ).fetchall()
        return [
            Entity(
                id=row["id"],
                project_id=row["project_id"],
                type=row["type"],
                name=row["name"],
                metadata=_load_metadata(row["metadata"]),
            )
            for row in rows
        ]

    def list_manuscripts(self, project_id: int) -> list[Manuscript]:
        rows = self.conn.execute(
            "SELECT id, project_id, title, file_path FROM manuscript WHERE project_id = ? ORDER BY id",
            (project_id,),
        ).fetchall()
        return [Manuscript(**dict(row)) for row in rows]

    def list_chapters(self, manuscript_id: int) -> list[Chapter]:
        rows = self.conn.execute(
            "SELECT id, manuscript_id, order_index, title, body FROM chapter "
            "WHERE manuscript_id = ? ORDER BY order_index",
            (manuscript_id,),
        ).fetchall()
        return [Chapter(**dict(row)) for row in rows]

    def list_project_chapters(self, project_id: int) -> list[Chapter]:
        rows = self.conn.execute(
            "SELECT c.id, c.manuscript_id, c.order_index, c.title, c.body FROM chapter c "
            "JOIN manuscript m ON c.manuscript_id = m.id "
            "WHERE m.project_id = ? ORDER BY m.id, c.order_index",
            (project_id,),
        ).fetchall()
        return [Chapter(**dict(row)) for row in rows]

    def appearance_pairs(self, manuscript_id: int) -> set[tuple[int, int]]:
        rows = self.conn.execute(
            "SELECT entity_id, chapter_id FROM appearance WHERE manuscript_id = ?",
            (manuscript_id,),
        ).fetchall()
        return {(row["entity_id"], row["chapter_id"]) for row in rows}

    def add_appearance(
        self,
        entity_id: int,
        manuscript_id: int,
        chapter_id: int,
        start: int | None = None,
        end: int | None = None,
        notes: str | None = DETECTED_NOTE,
    ) -> bool:
        with self.conn:
            cursor = self.conn.execute(
                "INSERT OR IGNORE INTO appearance "
                "(entity_id, manuscript_id, chapter_id, text_range_start, text_range_end, notes) "
                "VALUES (?, ?, ?, ?, ?, ?)",
                (entity_id, manuscript_id, chapter_id, start, end, notes),
            )
        return cursor.rowcount == 1

    def entity_manuscript_ids(self, entity_id: int) -> list[int]:
        rows = self.conn.execute(
            "SELECT DISTINCT manuscript_id FROM appearance WHERE entity_id = ? ORDER BY manuscript_id",
            (entity_id,),
        ).fetchall()
        return [row["manuscript_id"] for row in rows]

    def manuscript_presence(self, entity_id: int) -> list[ManuscriptPresence]:
        rows = self.conn.execute(
            """
            SELECT m.id, m.title, COUNT(DISTINCT a.chapter_id) AS chapter_count
            FROM appearance a
            JOIN manuscript m ON a.manuscript_id = m.id
            WHERE a.entity_id = ?
            GROUP BY m.id, m.title
            ORDER BY m.id
            """,
            (entity_id,),
        ).fetchall()
        return [
            ManuscriptPresence(id=row["id"], title=row["title"], chapter_count=row["chapter_count"])
            for row in rows
        ]
