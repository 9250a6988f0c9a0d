"""Neo4j knowledge store.

Graph layout:
    (:Project)-[:CONTAINS]->(:Manuscript)-[:HAS_CHAPTER]->(:Chapter)
    (:Entity)-[:BELONGS_TO]->(:Project)
    (:Entity)-[:APPEARS_IN {id, manuscript_id, text_range_start, text_range_end, notes}]->(:Chapter)

Nodes carry integer ids allocated from (:Sequence) counters so records map
one-to-one onto the SQLite backend.
"""

import json
import logging
from typing import Any

from neo4j import Driver, GraphDatabase
from neo4j.exceptions import AuthError, ClientError, ServiceUnavailable

from ..config import get_settings
from ..models import Appearance, Chapter, Entity, EntityType, Manuscript, Project
from .base import DETECTED_NOTE, KnowledgeStore, ManuscriptPresence

logger = logging.getLogger(__name__)

CONSTRAINTS = [
    "CREATE CONSTRAINT project_id IF NOT EXISTS FOR (p:Project) REQUIRE p.id IS UNIQUE",
    "CREATE CONSTRAINT manuscript_id IF NOT EXISTS FOR (m:Manuscript) REQUIRE m.id IS UNIQUE",
    "CREATE CONSTRAINT chapter_id IF NOT EXISTS FOR (c:Chapter) REQUIRE c.id IS UNIQUE",
    "CREATE CONSTRAINT entity_id IF NOT EXISTS FOR (e:Entity) REQUIRE e.id IS UNIQUE",
    "CREATE CONSTRAINT sequence_name IF NOT EXISTS FOR (s:Sequence) REQUIRE s.name IS UNIQUE",
]

INDEXES = [
    "CREATE INDEX entity_project IF NOT EXISTS FOR (e:Entity) ON (e.project_id)",
    "CREATE INDEX chapter_manuscript IF NOT EXISTS FOR (c:Chapter) ON (c.manuscript_id)",
]

NEXT_ID = """
MERGE (s:Sequence {name: $name})
ON CREATE SET s.value = 0
SET s.value = s.value + 1
RETURN s.value AS id
"""

APPEARANCE_FIELDS = (
    "r.id AS id, e.id AS entity_id, r.manuscript_id AS manuscript_id, c.id AS chapter_id, "
    "r.text_range_start AS text_range_start, r.text_range_end AS text_range_end, r.notes AS notes"
)


def _entity(row: dict) -> Entity:
    try:
        metadata = json.loads(row.get("metadata") or "{}")
    except json.JSONDecodeError:
        metadata = {}
    return Entity(
        id=row["id"],
        project_id=row["project_id"],
        type=row["type"],
        name=row["name"],
        metadata=metadata if isinstance(metadata, dict) else {},
    )


class Neo4jStore(KnowledgeStore):
    """Knowledge store backed by a Neo4j database."""

    def __init__(
        self,
        uri: str | None = None,
        user: str | None = None,
        password: str | None = None,
        driver: Driver | None = None,
    ):
        settings = get_settings()
        if driver is None:
            try:
                driver = GraphDatabase.driver(
                    uri or settings.neo4j_uri,
                    auth=(user or settings.neo4j_user, password or settings.neo4j_password),
                )
            except ValueError as e:
                raise ConnectionError(f"Cannot connect to Neo4j: {e}") from e
        self.driver = driver
        try:
            self.init_schema()
        except (ServiceUnavailable, AuthError) as e:
            raise ConnectionError(f"Cannot connect to Neo4j: {e}") from e

    def close(self) -> None:
        self.driver.close()

    def check_connection(self) -> bool:
        """Check if Neo4j is reachable and credentials are valid."""
        try:
            with self.driver.session() as session:
                session.run("RETURN 1")
            return True
        except (ServiceUnavailable, AuthError):
            return False

    def init_schema(self) -> None:
        """Create uniqueness constraints and lookup indexes."""
        with self.driver.session() as session:
            for statement in CONSTRAINTS + INDEXES:
                try:
                    session.run(statement)
                except ClientError as e:
                    logger.debug("Schema statement skipped: %s", e)

    # --- Helpers ---

    def _rows(self, query: str, **params: Any) -> list[dict]:
        with self.driver.session() as session:
            return [record.data() for record in session.run(query, **params)]

    def _single(self, query: str, **params: Any) -> dict | None:
        with self.driver.session() as session:
            record = session.run(query, **params).single()
            return record.data() if record else None

    def _next_id(self, name: str) -> int:
        row = self._single(NEXT_ID, name=name)
        if row is None:
            raise RuntimeError(f"Could not allocate id for {name}")
        return row["id"]

    # --- Authoring ---

    def create_project(self, name: str, path: str = "") -> Project:
        project_id = self._next_id("project")
        self._single(
            "CREATE (p:Project {id: $id, name: $name, path: $path}) RETURN p.id AS id",
            id=project_id,
            name=name,
            path=path,
        )
        return Project(id=project_id, name=name, path=path)

    def get_project(self, project_id: int) -> Project | None:
        row = self._single(
            "MATCH (p:Project {id: $id}) RETURN p.id AS id, p.name AS name, p.path AS path",
            id=project_id,
        )
        return Project(**row) if row else None

    def list_projects(self) -> list[Project]:
        rows = self._rows(
            "MATCH (p:Project) RETURN p.id AS id, p.name AS name, p.path AS path ORDER BY p.id"
        )
        return [Project(**row) for row in rows]

    def create_manuscript(self, project_id: int, title: str, file_path: str = "") -> Manuscript:
        manuscript_id = self._next_id("manuscript")
        self._single(
            """
            MATCH (p:Project {id: $project_id})
            CREATE (p)-[:CONTAINS]->(m:Manuscript {
                id: $id, project_id: $project_id, title: $title, file_path: $file_path
            })
            RETURN m.id AS id
            """,
            id=manuscript_id,
            project_id=project_id,
            title=title,
            file_path=file_path,
        )
        return Manuscript(id=manuscript_id, project_id=project_id, title=title, file_path=file_path)

    def get_manuscript(self, manuscript_id: int) -> Manuscript | None:
        row = self._single(
            "MATCH (m:Manuscript {id: $id}) "
            "RETURN m.id AS id, m.project_id AS project_id, m.title AS title, m.file_path AS file_path",
            id=manuscript_id,
        )
        return Manuscript(**row) if row else None

    def add_chapter(self, manuscript_id: int, title: str, order_index: int, body: str) -> Chapter:
        chapter_id = self._next_id("chapter")
        self._single(
            """
            MATCH (m:Manuscript {id: $manuscript_id})
            CREATE (m)-[:HAS_CHAPTER]->(c:Chapter {
                id: $id, manuscript_id: $manuscript_id, order_index: $order_index,
                title: $title, body: $body
            })
            RETURN c.id AS id
            """,
            id=chapter_id,
            manuscript_id=manuscript_id,
            order_index=order_index,
            title=title,
            body=body,
        )
        return Chapter(
            id=chapter_id,
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
        entity_id = self._next_id("entity")
        self._single(
            """
            MATCH (p:Project {id: $project_id})
            CREATE (e:Entity {
                id: $id, project_id: $project_id, type: $type, name: $name, metadata: $metadata
            })-[:BELONGS_TO]->(p)
            RETURN e.id AS id
            """,
            id=entity_id,
            project_id=project_id,
            type=entity_type.value,
            name=name,
            metadata=json.dumps(metadata),
        )
        return Entity(id=entity_id, project_id=project_id, type=entity_type, name=name, metadata=metadata)

    def list_appearances(self, entity_id: int | None = None, manuscript_id: int | None = None) -> list[Appearance]:
        rows = self._rows(
            f"""
            MATCH (e:Entity)-[r:APPEARS_IN]->(c:Chapter)
            WHERE ($entity_id IS NULL OR e.id = $entity_id)
              AND ($manuscript_id IS NULL OR r.manuscript_id = $manuscript_id)
            RETURN {APPEARANCE_FIELDS}
            ORDER BY r.id
            """,
            entity_id=entity_id,
            manuscript_id=manuscript_id,
        )
        return [Appearance(**row) for row in rows]

    # --- Engine reads ---

    def list_entities(self, project_id: int) -> list[Entity]:
        rows = self._rows(
            "MATCH (e:Entity {project_id: $project_id}) "
            "RETURN e.id AS id, e.project_id AS project_id, e.type AS type, e.name AS name, "
            "e.metadata AS metadata ORDER BY e.name",
            project_id=project_id,
        )
        return [_entity(row) for row in rows]

    def list_manuscripts(self, project_id: int) -> list[Manuscript]:
        rows = self._rows(
            "MATCH (m:Manuscript {project_id: $project_id}) "
            "RETURN m.id AS id, m.project_id AS project_id, m.title AS title, m.file_path AS file_path "
            "ORDER BY m.id",
            project_id=project_id,
        )
        return [Manuscript(**row) for row in rows]

    def list_chapters(self, manuscript_id: int) -> list[Chapter]:
        rows = self._rows(
            "MATCH (c:Chapter {manuscript_id: $manuscript_id}) "
            "RETURN c.id AS id, c.manuscript_id AS manuscript_id, c.order_index AS order_index, "
            "c.title AS title, c.body AS body ORDER BY c.order_index",
            manuscript_id=manuscript_id,
        )
        return [Chapter(**row) for row in rows]

    def list_project_chapters(self, project_id: int) -> list[Chapter]:
        rows = self._rows(
            "MATCH (:Project {id: $project_id})-[:CONTAINS]->(m:Manuscript)-[:HAS_CHAPTER]->(c:Chapter) "
            "RETURN c.id AS id, c.manuscript_id AS manuscript_id, c.order_index AS order_index, "
            "c.title AS title, c.body AS body ORDER BY m.id, c.order_index",
            project_id=project_id,
        )
        return [Chapter(**row) for row in rows]

    def appearance_pairs(self, manuscript_id: int) -> set[tuple[int, int]]:
        rows = self._rows(
            "MATCH (e:Entity)-[r:APPEARS_IN {manuscript_id: $manuscript_id}]->(c:Chapter) "
            "RETURN e.id AS entity_id, c.id AS chapter_id",
            manuscript_id=manuscript_id,
        )
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
        appearance_id = self._next_id("appearance")
        params = {
            "id": appearance_id,
            "entity_id": entity_id,
            "chapter_id": chapter_id,
            "manuscript_id": manuscript_id,
            "start": start,
            "end": end,
            "notes": notes,
        }

        if notes == DETECTED_NOTE:
            # MERGE keeps one detected relationship per (entity, chapter)
            row = self._single(
                """
                MATCH (e:Entity {id: $entity_id}), (c:Chapter {id: $chapter_id})
                MERGE (e)-[r:APPEARS_IN {notes: $notes}]->(c)
                ON CREATE SET r.id = $id, r.manuscript_id = $manuscript_id,
                              r.text_range_start = $start, r.text_range_end = $end
                RETURN r.id = $id AS created
                """,
                **params,
            )
        else:
            row = self._single(
                """
                MATCH (e:Entity {id: $entity_id}), (c:Chapter {id: $chapter_id})
                CREATE (e)-[r:APPEARS_IN {
                    id: $id, manuscript_id: $manuscript_id, notes: $notes,
                    text_range_start: $start, text_range_end: $end
                }]->(c)
                RETURN true AS created
                """,
                **params,
            )
        return bool(row and row["created"])

    def entity_manuscript_ids(self, entity_id: int) -> list[int]:
        rows = self._rows(
            "MATCH (:Entity {id: $entity_id})-[r:APPEARS_IN]->(:Chapter) "
            "RETURN DISTINCT r.manuscript_id AS manuscript_id ORDER BY manuscript_id",
            entity_id=entity_id,
        )
        return [row["manuscript_id"] for row in rows]

    def manuscript_presence(self, entity_id: int) -> list[ManuscriptPresence]:
        rows = self._rows(
            """
            MATCH (:Entity {id: $entity_id})-[:APPEARS_IN]->(c:Chapter)<-[:HAS_CHAPTER]-(m:Manuscript)
            RETURN m.id AS id, m.title AS title, count(DISTINCT c) AS chapter_count
            ORDER BY id
            """,
            entity_id=entity_id,
        )
        return [ManuscriptPresence(**row) for row in rows]
