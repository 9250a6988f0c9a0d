"""Knowledge store backends - base class."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

from ..models import Appearance, Chapter, Entity, EntityType, Manuscript, Project

DETECTED_NOTE = "Auto-detected"


@dataclass
class ManuscriptPresence:
    """Distinct chapter count for one entity within one manuscript."""

    id: int
    title: str
    chapter_count: int

    def to_dict(self) -> dict:
        return {"id": self.id, "title": self.title, "chapter_count": self.chapter_count}


class KnowledgeStore(ABC):
    """Persistence for projects, manuscripts, chapters, entities and appearances.

    The extraction and detection engines only read through this interface and
    insert appearances via add_appearance.
    """

    # --- Authoring ---

    @abstractmethod
    def create_project(self, name: str, path: str = "") -> Project:
        pass

    @abstractmethod
    def get_project(self, project_id: int) -> Project | None:
        pass

    @abstractmethod
    def list_projects(self) -> list[Project]:
        pass

    @abstractmethod
    def create_manuscript(self, project_id: int, title: str, file_path: str = "") -> Manuscript:
        pass

    @abstractmethod
    def get_manuscript(self, manuscript_id: int) -> Manuscript | None:
        pass

    @abstractmethod
    def add_chapter(self, manuscript_id: int, title: str, order_index: int, body: str) -> Chapter:
        pass

    @abstractmethod
    def create_entity(
        self,
        project_id: int,
        name: str,
        entity_type: EntityType | str,
        metadata: dict[str, Any] | None = None,
    ) -> Entity:
        pass

    @abstractmethod
    def list_appearances(self, entity_id: int | None = None, manuscript_id: int | None = None) -> list[Appearance]:
        pass

    # --- Engine reads ---

    @abstractmethod
    def list_entities(self, project_id: int) -> list[Entity]:
        """Entities of a project, ordered by name."""
        pass

    def entity_names(self, project_id: int) -> list[str]:
        return [entity.name for entity in self.list_entities(project_id)]

    @abstractmethod
    def list_manuscripts(self, project_id: int) -> list[Manuscript]:
        """Manuscripts of a project, ordered by id."""
        pass

    def manuscript_titles(self, project_id: int) -> dict[int, str]:
        return {ms.id: ms.title for ms in self.list_manuscripts(project_id)}

    @abstractmethod
    def list_chapters(self, manuscript_id: int) -> list[Chapter]:
        """Chapters of a manuscript, ordered by order_index."""
        pass

    @abstractmethod
    def list_project_chapters(self, project_id: int) -> list[Chapter]:
        """Chapters of every manuscript in a project, by manuscript id then order_index."""
        pass

    @abstractmethod
    def appearance_pairs(self, manuscript_id: int) -> set[tuple[int, int]]:
        """Existing (entity_id, chapter_id) pairs for a manuscript."""
        pass

    @abstractmethod
    def add_appearance(
        self,
        entity_id: int,
        manuscript_id: int,
        chapter_id: int,
        start: int | None = None,
        end: int | None = None,
        notes: str | None = DETECTED_NOTE,
    ) -> bool:
        """Insert an appearance.

        Detected appearances (notes == "Auto-detected") are unique per
        (entity_id, chapter_id); a duplicate insert is ignored.

        Returns:
            True if a row was written
        """
        pass

    @abstractmethod
    def entity_manuscript_ids(self, entity_id: int) -> list[int]:
        """Distinct manuscripts an entity has appearances in, ordered by id."""
        pass

    @abstractmethod
    def manuscript_presence(self, entity_id: int) -> list[ManuscriptPresence]:
        """Per-manuscript distinct chapter counts for an entity, ordered by manuscript id."""
        pass

    def close(self) -> None:
        pass

    def __enter__(self) -> "KnowledgeStore":
        return self

    def __exit__(self, *exc) -> None:
        self.close()
