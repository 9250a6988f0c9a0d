"""Cross-book presence: which manuscripts each entity appears in."""

from dataclasses import dataclass, field

from ..models.entities import EntityType
from ..store.base import KnowledgeStore, ManuscriptPresence


@dataclass
class EntityPresence:
    entity_id: int
    entity_name: str
    entity_type: EntityType
    manuscripts: list[ManuscriptPresence] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "entity_id": self.entity_id,
            "entity_name": self.entity_name,
            "entity_type": self.entity_type.value,
            "manuscripts": [m.to_dict() for m in self.manuscripts],
        }


def cross_book_presence(store: KnowledgeStore, project_id: int) -> list[EntityPresence]:
    """List every entity of a project with its per-manuscript chapter counts.

    Entities are ordered by type then name; manuscripts by id. Entities with
    no appearances are included with an empty manuscript list.
    """
    entities = sorted(store.list_entities(project_id), key=lambda e: (e.type.value, e.name))
    return [
        EntityPresence(
            entity_id=entity.id,
            entity_name=entity.name,
            entity_type=entity.type,
            manuscripts=store.manuscript_presence(entity.id),
        )
        for entity in entities
    ]
